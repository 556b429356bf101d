"""
Muscle and equipment tagging for catalog exercises.

Exercises list their secondary muscles explicitly when known; compound
lifts without that data fall back to name patterns.  At most three muscles
are tracked per exercise, primary first.
"""

from typing import Literal

from .models import Exercise

EquipmentCategory = Literal["barbell", "dumbbell", "machine", "bodyweight", "cable"]

MAX_MUSCLE_TAGS = 3

# (name fragments, secondary muscles added for compound lifts)
_COMPOUND_PATTERNS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("bench", "push-up", "pushup"), ("Triceps", "Shoulders")),
    (("row", "pull-up", "pullup", "chin-up", "lat pull"), ("Biceps",)),
    (("squat", "leg press", "lunge"), ("Glutes", "Hamstrings")),
    (("deadlift",), ("Hamstrings", "Glutes")),
    (("shoulder press", "overhead", "military"), ("Triceps",)),
    (("dip",), ("Triceps", "Chest")),
)

_MACHINE_FRAGMENTS: tuple[str, ...] = (
    "machine",
    "smith",
    "leg press",
    "hack",
    "lat pulldown",
    "pec deck",
    "seated",
    "assisted",
)


def muscle_tags(exercise: Exercise) -> list[str]:
    """
    Muscles an exercise works, primary first, at most three.

    Explicit secondary_muscles win; otherwise compound exercises pick up
    secondaries from their name.
    """
    muscles = [exercise.muscle_group]
    secondaries: tuple[str, ...] = exercise.secondary_muscles

    if not secondaries and exercise.is_compound:
        name = exercise.name.lower()
        for fragments, extra in _COMPOUND_PATTERNS:
            if any(f in name for f in fragments):
                secondaries = extra
                break

    for muscle in secondaries:
        if muscle.lower() not in {m.lower() for m in muscles}:
            muscles.append(muscle)
    return muscles[:MAX_MUSCLE_TAGS]


def is_multi_muscle(exercise: Exercise) -> bool:
    """True when the exercise works two or more tagged muscles."""
    return len(muscle_tags(exercise)) >= 2


def equipment_category(exercise: Exercise) -> EquipmentCategory:
    """Classify an exercise's equipment into one ranking category."""
    if exercise.exercise_type == "bodyweight" or not exercise.equipment:
        return "bodyweight"

    text = " ".join(exercise.equipment).lower()
    if any(f in text for f in ("barbell", "ez bar", "trap bar")):
        return "barbell"
    if "dumbbell" in text or "db" in text.split():
        return "dumbbell"
    if "cable" in text:
        return "cable"
    if any(f in text for f in _MACHINE_FRAGMENTS):
        return "machine"
    if "pull-up" in text or "dip" in text:
        return "bodyweight"
    return "machine"
