"""repforge: scoring & progression engine for lifting workouts."""

__version__ = "0.1.0"
