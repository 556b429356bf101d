"""
Pure scoring & progression engine.

Modules take plain data and an optional ScoringConfig and return new
values; only session.WorkoutSession holds state.
"""
