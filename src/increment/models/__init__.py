"""Data models for increment."""

from .session import ActiveSession, SessionSnapshot, SnapshotWorkout
from .user_profile import (
    BodyWeightGoal,
    ExerciseGoal,
    ExerciseTemplate,
    UserProfile,
    WorkoutDay,
)
from .workout import (
    ANCILLARY_WORKOUT_NAMES,
    PROGRESS_PHOTO_NAME,
    WEIGHT_UPDATE_NAME,
    ExerciseEntry,
    Workout,
    WorkoutSet,
    new_id,
)

__all__ = [
    "ActiveSession",
    "ANCILLARY_WORKOUT_NAMES",
    "BodyWeightGoal",
    "ExerciseEntry",
    "ExerciseGoal",
    "ExerciseTemplate",
    "new_id",
    "PROGRESS_PHOTO_NAME",
    "SessionSnapshot",
    "SnapshotWorkout",
    "UserProfile",
    "WEIGHT_UPDATE_NAME",
    "Workout",
    "WorkoutDay",
    "WorkoutSet",
]
