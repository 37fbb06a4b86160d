"""Repositories and services for increment."""

from .background import BackgroundTasks
from .profile_repository import ProfileRepository
from .session_snapshot import SessionSnapshotManager
from .workout_repository import (
    WorkoutRepository,
    find_duplicate_workouts,
    merge_workouts,
)

__all__ = [
    "BackgroundTasks",
    "find_duplicate_workouts",
    "merge_workouts",
    "ProfileRepository",
    "SessionSnapshotManager",
    "WorkoutRepository",
]
