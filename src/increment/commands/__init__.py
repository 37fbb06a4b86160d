"""CLI commands for increment."""

from .profile import profile
from .session import session
from .sync import status, sync
from .workouts import workouts

__all__ = [
    "profile",
    "session",
    "status",
    "sync",
    "workouts",
]
