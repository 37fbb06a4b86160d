"""Resume-where-you-left-off snapshot of the active session."""

import logging

from ..db.local_store import LocalStore
from ..models.session import SessionSnapshot, SnapshotWorkout
from ..models.workout import Workout
from ..utils.dates import utcnow
from .workout_repository import WorkoutRepository

logger = logging.getLogger(__name__)


class SessionSnapshotManager:
    """Persists and restores the active session across app terminations."""

    def __init__(self, store: LocalStore, workouts: WorkoutRepository):
        self._store = store
        self._workouts = workouts

    async def save_snapshot(
        self,
        selected_workout_day_name: str | None,
        active_workout: Workout | None,
    ) -> SessionSnapshot:
        """Overwrite the snapshot with the given selection and workout.

        Raises:
            OSError: if the snapshot cannot be written
        """
        snapshot = SessionSnapshot(
            selected_workout_day_name=selected_workout_day_name,
            current_workout=(
                SnapshotWorkout.from_workout(active_workout) if active_workout else None
            ),
            saved_at=utcnow(),
        )
        await self._store.write_snapshot(snapshot)
        self._workouts.session.saved_at = snapshot.saved_at
        return snapshot

    async def checkpoint(self, workout: Workout | None = None) -> SessionSnapshot:
        """Snapshot the repository's current session.

        Used as the repository's active-workout hook and on backgrounding or
        shutdown.
        """
        session = self._workouts.session
        return await self.save_snapshot(
            session.selected_workout_day_name,
            workout if workout is not None else session.workout,
        )

    async def restore_snapshot(self) -> tuple[str | None, bool]:
        """Install the snapshotted workout as the active session.

        The workout is appended to the collection if its identity is not
        already there; otherwise the stored record becomes active unchanged.
        A missing or unreadable snapshot counts as none.

        Returns:
            (selected workout-day name, whether a workout was restored)
        """
        snapshot = await self._store.read_snapshot()
        if snapshot is None:
            return None, False

        session = self._workouts.session
        session.selected_workout_day_name = snapshot.selected_workout_day_name
        session.saved_at = snapshot.saved_at

        if snapshot.current_workout is None:
            return snapshot.selected_workout_day_name, False

        workout = snapshot.current_workout.to_workout()
        existing = self._workouts.get(workout.id)
        if existing is None:
            self._workouts.workouts.append(workout)
        else:
            # The stored record is at least as new as the snapshot
            workout = existing
        session.workout = workout

        logger.debug("Restored active workout %s from snapshot", workout.name)
        return snapshot.selected_workout_day_name, True

    async def clear(self) -> None:
        """Delete the snapshot file."""
        await self._store.delete_snapshot()
