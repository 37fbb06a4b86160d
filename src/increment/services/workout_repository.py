"""Workout collection and active-session repository.

Owns the in-memory workout list and the active session, and reconciles them
with the local file store and the remote gateway. Local writes are the hard
guarantee; remote calls are best-effort and their failures only update
``last_error``.
"""

import asyncio
import logging
import time
from collections.abc import Awaitable, Callable
from datetime import date, datetime, timezone

from ..clients.base import (
    PROGRESS_PHOTOS_BUCKET,
    RemoteError,
    RemoteGateway,
    progress_photo_path,
)
from ..db.local_store import LocalStore
from ..models.session import ActiveSession
from ..models.user_profile import WorkoutDay
from ..models.workout import (
    PROGRESS_PHOTO_NAME,
    WEIGHT_UPDATE_NAME,
    ExerciseEntry,
    Workout,
)
from ..utils.dates import as_utc, is_same_local_day, local_day, utc_day, utcnow
from ..utils.exercise_utils import names_match
from .background import BackgroundTasks

logger = logging.getLogger(__name__)

# Seconds between unforced reconciliations
RECONCILE_COOLDOWN = 30.0


def merge_workouts(local: list[Workout], remote: list[Workout]) -> list[Workout]:
    """Merge local and remote collections; local wins on identity collision.

    Remote order is kept, each remote workout with a local counterpart is
    replaced by the local version, and local-only workouts are appended.
    Merging the same inputs again yields the same collection.
    """
    merged = list(remote)
    index = {w.id: i for i, w in enumerate(merged)}

    for workout in local:
        if workout.id in index:
            merged[index[workout.id]] = workout
        else:
            index[workout.id] = len(merged)
            merged.append(workout)

    return merged


def find_duplicate_workouts(workouts: list[Workout]) -> list[Workout]:
    """Find workouts that duplicate another on the same (day, name).

    Workouts are grouped by UTC calendar day and name. In each group the most
    recently created one is kept (missing creation time counts as oldest,
    ties keep the earlier one in input order) and the rest are returned.
    """
    groups: dict[tuple[date, str], list[Workout]] = {}
    for workout in workouts:
        groups.setdefault((utc_day(workout.date), workout.name), []).append(workout)

    oldest = datetime.min.replace(tzinfo=timezone.utc)

    def created_key(workout: Workout) -> datetime:
        if workout.created_at is None:
            return oldest
        return as_utc(workout.created_at)

    duplicates = []
    for group in groups.values():
        if len(group) < 2:
            continue
        ordered = sorted(group, key=created_key, reverse=True)
        duplicates.extend(ordered[1:])

    return duplicates


class WorkoutRepository:
    """Repository for workout history and the active session.

    All mutations are expected from a single event loop; I/O is awaited and
    never blocks it. Fire-and-forget work (duplicate cleanup, fallback push)
    runs as owned background tasks, see ``wait_for_background()``.
    """

    def __init__(
        self,
        store: LocalStore,
        gateway: RemoteGateway,
        cooldown: float = RECONCILE_COOLDOWN,
        clock: Callable[[], float] = time.monotonic,
    ):
        """Initialize the repository.

        Args:
            store: Local file store
            gateway: Remote gateway
            cooldown: Seconds after a successful reconciliation during which
                unforced reconciliations are skipped
            clock: Monotonic time source
        """
        self._store = store
        self._gateway = gateway
        self.cooldown = cooldown
        self._clock = clock
        self._background = BackgroundTasks()
        self._write_lock = asyncio.Lock()

        self.workouts: list[Workout] = []
        self.session = ActiveSession()
        self.last_error: str | None = None

        self._last_reconciled_at: float | None = None
        self._did_cleanup_duplicates = False
        self.on_active_workout_changed: Callable[[Workout | None], Awaitable[None]] | None = None

    @property
    def active_workout(self) -> Workout | None:
        return self.session.workout

    def get(self, workout_id: str) -> Workout | None:
        for workout in self.workouts:
            if workout.id == workout_id:
                return workout
        return None

    def _record_error(self, action: str, exc: BaseException) -> None:
        self.last_error = f"Failed to {action}: {exc}"
        logger.warning(self.last_error)

    def _upsert_in_memory(self, workout: Workout) -> None:
        for i, existing in enumerate(self.workouts):
            if existing.id == workout.id:
                self.workouts[i] = workout
                return
        self.workouts.append(workout)

    async def _write_local(self) -> None:
        """Write the current collection; concurrent writers take turns."""
        async with self._write_lock:
            await self._store.write_workouts(self.workouts)

    def _adopt(self, workouts: list[Workout]) -> None:
        """Install a collection, keeping the live active workout in it."""
        self.workouts = workouts
        if self.session.workout is not None:
            self._upsert_in_memory(self.session.workout)

    # Loading and reconciliation

    async def load_local_first(self) -> list[Workout]:
        """Populate the collection from the local store only."""
        self.workouts = await self._store.read_workouts()
        logger.debug("Loaded %d workouts from local store", len(self.workouts))
        return self.workouts

    async def reconcile_with_remote(self, force_reload: bool = False) -> bool:
        """Merge local and remote workouts (local wins) and persist both ways.

        No-op when not authenticated, or within the cool-down window of the
        last successful reconciliation unless ``force_reload`` is set. On a
        remote failure the purely local collection is kept and pushed in the
        background; nothing is raised.

        Returns:
            True if a reconciliation completed successfully

        Raises:
            OSError: if the local write fails
        """
        if not self._gateway.is_authenticated():
            return False

        if (
            not force_reload
            and self._last_reconciled_at is not None
            and self._clock() - self._last_reconciled_at < self.cooldown
        ):
            logger.debug("Skipping reconciliation inside cool-down window")
            return False

        user_id = self._gateway.current_user_id()

        if not self._did_cleanup_duplicates:
            self._did_cleanup_duplicates = True
            self._background.spawn(
                self.cleanup_duplicates(),
                name="clean up duplicate workouts",
                on_error=self._record_error,
            )

        try:
            remote = await self._gateway.fetch_all_workouts(user_id)
            local = await self._store.read_workouts()
            self._adopt(merge_workouts(local, remote))
            await self._promote_local_photos()
            self._refresh_caches()
            await self._write_local()
            await self._gateway.upsert_workouts(self.workouts)
        except RemoteError as exc:
            self._record_error("reconcile workouts", exc)
            self._adopt(await self._store.read_workouts())
            self._background.spawn(
                self._gateway.upsert_workouts(list(self.workouts)),
                name="push local workouts",
                on_error=self._record_error,
            )
            return False

        self._last_reconciled_at = self._clock()
        self.last_error = None
        logger.info(
            "Reconciled workouts: %d remote, %d local, %d merged",
            len(remote),
            len(local),
            len(self.workouts),
        )
        return True

    async def cleanup_duplicates(self) -> list[str]:
        """Delete remote workouts duplicating another on the same (day, name).

        The most recently created row of each group survives. Deleted ids
        are also dropped from the local collection (except the active
        workout) so the next push does not recreate them.

        Returns:
            Identity tokens of the deleted workouts

        Raises:
            RemoteError: if fetching or deleting fails
        """
        user_id = self._gateway.current_user_id()
        if not self._gateway.is_authenticated() or user_id is None:
            return []

        remote = await self._gateway.fetch_all_workouts(user_id)
        deleted = []
        for workout in find_duplicate_workouts(remote):
            await self._gateway.delete_workout(workout.id)
            deleted.append(workout.id)

        if deleted:
            logger.info("Removed %d duplicate remote workouts", len(deleted))
            active_id = self.active_workout.id if self.active_workout else None
            doomed = set(deleted) - {active_id}
            remaining = [w for w in self.workouts if w.id not in doomed]
            if len(remaining) != len(self.workouts):
                self.workouts = remaining
                await self._write_local()

        return deleted

    async def _promote_local_photos(self) -> None:
        """Upload photos stored locally while offline and point at the remote copy."""
        user_id = self._gateway.current_user_id()
        for workout in self.workouts:
            if not workout.has_local_photo:
                continue
            data = await self._store.read_photo(workout.progress_photo_url)
            if data is None:
                continue
            try:
                url = await self._gateway.upload_binary(
                    PROGRESS_PHOTOS_BUCKET, progress_photo_path(user_id, workout.id), data
                )
            except RemoteError as exc:
                self._record_error("upload local progress photo", exc)
                continue
            workout.progress_photo_url = url

    # Saving

    def _refresh_caches(self) -> None:
        for workout in self.workouts:
            workout.refresh_max_weights()

    async def save(self) -> None:
        """Persist the collection locally, then push it to the remote store.

        Raises:
            OSError: if the local write fails (remote failures only set
                ``last_error``)
        """
        self._refresh_caches()
        await self._write_local()

        if not self._gateway.is_authenticated():
            return
        try:
            await self._gateway.upsert_workouts(self.workouts)
        except RemoteError as exc:
            self._record_error("save workouts", exc)
            return
        self.last_error = None

    # Active session

    async def update_active_workout(self, workout: Workout) -> None:
        """Make ``workout`` the active session and save the collection.

        Every edit to the workout in progress goes through here.
        """
        workout.updated_at = utcnow()
        self.session.workout = workout
        self._upsert_in_memory(workout)
        await self.save()

        if self.on_active_workout_changed is not None:
            await self.on_active_workout_changed(workout)

    def select_workout_day(self, name: str | None) -> None:
        self.session.selected_workout_day_name = name

    def restore_active_workout(self, now: datetime | None = None) -> Workout | None:
        """Pick today's workout as the active session if none is set.

        Exercise workouts are preferred over weight-update and progress-photo
        records.
        """
        if self.session.workout is not None:
            return self.session.workout

        today = local_day(now or utcnow())
        todays = [w for w in self.workouts if is_same_local_day(w.date, today)]
        exercise_workouts = [w for w in todays if not w.is_ancillary]

        candidates = exercise_workouts or todays
        if candidates:
            self.session.workout = candidates[0]
            logger.debug("Restored active workout %s", candidates[0].name)
        return self.session.workout

    def find_for_day(self, name: str, day: datetime | date | None = None) -> Workout | None:
        """Find the workout with ``name`` on a local calendar day (today by default)."""
        day = day or utcnow()
        for workout in self.workouts:
            if workout.name == name and is_same_local_day(workout.date, day):
                return workout
        return None

    async def start_workout(self, day: WorkoutDay, when: datetime | None = None) -> Workout:
        """Start (or resume) today's workout for a workout-day template."""
        when = when or utcnow()
        self.select_workout_day(day.name)

        workout = self.find_for_day(day.name, when)
        if workout is None:
            workout = day.instantiate(when)
            await self.update_active_workout(workout)
        else:
            self.session.workout = workout
        return workout

    # Deletion and ancillary records

    async def delete_workout(self, workout_id: str) -> bool:
        """Delete a workout locally and remotely.

        The local deletion is never rolled back; a remote failure only sets
        ``last_error``.

        Returns:
            True if the workout was in the collection
        """
        before = len(self.workouts)
        self.workouts = [w for w in self.workouts if w.id != workout_id]
        if len(self.workouts) == before:
            return False

        was_active = (
            self.session.workout is not None and self.session.workout.id == workout_id
        )
        if was_active:
            self.session.workout = None

        await self.save()

        if was_active and self.on_active_workout_changed is not None:
            await self.on_active_workout_changed(None)

        if self._gateway.is_authenticated():
            try:
                await self._gateway.delete_workout(workout_id)
            except RemoteError as exc:
                self._record_error("delete workout from remote store", exc)
        return True

    async def _store_photo(self, data: bytes, workout_id: str) -> str | None:
        """Upload (or, offline, save locally) a photo and return its reference."""
        if not self._gateway.is_authenticated():
            return await self._store.write_photo(workout_id, data)
        try:
            return await self._gateway.upload_binary(
                PROGRESS_PHOTOS_BUCKET,
                progress_photo_path(self._gateway.current_user_id(), workout_id),
                data,
            )
        except RemoteError as exc:
            self._record_error("upload progress photo", exc)
            return None

    async def upload_progress_photo(self, data: bytes, workout_id: str) -> str | None:
        """Attach a progress photo to a workout.

        Uploads to the remote store when authenticated; otherwise stores the
        bytes locally and references the file. An upload failure leaves the
        workout untouched.

        Returns:
            The new photo reference, or None if the upload failed
        """
        url = await self._store_photo(data, workout_id)
        if url is None:
            return None

        workout = self.get(workout_id)
        if workout is not None:
            workout.progress_photo_url = url
        if self.session.workout is not None and self.session.workout.id == workout_id:
            self.session.workout.progress_photo_url = url

        await self.save()
        return url

    def _ancillary_workout(self, name: str, when: datetime) -> Workout:
        """Find the day's record with ``name``, or a new one not yet in the collection."""
        return self.find_for_day(name, when) or Workout(date=when, name=name)

    async def log_body_weight(self, weight: float, when: datetime | None = None) -> Workout:
        """Record today's body weight on the day's "Weight Update" record."""
        if weight <= 0:
            raise ValueError(f"Body weight must be positive, got {weight}")
        workout = self._ancillary_workout(WEIGHT_UPDATE_NAME, when or utcnow())
        workout.body_weight = weight
        workout.updated_at = utcnow()
        self._upsert_in_memory(workout)
        await self.save()
        return workout

    async def log_progress_photo(self, data: bytes, when: datetime | None = None) -> str | None:
        """Attach a photo to the day's "Progress Photo" record.

        A new record joins the collection only once the photo is stored.
        """
        workout = self._ancillary_workout(PROGRESS_PHOTO_NAME, when or utcnow())
        url = await self._store_photo(data, workout.id)
        if url is None:
            return None

        workout.progress_photo_url = url
        workout.updated_at = utcnow()
        self._upsert_in_memory(workout)
        if self.session.workout is not None and self.session.workout.id == workout.id:
            self.session.workout.progress_photo_url = url

        await self.save()
        return url

    # Queries

    def workouts_for_date(self, day: date | datetime) -> list[Workout]:
        return [w for w in self.workouts if is_same_local_day(w.date, day)]

    def dates_with_workouts(self) -> set[date]:
        return {local_day(w.date) for w in self.workouts}

    def exercise_history(
        self, template_id: str | None = None, name: str | None = None
    ) -> list[tuple[datetime, ExerciseEntry]]:
        """List past entries of an exercise, newest first.

        Entries match on template identity, or on a loose name match when
        ``name`` is given.
        """
        if template_id is None and name is None:
            raise ValueError("template_id or name is required")

        history = []
        for workout in self.workouts:
            for entry in workout.exercises:
                if (template_id is not None and entry.template_id == template_id) or (
                    name is not None and names_match(entry.name, name)
                ):
                    history.append((workout.date, entry))

        history.sort(key=lambda item: as_utc(item[0]), reverse=True)
        return history

    # Lifecycle

    async def reset(self) -> None:
        """Forget all workouts and the active session and delete the local file."""
        self._background.cancel_all()
        self.workouts = []
        self.session.clear()
        self.last_error = None
        self._last_reconciled_at = None
        await self._store.delete_workouts()

    async def wait_for_background(self) -> None:
        """Wait for outstanding fire-and-forget work."""
        await self._background.drain()
