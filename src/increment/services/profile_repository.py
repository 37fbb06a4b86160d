"""User profile repository with debounced saves."""

import logging

from ..clients.base import (
    PROFILE_IMAGES_BUCKET,
    RemoteError,
    RemoteGateway,
    profile_image_path,
)
from ..db.local_store import LocalStore
from ..models.user_profile import (
    BodyWeightGoal,
    ExerciseGoal,
    UserProfile,
    WorkoutDay,
)
from ..utils.debounce import Debouncer
from .background import BackgroundTasks

logger = logging.getLogger(__name__)

# Seconds of quiet before a profile save is written
SAVE_DELAY = 0.5

# Local photo name for the profile image when offline
PROFILE_IMAGE_NAME = "profile"


class ProfileRepository:
    """Repository for the single user profile.

    Saves are debounced: a burst of edits produces one write, and that write
    uses the profile as it is when the timer fires.
    """

    def __init__(
        self,
        store: LocalStore,
        gateway: RemoteGateway,
        save_delay: float = SAVE_DELAY,
    ):
        self._store = store
        self._gateway = gateway
        self._background = BackgroundTasks()
        self._debouncer = Debouncer(save_delay, self._write)

        self.profile: UserProfile | None = None
        self.last_error: str | None = None

    def _record_error(self, action: str, exc: BaseException) -> None:
        self.last_error = f"Failed to {action}: {exc}"
        logger.warning(self.last_error)

    # Loading

    async def load_local_first(self) -> UserProfile | None:
        """Populate the profile from the local store only."""
        self.profile = await self._store.read_profile()
        return self.profile

    async def load(self) -> UserProfile | None:
        """Load the profile, preferring the remote copy when signed in.

        A remote profile is adopted and written locally as a backup. If the
        remote fetch fails or finds nothing, the local copy is used and
        pushed to the remote store in the background.

        Raises:
            OSError: if writing the local backup fails
        """
        if not self._gateway.is_authenticated():
            return await self.load_local_first()

        try:
            remote = await self._gateway.fetch_profile(self._gateway.current_user_id())
        except RemoteError as exc:
            self._record_error("fetch profile", exc)
            remote = None

        if remote is not None:
            self.profile = remote
            await self._store.write_profile(remote)
            return remote

        local = await self.load_local_first()
        if local is not None:
            self._background.spawn(
                self._gateway.upsert_profile(local),
                name="push local profile",
                on_error=self._record_error,
            )
        return local

    # Saving

    async def _write(self) -> None:
        """Write the current profile locally, then remotely."""
        profile = self.profile
        if profile is None:
            return

        await self._store.write_profile(profile)
        logger.debug("Profile written locally")

        if not self._gateway.is_authenticated():
            return
        try:
            await self._gateway.upsert_profile(profile)
        except RemoteError as exc:
            self._record_error("sync profile", exc)
            return
        self.last_error = None

    async def save(self) -> bool:
        """Request a debounced save.

        A later request within the delay supersedes this one, which then
        returns quietly without writing.

        Returns:
            True if this request performed the write

        Raises:
            OSError: if the local write fails
        """
        return await self._debouncer.request()

    async def flush(self) -> bool:
        """Write a pending save immediately."""
        return await self._debouncer.flush_now()

    # Field-level mutators

    async def update_profile(self, profile: UserProfile) -> bool:
        self.profile = profile
        return await self.save()

    async def create_initial(self, name: str, email: str) -> bool:
        """Start an empty profile for a newly signed-up user."""
        return await self.update_profile(UserProfile(name=name, email=email))

    async def update_name(self, name: str) -> bool:
        if self.profile is None:
            return False
        self.profile.name = name
        return await self.save()

    async def update_goals(self, goals: list[ExerciseGoal]) -> bool:
        if self.profile is None:
            return False
        self.profile.goals = goals
        return await self.save()

    async def update_workout_split(self, split: list[WorkoutDay]) -> bool:
        if self.profile is None:
            return False
        self.profile.workout_split = split
        return await self.save()

    async def update_body_weight_goal(self, goal: BodyWeightGoal | None) -> bool:
        if self.profile is None:
            return False
        self.profile.body_weight_goal = goal
        return await self.save()

    async def update_current_body_weight(self, weight: float) -> bool:
        """Move the body-weight goal's current value, if there is a goal."""
        if self.profile is None or self.profile.body_weight_goal is None:
            return False
        self.profile.body_weight_goal.current_weight = weight
        return await self.save()

    async def update_profile_image(self, data: bytes | None) -> bool:
        """Set or clear the profile image.

        Uploads when signed in, otherwise stores the image locally. An upload
        failure is recorded in ``last_error`` and leaves the profile as is.
        """
        if self.profile is None:
            return False

        if data is None:
            self.profile.profile_image_url = None
            return await self.save()

        if self._gateway.is_authenticated():
            try:
                url = await self._gateway.upload_binary(
                    PROFILE_IMAGES_BUCKET,
                    profile_image_path(self._gateway.current_user_id()),
                    data,
                )
            except RemoteError as exc:
                self._record_error("upload profile image", exc)
                return False
        else:
            url = await self._store.write_photo(PROFILE_IMAGE_NAME, data)

        self.profile.profile_image_url = url
        return await self.save()

    # Lifecycle

    async def reset(self) -> None:
        """Clear the profile, cancel any pending save and delete the local copy.

        Remote data is left alone; it is scoped to the user and fetched again
        on the next sign-in.
        """
        self._debouncer.cancel()
        self._background.cancel_all()
        self.profile = None
        self.last_error = None
        await self._store.delete_profile()

    async def wait_for_background(self) -> None:
        await self._background.drain()
