"""Contract the repositories require of a remote backend."""

from typing import Protocol, runtime_checkable

from ..models.user_profile import UserProfile
from ..models.workout import Workout

PROFILE_IMAGES_BUCKET = "profile-images"
PROGRESS_PHOTOS_BUCKET = "progress-photos"


def profile_image_path(user_id: str) -> str:
    return f"users/{user_id}/profile.jpg"


def progress_photo_path(user_id: str, workout_id: str) -> str:
    return f"users/{user_id}/workouts/{workout_id}.jpg"


class RemoteError(Exception):
    """A remote call failed (network, auth, or server error)."""


class NotAuthenticatedError(RemoteError):
    """A remote call was made without a signed-in user."""

    def __init__(self, message: str = "Not authenticated"):
        super().__init__(message)


@runtime_checkable
class RemoteGateway(Protocol):
    """Authenticated CRUD against the remote store.

    Every coroutine may raise ``RemoteError``. Row-level operations are
    scoped to the signed-in user.
    """

    def is_authenticated(self) -> bool:
        ...

    def current_user_id(self) -> str | None:
        ...

    async def fetch_all_workouts(self, user_id: str) -> list[Workout]:
        """Fetch the user's workouts, newest date first."""
        ...

    async def upsert_workouts(self, workouts: list[Workout]) -> None:
        """Insert or replace workouts by identity; never deletes others."""
        ...

    async def delete_workout(self, workout_id: str) -> None:
        ...

    async def fetch_profile(self, user_id: str) -> UserProfile | None:
        ...

    async def upsert_profile(self, profile: UserProfile) -> None:
        ...

    async def upload_binary(self, bucket: str, path: str, data: bytes) -> str:
        """Upload (overwriting) ``data`` at ``path`` and return its public URL."""
        ...


class OfflineGateway:
    """Gateway used when no remote backend is configured.

    Never authenticated; every remote operation raises
    ``NotAuthenticatedError`` so repositories stay local-only.
    """

    def is_authenticated(self) -> bool:
        return False

    def current_user_id(self) -> str | None:
        return None

    async def fetch_all_workouts(self, user_id: str) -> list[Workout]:
        raise NotAuthenticatedError()

    async def upsert_workouts(self, workouts: list[Workout]) -> None:
        raise NotAuthenticatedError()

    async def delete_workout(self, workout_id: str) -> None:
        raise NotAuthenticatedError()

    async def fetch_profile(self, user_id: str) -> UserProfile | None:
        raise NotAuthenticatedError()

    async def upsert_profile(self, profile: UserProfile) -> None:
        raise NotAuthenticatedError()

    async def upload_binary(self, bucket: str, path: str, data: bytes) -> str:
        raise NotAuthenticatedError()
