"""Remote gateway backed by Supabase (Postgres tables + storage buckets)."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any, TypeVar

from supabase import Client, create_client

from ...models.user_profile import UserProfile
from ...models.workout import Workout
from ..base import NotAuthenticatedError, RemoteError
from .parsers import (
    decode_profile_row,
    decode_workout_rows,
    profile_to_row,
    workout_to_row,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

WORKOUTS_TABLE = "workouts"
PROFILES_TABLE = "user_profiles"

WORKOUT_COLUMNS = (
    "id,user_id,date,name,exercises,notes,duration,body_weight,"
    "progress_photo_url,created_at,updated_at"
)
PROFILE_COLUMNS = (
    "user_id,name,email,bio,profile_image_url,body_weight_goal,goals,"
    "workout_split,created_at,updated_at"
)


class SupabaseGateway:
    """Remote gateway over the synchronous ``supabase`` client.

    Each client call runs in a worker thread. Any exception the client raises
    is re-raised as ``RemoteError``.
    """

    def __init__(self, url: str | None = None, key: str | None = None, client: Client | None = None):
        if client is None:
            if not url or not key:
                raise ValueError("Supabase URL and key are required")
            client = create_client(url, key)
        self.client = client
        self._user_id: str | None = None

    async def _call(self, action: str, fn: Callable[[], T]) -> T:
        try:
            return await asyncio.to_thread(fn)
        except RemoteError:
            raise
        except Exception as exc:
            logger.warning("Supabase %s failed: %s", action, exc)
            raise RemoteError(f"{action} failed: {exc}") from exc

    def _require_user(self) -> str:
        if self._user_id is None:
            raise NotAuthenticatedError()
        return self._user_id

    # Authentication

    def is_authenticated(self) -> bool:
        return self._user_id is not None

    def current_user_id(self) -> str | None:
        return self._user_id

    async def refresh_session(self) -> bool:
        """Adopt an existing auth session, if the client holds one."""
        session = await self._call("session check", self.client.auth.get_session)
        self._user_id = str(session.user.id) if session and session.user else None
        return self._user_id is not None

    async def sign_in(self, email: str, password: str) -> str:
        """Sign in with email and password and return the user id."""
        response = await self._call(
            "sign in",
            lambda: self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            ),
        )
        if response.user is None:
            raise NotAuthenticatedError("Sign in returned no user")
        self._user_id = str(response.user.id)
        logger.info("Signed in as %s", email)
        return self._user_id

    async def sign_up(self, email: str, password: str, name: str) -> str:
        """Create an account and return the new user id."""
        response = await self._call(
            "sign up",
            lambda: self.client.auth.sign_up(
                {
                    "email": email,
                    "password": password,
                    "options": {"data": {"name": name}},
                }
            ),
        )
        if response.user is None:
            raise NotAuthenticatedError("Sign up returned no user")
        self._user_id = str(response.user.id)
        return self._user_id

    async def sign_out(self) -> None:
        try:
            await self._call("sign out", self.client.auth.sign_out)
        finally:
            self._user_id = None

    # Workouts

    async def fetch_all_workouts(self, user_id: str) -> list[Workout]:
        self._require_user()
        response = await self._call(
            "fetch workouts",
            lambda: self.client.table(WORKOUTS_TABLE)
            .select(WORKOUT_COLUMNS)
            .eq("user_id", user_id)
            .order("date", desc=True)
            .execute(),
        )
        return decode_workout_rows(response.data or [])

    async def upsert_workouts(self, workouts: list[Workout]) -> None:
        user_id = self._require_user()
        if not workouts:
            return
        rows = [workout_to_row(w, user_id) for w in workouts]
        await self._call(
            "upsert workouts",
            lambda: self.client.table(WORKOUTS_TABLE).upsert(rows).execute(),
        )

    async def delete_workout(self, workout_id: str) -> None:
        user_id = self._require_user()
        await self._call(
            "delete workout",
            lambda: self.client.table(WORKOUTS_TABLE)
            .delete()
            .eq("id", workout_id)
            .eq("user_id", user_id)
            .execute(),
        )

    # Profile

    async def fetch_profile(self, user_id: str) -> UserProfile | None:
        self._require_user()
        response = await self._call(
            "fetch profile",
            lambda: self.client.table(PROFILES_TABLE)
            .select(PROFILE_COLUMNS)
            .eq("user_id", user_id)
            .limit(1)
            .execute(),
        )
        if not response.data:
            return None

        result = decode_profile_row(response.data[0])
        if not result.ok:
            logger.warning("Ignoring malformed profile row: %s", result.error)
            return None
        return result.value

    async def upsert_profile(self, profile: UserProfile) -> None:
        user_id = self._require_user()
        row = profile_to_row(profile, user_id)
        await self._call(
            "upsert profile",
            lambda: self.client.table(PROFILES_TABLE).upsert(row).execute(),
        )

    # Storage

    async def upload_binary(self, bucket: str, path: str, data: bytes) -> str:
        self._require_user()

        def _upload() -> Any:
            storage = self.client.storage.from_(bucket)
            storage.upload(
                path=path,
                file=data,
                file_options={"content-type": "image/jpeg", "upsert": "true"},
            )
            return storage.get_public_url(path)

        url = await self._call("upload", _upload)
        return str(url)
