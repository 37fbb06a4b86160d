"""Service container: builds the stores and repositories once per process."""

import asyncio
import logging
from dataclasses import dataclass

from .clients.base import OfflineGateway, RemoteError, RemoteGateway
from .config import Settings
from .db.local_store import LocalStore
from .models.workout import Workout
from .services.profile_repository import ProfileRepository
from .services.session_snapshot import SessionSnapshotManager
from .services.workout_repository import WorkoutRepository

logger = logging.getLogger(__name__)


def create_gateway(settings: Settings) -> RemoteGateway:
    """Create the Supabase gateway, or an offline one if none is configured."""
    if not settings.remote_enabled:
        return OfflineGateway()

    from .clients.supabase import SupabaseGateway

    return SupabaseGateway(settings.supabase_url, settings.supabase_key)


@dataclass
class AppServices:
    """Everything the UI layer talks to, constructed by ``create_services``."""

    settings: Settings
    store: LocalStore
    gateway: RemoteGateway
    workouts: WorkoutRepository
    profile: ProfileRepository
    session: SessionSnapshotManager

    async def sign_in(self) -> bool:
        """Sign in with configured credentials; stay offline on failure."""
        if self.gateway.is_authenticated():
            return True
        sign_in = getattr(self.gateway, "sign_in", None)
        if sign_in is None or not self.settings.has_credentials:
            return False
        try:
            await sign_in(self.settings.email, self.settings.password)
        except RemoteError as exc:
            logger.warning("Sign in failed, continuing offline: %s", exc)
            return False
        return True

    async def start(self, sync: bool = True) -> tuple[str | None, Workout | None]:
        """Bring the app up: local data first, then remote, then the session.

        Args:
            sync: Sign in and reconcile with the remote store

        Returns:
            (selected workout-day name, active workout)
        """
        await self.workouts.load_local_first()
        await self.profile.load_local_first()

        if sync:
            await self.sign_in()
            await asyncio.gather(
                self.workouts.reconcile_with_remote(),
                self.profile.load(),
            )

        selected, restored = await self.session.restore_snapshot()
        if not restored:
            self.workouts.restore_active_workout()
        return selected, self.workouts.active_workout

    async def log_body_weight(self, weight: float) -> Workout:
        """Log today's body weight and move the body-weight goal along."""
        workout = await self.workouts.log_body_weight(weight)
        await self.profile.update_current_body_weight(weight)
        return workout

    async def sign_out(self) -> None:
        """Sign out and forget all local state for the user."""
        sign_out = getattr(self.gateway, "sign_out", None)
        if sign_out is not None:
            try:
                await sign_out()
            except RemoteError as exc:
                logger.warning("Remote sign out failed: %s", exc)
        await self.workouts.reset()
        await self.profile.reset()
        await self.session.clear()

    async def shutdown(self) -> None:
        """Snapshot the session, write any pending profile edit and drain background work."""
        if self.workouts.active_workout is not None:
            await self.session.checkpoint()
        await self.profile.flush()
        await asyncio.gather(
            self.workouts.wait_for_background(),
            self.profile.wait_for_background(),
        )


def create_services(settings: Settings, gateway: RemoteGateway | None = None) -> AppServices:
    """Construct the service graph for one process.

    Args:
        settings: Application settings
        gateway: Remote gateway override (defaults to ``create_gateway``)
    """
    store = LocalStore(settings.data_dir)
    gateway = gateway or create_gateway(settings)

    workouts = WorkoutRepository(store, gateway, cooldown=settings.reconcile_cooldown)
    profile = ProfileRepository(store, gateway, save_delay=settings.profile_save_delay)
    session = SessionSnapshotManager(store, workouts)
    workouts.on_active_workout_changed = session.checkpoint

    return AppServices(
        settings=settings,
        store=store,
        gateway=gateway,
        workouts=workouts,
        profile=profile,
        session=session,
    )
