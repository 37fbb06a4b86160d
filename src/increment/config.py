"""Runtime configuration loaded from the environment (and a .env file)."""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from .db.local_store import DATA_DIR
from .services.profile_repository import SAVE_DELAY
from .services.workout_repository import RECONCILE_COOLDOWN


def _float_env(name: str, default: float) -> float:
    value = os.getenv(name)
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {value!r}") from None


@dataclass
class Settings:
    """Application settings."""

    data_dir: Path = field(default_factory=lambda: DATA_DIR)
    supabase_url: str | None = None
    supabase_key: str | None = None
    email: str | None = None
    password: str | None = None
    reconcile_cooldown: float = RECONCILE_COOLDOWN
    profile_save_delay: float = SAVE_DELAY
    log_level: str = "WARNING"

    @property
    def remote_enabled(self) -> bool:
        """True when a Supabase project is configured."""
        return bool(self.supabase_url and self.supabase_key)

    @property
    def has_credentials(self) -> bool:
        return bool(self.email and self.password)


def load_settings(env_file: Path | None = None) -> Settings:
    """Build settings from environment variables.

    Variables from ``env_file`` (or a ``.env`` in the working directory) are
    loaded first without overriding ones already set.

    Raises:
        ValueError: if a numeric variable is malformed
    """
    load_dotenv(env_file)

    data_dir = os.getenv("INCREMENT_DATA_DIR")
    return Settings(
        data_dir=Path(data_dir).expanduser() if data_dir else DATA_DIR,
        supabase_url=os.getenv("SUPABASE_URL") or None,
        supabase_key=os.getenv("SUPABASE_ANON_KEY") or None,
        email=os.getenv("INCREMENT_EMAIL") or None,
        password=os.getenv("INCREMENT_PASSWORD") or None,
        reconcile_cooldown=_float_env("INCREMENT_RECONCILE_COOLDOWN", RECONCILE_COOLDOWN),
        profile_save_delay=_float_env("INCREMENT_PROFILE_SAVE_DELAY", SAVE_DELAY),
        log_level=os.getenv("INCREMENT_LOG_LEVEL", "WARNING"),
    )
