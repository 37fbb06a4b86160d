"""On-device JSON persistence for workouts, profile, and session snapshot."""

import asyncio
import base64
import binascii
import json
import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any
from urllib.parse import unquote, urlparse

from ..models.session import SessionSnapshot
from ..models.user_profile import UserProfile
from ..models.workout import Workout

logger = logging.getLogger(__name__)

# Default data directory
DATA_DIR = Path.home() / ".increment"

WORKOUTS_FILE = "workouts.json"
PROFILE_FILE = "profile.json"
SNAPSHOT_FILE = "app_state.json"
PHOTOS_DIR = "photos"

# Key of the legacy inline base64 progress photo
LEGACY_PHOTO_KEY = "progressPhotoData"


def get_data_dir(data_dir: Path | None = None) -> Path:
    """Get (and create) the data directory."""
    if data_dir is None:
        data_dir = DATA_DIR
    data_dir.mkdir(parents=True, exist_ok=True)
    return data_dir


def _read_json(path: Path) -> Any | None:
    """Read a JSON document, returning None if it is missing or unreadable."""
    try:
        with open(path, encoding="utf-8") as f:
            return json.load(f)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable file %s: %s", path, exc)
        return None


def _write_json_atomic(path: Path, document: Any) -> None:
    """Replace ``path`` with ``document`` via a temp file and rename."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump(document, f, indent=2)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except BaseException:
        Path(tmp_name).unlink(missing_ok=True)
        raise


def _unlink(path: Path) -> None:
    path.unlink(missing_ok=True)


class LocalStore:
    """File-backed store for the workout collection, profile, and snapshot.

    Reads fail soft: a missing or corrupt document yields an empty collection
    or None, and a malformed record inside a collection is skipped. Writes are
    atomic and raise ``OSError`` on disk failure. File I/O runs in a worker
    thread so callers on the event loop never block.
    """

    def __init__(self, data_dir: Path | None = None):
        self.data_dir = get_data_dir(data_dir)

    @property
    def workouts_path(self) -> Path:
        return self.data_dir / WORKOUTS_FILE

    @property
    def profile_path(self) -> Path:
        return self.data_dir / PROFILE_FILE

    @property
    def snapshot_path(self) -> Path:
        return self.data_dir / SNAPSHOT_FILE

    @property
    def photos_dir(self) -> Path:
        return self.data_dir / PHOTOS_DIR

    # Workouts

    async def read_workouts(self) -> list[Workout]:
        """Read the workout collection; empty if missing or corrupt."""
        return await asyncio.to_thread(self._read_workouts)

    def _read_workouts(self) -> list[Workout]:
        document = _read_json(self.workouts_path)
        if not isinstance(document, list):
            if document is not None:
                logger.warning("Workouts file is not a list; ignoring it")
            return []

        migrated = False
        pending = False
        workouts = []
        for record in document:
            if not isinstance(record, dict):
                continue
            if LEGACY_PHOTO_KEY in record:
                if self._migrate_inline_photo(record):
                    migrated = True
                else:
                    pending = True
            try:
                workouts.append(Workout.from_dict(record))
            except (AttributeError, KeyError, TypeError, ValueError) as exc:
                logger.warning("Skipping malformed workout record: %s", exc)

        # A failed migration keeps its inline copy, so leave the file alone
        if migrated and not pending:
            try:
                _write_json_atomic(self.workouts_path, [w.to_dict() for w in workouts])
                logger.info("Migrated inline progress photos to files")
            except OSError as exc:
                logger.warning("Could not rewrite migrated workouts file: %s", exc)

        return workouts

    def _migrate_inline_photo(self, record: dict) -> bool:
        """Move a legacy base64 photo out of ``record`` into the photos directory."""
        encoded = record.pop(LEGACY_PHOTO_KEY)
        if not encoded or record.get("progressPhotoURL") or "id" not in record:
            return True
        try:
            data = base64.b64decode(encoded, validate=True)
        except (binascii.Error, TypeError, ValueError) as exc:
            logger.warning("Dropping undecodable inline photo: %s", exc)
            return True
        try:
            record["progressPhotoURL"] = self._write_photo(str(record["id"]), data)
        except OSError as exc:
            logger.warning("Could not store migrated photo: %s", exc)
            record[LEGACY_PHOTO_KEY] = encoded
            return False
        return True

    async def write_workouts(self, workouts: list[Workout]) -> None:
        """Atomically replace the workouts document."""
        document = [w.to_dict() for w in workouts]
        await asyncio.to_thread(_write_json_atomic, self.workouts_path, document)

    async def delete_workouts(self) -> None:
        await asyncio.to_thread(_unlink, self.workouts_path)

    # Profile

    async def read_profile(self) -> UserProfile | None:
        """Read the profile; None if missing or corrupt."""
        return await asyncio.to_thread(self._read_profile)

    def _read_profile(self) -> UserProfile | None:
        document = _read_json(self.profile_path)
        if not isinstance(document, dict):
            return None
        try:
            return UserProfile.from_dict(document)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed profile: %s", exc)
            return None

    async def write_profile(self, profile: UserProfile) -> None:
        """Atomically replace the profile document."""
        await asyncio.to_thread(_write_json_atomic, self.profile_path, profile.to_dict())

    async def delete_profile(self) -> None:
        await asyncio.to_thread(_unlink, self.profile_path)

    # Session snapshot

    async def read_snapshot(self) -> SessionSnapshot | None:
        """Read the session snapshot; None if missing or corrupt."""
        return await asyncio.to_thread(self._read_snapshot)

    def _read_snapshot(self) -> SessionSnapshot | None:
        document = _read_json(self.snapshot_path)
        if not isinstance(document, dict):
            return None
        try:
            return SessionSnapshot.from_dict(document)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            logger.warning("Ignoring malformed session snapshot: %s", exc)
            return None

    async def write_snapshot(self, snapshot: SessionSnapshot) -> None:
        await asyncio.to_thread(_write_json_atomic, self.snapshot_path, snapshot.to_dict())

    async def delete_snapshot(self) -> None:
        await asyncio.to_thread(_unlink, self.snapshot_path)

    # Photos

    def _write_photo(self, name: str, data: bytes) -> str:
        self.photos_dir.mkdir(parents=True, exist_ok=True)
        path = self.photos_dir / f"{name}.jpg"
        tmp = path.with_suffix(".tmp")
        tmp.write_bytes(data)
        os.replace(tmp, path)
        return path.resolve().as_uri()

    async def write_photo(self, name: str, data: bytes) -> str:
        """Store image bytes locally and return their ``file:`` URI."""
        return await asyncio.to_thread(self._write_photo, name, data)

    async def read_photo(self, uri: str) -> bytes | None:
        """Read image bytes previously stored by ``write_photo``."""
        parsed = urlparse(uri)
        if parsed.scheme != "file":
            return None
        path = Path(unquote(parsed.path))
        try:
            return await asyncio.to_thread(path.read_bytes)
        except OSError as exc:
            logger.warning("Cannot read local photo %s: %s", path, exc)
            return None

    async def delete_all(self) -> None:
        """Remove every persisted document and local photo."""
        def _delete() -> None:
            for path in (self.workouts_path, self.profile_path, self.snapshot_path):
                _unlink(path)
            shutil.rmtree(self.photos_dir, ignore_errors=True)

        await asyncio.to_thread(_delete)
