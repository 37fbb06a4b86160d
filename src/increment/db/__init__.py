"""Local persistence layer for increment."""

from .local_store import DATA_DIR, LocalStore, get_data_dir

__all__ = [
    "DATA_DIR",
    "get_data_dir",
    "LocalStore",
]
