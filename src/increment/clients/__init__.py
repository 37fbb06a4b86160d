"""Remote backend clients for increment."""

from .base import (
    PROFILE_IMAGES_BUCKET,
    PROGRESS_PHOTOS_BUCKET,
    NotAuthenticatedError,
    OfflineGateway,
    RemoteError,
    RemoteGateway,
    profile_image_path,
    progress_photo_path,
)

__all__ = [
    "NotAuthenticatedError",
    "OfflineGateway",
    "profile_image_path",
    "PROFILE_IMAGES_BUCKET",
    "progress_photo_path",
    "PROGRESS_PHOTOS_BUCKET",
    "RemoteError",
    "RemoteGateway",
]
