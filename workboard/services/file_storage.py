"""File storage service for workspace images.

Stores uploaded images on the local filesystem under DATA_DIR/uploads/images/.
Each file is saved as {file_id}{extension}; the id is what gets embedded in
the public image URL.
"""

import mimetypes
import os
import re
from typing import Optional

from workboard.config import settings
from workboard.constants import MAX_WORKSPACE_IMAGE_SIZE
from workboard.logging_config import get_logger
from workboard.utils import gen_id

logger = get_logger(__name__)

ALLOWED_IMAGE_TYPES = {
    "image/png": ".png",
    "image/jpeg": ".jpg",
    "image/gif": ".gif",
    "image/webp": ".webp",
    "image/svg+xml": ".svg",
}

_FILE_ID_RE = re.compile(r"^img_[0-9a-f]{12}$")


class StorageError(Exception):
    """An upload was rejected. ``message`` is safe to show to users."""

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


def _image_dir() -> str:
    return os.path.join(settings.upload_dir, "images")


def _normalize_mime(content_type: Optional[str], filename: Optional[str]) -> str:
    mime = (content_type or "").split(";")[0].strip().lower()
    if not mime or mime == "application/octet-stream":
        guessed, _ = mimetypes.guess_type(filename or "")
        mime = guessed or "application/octet-stream"
    return mime


def store_image(data: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
    """Validate and write an image to disk. Returns the new file id."""
    mime = _normalize_mime(content_type, filename)
    if mime not in ALLOWED_IMAGE_TYPES:
        raise StorageError("File type not allowed.")
    if len(data) > MAX_WORKSPACE_IMAGE_SIZE:
        raise StorageError("Workspace icon must be 1MB or smaller")

    file_id = gen_id("img_")
    os.makedirs(_image_dir(), exist_ok=True)
    abs_path = os.path.join(_image_dir(), f"{file_id}{ALLOWED_IMAGE_TYPES[mime]}")
    with open(abs_path, "wb") as f:
        f.write(data)
    logger.debug(f"Stored image {file_id} ({len(data)} bytes, {mime})")
    return file_id


def find_image(file_id: str) -> Optional[str]:
    """Absolute path of a stored image, or None if missing."""
    if not _FILE_ID_RE.match(file_id):
        return None
    for ext in ALLOWED_IMAGE_TYPES.values():
        abs_path = os.path.join(_image_dir(), f"{file_id}{ext}")
        if os.path.isfile(abs_path):
            return abs_path
    return None


def delete_image(file_id: str) -> bool:
    """Delete a stored image. Returns True if it existed."""
    abs_path = find_image(file_id)
    if abs_path is None:
        return False
    os.remove(abs_path)
    return True


def image_url(file_id: str) -> str:
    """Public URL the dashboard uses to render the image."""
    return f"{settings.app_url}/api/storage/images/{file_id}"

