"""Helpers for reading uploaded fridge photos."""

from __future__ import annotations

import mimetypes
from dataclasses import dataclass

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

MAX_IMAGE_BYTES = 10 * 1024 * 1024


@dataclass(slots=True)
class ImageUpload:
    """Raw bytes of an uploaded photo plus its MIME type."""

    filename: str
    image_bytes: bytes
    mime_type: str | None


def read_image_upload(
    image_file: FileStorage, *, max_bytes: int = MAX_IMAGE_BYTES
) -> ImageUpload:
    """Read an uploaded image into memory, rejecting empty or oversized files."""

    if image_file.filename == "":
        raise ValueError("empty filename")

    image_bytes = image_file.read(max_bytes + 1)
    if not image_bytes:
        raise ValueError("uploaded file was empty")
    if len(image_bytes) > max_bytes:
        raise ValueError(f"uploaded file exceeds {max_bytes} bytes")

    filename = secure_filename(image_file.filename or "snapshot") or "snapshot"
    mime_type = image_file.mimetype or None
    if not mime_type or not mime_type.startswith("image/"):
        mime_type, _ = mimetypes.guess_type(filename)

    return ImageUpload(filename=filename, image_bytes=image_bytes, mime_type=mime_type)
