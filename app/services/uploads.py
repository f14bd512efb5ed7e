"""
Upload Storage

Stores menu images and blog covers on local disk under the configured
upload directory and returns the public `/uploads/...` URL.
"""

import logging
import secrets
import time
from pathlib import Path

from fastapi import UploadFile

from app.core.config import get_settings
from app.core.exceptions import ValidationError

logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".webp"}
FALLBACK_EXTENSION = ".jpg"
CHUNK_SIZE = 64 * 1024


def upload_root() -> Path:
    root = Path(get_settings().upload_directory)
    root.mkdir(parents=True, exist_ok=True)
    return root


def safe_extension(filename: str) -> str:
    """Keep known image extensions, store anything else as .jpg."""
    ext = Path(filename or "").suffix.lower()
    return ext if ext in IMAGE_EXTENSIONS else FALLBACK_EXTENSION


def unique_filename(filename: str) -> str:
    return f"{int(time.time() * 1000)}-{secrets.token_hex(6)}{safe_extension(filename)}"


async def save_image(upload: UploadFile, folder: str, max_bytes: int) -> str:
    """
    Write an uploaded image to `<upload_directory>/<folder>/`.

    Returns:
        Public URL path, e.g. "/uploads/menu/1700000000000-ab12cd34ef56.jpg"

    Raises:
        ValidationError: empty file or larger than max_bytes
    """
    target_dir = upload_root() / folder
    target_dir.mkdir(parents=True, exist_ok=True)

    name = unique_filename(upload.filename)
    target = target_dir / name

    written = 0
    with target.open("wb") as out:
        while True:
            chunk = await upload.read(CHUNK_SIZE)
            if not chunk:
                break
            written += len(chunk)
            if written > max_bytes:
                break
            out.write(chunk)

    if written > max_bytes or written == 0:
        target.unlink(missing_ok=True)
        if written == 0:
            raise ValidationError("Uploaded file is empty", field=folder)
        raise ValidationError(f"File too large (max {max_bytes // (1024 * 1024)}MB)", field=folder)

    logger.info(f"Stored upload {target} ({written} bytes)")
    return f"/uploads/{folder}/{name}"


def delete_upload(url: str) -> None:
    """Remove a previously stored file; unknown paths are ignored."""
    if not url or not url.startswith("/uploads/"):
        return
    root = upload_root().resolve()
    path = (root / url[len("/uploads/"):]).resolve()
    if root in path.parents and path.is_file():
        path.unlink()
        logger.info(f"Deleted upload {path}")
