# catalog_api/uploads.py
import os
import random
import time
from pathlib import Path
from typing import Optional

import aiofiles
from loguru import logger
from starlette.datastructures import UploadFile

from .errors import UploadRejected

ALLOWED_EXTENSIONS = {".jpeg", ".jpg", ".png", ".gif", ".webp"}
ALLOWED_CONTENT_TYPES = {"image/jpeg", "image/jpg", "image/png", "image/gif", "image/webp"}
PUBLIC_PREFIX = "/uploads"
CHUNK_SIZE = 64 * 1024


class ImageStore:
    """Validates product images and writes them under the upload directory."""

    def __init__(self, directory: str, max_bytes: int = 5 * 1024 * 1024):
        self.directory = Path(directory)
        self.max_bytes = max_bytes
        self.directory.mkdir(parents=True, exist_ok=True)

    def check(self, upload: UploadFile) -> str:
        """Return the lowercased extension if the file looks like an image."""
        ext = os.path.splitext(upload.filename or "")[1].lower()
        content_type = (upload.content_type or "").lower()
        if ext not in ALLOWED_EXTENSIONS or content_type not in ALLOWED_CONTENT_TYPES:
            raise UploadRejected("Only image files are allowed!")
        return ext

    def new_filename(self, ext: str) -> str:
        return f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}{ext}"

    async def save(self, upload: UploadFile) -> str:
        """Write the upload to disk and return its public path."""
        ext = self.check(upload)
        filename = self.new_filename(ext)
        target = self.directory / filename

        written = 0
        try:
            async with aiofiles.open(target, "wb") as out:
                while True:
                    chunk = await upload.read(CHUNK_SIZE)
                    if not chunk:
                        break
                    written += len(chunk)
                    if written > self.max_bytes:
                        raise UploadRejected("File too large", status_code=413)
                    await out.write(chunk)
        except BaseException:
            target.unlink(missing_ok=True)
            raise

        logger.info("Stored image {} ({} bytes)", filename, written)
        return f"{PUBLIC_PREFIX}/{filename}"

    def discard(self, image_url: Optional[str]) -> None:
        """Remove a file stored by `save` whose row never got written."""
        if not image_url or not image_url.startswith(PUBLIC_PREFIX + "/"):
            return
        (self.directory / image_url[len(PUBLIC_PREFIX) + 1:]).unlink(missing_ok=True)
        logger.info("Discarded image {}", image_url)
