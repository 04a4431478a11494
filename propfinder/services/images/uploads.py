"""
Upload handling for listing images.

Validates content type and size, then writes each image under the configured
upload directory with a unique name.
"""

import asyncio
import logging
import random
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Sequence

from fastapi import UploadFile

from propfinder.config import UploadConfig
from propfinder.error_handling import (
    ImageTooLargeError,
    TooManyImagesError,
    UnsupportedImageError,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoredImage:
    """An image written to disk"""
    path: Path
    filename: str
    public_url: str


class ImageUploadHandler:
    """Stores uploaded listing images on the local filesystem"""

    def __init__(self, config: UploadConfig):
        self.config = config
        self.upload_dir = Path(config.upload_dir)

    def check_count(self, uploads: Sequence[UploadFile]) -> None:
        if len(uploads) > self.config.max_files:
            raise TooManyImagesError(self.config.max_files)

    def unique_filename(self, original_name: str, field_name: str = "images") -> str:
        """Build '<field>-<epoch ms>-<random><ext>' for an upload."""
        suffix = Path(original_name or "").suffix
        unique = f"{int(time.time() * 1000)}-{random.randint(0, 10**9)}"
        return f"{field_name}-{unique}{suffix}"

    async def save(self, upload: UploadFile, field_name: str = "images") -> StoredImage:
        """
        Validate and store one uploaded image.

        Args:
            upload: Incoming multipart file
            field_name: Form field the file came from (used in the filename)

        Returns:
            StoredImage with its path and public URL

        Raises:
            UnsupportedImageError: If the content type is not image/*
            ImageTooLargeError: If the file exceeds the size limit
        """
        content_type = upload.content_type or ""
        if not content_type.startswith("image/"):
            raise UnsupportedImageError(upload.filename or "")

        # At most limit + 1 bytes are read
        content = await upload.read(self.config.max_file_size_bytes + 1)
        if len(content) > self.config.max_file_size_bytes:
            raise ImageTooLargeError(self.config.max_file_size_bytes)

        filename = self.unique_filename(upload.filename or "", field_name)
        path = self.upload_dir / filename
        await asyncio.to_thread(self._write, path, content)

        logger.info(f"Saved upload {upload.filename!r} as {path} ({len(content)} bytes)")

        return StoredImage(
            path=path,
            filename=filename,
            public_url=f"{self.config.public_prefix.rstrip('/')}/{filename}",
        )

    def discard(self, stored: StoredImage) -> None:
        """Remove a stored image that no listing will reference."""
        stored.path.unlink(missing_ok=True)
        logger.info(f"Removed unreferenced upload {stored.path}")

    def _write(self, path: Path, content: bytes) -> None:
        self.upload_dir.mkdir(parents=True, exist_ok=True)
        path.write_bytes(content)
