"""
Local filesystem storage for person images.

Images are stored flat in ``settings.file_upload_path`` under a random name
that keeps the original extension. Callers get back a relative path of the
form ``images/<name>``, which is what the person record stores and what
``GET /api/files/images/{fileName}`` serves.
"""

import logging
import shutil
import uuid
from pathlib import Path
from typing import BinaryIO

from app.core.config import settings
from app.core.errors import ErrorKey
from app.services.result import Result

logger = logging.getLogger(__name__)

IMAGE_PREFIX = "images"

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
    ".bmp": "image/bmp",
    ".webp": "image/webp",
}


class FileService:
    def __init__(
        self,
        upload_path: str | Path | None = None,
        base_url: str | None = None,
        allowed_extensions: list[str] | None = None,
    ) -> None:
        self.upload_path = Path(upload_path or settings.file_upload_path)
        self.base_url = (base_url or settings.file_base_url).rstrip("/")
        self.allowed_extensions = [
            ext.lower() for ext in (allowed_extensions or settings.allowed_extensions_list)
        ]
        self.upload_path.mkdir(parents=True, exist_ok=True)

    def _resolve(self, image_path: str) -> Path:
        # Only the file name is honoured so stored paths cannot escape the upload dir.
        return self.upload_path / Path(image_path).name

    def is_allowed(self, file_name: str) -> bool:
        return Path(file_name).suffix.lower() in self.allowed_extensions

    def save_image(self, stream: BinaryIO, file_name: str) -> Result[str]:
        """Store an uploaded image and return its relative path."""
        extension = Path(file_name).suffix.lower()
        if extension not in self.allowed_extensions:
            return Result.failure(ErrorKey.INVALID_FILE_FORMAT, extension or file_name)

        unique_name = f"{uuid.uuid4()}{extension}"
        target = self.upload_path / unique_name
        try:
            with target.open("wb") as fh:
                shutil.copyfileobj(stream, fh)
        except OSError as exc:
            logger.error(f"Failed to store image {file_name}: {exc}", exc_info=True)
            return Result.failure(ErrorKey.FILE_UPLOAD_FAILED, str(exc))

        logger.info(
            "Stored image",
            extra={"image_file": unique_name, "bytes": target.stat().st_size},
        )
        return Result.success(f"{IMAGE_PREFIX}/{unique_name}")

    def delete_image(self, image_path: str | None) -> Result[None]:
        if not image_path:
            return Result.success()
        target = self._resolve(image_path)
        try:
            target.unlink(missing_ok=True)
        except OSError as exc:
            logger.error(f"Failed to delete image {image_path}: {exc}", exc_info=True)
            return Result.failure(ErrorKey.FILE_NOT_FOUND, str(exc))
        return Result.success()

    def image_exists(self, image_path: str | None) -> bool:
        if not image_path:
            return False
        return self._resolve(image_path).is_file()

    def get_image_file(self, image_path: str) -> Path:
        return self._resolve(image_path)

    def get_image_url(self, image_path: str | None) -> str:
        if not image_path:
            return ""
        return f"{self.base_url}/{image_path}"

    def content_type_for(self, file_name: str) -> str:
        extension = Path(file_name).suffix.lower()
        if extension not in self.allowed_extensions:
            return "application/octet-stream"
        return CONTENT_TYPES.get(extension, "application/octet-stream")
