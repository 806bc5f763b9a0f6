"""Image uploads grouped per inventory code."""

import logging
import time
from pathlib import PurePosixPath

from inventory_hub.core.exceptions import BusinessRuleError
from inventory_hub.core.files.storage import BaseStorageBackend

logger = logging.getLogger(__name__)

ALLOWED_EXTENSIONS = (".jpg", ".jpeg", ".png")


class ImageValidationError(BusinessRuleError):
    """Raised for images with a disallowed extension or size."""

    code = "INVALID_IMAGE"


class ImageService:
    """Stores images as ``{inventory_code}/{unique}{ext}`` and hands out their URLs."""

    def __init__(self, storage: BaseStorageBackend, max_bytes: int = 5 * 1024 * 1024):
        self.storage = storage
        self.max_bytes = max_bytes

    def validate(self, content: bytes, file_name: str) -> str:
        """Check size and extension; returns the lower-cased extension."""
        extension = PurePosixPath(file_name).suffix.lower()
        if extension not in ALLOWED_EXTENSIONS:
            raise ImageValidationError(
                f"Invalid file type '{extension or file_name}'. Allowed: {', '.join(ALLOWED_EXTENSIONS)}"
            )
        if not content:
            raise ImageValidationError("Image is empty")
        if len(content) > self.max_bytes:
            raise ImageValidationError(
                f"Image exceeds the {self.max_bytes // (1024 * 1024)}MB limit"
            )
        return extension

    async def upload_image(self, content: bytes, file_name: str, inventory_code: int) -> str:
        """Upload an image and return its public URL."""
        extension = self.validate(content, file_name)
        path = f"{inventory_code}/{time.time_ns()}{extension}"
        await self.storage.upload(content, path)
        url = self.storage.get_url(path)
        logger.info(f"Stored image for inventory code {inventory_code} at {url}")
        return url

    @staticmethod
    def _storage_path(image_url: str) -> str | None:
        parts = [part for part in image_url.split("/") if part]
        if len(parts) < 2:
            return None
        return f"{parts[-2]}/{parts[-1]}"

    async def read_image(self, image_url: str) -> bytes:
        """Read an image back by URL."""
        path = self._storage_path(image_url)
        if path is None:
            raise FileNotFoundError(f"Malformed image URL: {image_url}")
        return await self.storage.download(path)

    async def delete_image(self, image_url: str | None) -> bool:
        """Delete an image by URL; only the last two path segments are used."""
        if not image_url:
            return False
        path = self._storage_path(image_url)
        if path is None:
            logger.warning(f"Cannot delete image with malformed URL: {image_url}")
            return False
        return await self.storage.delete(path)
