"""Binary asset storage."""

from functools import lru_cache

from inventory_hub.core.config_file import get_settings
from inventory_hub.core.files.images import ImageService, ImageValidationError
from inventory_hub.core.files.storage import BaseStorageBackend, LocalStorageBackend

__all__ = [
    "BaseStorageBackend",
    "LocalStorageBackend",
    "ImageService",
    "ImageValidationError",
    "get_route_image_service",
    "get_product_image_service",
]


@lru_cache
def get_route_image_service() -> ImageService:
    """Image service for route photos."""
    settings = get_settings()
    storage = LocalStorageBackend(settings.IMAGE_STORAGE_PATH, settings.IMAGE_URL_PREFIX)
    return ImageService(storage, max_bytes=settings.IMAGE_MAX_BYTES)


@lru_cache
def get_product_image_service() -> ImageService:
    """Image service for product photos."""
    settings = get_settings()
    storage = LocalStorageBackend(
        settings.PRODUCT_IMAGE_STORAGE_PATH, settings.PRODUCT_IMAGE_URL_PREFIX
    )
    return ImageService(storage, max_bytes=settings.IMAGE_MAX_BYTES)
