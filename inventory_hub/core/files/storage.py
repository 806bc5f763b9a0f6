"""Storage backends for image files, addressed by ``{inventory_code}/{file}`` keys."""

import logging
from abc import ABC, abstractmethod
from pathlib import Path

logger = logging.getLogger(__name__)


class BaseStorageBackend(ABC):
    """Where ImageService keeps image bytes and how their URLs are formed."""

    @abstractmethod
    async def upload(self, file_content: bytes, path: str) -> str:
        """Write ``file_content`` under ``path`` and return the key."""

    @abstractmethod
    async def download(self, path: str) -> bytes:
        """Read the bytes under ``path``; raises FileNotFoundError if missing."""

    @abstractmethod
    async def delete(self, path: str) -> bool:
        """Remove ``path``; False when there was nothing to remove."""

    @abstractmethod
    def get_url(self, path: str) -> str:
        pass


class LocalStorageBackend(BaseStorageBackend):
    """Images on the local disk, served under ``url_prefix``."""

    def __init__(self, base_path: str, url_prefix: str):
        self.base_path = Path(base_path)
        self.base_path.mkdir(parents=True, exist_ok=True)
        self.url_prefix = url_prefix.rstrip("/")

    def file_path(self, path: str) -> Path:
        return self.base_path / path

    async def upload(self, file_content: bytes, path: str) -> str:
        target = self.file_path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(file_content)
        logger.info(f"Image written to {target}")
        return path

    async def download(self, path: str) -> bytes:
        target = self.file_path(path)
        if not target.is_file():
            raise FileNotFoundError(f"Image not found: {path}")
        return target.read_bytes()

    async def delete(self, path: str) -> bool:
        target = self.file_path(path)
        try:
            target.unlink()
        except FileNotFoundError:
            return False
        except OSError as e:
            logger.error(f"Error deleting image {path}: {e}")
            return False
        logger.info(f"Image deleted: {target}")
        return True

    def get_url(self, path: str) -> str:
        return f"{self.url_prefix}/{path}"
