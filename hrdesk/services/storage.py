"""
Blob storage for uploaded documents.

Rows in ``employee_files`` only hold a relative key; the bytes are kept by a
``FileStore``. ``LocalFileStore`` writes under ``settings.UPLOAD_DIR`` and is
what the API uses unless the ``get_file_store`` dependency is overridden.
"""

import logging
from pathlib import Path

import aiofiles
import aiofiles.os

from hrdesk.core.config import settings

logger = logging.getLogger(__name__)


class FileStore:
    async def save(self, key: str, content: bytes) -> None:
        raise NotImplementedError

    async def read(self, key: str) -> bytes:
        """Raise FileNotFoundError when nothing is stored under ``key``."""
        raise NotImplementedError

    async def delete(self, key: str) -> bool:
        """Remove ``key``; False if it was already gone."""
        raise NotImplementedError


class LocalFileStore(FileStore):
    def __init__(self, root: str | Path) -> None:
        self.root = Path(root).resolve()

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if not path.is_relative_to(self.root):
            raise ValueError(f"Storage key escapes the upload directory: {key!r}")
        return path

    async def save(self, key: str, content: bytes) -> None:
        path = self._path(key)
        path.parent.mkdir(parents=True, exist_ok=True)
        async with aiofiles.open(path, "wb") as f:
            await f.write(content)
        logger.debug("Stored %d bytes at %s", len(content), path)

    async def read(self, key: str) -> bytes:
        async with aiofiles.open(self._path(key), "rb") as f:
            return await f.read()

    async def delete(self, key: str) -> bool:
        try:
            await aiofiles.os.remove(self._path(key))
        except FileNotFoundError:
            logger.warning("Stored file %s was already missing", key)
            return False
        return True


def get_file_store() -> FileStore:
    """FastAPI dependency; tests swap in a store under a temporary directory."""
    return LocalFileStore(settings.UPLOAD_DIR)
