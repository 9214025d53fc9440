import asyncio
import logging
import os
from pathlib import Path
from typing import AsyncIterator

from docspace.storage.base import FileStorage

logger = logging.getLogger(__name__)


class LocalFileStorage(FileStorage):
    """Objects stored as files under one directory"""

    def __init__(self, root: str):
        self.root = Path(root)

    def _path(self, key: str) -> Path:
        path = (self.root / key).resolve()
        if self.root.resolve() not in path.parents:
            raise FileNotFoundError(key)
        return path

    def _write(self, path: Path, data: bytes) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "wb") as f:
            f.write(data)

    async def save(self, key: str, data: bytes, content_type: str) -> str:
        await asyncio.to_thread(self._write, self._path(key), data)
        logger.info("Stored %s (%d bytes) on local disk", key, len(data))
        return key

    async def read(self, key: str) -> bytes:
        return await asyncio.to_thread(self._path(key).read_bytes)

    async def iter_chunks(self, key: str) -> AsyncIterator[bytes]:
        f = await asyncio.to_thread(open, self._path(key), "rb")
        try:
            while True:
                chunk = await asyncio.to_thread(f.read, self.chunk_size)
                if not chunk:
                    break
                yield chunk
        finally:
            f.close()

    async def exists(self, key: str) -> bool:
        try:
            path = self._path(key)
        except FileNotFoundError:
            return False
        return await asyncio.to_thread(path.is_file)

    async def delete(self, key: str) -> None:
        try:
            await asyncio.to_thread(os.remove, self._path(key))
            logger.info("Deleted %s from local disk", key)
        except FileNotFoundError:
            logger.warning("Local object %s was already gone", key)
