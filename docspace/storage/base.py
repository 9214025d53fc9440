import re
import uuid
from typing import AsyncIterator

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def make_object_key(file_name: str) -> str:
    """Fresh storage key that keeps a sanitized copy of the original name"""
    safe_name = _UNSAFE_CHARS.sub("_", file_name).strip("._") or "file"
    return f"{uuid.uuid4().hex}_{safe_name}"


class FileStorage:
    """Where document bodies live. Keys are opaque to callers."""

    chunk_size = 64 * 1024

    async def save(self, key: str, data: bytes, content_type: str) -> str:
        raise NotImplementedError("Subclasses must implement save")

    async def read(self, key: str) -> bytes:
        """Whole object body; FileNotFoundError when the key is unknown"""
        raise NotImplementedError("Subclasses must implement read")

    async def iter_chunks(self, key: str) -> AsyncIterator[bytes]:
        data = await self.read(key)
        for start in range(0, len(data), self.chunk_size):
            yield data[start:start + self.chunk_size]

    async def exists(self, key: str) -> bool:
        raise NotImplementedError("Subclasses must implement exists")

    async def delete(self, key: str) -> None:
        """Remove an object; missing keys are not an error"""
        raise NotImplementedError("Subclasses must implement delete")
