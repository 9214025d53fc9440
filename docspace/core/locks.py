import asyncio
from weakref import WeakValueDictionary


class KeyedLock:
    """asyncio locks handed out per entity id.

    Locks are dropped once nobody holds a reference, so the registry only
    contains ids that are being mutated right now.
    """

    def __init__(self):
        self._locks: "WeakValueDictionary[str, asyncio.Lock]" = WeakValueDictionary()

    def __call__(self, key: str) -> asyncio.Lock:
        lock = self._locks.get(key)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[key] = lock
        return lock

    def __len__(self) -> int:
        return len(self._locks)
