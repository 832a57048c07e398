import asyncio
import logging
import time
from typing import Callable, Dict, Optional, Tuple

from ...config.options import SessionOptions
from ..identifier import mask_identifier
from .interfaces import StoreHandle

logger = logging.getLogger(__name__)


class MemoryStore:
    """
    Process-local session store.

    Blobs live in a dict keyed by identifier together with their last write
    time. Each activation holds a per-identifier asyncio lock, so two
    requests for one session run one after another. A lock exists only
    while some request holds or waits for it.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self.clock = clock
        self._blobs: Dict[str, Tuple[bytes, float]] = {}
        self._locks: Dict[str, asyncio.Lock] = {}
        self._users: Dict[str, int] = {}

    async def open(self, identifier: str, options: SessionOptions) -> StoreHandle:
        lock = self._locks.setdefault(identifier, asyncio.Lock())
        self._users[identifier] = self._users.get(identifier, 0) + 1
        try:
            await lock.acquire()
        except asyncio.CancelledError:
            self._forget(identifier)
            raise
        return StoreHandle(identifier=identifier, resource=lock, max_lifetime=options.gc_maxlifetime)

    async def read(self, handle: StoreHandle) -> bytes:
        blob, written_at = self._blobs.get(handle.identifier, (b"", 0.0))
        if blob and handle.max_lifetime and self.clock() - written_at > handle.max_lifetime:
            logger.debug(f"Stored session {mask_identifier(handle.identifier)} outlived its lifetime")
            del self._blobs[handle.identifier]
            return b""
        return blob

    async def write(self, handle: StoreHandle, blob: bytes) -> None:
        self._blobs[handle.identifier] = (blob, self.clock())

    async def close(self, handle: StoreHandle) -> None:
        lock, handle.resource = handle.resource, None
        if lock is None:
            return
        if lock.locked():
            lock.release()
        self._forget(handle.identifier)

    async def destroy(self, handle: StoreHandle) -> None:
        self._blobs.pop(handle.identifier, None)

    async def gc(self, max_lifetime: int, save_path: Optional[str] = None) -> int:
        horizon = self.clock() - max_lifetime
        expired = [
            identifier
            for identifier, (_, written_at) in self._blobs.items()
            if written_at < horizon and identifier not in self._locks
        ]
        for identifier in expired:
            del self._blobs[identifier]
        return len(expired)

    @property
    def activations(self) -> int:
        """Number of identifiers currently held or waited for."""
        return len(self._locks)

    def __contains__(self, identifier: str) -> bool:
        return identifier in self._blobs

    def __len__(self) -> int:
        return len(self._blobs)

    def _forget(self, identifier: str) -> None:
        users = self._users.get(identifier, 0) - 1
        if users > 0:
            self._users[identifier] = users
            return
        self._users.pop(identifier, None)
        self._locks.pop(identifier, None)
