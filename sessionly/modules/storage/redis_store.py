import logging
from typing import Optional

from ...config.options import SessionOptions
from ..identifier import mask_identifier
from .interfaces import StoreHandle

logger = logging.getLogger(__name__)


class RedisStore:
    def __init__(self, redis_client, prefix: str = "session:"):
        """
        Initialize Redis store.

        Args:
            redis_client: Async Redis client
            prefix: Key prefix for session blobs
        """
        self.redis = redis_client
        self.prefix = prefix

    def key_for(self, identifier: str) -> str:
        return f"{self.prefix}{identifier}"

    async def open(self, identifier: str, options: SessionOptions) -> StoreHandle:
        return StoreHandle(identifier=identifier, max_lifetime=options.gc_maxlifetime)

    async def read(self, handle: StoreHandle) -> bytes:
        data = await self.redis.get(self.key_for(handle.identifier))
        if data is None:
            return b""
        # clients created with decode_responses=True hand back str
        if isinstance(data, str):
            return data.encode("utf-8")
        return data

    async def write(self, handle: StoreHandle, blob: bytes) -> None:
        key = self.key_for(handle.identifier)
        if handle.max_lifetime:
            await self.redis.setex(key, handle.max_lifetime, blob)
        else:
            await self.redis.set(key, blob)

    async def close(self, handle: StoreHandle) -> None:
        handle.resource = None

    async def destroy(self, handle: StoreHandle) -> None:
        await self.redis.delete(self.key_for(handle.identifier))
        logger.debug(f"Deleted stored session {mask_identifier(handle.identifier)}")

    async def gc(self, max_lifetime: int, save_path: Optional[str] = None) -> int:
        """Redis key expiry already removes stale sessions."""
        return 0
