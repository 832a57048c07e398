"""
Storage Module - Black Box Interface

Purpose: Persist one opaque session blob per identifier
Interface: StoreAdapter protocol (open, read, write, close, destroy, gc), create_store()
Hidden: Engine specifics, file locking, Redis keys and expiry

Can be replaced with any storage backend without affecting other modules.
"""

import logging

from ...config.provider import StorageConfig
from .file import FileStore
from .interfaces import StoreAdapter, StoreHandle
from .memory import MemoryStore
from .redis_store import RedisStore

logger = logging.getLogger(__name__)


def create_store(config: StorageConfig, redis_client=None) -> StoreAdapter:
    """
    Build the configured store engine.

    Args:
        config: Storage configuration
        redis_client: Async Redis client, created from config.redis_url when omitted

    Returns:
        Store adapter instance
    """
    if config.backend == "redis":
        if redis_client is None:
            import redis.asyncio as redis

            redis_client = redis.from_url(config.redis_url)
        logger.info("Using Redis session store")
        return RedisStore(redis_client)
    if config.backend == "file":
        logger.info(f"Using file session store in {config.save_path or 'the system temp directory'}")
        return FileStore(config.save_path)
    logger.info("Using in-memory session store")
    return MemoryStore()


__all__ = ["FileStore", "MemoryStore", "RedisStore", "StoreAdapter", "StoreHandle", "create_store"]
