"""Persistent store interfaces following Black Box Design principles."""
from dataclasses import dataclass
from typing import Any, Optional, Protocol

from ...config.options import SessionOptions


@dataclass
class StoreHandle:
    """
    An open activation of one identifier's stored blob.

    The handle carries the options of the session that opened it, so one
    store engine can serve sessions with different lifetimes at once.
    """
    identifier: str
    resource: Any = None
    max_lifetime: int = 0
    save_path: Optional[str] = None


class StoreAdapter(Protocol):
    """
    Protocol for persistent session stores.

    The blob is opaque bytes; an empty blob means nothing is stored yet.
    A handle is held from open() until close(), which releases whatever
    the engine locked for the identifier. Engines are shared between
    requests and keep no per-session settings of their own.
    """

    async def open(self, identifier: str, options: SessionOptions) -> StoreHandle:
        """Activate storage for an identifier with the session's options."""
        ...

    async def read(self, handle: StoreHandle) -> bytes:
        """Read the stored blob."""
        ...

    async def write(self, handle: StoreHandle, blob: bytes) -> None:
        """Replace the stored blob, kept for handle.max_lifetime seconds."""
        ...

    async def close(self, handle: StoreHandle) -> None:
        """Release an activation."""
        ...

    async def destroy(self, handle: StoreHandle) -> None:
        """Remove everything stored for the handle's identifier."""
        ...

    async def gc(self, max_lifetime: int, save_path: Optional[str] = None) -> int:
        """
        Remove blobs not written for longer than max_lifetime seconds.

        Returns:
            Number of removed sessions
        """
        ...
