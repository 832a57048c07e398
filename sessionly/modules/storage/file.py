import asyncio
import fcntl
import logging
import os
import tempfile
import time
from pathlib import Path
from typing import Callable, Optional

from ...config.options import SessionOptions
from ..identifier import mask_identifier
from .interfaces import StoreHandle

logger = logging.getLogger(__name__)

FILE_PREFIX = "sess_"


class FileStore:
    """
    One file per session under a save directory.

    An activation keeps the file open with an exclusive flock until close().
    File I/O runs in worker threads so the event loop is not blocked.
    """

    def __init__(self, save_path: Optional[str] = None, clock: Callable[[], float] = time.time):
        self.save_path = Path(save_path) if save_path else Path(tempfile.gettempdir())
        self.clock = clock

    def directory_for(self, save_path: Optional[str] = None) -> Path:
        return Path(save_path) if save_path else self.save_path

    def path_for(self, identifier: str, save_path: Optional[str] = None) -> Path:
        return self.directory_for(save_path) / f"{FILE_PREFIX}{identifier}"

    async def open(self, identifier: str, options: SessionOptions) -> StoreHandle:
        """
        Open and lock the session file, creating it if missing.

        Raises:
            OSError: If the save directory is missing or not writable
        """
        path = self.path_for(identifier, options.save_path)
        fp = await asyncio.to_thread(self._open_locked, path)
        logger.debug(f"Opened session file for {mask_identifier(identifier)} in {path.parent}")
        return StoreHandle(
            identifier=identifier,
            resource=fp,
            max_lifetime=options.gc_maxlifetime,
            save_path=options.save_path,
        )

    async def read(self, handle: StoreHandle) -> bytes:
        return await asyncio.to_thread(self._read, handle.resource)

    async def write(self, handle: StoreHandle, blob: bytes) -> None:
        await asyncio.to_thread(self._write, handle.resource, blob)

    async def close(self, handle: StoreHandle) -> None:
        fp = handle.resource
        handle.resource = None
        if fp is not None and not fp.closed:
            await asyncio.to_thread(self._unlock_and_close, fp)

    async def destroy(self, handle: StoreHandle) -> None:
        path = self.path_for(handle.identifier, handle.save_path)
        await asyncio.to_thread(path.unlink, missing_ok=True)

    async def gc(self, max_lifetime: int, save_path: Optional[str] = None) -> int:
        directory = self.directory_for(save_path)
        return await asyncio.to_thread(self._collect, directory, self.clock() - max_lifetime)

    @staticmethod
    def _open_locked(path: Path):
        fp = open(path, "a+b")
        try:
            fcntl.flock(fp.fileno(), fcntl.LOCK_EX)
        except OSError:
            fp.close()
            raise
        return fp

    @staticmethod
    def _read(fp) -> bytes:
        fp.seek(0)
        return fp.read()

    @staticmethod
    def _write(fp, blob: bytes) -> None:
        fp.seek(0)
        fp.truncate()
        fp.write(blob)
        fp.flush()
        os.fsync(fp.fileno())

    @staticmethod
    def _unlock_and_close(fp) -> None:
        try:
            fcntl.flock(fp.fileno(), fcntl.LOCK_UN)
        finally:
            fp.close()

    @staticmethod
    def _collect(directory: Path, horizon: float) -> int:
        removed = 0
        for path in directory.glob(f"{FILE_PREFIX}*"):
            try:
                if path.stat().st_mtime < horizon:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
        return removed
