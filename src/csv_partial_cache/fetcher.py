from __future__ import annotations

import asyncio
import logging
import threading
from pathlib import Path
from typing import BinaryIO, Literal, Optional

from csv_partial_cache.errors import FetchError, StaleOffsetError
from csv_partial_cache.scanner import strip_terminator

logger = logging.getLogger(__name__)

FetchPolicy = Literal["per_call", "shared_lock"]


def _read_line_at(stream: BinaryIO, *, path: Path, offset: int) -> bytes:
    try:
        stream.seek(offset)
        raw = stream.readline()
    except OSError as e:
        raise FetchError(path, offset) from e
    if not raw:
        raise StaleOffsetError(path, offset)
    return strip_terminator(raw)


class RowFetcher:
    """Reads the raw line starting at a byte offset of a file.

    The blocking seek and read run in a worker thread. With the `per_call` policy every read
    opens its own handle, so concurrent reads never share a cursor. With `shared_lock` one
    handle is reused and each seek+read pair holds a lock for its whole duration; the lock is
    taken inside the worker thread, so a cancelled caller cannot release it while its read is
    still running.
    """

    def __init__(self, path: Path, *, policy: FetchPolicy = "per_call") -> None:
        if policy not in ("per_call", "shared_lock"):
            raise ValueError(f"Unknown fetch policy: {policy}")
        self.path = path
        self.policy: FetchPolicy = policy
        self._handle: Optional[BinaryIO] = None
        self._handle_lock = threading.Lock()
        self._closed = False

    async def read_line(self, offset: int) -> bytes:
        if self.policy == "per_call":
            return await asyncio.to_thread(self._read_per_call, offset)
        return await asyncio.to_thread(self._read_shared, offset)

    def _read_per_call(self, offset: int) -> bytes:
        if self._closed:
            raise FetchError(self.path, offset, f"Fetcher for {self.path} is closed")
        try:
            stream = open(self.path, "rb")
        except OSError as e:
            raise FetchError(self.path, offset, f"Can't open file: {self.path}") from e
        with stream:
            return _read_line_at(stream, path=self.path, offset=offset)

    def _read_shared(self, offset: int) -> bytes:
        with self._handle_lock:
            if self._closed:
                raise FetchError(self.path, offset, f"Fetcher for {self.path} is closed")
            if self._handle is None:
                try:
                    self._handle = open(self.path, "rb")
                except OSError as e:
                    raise FetchError(self.path, offset, f"Can't open file: {self.path}") from e
                logger.debug("Opened shared fetch handle. path=%s", self.path)
            return _read_line_at(self._handle, path=self.path, offset=offset)

    def close(self) -> None:
        with self._handle_lock:
            self._closed = True
            if self._handle is not None:
                self._handle.close()
                self._handle = None
