"""Provenance — Reusable scratch buffers for the scanning hot path."""

from __future__ import annotations

import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

logger = logging.getLogger(__name__)

DEFAULT_CEILING = 2 * 1024 * 1024  # 2 MiB
DEFAULT_MAX_IDLE = 16


class BufferPool:
    """Thread-safe pool of ``bytearray`` scratch buffers.

    ``acquire`` always hands out an empty buffer. ``release`` empties it and
    keeps it for reuse unless it grew past ``ceiling`` bytes or the pool
    already holds ``max_idle`` buffers. A released buffer belongs to the pool:
    the former holder must not touch it again.

    CPython frees a ``bytearray``'s storage on ``clear()``, so the pool recycles
    buffer objects and bounds how many are held, not their capacity. Callers
    fill the buffer directly (see ``fill_lowered``) so each scan holds one
    full-size copy of the input.
    """

    def __init__(self, ceiling: int = DEFAULT_CEILING, max_idle: int = DEFAULT_MAX_IDLE) -> None:
        self.ceiling = ceiling
        self.max_idle = max_idle
        self._idle: list[bytearray] = []
        self._lock = threading.Lock()
        self.dropped = 0

    def acquire(self) -> bytearray:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return bytearray()

    def release(self, buf: bytearray) -> None:
        oversized = len(buf) > self.ceiling
        buf.clear()
        with self._lock:
            if oversized or len(self._idle) >= self.max_idle:
                self.dropped += 1
                return
            if any(b is buf for b in self._idle):
                logger.warning("Buffer released twice, ignoring")
                return
            self._idle.append(buf)

    @contextmanager
    def borrow(self) -> Iterator[bytearray]:
        """Acquire a buffer for the duration of a ``with`` block."""
        buf = self.acquire()
        try:
            yield buf
        finally:
            self.release(buf)

    def __len__(self) -> int:
        with self._lock:
            return len(self._idle)


_default_pool: BufferPool | None = None
_default_lock = threading.Lock()


def get_buffer_pool() -> BufferPool:
    """Process-wide pool sized from settings."""
    global _default_pool
    if _default_pool is None:
        with _default_lock:
            if _default_pool is None:
                from provenance.config import get_settings

                settings = get_settings()
                _default_pool = BufferPool(settings.buffer_pool_ceiling, settings.buffer_pool_size)
    return _default_pool
