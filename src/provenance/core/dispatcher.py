"""Provenance — Channel dispatcher.

Sequential mode runs c2pa → exif → binary → xmp and stops at the first match.
Concurrent mode fans the four channels out to a thread pool and waits for all
of them or the deadline, whichever comes first:

  - all finished  → pick by fixed priority c2pa > exif > binary > xmp
  - deadline hit  → no-match; unfinished channels are abandoned, not cancelled
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections.abc import Mapping
from concurrent.futures import ThreadPoolExecutor
from functools import lru_cache
from pathlib import Path

from provenance.config import Settings, get_settings
from provenance.core.base_channel import BaseChannel, ChannelOutcome
from provenance.core.buffer_pool import BufferPool, get_buffer_pool
from provenance.core.channels.binary_scanner import BinaryScanner, FastScanner
from provenance.core.channels.c2pa_sniffer import C2PASniffer
from provenance.core.channels.exif_extractor import ExifExtractor
from provenance.core.channels.xmp_scanner import XMPScanner
from provenance.core.metadata.xmp_packet import extract_xmp_packet
from provenance.models.enums import CHANNEL_PRIORITY, Method
from provenance.models.schemas import DetectionResult, EvidenceInput

logger = logging.getLogger(__name__)


def _discard(fut: asyncio.Future) -> None:
    # Abandoned channel: consume the outcome so nothing is reported as unretrieved.
    if not fut.cancelled():
        fut.exception()


def select_result(outcomes: Mapping[Method, ChannelOutcome]) -> DetectionResult:
    """First matched outcome in channel priority order."""
    for method in CHANNEL_PRIORITY:
        outcome = outcomes.get(method)
        if outcome is not None and outcome.matched:
            return outcome.result
    return DetectionResult.no_match()


class ProvenanceDispatcher:
    """Runs the evidence channels over one image and aggregates the verdict."""

    def __init__(
        self,
        settings: Settings | None = None,
        *,
        timeout: float | None = None,
        generic_terms: bool | None = None,
        pool: BufferPool | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.timeout = self.settings.concurrent_timeout if timeout is None else timeout
        generic = self.settings.generic_terms if generic_terms is None else generic_terms
        self.pool = pool or get_buffer_pool()

        self.c2pa = C2PASniffer()
        self.exif = ExifExtractor()
        self.binary = BinaryScanner(self.settings.binary_scan_offset, generic, self.pool)
        self.xmp = XMPScanner()
        self.fast = FastScanner(self.settings.binary_scan_offset, self.settings.fast_min_size, self.pool)

        self._executor = ThreadPoolExecutor(
            max_workers=self.settings.max_workers,
            thread_name_prefix="provenance",
        )

    @property
    def channels(self) -> tuple[BaseChannel, ...]:
        """Channels in sequential / priority order."""
        return (self.c2pa, self.exif, self.binary, self.xmp)

    # ── Sequential ──

    def _sequential(self, image: bytes, xmp: bytes | None) -> DetectionResult:
        for channel in self.channels:
            outcome = channel.run(image, xmp)
            if outcome.matched:
                logger.info(
                    "AI provenance detected: provider=%s method=%s (%.1fms)",
                    outcome.result.provider,
                    channel.name,
                    outcome.elapsed_ms,
                )
                return outcome.result
        return DetectionResult.no_match()

    def detect(self, file_path: str | Path, xmp_bytes: bytes | None = None) -> DetectionResult:
        """Sequential detection on a file. The XMP packet is extracted from the file when not given."""
        path = Path(file_path)
        try:
            image = path.read_bytes()
        except OSError as exc:
            logger.warning("AI detection: cannot read %s: %s", path, exc)
            return DetectionResult.no_match()
        if xmp_bytes is None:
            xmp_bytes = extract_xmp_packet(image)
        return self._sequential(image, xmp_bytes)

    def detect_from_bytes(self, image_bytes: bytes, xmp_bytes: bytes | None = None) -> DetectionResult:
        """Sequential detection on in-memory bytes; no I/O."""
        return self._sequential(bytes(image_bytes), xmp_bytes)

    def detect_fast(self, image_bytes: bytes) -> DetectionResult:
        """High-confidence phrases only; buffers under the size floor never match."""
        return self.fast.run(bytes(image_bytes)).result

    def analyze(self, inp: EvidenceInput) -> DetectionResult:
        """Sequential detection on an EvidenceInput (bytes preferred over path)."""
        if inp.image_bytes is not None:
            return self.detect_from_bytes(inp.image_bytes, inp.xmp_bytes)
        return self.detect(inp.file_path, inp.xmp_bytes)

    # ── Concurrent ──

    async def detect_concurrent(self, image_bytes: bytes, xmp_bytes: bytes | None = None) -> DetectionResult:
        """All channels in parallel, bounded by ``self.timeout`` seconds (fail-open)."""
        image = bytes(image_bytes)
        loop = asyncio.get_running_loop()
        start = time.perf_counter()

        futures = {
            channel.method: loop.run_in_executor(self._executor, channel.run, image, xmp_bytes)
            for channel in self.channels
        }
        done, pending = await asyncio.wait(futures.values(), timeout=self.timeout)

        if pending:
            for fut in pending:
                fut.add_done_callback(_discard)
            logger.warning(
                "AI detection: concurrent scan timed out after %.1fs (%d channel(s) unfinished)",
                self.timeout,
                len(pending),
            )
            return DetectionResult.no_match()

        outcomes = {method: fut.result() for method, fut in futures.items()}
        result = select_result(outcomes)
        elapsed = (time.perf_counter() - start) * 1000
        if result.matched:
            logger.info(
                "AI provenance detected: provider=%s method=%s (%.1fms)",
                result.provider,
                result.method.value,
                elapsed,
            )
        return result

    def shutdown(self) -> None:
        """Release the worker pool without waiting for abandoned channels."""
        self._executor.shutdown(wait=False)


@lru_cache(maxsize=1)
def get_dispatcher() -> ProvenanceDispatcher:
    """Process-wide dispatcher built from the cached settings."""
    return ProvenanceDispatcher()


def detect(file_path: str | Path, xmp_bytes: bytes | None = None) -> DetectionResult:
    return get_dispatcher().detect(file_path, xmp_bytes)


def detect_from_bytes(image_bytes: bytes, xmp_bytes: bytes | None = None) -> DetectionResult:
    return get_dispatcher().detect_from_bytes(image_bytes, xmp_bytes)


def detect_fast(image_bytes: bytes) -> DetectionResult:
    return get_dispatcher().detect_fast(image_bytes)


async def detect_concurrent(image_bytes: bytes, xmp_bytes: bytes | None = None) -> DetectionResult:
    return await get_dispatcher().detect_concurrent(image_bytes, xmp_bytes)
