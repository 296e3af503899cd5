"""Provenance — Raw binary-text scanning channel.

Treats the image bytes as text and looks only for high-specificity phrases.
Non-PNG files skip their first ``scan_offset`` bytes: binary headers and ICC
profiles are noisy. PNG files keep everything after the signature because
tEXt/iTXt chunks sit near the front.
"""

from __future__ import annotations

import logging

from provenance.core import patterns as P
from provenance.core.base_channel import BaseChannel
from provenance.core.buffer_pool import BufferPool, get_buffer_pool
from provenance.core.utf16 import contains_utf16
from provenance.models.enums import Method
from provenance.models.schemas import DetectionResult

logger = logging.getLogger(__name__)

DEFAULT_SCAN_OFFSET = 1000
DEFAULT_FAST_MIN_SIZE = 1024
LOWER_CHUNK = 64 * 1024


def is_png(data: bytes) -> bool:
    return data[:8] == P.PNG_SIGNATURE


def scan_start(data: bytes, offset: int = DEFAULT_SCAN_OFFSET) -> int:
    """Index where text scanning begins."""
    start = len(P.PNG_SIGNATURE) if is_png(data) else offset
    return start if len(data) > start else 0


def fill_lowered(window: bytearray, data: bytes, start: int) -> None:
    """Append ``data[start:]`` lower-cased to ``window``, one chunk at a time."""
    for i in range(start, len(data), LOWER_CHUNK):
        window += data[i : i + LOWER_CHUNK].lower()


class BinaryScanner(BaseChannel):
    """Channel "binary": literal and UTF-16 phrases in the raw bytes."""

    def __init__(
        self,
        scan_offset: int = DEFAULT_SCAN_OFFSET,
        generic_terms: bool = False,
        pool: BufferPool | None = None,
    ) -> None:
        self.scan_offset = scan_offset
        self.generic_terms = generic_terms
        self.pool = pool or get_buffer_pool()

    @property
    def method(self) -> Method:
        return Method.BINARY

    def _scan(self, image: bytes, xmp: bytes | None) -> DetectionResult | None:
        start = scan_start(image, self.scan_offset)

        with self.pool.borrow() as window:
            fill_lowered(window, image, start)
            found = P.first_phrase(window, P.BINARY_PHRASES)
            if found is None and self.generic_terms:
                generic = P.first_phrase(window, ((t, P.GENERIC_TERMS) for t in P.GENERIC_AI_TERMS))
            else:
                generic = None

        if found is not None:
            phrase, provider = found
            logger.debug("AI phrase in binary: %r", phrase)
            return self.hit(provider, f"AI phrase: {phrase}")

        for needle in P.BINARY_UTF16_NEEDLES:
            if contains_utf16(image, needle):
                return self.hit(P.STABLE_DIFFUSION, f"UTF-16 AI param: {needle}")

        if generic is not None:
            return self.hit(P.GENERIC_TERMS, f"Generic AI term: {generic[0]}")
        return None


class FastScanner(BaseChannel):
    """Restricted high-confidence scan for latency-sensitive callers.

    Accepts a higher false-negative rate: no UTF-16 pass, no generic terms,
    and buffers under ``min_size`` bytes are never matched.
    """

    def __init__(
        self,
        scan_offset: int = DEFAULT_SCAN_OFFSET,
        min_size: int = DEFAULT_FAST_MIN_SIZE,
        pool: BufferPool | None = None,
    ) -> None:
        self.scan_offset = scan_offset
        self.min_size = min_size
        self.pool = pool or get_buffer_pool()

    @property
    def method(self) -> Method:
        return Method.BINARY

    @property
    def name(self) -> str:
        return "fast"

    def _scan(self, image: bytes, xmp: bytes | None) -> DetectionResult | None:
        if len(image) < self.min_size:
            return None
        start = scan_start(image, self.scan_offset)
        with self.pool.borrow() as window:
            fill_lowered(window, image, start)
            found = P.first_phrase(window, P.FAST_PHRASES)
        if found is None:
            return None
        phrase, provider = found
        logger.debug("Specific marker matched: %r", phrase)
        return self.hit(provider, f"Specific AI marker: {phrase}")
