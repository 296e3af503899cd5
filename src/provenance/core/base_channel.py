"""Provenance — Abstract BaseChannel.

Every evidence channel (c2pa, exif, binary, xmp) inherits from BaseChannel.
Provides timing and error handling: a channel that raises is reported as a
no-match for that channel only, never as an error to the caller.
"""

from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Any

from provenance.models.enums import Method
from provenance.models.schemas import DetectionResult

logger = logging.getLogger(__name__)


class ChannelOutcome:
    """Per-channel result consumed by the dispatcher."""

    __slots__ = ("method", "matched", "result", "error", "elapsed_ms")

    def __init__(
        self,
        *,
        method: Method,
        result: DetectionResult | None = None,
        error: str | None = None,
        elapsed_ms: float = 0.0,
    ) -> None:
        self.method = method
        self.result = result if result is not None else DetectionResult.no_match()
        self.matched = self.result.matched
        self.error = error
        self.elapsed_ms = elapsed_ms

    def to_dict(self) -> dict[str, Any]:
        return {
            "method": self.method.value,
            "matched": self.matched,
            "result": self.result.to_dict(),
            "error": self.error,
            "elapsed_ms": round(self.elapsed_ms, 2),
        }

    def __repr__(self) -> str:
        return f"<ChannelOutcome {self.method.value} matched={self.matched} provider={self.result.provider!r}>"


class BaseChannel(ABC):
    """Abstract base class for every evidence channel.

    Subclasses MUST implement:
      - method (property)
      - _scan(): return a matched DetectionResult or None
    """

    @property
    @abstractmethod
    def method(self) -> Method: ...

    @property
    def name(self) -> str:
        return self.method.value

    @abstractmethod
    def _scan(self, image: bytes, xmp: bytes | None) -> DetectionResult | None:
        """Core matching logic. Subclasses implement this."""
        ...

    def hit(self, provider: str, details: str) -> DetectionResult:
        return DetectionResult.hit(provider, self.method, details)

    def run(self, image: bytes, xmp: bytes | None = None) -> ChannelOutcome:
        """Public entry-point: wraps _scan with timing and error handling."""
        start = time.perf_counter()
        try:
            result = self._scan(image, xmp)
        except Exception as exc:
            elapsed = (time.perf_counter() - start) * 1000
            logger.error("Channel %s failed: %s", self.name, exc, exc_info=True)
            return ChannelOutcome(method=self.method, error=str(exc), elapsed_ms=elapsed)
        elapsed = (time.perf_counter() - start) * 1000
        if result is not None and result.matched:
            logger.debug("Channel %s matched provider=%s (%.1fms)", self.name, result.provider, elapsed)
        return ChannelOutcome(method=self.method, result=result, elapsed_ms=elapsed)

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} method={self.method.value}>"
