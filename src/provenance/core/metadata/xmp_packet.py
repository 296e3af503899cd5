"""Provenance — XMP packet extraction from raw container bytes."""

from __future__ import annotations

import logging
from pathlib import Path

logger = logging.getLogger(__name__)

XMP_OPEN = b"<x:xmpmeta"
XMP_CLOSE = b"</x:xmpmeta>"


def extract_xmp_packet(data: bytes) -> bytes | None:
    """Return the first ``<x:xmpmeta>...</x:xmpmeta>`` packet in ``data``."""
    low = bytes(data).lower()
    start = low.find(XMP_OPEN)
    if start == -1:
        return None
    # no close after the first opening tag means none after any later one
    end = low.find(XMP_CLOSE, start + len(XMP_OPEN))
    if end == -1:
        return None
    return bytes(data[start : end + len(XMP_CLOSE)])


def extract_xmp_from_file(path: str | Path) -> bytes | None:
    """Read ``path`` and extract its XMP packet. Unreadable files yield None."""
    try:
        data = Path(path).read_bytes()
    except OSError as exc:
        logger.warning("Cannot read %s for XMP: %s", path, exc)
        return None
    return extract_xmp_packet(data)
