"""Provenance — Shared enumerations."""

from __future__ import annotations

from enum import Enum


class Method(str, Enum):
    """Evidence channel that produced a match."""

    C2PA = "c2pa"
    EXIF = "exif"
    XMP = "xmp"
    BINARY = "binary"


# Selection order when several channels match at once.
CHANNEL_PRIORITY: tuple[Method, ...] = (Method.C2PA, Method.EXIF, Method.BINARY, Method.XMP)
