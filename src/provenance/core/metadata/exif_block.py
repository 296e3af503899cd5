"""Provenance — Raw EXIF block location and flattening.

The block is found by signature rather than by decoding the image, so it
works for JPEG APP1, PNG eXIf, WebP and bare TIFF payloads alike, including
files Pillow cannot open. Parsing of the TIFF structure is left to Pillow.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any

from PIL import Image
from PIL.ExifTags import TAGS

logger = logging.getLogger(__name__)

EXIF_IDENT = b"Exif\x00\x00"
TIFF_HEADERS = (b"II*\x00", b"MM\x00*")
JPEG_APP1 = b"\xff\xe1"
PNG_EXIF_CHUNK = b"eXIf"

EXIF_IFD_POINTER = 0x8769
GPS_IFD_POINTER = 0x8825
INTEROP_IFD_POINTER = 0xA005
_POINTER_TAGS = frozenset({EXIF_IFD_POINTER, GPS_IFD_POINTER, INTEROP_IFD_POINTER})


@dataclass(frozen=True)
class ExifEntry:
    """One flattened tag: numeric id, name, formatted text, raw Pillow value."""

    tag_id: int
    name: str
    value: str
    raw: Any


def _bounded_end(data: bytes, tiff_start: int) -> int:
    """End offset of the EXIF payload when its container declares a length."""
    ident = tiff_start - len(EXIF_IDENT)
    if ident >= 4 and data[ident - 4 : ident - 2] == JPEG_APP1:
        seg_len = int.from_bytes(data[ident - 2 : ident], "big")
        return min(len(data), ident - 2 + seg_len)
    if tiff_start >= 8 and data[tiff_start - 4 : tiff_start] == PNG_EXIF_CHUNK:
        chunk_len = int.from_bytes(data[tiff_start - 8 : tiff_start - 4], "big")
        return min(len(data), tiff_start + chunk_len)
    return len(data)


def find_exif_block(data: bytes) -> bytes | None:
    """Return the raw TIFF-structured EXIF block embedded in ``data``, or None."""
    pos = data.find(EXIF_IDENT)
    while pos != -1:
        start = pos + len(EXIF_IDENT)
        if data[start : start + 4] in TIFF_HEADERS:
            return data[start : _bounded_end(data, start)]
        pos = data.find(EXIF_IDENT, pos + 1)

    hits = [p for p in (data.find(h) for h in TIFF_HEADERS) if p != -1]
    if not hits:
        return None
    start = min(hits)
    return data[start : _bounded_end(data, start)]


def format_value(value: Any) -> str:
    if isinstance(value, str):
        return value.strip("\x00").strip()
    if isinstance(value, (bytes, bytearray)):
        return bytes(value).decode("latin-1").strip("\x00 \t\r\n")
    if isinstance(value, tuple):
        return " ".join(format_value(v) for v in value)
    return str(value)


def tag_name(tag_id: int) -> str:
    return TAGS.get(tag_id, f"0x{tag_id:04x}")


def _entry(tag_id: int, raw: Any) -> ExifEntry:
    if isinstance(raw, tuple) and len(raw) == 1:
        raw = raw[0]
    return ExifEntry(tag_id, tag_name(tag_id), format_value(raw), raw)


def read_entries(block: bytes) -> list[ExifEntry]:
    """Flatten IFD0 and the Exif sub-IFD into ordered entries.

    Raises whatever Pillow raises for a corrupt block; callers treat that as
    "no EXIF".
    """
    exif = Image.Exif()
    exif.load(EXIF_IDENT + block)

    entries: list[ExifEntry] = []
    for tag_id in sorted(exif.keys()):
        if tag_id in _POINTER_TAGS:
            continue
        entries.append(_entry(tag_id, exif[tag_id]))

    if EXIF_IFD_POINTER in exif:
        sub = exif.get_ifd(EXIF_IFD_POINTER)
        for tag_id in sorted(sub):
            if tag_id not in _POINTER_TAGS:
                entries.append(_entry(tag_id, sub[tag_id]))
    return entries


def extract_entries(data: bytes) -> tuple[bytes, list[ExifEntry]] | None:
    """Locate and flatten the EXIF block. ``None`` when absent or corrupt."""
    block = find_exif_block(data)
    if block is None:
        return None
    try:
        return block, read_entries(block)
    except Exception as exc:
        logger.debug("EXIF parsing failed: %s", exc)
        return None


def exif_to_dict(data: bytes) -> dict[str, str] | None:
    """All EXIF tags as ``{name: formatted}`` for display or storage.

    Repeated names get a ``_dup`` suffix. ``None`` when there is no EXIF.
    """
    found = extract_entries(data)
    if found is None:
        return None
    out: dict[str, str] = {}
    for entry in found[1]:
        key = entry.name
        while key in out:
            key += "_dup"
        out[key] = entry.value
    return out
