"""Provenance — UTF-16 codec for width-encoded metadata fields.

EXIF comment fields written by Windows tools and some generators store text
as UTF-16. ``decode_utf16`` honours a leading BOM and otherwise assumes
little-endian; ``utf16_needles`` builds the LE/BE byte patterns used to find
ASCII keywords inside raw UTF-16 data without decoding it.
"""

from __future__ import annotations

from functools import lru_cache

BOM_LE = b"\xff\xfe"
BOM_BE = b"\xfe\xff"

# EXIF UserComment charset identifiers (first 8 bytes of the value).
COMMENT_HEADER_SIZE = 8
UNICODE_HEADER = b"UNICODE\x00"
ASCII_HEADER = b"ASCII\x00\x00\x00"
JIS_HEADER = b"JIS\x00\x00\x00\x00\x00"
UNDEFINED_HEADER = b"\x00" * 8


class UTF16DecodeError(ValueError):
    """Raised when a byte span is not decodable UTF-16."""


def has_bom(data: bytes) -> bool:
    return data[:2] in (BOM_LE, BOM_BE)


def decode_utf16(data: bytes) -> str:
    """Decode ``data`` as UTF-16, BOM-aware, little-endian when no BOM.

    Raises:
        UTF16DecodeError: too short, odd length, or a truncated/unpaired surrogate.
    """
    if len(data) < 2:
        raise UTF16DecodeError("data too short for UTF-16")

    if data.startswith(BOM_LE):
        codec, body = "utf-16-le", data[2:]
    elif data.startswith(BOM_BE):
        codec, body = "utf-16-be", data[2:]
    else:
        codec, body = "utf-16-le", data

    if len(body) % 2:
        raise UTF16DecodeError("invalid UTF-16 data length")

    try:
        return body.decode(codec)
    except UnicodeDecodeError as exc:
        raise UTF16DecodeError(f"malformed UTF-16: {exc.reason}") from exc


def try_decode_comment(raw: bytes) -> str | None:
    """Decode an EXIF comment value that may carry an 8-byte charset header.

    When the value starts with a known charset header (or a BOM follows the
    header position) the remainder is tried first, then the whole value.
    Returns ``None`` when nothing decodes to non-empty text, or when the
    header declares a non-UTF-16 charset.
    """
    if len(raw) <= COMMENT_HEADER_SIZE:
        return None
    header, body = raw[:COMMENT_HEADER_SIZE], raw[COMMENT_HEADER_SIZE:]
    if header in (ASCII_HEADER, JIS_HEADER):
        return None
    if header in (UNICODE_HEADER, UNDEFINED_HEADER) or has_bom(body):
        candidates: tuple[bytes, ...] = (body, raw)
    else:
        candidates = (raw,)
    for candidate in candidates:
        try:
            text = decode_utf16(candidate)
        except UTF16DecodeError:
            continue
        if text:
            return text
    return None


@lru_cache(maxsize=64)
def utf16_needles(needle: str) -> tuple[bytes, bytes]:
    """UTF-16LE and UTF-16BE encodings of the lower-cased ASCII ``needle``."""
    low = needle.lower()
    return low.encode("utf-16-le"), low.encode("utf-16-be")


def contains_utf16(haystack: bytes | bytearray, needle: str) -> bool:
    """True when ``needle`` occurs in ``haystack`` as UTF-16 in either byte order."""
    le, be = utf16_needles(needle)
    return le in haystack or be in haystack
