"""Shared fixtures: metadata container builders."""

from __future__ import annotations

import struct

import pytest

PNG_SIGNATURE = b"\x89PNG\r\n\x1a\n"

# TIFF field types used by the builders.
BYTE, ASCII, LONG, UNDEFINED = 1, 2, 4, 7
_TYPE_SIZE = {BYTE: 1, ASCII: 1, LONG: 4, UNDEFINED: 1}

SOFTWARE = 0x0131
IMAGE_DESCRIPTION = 0x010E
XP_COMMENT = 0x9C9C
EXIF_IFD = 0x8769
USER_COMMENT = 0x9286


def _ifd(entries: list[tuple[int, int, bytes]], start: int) -> bytes:
    """One little-endian IFD at ``start`` followed by its out-of-line values."""
    n = len(entries)
    data_offset = start + 2 + 12 * n + 4
    head = struct.pack("<H", n)
    data = b""
    for tag, typ, payload in sorted(entries, key=lambda e: e[0]):
        count = len(payload) // _TYPE_SIZE[typ]
        if len(payload) <= 4:
            head += struct.pack("<HHI", tag, typ, count) + payload.ljust(4, b"\x00")
        else:
            head += struct.pack("<HHII", tag, typ, count, data_offset + len(data))
            data += payload
            if len(data) % 2:
                data += b"\x00"
    head += struct.pack("<I", 0)
    return head + data


def build_tiff(
    ifd0: list[tuple[int, int, bytes]],
    exif_ifd: list[tuple[int, int, bytes]] | None = None,
) -> bytes:
    """Minimal TIFF/EXIF block: IFD0 plus an optional Exif sub-IFD."""
    header = b"II*\x00" + struct.pack("<I", 8)
    if not exif_ifd:
        return header + _ifd(ifd0, 8)
    placeholder = ifd0 + [(EXIF_IFD, LONG, struct.pack("<I", 0))]
    sub_start = 8 + len(_ifd(placeholder, 8))
    first = _ifd(ifd0 + [(EXIF_IFD, LONG, struct.pack("<I", sub_start))], 8)
    return header + first + _ifd(exif_ifd, sub_start)


def jpeg_with_exif(tiff: bytes, tail: bytes = b"") -> bytes:
    """SOI + APP1(Exif) + arbitrary tail. Not decodable, but structurally a JPEG header."""
    body = b"Exif\x00\x00" + tiff
    app1 = b"\xff\xe1" + struct.pack(">H", len(body) + 2) + body
    return b"\xff\xd8" + app1 + tail + b"\xff\xd9"


def ascii_value(text: str) -> bytes:
    return text.encode("ascii") + b"\x00"


@pytest.fixture
def make_tiff():
    return build_tiff


@pytest.fixture
def make_jpeg():
    return jpeg_with_exif


@pytest.fixture
def ascii_tag():
    return ascii_value


@pytest.fixture
def software_jpeg():
    """JPEG header whose EXIF Software tag names Midjourney."""
    return jpeg_with_exif(build_tiff([(SOFTWARE, ASCII, ascii_value("Midjourney v6"))]))


@pytest.fixture
def plain_bytes():
    """Opaque buffer with no provenance markers of any kind."""
    return b"\xff\xd8\xff\xe0" + bytes(range(32, 127)).replace(b"-", b"_") * 40 + b"\xff\xd9"


@pytest.fixture
def png_prefix():
    return PNG_SIGNATURE


@pytest.fixture
def iptc_xmp():
    def _build(extra: str = "") -> bytes:
        return (
            '<x:xmpmeta xmlns:x="adobe:ns:meta/"><rdf:RDF>'
            '<rdf:Description Iptc4xmpExt:DigitalSourceType='
            '"http://cv.iptc.org/newscodes/digitalsourcetype/trainedAlgorithmicMedia"'
            f"{extra}/></rdf:RDF></x:xmpmeta>"
        ).encode()

    return _build
