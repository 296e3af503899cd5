"""Provenance — Content-credential (C2PA/JUMBF) manifest sniffer."""

from __future__ import annotations

import logging

from provenance.core import patterns as P
from provenance.core.base_channel import BaseChannel
from provenance.models.enums import Method
from provenance.models.schemas import DetectionResult

logger = logging.getLogger(__name__)


def classify_c2pa_provider(xmp: bytes | None) -> str:
    """Refine a manifest hit into a vendor using hints in the XMP packet."""
    if not xmp:
        return P.UNKNOWN_C2PA
    s = xmp.decode("utf-8", errors="replace").lower()
    if P.mentions_ai_software(s) and ("openai" in s or "dall" in s):
        return P.OPENAI
    if P.mentions_firefly(s):
        return P.ADOBE_FIREFLY
    if P.mentions_google_ai(s):
        return P.GOOGLE_IMAGEN
    return P.UNKNOWN_C2PA


def sniff_manifest(data: bytes) -> str | None:
    """Return a description of the manifest marker found, or None."""
    m = P.C2PA_SNIFF_RE.search(data)
    if m:
        logger.debug("C2PA marker found: %s", m.group(0).decode("ascii", errors="replace"))
        return "C2PA/JUMBF markers present"
    if b"jumb" in data and b"c2pa" in data:
        return "C2PA JUMBF binary chunks detected"
    if b"urn:c2pa:" in data:
        return "C2PA URN detected"
    return None


class C2PASniffer(BaseChannel):
    """Channel "c2pa": manifest container markers in the raw bytes."""

    @property
    def method(self) -> Method:
        return Method.C2PA

    def _scan(self, image: bytes, xmp: bytes | None) -> DetectionResult | None:
        details = sniff_manifest(image)
        if details is None:
            return None
        return self.hit(classify_c2pa_provider(xmp), details)
