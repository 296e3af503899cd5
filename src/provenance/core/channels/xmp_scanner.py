"""Provenance — XMP packet text analysis channel."""

from __future__ import annotations

import logging
from collections.abc import Callable

from provenance.core import patterns as P
from provenance.core.base_channel import BaseChannel
from provenance.models.enums import Method
from provenance.models.schemas import DetectionResult

logger = logging.getLogger(__name__)

Rule = Callable[[str], bool]


def _iptc(s: str) -> bool:
    return P.IPTC_TRAINED_MEDIA_LOWER in s


def _midjourney_guid(s: str) -> bool:
    return _iptc(s) and P.GUID_RE.search(s) is not None


def _google_credit(s: str) -> bool:
    return _iptc(s) and "made with google ai" in s


def _grok(s: str) -> bool:
    return any(p in s for p in P.GROK_PHRASES)


def _comfyui(s: str) -> bool:
    return (">prompt<" in s and ">workflow<" in s) or P.contains_any(s, P.COMFYUI_TERMS)


def _firefly(s: str) -> bool:
    return P.mentions_firefly(s)


def _openai(s: str) -> bool:
    return P.mentions_ai_software(s) and ("openai" in s or "dall" in s)


def _stable_diffusion(s: str) -> bool:
    return (
        '"prompt"' in s
        or "negativeprompt" in s
        or "negative_prompt" in s
        or ">prompt<" in s
        or P.contains_any(s, P.SDXL_TERMS)
    )


def _flux(s: str) -> bool:
    return P.mentions_ai_software(s) and ("flux" in s or "black forest labs" in s)


def _midjourney_flags(s: str) -> bool:
    return any(flag in s for flag in P.MIDJOURNEY_FLAGS)


# Fixed evaluation order: (rule, provider, details). First hit wins.
XMP_RULES: tuple[tuple[Rule, str, str], ...] = (
    (_midjourney_guid, P.MIDJOURNEY, "IPTC trained media + GUID"),
    (_google_credit, P.GOOGLE_IMAGEN, "IPTC + Credit"),
    (_grok, P.GROK, "Grok prompt fields"),
    (_comfyui, P.COMFYUI, "Prompt + Workflow"),
    (_firefly, P.ADOBE_FIREFLY, "XMP mentions Adobe Firefly"),
    (_openai, P.OPENAI, "XMP mentions OpenAI/DALL-E"),
    (_stable_diffusion, P.STABLE_DIFFUSION, "Prompt/SD terms in XMP"),
    (_flux, P.FLUX, "Flux terms in XMP"),
    (_iptc, P.IPTC_TRAINED, P.IPTC_TRAINED_MEDIA),
    (_midjourney_flags, P.MIDJOURNEY, "Midjourney parameters in XMP"),
)


class XMPScanner(BaseChannel):
    """Channel "xmp": vendor and IPTC hints in the XMP text packet."""

    @property
    def method(self) -> Method:
        return Method.XMP

    def _scan(self, image: bytes, xmp: bytes | None) -> DetectionResult | None:
        if not xmp:
            return None
        s = xmp.decode("utf-8", errors="replace").lower()
        for rule, provider, details in XMP_RULES:
            if rule(s):
                return self.hit(provider, details)
        return None
