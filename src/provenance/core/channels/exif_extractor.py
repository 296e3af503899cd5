"""Provenance — EXIF tag analysis channel.

Pipeline:
  1. Locate the raw EXIF block (absent → no-match)
  2. Raw pre-scan for SDXL parameter keys, literal or UTF-16
  3. Flatten tags and evaluate per-tag rules in order; first rule wins
  4. Deferred generic Software fallback, only if nothing specific fired
"""

from __future__ import annotations

import json
import logging

from provenance.core import patterns as P
from provenance.core.base_channel import BaseChannel
from provenance.core.metadata.exif_block import ExifEntry, find_exif_block, read_entries
from provenance.core.utf16 import contains_utf16, try_decode_comment
from provenance.models.enums import Method
from provenance.models.schemas import DetectionResult

logger = logging.getLogger(__name__)


def looks_like_prompt_json(text: str) -> bool:
    """Valid JSON with generation markers, or prompt + workflow keywords in plain text."""
    if not text:
        return False
    low = text.lower()
    try:
        json.loads(text)
    except ValueError:
        pass
    else:
        if (
            P.PROMPT_RE.search(low)
            or P.WORKFLOW_RE.search(low)
            or P.SUI_IMAGE_PARAMS in low
            or P.mentions_ai_software(low)
            or P.contains_any(low, P.AI_MODEL_NAMES)
        ):
            return True
    return bool(P.PROMPT_RE.search(low) and P.WORKFLOW_RE.search(low))


def software_provider(value: str) -> str | None:
    low = value.lower()
    for fragments, provider in P.SOFTWARE_PROVIDERS:
        if any(f in low for f in fragments):
            return provider
    return None


def software_fallback(value: str) -> bool:
    low = value.lower()
    return bool(
        P.GENERIC_AI_RE.search(low) or P.mentions_ai_software(low) or P.contains_any(low, P.AI_MODEL_NAMES)
    )


def raw_prescan(block: bytes) -> bool:
    if P.SUI_IMAGE_PARAMS.encode("ascii") in block:
        return True
    return any(contains_utf16(block, needle) for needle in P.EXIF_UTF16_NEEDLES)


def comment_text(entry: ExifEntry) -> str:
    """Decoded text of a comment-like tag, falling back to the formatted value."""
    if isinstance(entry.raw, (bytes, bytearray)):
        decoded = try_decode_comment(bytes(entry.raw))
        if decoded:
            return decoded.strip("\x00").strip()
    return entry.value


class ExifExtractor(BaseChannel):
    """Channel "exif": structured tag/value evidence."""

    @property
    def method(self) -> Method:
        return Method.EXIF

    def _scan(self, image: bytes, xmp: bytes | None) -> DetectionResult | None:
        block = find_exif_block(image)
        if block is None:
            return None

        if raw_prescan(block):
            logger.debug("SDXL markers in raw EXIF block")
            return self.hit(P.STABLE_DIFFUSION, "sui_image_params/prompt in raw EXIF")

        try:
            entries = read_entries(block)
        except Exception as exc:
            logger.debug("EXIF parsing failed: %s", exc)
            return None
        return self.evaluate(entries)

    def evaluate(self, entries: list[ExifEntry]) -> DetectionResult | None:
        """Apply the per-tag rules to already flattened entries."""
        software_val = ""
        for entry in entries:
            result = self._evaluate_entry(entry)
            if result is not None:
                return result
            if entry.name.lower() == "software" and entry.value:
                software_val = entry.value

        if software_val and software_fallback(software_val):
            return self.hit(P.AI_SOFTWARE, software_val)
        return None

    def _evaluate_entry(self, entry: ExifEntry) -> DetectionResult | None:
        name = entry.name.strip()
        name_low = name.lower()
        val = entry.value

        if name_low == "software":
            provider = software_provider(val)
            if provider:
                return self.hit(provider, val)

        if P.contains_any(val, P.EXIF_PARAM_KEYWORDS):
            return self.hit(P.PROMPT_IN_EXIF, name)

        if name_low in P.COMMENT_TAGS:
            text = comment_text(entry)
            has_mj_flags = P.contains_any(text, P.MIDJOURNEY_FLAGS)
            if has_mj_flags or looks_like_prompt_json(text) or P.contains_any(text, P.COMMENT_PARAM_KEYWORDS):
                provider = P.MIDJOURNEY if has_mj_flags else P.STABLE_DIFFUSION
                return self.hit(provider, f"{name} contains generation params")

        if "grok" in name_low or "grok" in val.lower():
            return self.hit(P.GROK, f"{name}: {val}")

        if name_low in ("prompt", "workflow"):
            return self.hit(P.COMFYUI, name)

        if name_low == "digitalsourcetype" and val == P.IPTC_TRAINED_MEDIA:
            return self.hit(P.IPTC_TRAINED, val)

        return None
