"""Provenance — Configuration-driven EXIF signature verification.

Simpler, operator-tunable companion to the exif channel: each configured
signature names a tag and either an exact value or a list of substrings.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from provenance.config import AISignature, get_settings
from provenance.core.metadata.exif_block import extract_entries

logger = logging.getLogger(__name__)


def verify_signatures(
    image: bytes,
    signatures: Sequence[AISignature] | None = None,
) -> tuple[bool, str]:
    """Return ``(True, value)`` for the first EXIF entry matching a signature.

    Substring rules (``contains``) take precedence over ``value`` for a
    signature; both comparisons are case-sensitive. No EXIF → ``(False, "")``.
    """
    if signatures is None:
        signatures = get_settings().ai_signatures
    found = extract_entries(image)
    if found is None:
        return False, ""

    for entry in found[1]:
        for sig in signatures:
            if entry.name != sig.key:
                continue
            if sig.contains:
                if any(sub in entry.value for sub in sig.contains):
                    logger.debug("Signature %s matched (contains)", sig.key)
                    return True, entry.value
            elif entry.value == sig.value:
                logger.debug("Signature %s matched (value)", sig.key)
                return True, entry.value
    return False, ""
