"""Provenance — forensic AI-generation provenance detection for uploaded images."""

from provenance.core.dispatcher import (
    ProvenanceDispatcher,
    detect,
    detect_concurrent,
    detect_fast,
    detect_from_bytes,
    get_dispatcher,
)
from provenance.core.metadata.exif_block import exif_to_dict
from provenance.core.metadata.signatures import verify_signatures
from provenance.core.metadata.xmp_packet import extract_xmp_from_file, extract_xmp_packet
from provenance.models.enums import Method
from provenance.models.schemas import DetectionResult, EvidenceInput

__all__ = [
    "DetectionResult",
    "EvidenceInput",
    "Method",
    "ProvenanceDispatcher",
    "detect",
    "detect_concurrent",
    "detect_fast",
    "detect_from_bytes",
    "exif_to_dict",
    "extract_xmp_from_file",
    "extract_xmp_packet",
    "get_dispatcher",
    "verify_signatures",
]
