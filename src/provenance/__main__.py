"""Command-line scanner.

Usage:
    python -m provenance image.png other.jpg
    python -m provenance --concurrent --json uploads/*.jpg
    python -m provenance --fast --exif image.jpg

Exit status is 0 when any file shows AI provenance evidence, 1 otherwise.
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from provenance.config import get_settings
from provenance.core.dispatcher import ProvenanceDispatcher
from provenance.core.metadata.exif_block import exif_to_dict
from provenance.core.metadata.xmp_packet import extract_xmp_packet
from provenance.logging_config import configure_logging
from provenance.models.schemas import DetectionResult

logger = logging.getLogger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="provenance", description="Detect AI-generation provenance in images")
    p.add_argument("files", nargs="+", type=Path)
    mode = p.add_mutually_exclusive_group()
    mode.add_argument("--fast", action="store_true", help="High-confidence phrases only")
    mode.add_argument("--concurrent", action="store_true", help="Run channels in parallel with a deadline")
    p.add_argument("--generic-terms", action="store_true", help="Also match generic AI terms (stricter opt-in)")
    p.add_argument("--timeout", type=float, default=None, help="Concurrent deadline in seconds")
    p.add_argument("--exif", action="store_true", help="Include all EXIF tags in the output")
    p.add_argument("--json", action="store_true", help="One JSON object per file")
    p.add_argument("--version", action="version", version=f"%(prog)s {get_settings().version}")
    return p.parse_args(argv)


def scan_file(dispatcher: ProvenanceDispatcher, path: Path, args: argparse.Namespace) -> DetectionResult:
    if not (args.fast or args.concurrent):
        return dispatcher.detect(path)
    try:
        data = path.read_bytes()
    except OSError as exc:
        logger.warning("Cannot read %s: %s", path, exc)
        return DetectionResult.no_match()
    if args.fast:
        return dispatcher.detect_fast(data)
    return asyncio.run(dispatcher.detect_concurrent(data, extract_xmp_packet(data)))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    settings = get_settings()
    configure_logging(settings)

    dispatcher = ProvenanceDispatcher(settings, timeout=args.timeout, generic_terms=args.generic_terms or None)
    matched_any = False
    try:
        for path in args.files:
            result = scan_file(dispatcher, path, args)
            matched_any = matched_any or result.matched
            record = {"file": str(path), **result.to_dict()}
            if args.exif:
                try:
                    record["exif"] = exif_to_dict(path.read_bytes())
                except OSError:
                    record["exif"] = None
            if args.json:
                print(json.dumps(record, default=str))
            elif result.matched:
                print(f"{path}: {result.provider} [{result.method.value}] {result.details}")
            else:
                print(f"{path}: no AI provenance evidence")
    finally:
        dispatcher.shutdown()
    return 0 if matched_any else 1


if __name__ == "__main__":
    sys.exit(main())
