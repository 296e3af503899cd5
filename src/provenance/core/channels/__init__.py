"""Provenance — evidence channels (c2pa, exif, binary, xmp)."""
