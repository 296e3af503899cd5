"""Provenance — detection engine internals."""
