"""Provenance — shared enums and schemas."""
