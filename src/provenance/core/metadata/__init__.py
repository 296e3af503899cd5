"""Provenance — metadata block readers."""
