"""Provenance — Centralized typed configuration.

All values can be overridden via environment variables with the PROVENANCE_ prefix.
List/dict fields (ai_signatures) are read as JSON.

Usage:
    from provenance.config import get_settings
    settings = get_settings()
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings

from provenance.core.patterns import IPTC_TRAINED_MEDIA


class AISignature(BaseModel):
    """One EXIF signature rule: tag name plus exact value or substrings."""

    key: str
    value: str = ""
    contains: list[str] = Field(default_factory=list)


def _default_signatures() -> list[AISignature]:
    return [
        AISignature(key="DigitalSourceType", value=IPTC_TRAINED_MEDIA),
        AISignature(key="Software", contains=["Midjourney", "DALL-E", "Stable Diffusion", "Flux"]),
    ]


class Settings(BaseSettings):
    """Typed, validated engine settings."""

    model_config = {"env_prefix": "PROVENANCE_", "env_file": ".env", "extra": "ignore"}

    # --- Core ---
    version: str = Field("1.0.0", description="Engine version")
    debug: bool = Field(False, description="Debug mode flag")
    log_level: str = Field("INFO", description="Log level")
    log_json: bool = Field(False, description="Emit JSON-structured logs")

    # --- Dispatch ---
    concurrent_timeout: float = Field(5.0, description="Deadline for concurrent dispatch in seconds")
    max_workers: int = Field(8, description="Thread pool size for concurrent dispatch")

    # --- Scanning ---
    binary_scan_offset: int = Field(1000, description="Bytes skipped before text scanning non-PNG files")
    fast_min_size: int = Field(1024, description="Fast path ignores buffers smaller than this")
    generic_terms: bool = Field(False, description="Also match generic AI terms in the binary channel")

    # --- Buffer pool ---
    buffer_pool_ceiling: int = Field(2 * 1024 * 1024, description="Largest buffer kept for reuse (bytes)")
    buffer_pool_size: int = Field(16, description="Maximum number of idle pooled buffers")

    # --- Signatures ---
    ai_signatures: list[AISignature] = Field(default_factory=_default_signatures)


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return a cached singleton of the engine settings."""
    return Settings()
