"""Provenance — Pydantic schemas for inputs and verdicts."""

from __future__ import annotations

from pathlib import Path
from typing import Any

from pydantic import BaseModel, ConfigDict, model_validator

from provenance.models.enums import Method


class DetectionResult(BaseModel):
    """Final verdict handed to the upload pipeline.

    ``matched=False`` always carries empty provider/method/details;
    ``matched=True`` always carries a provider and a method.
    """

    model_config = ConfigDict(frozen=True)

    matched: bool = False
    provider: str = ""
    method: Method | None = None
    details: str = ""

    @model_validator(mode="after")
    def _check_consistency(self) -> DetectionResult:
        if self.matched:
            if not self.provider or self.method is None:
                raise ValueError("matched result requires provider and method")
        elif self.provider or self.method is not None or self.details:
            raise ValueError("unmatched result must not carry provider, method or details")
        return self

    @classmethod
    def no_match(cls) -> DetectionResult:
        return cls()

    @classmethod
    def hit(cls, provider: str, method: Method, details: str = "") -> DetectionResult:
        return cls(matched=True, provider=provider, method=method, details=details)

    def to_dict(self) -> dict[str, Any]:
        return {
            "matched": self.matched,
            "provider": self.provider,
            "method": self.method.value if self.method else "",
            "details": self.details,
        }


class EvidenceInput(BaseModel):
    """Raw evidence for one detection call. Needs image bytes or a file path."""

    model_config = ConfigDict(frozen=True)

    image_bytes: bytes | None = None
    xmp_bytes: bytes | None = None
    file_path: Path | None = None

    @model_validator(mode="after")
    def _require_source(self) -> EvidenceInput:
        if self.image_bytes is None and self.file_path is None:
            raise ValueError("either image_bytes or file_path is required")
        return self
