"""Pipeline configuration."""

from __future__ import annotations

import math
import os
from dataclasses import dataclass, replace

DEFAULT_CONFIDENCE_THRESHOLD = 0.75
DEFAULT_MODEL = "gemini-2.5-flash"


def _safe_float(value: str | None, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        return default


@dataclass(frozen=True)
class PipelineConfig:
    confidence_threshold: float = DEFAULT_CONFIDENCE_THRESHOLD
    model: str = DEFAULT_MODEL
    api_key: str | None = None
    database_url: str | None = None

    def __post_init__(self) -> None:
        if not 0.0 <= self.confidence_threshold <= 1.0:
            raise ValueError(
                f"confidence_threshold must be within [0, 1], got {self.confidence_threshold}"
            )

    @classmethod
    def from_env(cls) -> "PipelineConfig":
        threshold = _safe_float(os.getenv("CONFIDENCE_THRESHOLD"), DEFAULT_CONFIDENCE_THRESHOLD)
        if not math.isfinite(threshold):
            threshold = DEFAULT_CONFIDENCE_THRESHOLD
        return cls(
            confidence_threshold=max(0.0, min(1.0, threshold)),
            model=(os.getenv("GEMINI_MODEL") or DEFAULT_MODEL).strip(),
            api_key=os.getenv("GEMINI_API_KEY") or None,
            database_url=os.getenv("DATABASE_URL") or None,
        )

    def with_threshold(self, threshold: float | None) -> "PipelineConfig":
        if threshold is None:
            return self
        return replace(self, confidence_threshold=threshold)
