"""Severity predictor models and configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace

from pydantic import BaseModel, Field

from ..models import DefectSeverity

FALLBACK_REASONING = "AI prediction unavailable. Defaulted to Medium."

MODEL_ENV = "DEFECT_SEEKER_PREDICTOR_MODEL"
TIMEOUT_ENV = "DEFECT_SEEKER_PREDICTOR_TIMEOUT"


class SeverityPrediction(BaseModel):
    severity: DefectSeverity = Field(description="The predicted severity level.")
    reasoning: str = Field(description="Short explanation for the prediction (max 2 sentences).")


def fallback_prediction() -> SeverityPrediction:
    return SeverityPrediction(severity=DefectSeverity.MEDIUM, reasoning=FALLBACK_REASONING)


@dataclass(frozen=True, slots=True)
class PredictorConfig:
    model: str = "gemini-2.5-flash"
    temperature: float = 0.0
    timeout_s: float = 30.0
    redact: bool = True


def resolve_predictor_config(cfg: PredictorConfig | None) -> PredictorConfig:
    """Return config with optional env overrides applied."""
    if cfg is None:
        cfg = PredictorConfig()

    model = os.getenv(MODEL_ENV)
    if model:
        cfg = replace(cfg, model=model)

    env = os.getenv(TIMEOUT_ENV)
    if env is None or env == "":
        return cfg

    try:
        value = float(env)
    except ValueError as exc:
        raise ValueError(f"{TIMEOUT_ENV} must be a number of seconds") from exc
    if value <= 0:
        raise ValueError(f"{TIMEOUT_ENV} must be > 0")
    return replace(cfg, timeout_s=value)
