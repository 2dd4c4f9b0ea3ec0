"""Severity predictor package."""

from __future__ import annotations

from .models import (
    FALLBACK_REASONING,
    PredictorConfig,
    SeverityPrediction,
    fallback_prediction,
    resolve_predictor_config,
)
from .prompt import build_severity_prompt, redact_text
from .service import predict_severity

__all__ = [
    "FALLBACK_REASONING",
    "PredictorConfig",
    "SeverityPrediction",
    "build_severity_prompt",
    "fallback_prediction",
    "predict_severity",
    "redact_text",
    "resolve_predictor_config",
]
