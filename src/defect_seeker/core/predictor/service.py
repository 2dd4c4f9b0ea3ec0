"""LLM-facing severity prediction.

Sends a defect draft to Gemini and validates the structured answer. Any failure of
the call (missing key, network error, timeout, malformed or out-of-enum response)
yields the fixed Medium fallback instead of an exception.
"""

from __future__ import annotations

import asyncio
import logging
import os

from .models import (
    PredictorConfig,
    SeverityPrediction,
    fallback_prediction,
    resolve_predictor_config,
)
from .prompt import build_severity_prompt

logger = logging.getLogger(__name__)
_PREDICTION_SCHEMA = SeverityPrediction.model_json_schema()


def _call_gemini_json(prompt: str, *, cfg: PredictorConfig) -> SeverityPrediction:
    """Call Gemini once and validate the response against the schema."""
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise RuntimeError("Missing GEMINI_API_KEY (or GOOGLE_API_KEY).")

    from google import genai

    client = genai.Client(api_key=api_key)
    resp = client.models.generate_content(
        model=cfg.model,
        contents=prompt,
        config={
            "response_mime_type": "application/json",
            "response_json_schema": _PREDICTION_SCHEMA,
            "temperature": cfg.temperature,
        },
    )
    return SeverityPrediction.model_validate_json(resp.text or "")


async def predict_severity(
    title: str,
    description: str,
    category: str,
    *,
    cfg: PredictorConfig | None = None,
) -> SeverityPrediction:
    """Suggest a severity for a defect draft.

    Blank title or description is a form error and raises ValueError before any
    request is made. The request is made once, without retries. Any other
    failure, including invalid predictor settings in the environment, yields the
    Medium fallback.
    """
    if not title.strip() or not description.strip():
        raise ValueError("Please enter a title and description first.")
    try:
        cfg = resolve_predictor_config(cfg)
        prompt = build_severity_prompt(title, description, category, redact=cfg.redact)
        return await asyncio.wait_for(
            asyncio.to_thread(_call_gemini_json, prompt, cfg=cfg),
            timeout=cfg.timeout_s,
        )
    except Exception as e:
        logger.warning("Severity prediction failed, using fallback: %s", e)
        return fallback_prediction()
