from __future__ import annotations

import time

import pytest

from defect_seeker.core.models import DefectSeverity
from defect_seeker.core.predictor import (
    FALLBACK_REASONING,
    PredictorConfig,
    SeverityPrediction,
    build_severity_prompt,
    predict_severity,
    redact_text,
    resolve_predictor_config,
)
from defect_seeker.core.predictor import service as predictor_service


def test_redact_replaces_sensitive_tokens() -> None:
    text = (
        "user@example.com 1.2.3.4 "
        "eyJaaaaaaaaaa.bbbbbbbbbb.cccccccccc "
        "token=abcdefghijklmnopqrstuvwxyz1234567890"
    )
    redacted = redact_text(text)
    assert "<REDACTED_EMAIL>" in redacted
    assert "<REDACTED_IP>" in redacted
    assert "<REDACTED_JWT>" in redacted
    assert "<REDACTED_TOKEN>" in redacted


def test_prompt_contains_draft_fields() -> None:
    prompt = build_severity_prompt("Crash on save", "Mail ops@example.com", "Backend API")
    assert "Title: Crash on save" in prompt
    assert "Category: Backend API" in prompt
    assert "ops@example.com" not in prompt
    assert "Low, Medium, High, Critical" in prompt


@pytest.mark.asyncio
async def test_predict_severity_returns_model_answer(monkeypatch) -> None:
    captured: dict[str, str] = {}

    def fake_call(prompt: str, *, cfg) -> SeverityPrediction:
        captured["prompt"] = prompt
        return SeverityPrediction(severity=DefectSeverity.CRITICAL, reasoning="Data loss.")

    monkeypatch.setattr(predictor_service, "_call_gemini_json", fake_call)

    out = await predict_severity("DB wiped", "All rows deleted on deploy.", "Database")

    assert out.severity is DefectSeverity.CRITICAL
    assert out.reasoning == "Data loss."
    assert "DB wiped" in captured["prompt"]


@pytest.mark.asyncio
async def test_predict_severity_falls_back_on_error(monkeypatch) -> None:
    def fake_call(prompt: str, *, cfg) -> SeverityPrediction:
        raise RuntimeError("quota exceeded")

    monkeypatch.setattr(predictor_service, "_call_gemini_json", fake_call)

    out = await predict_severity("Title", "Description", "UI/UX")

    assert out.model_dump(mode="json") == {"severity": "Medium", "reasoning": FALLBACK_REASONING}


@pytest.mark.asyncio
async def test_predict_severity_falls_back_on_timeout(monkeypatch) -> None:
    def slow_call(prompt: str, *, cfg) -> SeverityPrediction:
        time.sleep(0.5)
        return SeverityPrediction(severity=DefectSeverity.HIGH, reasoning="late")

    monkeypatch.setattr(predictor_service, "_call_gemini_json", slow_call)

    out = await predict_severity("Title", "Description", "UI/UX", cfg=PredictorConfig(timeout_s=0.05))

    assert out.severity is DefectSeverity.MEDIUM
    assert out.reasoning == FALLBACK_REASONING


@pytest.mark.asyncio
async def test_predict_severity_without_api_key_falls_back(monkeypatch) -> None:
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("GOOGLE_API_KEY", raising=False)
    out = await predict_severity("Title", "Description", "UI/UX")
    assert out.reasoning == FALLBACK_REASONING


@pytest.mark.asyncio
async def test_predict_severity_rejects_blank_draft(monkeypatch) -> None:
    def fake_call(prompt: str, *, cfg) -> SeverityPrediction:
        raise AssertionError("no request expected")

    monkeypatch.setattr(predictor_service, "_call_gemini_json", fake_call)

    with pytest.raises(ValueError, match="title and description"):
        await predict_severity("  ", "Description", "UI/UX")


def test_resolve_predictor_config_env_override(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEFECT_SEEKER_PREDICTOR_TIMEOUT", "5")
    monkeypatch.setenv("DEFECT_SEEKER_PREDICTOR_MODEL", "gemini-test")
    cfg = resolve_predictor_config(None)
    assert cfg.timeout_s == 5.0
    assert cfg.model == "gemini-test"


def test_resolve_predictor_config_invalid_env_raises(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DEFECT_SEEKER_PREDICTOR_TIMEOUT", "0")
    with pytest.raises(ValueError, match="DEFECT_SEEKER_PREDICTOR_TIMEOUT"):
        _ = resolve_predictor_config(None)


@pytest.mark.asyncio
async def test_predict_severity_falls_back_on_invalid_env_config(monkeypatch) -> None:
    def fake_call(prompt: str, *, cfg) -> SeverityPrediction:
        raise AssertionError("no request expected")

    monkeypatch.setattr(predictor_service, "_call_gemini_json", fake_call)
    monkeypatch.setenv("DEFECT_SEEKER_PREDICTOR_TIMEOUT", "abc")

    out = await predict_severity("Title", "Description", "UI/UX")
    assert out.severity is DefectSeverity.MEDIUM
    assert out.reasoning == FALLBACK_REASONING
