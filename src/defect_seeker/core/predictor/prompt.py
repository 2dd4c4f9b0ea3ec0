"""Prompt construction for severity prediction."""

from __future__ import annotations

import re

_EMAIL_RE = re.compile(r"(?i)\b[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}\b")
_IPV4_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")
_JWT_RE = re.compile(r"\beyJ[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\.[a-zA-Z0-9_-]{10,}\b")
_LONG_TOKEN_RE = re.compile(r"\b[a-zA-Z0-9_\-]{32,}\b")


def redact_text(text: str) -> str:
    """Mask credentials and personal data pasted into a defect report."""
    text = _JWT_RE.sub("<REDACTED_JWT>", text)
    text = _EMAIL_RE.sub("<REDACTED_EMAIL>", text)
    text = _IPV4_RE.sub("<REDACTED_IP>", text)
    return _LONG_TOKEN_RE.sub("<REDACTED_TOKEN>", text)


def build_severity_prompt(title: str, description: str, category: str, *, redact: bool = True) -> str:
    """Build the Gemini prompt for one defect draft."""
    if redact:
        title = redact_text(title)
        description = redact_text(description)
    return (
        "Analyze this software defect and predict its severity.\n"
        f"Title: {title}\n"
        f"Description: {description}\n"
        f"Category: {category}\n\n"
        "Return a JSON object with 'severity' (Low, Medium, High, Critical) "
        "and 'reasoning' (max 2 sentences).\n"
    )
