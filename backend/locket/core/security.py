from __future__ import annotations

import re

BEARER_PATTERN = re.compile(r"(Bearer\s+)[A-Za-z0-9\-._~+/=]+", re.IGNORECASE)
API_KEY_PATTERN = re.compile(r"((?:key|api_key)=)[A-Za-z0-9\-_]+")
SESSION_TOKEN_PATTERN = re.compile(r"(gAAAAA[A-Za-z0-9\-_=]{8,})")


def redact_secrets(text: str) -> str:
    """Redact bearer credentials, API keys and sealed session tokens from a string."""

    text = BEARER_PATTERN.sub(r"\1***", text)
    text = API_KEY_PATTERN.sub(r"\1***", text)
    return SESSION_TOKEN_PATTERN.sub("gAAAAA***", text)


def sanitize_text(text: str, max_length: int) -> str:
    """Trim and clamp user-provided text to a safe length."""

    cleaned = text.strip()
    if len(cleaned) > max_length:
        cleaned = cleaned[:max_length]
    return cleaned
