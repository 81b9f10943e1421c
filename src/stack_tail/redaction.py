"""Helpers for redacting AWS credentials from log output."""

from __future__ import annotations

import re
from typing import Any

REDACTED = "[REDACTED]"

_SENSITIVE_KEY_RE = re.compile(
    r"(secret|session[_-]?token|security[_-]?token|signature|authorization|credential)",
    re.IGNORECASE,
)
_ACCESS_KEY_ID_RE = re.compile(r"\b(AKIA|ASIA)[A-Z0-9]{16}\b")
_KEY_VALUE_SECRET_RE = re.compile(
    r"""(?ix)
    \b
    (
      aws[_-]?secret[_-]?access[_-]?key|
      aws[_-]?session[_-]?token|
      aws[_-]?security[_-]?token|
      x-amz-security-token|
      x-amz-signature|
      signature|
      authorization
    )
    \s*[:=]\s*
    ([^\s,;]+)
    """
)
_CREDENTIAL_SCOPE_RE = re.compile(r"(?i)\b(Credential=)[^\s,;]+")


def sanitize_text(text: str) -> str:
    """Redact credential material embedded in plain text."""
    sanitized = _KEY_VALUE_SECRET_RE.sub(lambda m: f"{m.group(1)}={REDACTED}", text)
    sanitized = _CREDENTIAL_SCOPE_RE.sub(r"\1" + REDACTED, sanitized)
    sanitized = _ACCESS_KEY_ID_RE.sub(REDACTED, sanitized)
    return sanitized


def sanitize_for_logging(value: Any) -> Any:
    """Recursively redact sensitive values in nested structures."""
    if isinstance(value, dict):
        sanitized: dict[Any, Any] = {}
        for key, child in value.items():
            if _SENSITIVE_KEY_RE.search(str(key)):
                sanitized[key] = REDACTED
            else:
                sanitized[key] = sanitize_for_logging(child)
        return sanitized
    if isinstance(value, list):
        return [sanitize_for_logging(item) for item in value]
    if isinstance(value, tuple):
        return tuple(sanitize_for_logging(item) for item in value)
    if isinstance(value, str):
        return sanitize_text(value)
    return value
