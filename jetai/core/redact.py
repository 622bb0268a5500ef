"""Helpers for scrubbing credentials out of log lines and error strings."""

from __future__ import annotations

import re

_REDACTED = "***REDACTED***"

_QUERY_VALUE_RE = re.compile(
    r"(?i)(?P<prefix>\b(?:key|api[_-]?key|token|secret|password)\s*=\s*)(?P<value>[^&\s\"']+)"
)
_GOOG_HEADER_RE = re.compile(
    r"(?i)(?P<prefix>\bx-(?:goog|admin)-(?:api-key|token)[\"']?\s*[:=]\s*[\"']?)(?P<value>[^\s,;\"'}]+)"
)
_BEARER_RE = re.compile(r"(?i)(?P<prefix>\bbearer\s+)(?P<value>[A-Za-z0-9._~+/=-]+)")
_GOOGLE_KEY_RE = re.compile(r"\bAIza[0-9A-Za-z_-]{20,}\b")
_PROVIDER_KEY_RE = re.compile(r"\bsk-(?:ant-)?[A-Za-z0-9_-]{8,}\b")


def _replace_value(pattern: re.Pattern[str], text: str) -> str:
    return pattern.sub(lambda m: f"{m.group('prefix')}{_REDACTED}", text)


def redact_sensitive(text: str) -> str:
    """Mask API keys in URLs, headers and bare key literals."""
    if not text:
        return text

    redacted = str(text)
    for pattern in (_QUERY_VALUE_RE, _GOOG_HEADER_RE, _BEARER_RE):
        redacted = _replace_value(pattern, redacted)
    for pattern in (_GOOGLE_KEY_RE, _PROVIDER_KEY_RE):
        redacted = pattern.sub(_REDACTED, redacted)
    return redacted


__all__ = ["redact_sensitive"]
