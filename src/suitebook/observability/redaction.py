"""Redaction helpers for safe logging.

Guest profiles carry PII (email, phone, ID numbers). Anything derived from a
guest record or a request body must go through safe_log_context before it
reaches a logger.
"""

import re
from typing import Any

_PHONE_PATTERN = re.compile(r"\+?\d[\d\s\-()]{6,}\d")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")
_BEARER_PATTERN = re.compile(r"(?i)bearer\s+[A-Za-z0-9\-_.=]+")

_REDACTED = "[REDACTED]"

# Guest profile keys whose values are never logged, whatever they look like
_PII_KEYS = frozenset(
    {
        "name",
        "email",
        "phone",
        "nationality",
        "idNumber",
        "idType",
        "address",
        "dateOfBirth",
        "token",
        "guest_info",
        "guestInfo",
    }
)


def redact_string(value: str) -> str:
    """Strip bearer tokens, emails and phone-like digit runs."""
    result = _BEARER_PATTERN.sub(_REDACTED, value)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    return _PHONE_PATTERN.sub(_REDACTED, result)


def redact_value(value: Any) -> str:
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # Guest records: structure only
        return f"dict(keys={sorted(value.keys())})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Context dict for `extra_fields`. Guest field keys are always masked."""
    return {
        key: _REDACTED if key in _PII_KEYS and value not in (None, "") else redact_value(value)
        for key, value in kwargs.items()
    }
