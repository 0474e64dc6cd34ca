"""
Error message extraction for Flotiq API responses.

The backend's error payload is not strictly typed, and token problems are
not reliably told apart by status code, so both helpers work on the body.
"""

import re
from typing import Any

DEFAULT_ERROR_MESSAGE = "Something went wrong"

_TOKEN_PATTERNS = [
    re.compile(r"\b(api[\s_-]?key|token)\b.*\b(invalid|expired|missing|incorrect|wrong|not\s+valid)\b"),
    re.compile(r"\b(invalid|expired|missing|incorrect|wrong)\b.*\b(api[\s_-]?key|token)\b"),
    re.compile(r"\bunauthori[sz]ed\b"),
    re.compile(r"\baccess\s+denied\b"),
]


def _join(messages: list[str]) -> str:
    return "; ".join(m for m in messages if m)


def _from_errors(errors: Any) -> str:
    """Flatten the `errors` field: a string, a list, or a field -> messages mapping."""
    if isinstance(errors, str):
        return errors
    if isinstance(errors, list):
        return _join([e if isinstance(e, str) else _from_mapping(e) for e in errors])
    if isinstance(errors, dict):
        parts = []
        for field_name, value in errors.items():
            if isinstance(value, list):
                value = _join([str(v) for v in value])
            parts.append(f"{field_name}: {value}")
        return _join(parts)
    return ""


def _from_mapping(body: Any) -> str:
    if not isinstance(body, dict):
        return ""

    # Handle both {"error": "message"} and {"error": {"message": "..."}}
    error_field = body.get("error")
    if isinstance(error_field, str) and error_field:
        return error_field
    if isinstance(error_field, dict) and isinstance(error_field.get("message"), str):
        return error_field["message"]

    for key in ("message", "detail"):
        if isinstance(body.get(key), str) and body[key]:
            return body[key]

    return _from_errors(body.get("errors"))


def parse_response_message(body: Any) -> str:
    """Return the best human-readable message found in an error body."""
    if isinstance(body, str):
        return body.strip() or DEFAULT_ERROR_MESSAGE
    if isinstance(body, list):
        return _from_errors(body) or DEFAULT_ERROR_MESSAGE
    return _from_mapping(body) or DEFAULT_ERROR_MESSAGE


def is_token_valid(message: str | None) -> bool:
    """Return False when the message reads like a rejected API token."""
    if not message:
        return True
    lowered = message.lower()
    return not any(pattern.search(lowered) for pattern in _TOKEN_PATTERNS)
