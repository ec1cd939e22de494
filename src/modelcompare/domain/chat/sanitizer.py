"""Provider error sanitization for client responses.

Production only surfaces errors in categories the user can act on (bad key,
billing, quota, rate limit). Anything else collapses to a generic message.
"""

import json
import re

from modelcompare.shared.exceptions import ModelCompareError

GENERIC_ERROR_MESSAGE = "Request failed"
PRODUCTION_MAX_CHARS = 220
DEVELOPMENT_MAX_CHARS = 1000

SAFE_ERROR_MARKERS = (
    "402",
    "payment required",
    "insufficient",
    "credit",
    "quota",
    "429",
    "rate limit",
    "401",
    "invalid api key",
    "authentication",
)

_WHITESPACE = re.compile(r"\s+")


def _raw_text(error: object) -> str:
    if isinstance(error, str):
        return error
    if isinstance(error, ModelCompareError):
        return error.message
    if isinstance(error, BaseException):
        return str(error)
    try:
        return json.dumps(error)
    except (TypeError, ValueError):
        return repr(error)


def _status_of(error: object) -> int | None:
    status = getattr(error, "status", None)
    if status is None:
        status = getattr(error, "status_code", None)
    return status if isinstance(status, int) else None


def truncate(text: str, max_chars: int) -> str:
    if len(text) <= max_chars:
        return text
    return f"{text[:max_chars]}..."


def sanitize_provider_error(error: object, is_production: bool) -> str:
    """Turn a provider failure into a short message safe for the client.

    Never raises.
    """
    try:
        message = _WHITESPACE.sub(" ", _raw_text(error)).strip()
        status = _status_of(error)
        if status is not None and str(status) not in message:
            message = f"{status} {message}".strip()
    except Exception:
        return GENERIC_ERROR_MESSAGE

    if not message:
        return GENERIC_ERROR_MESSAGE

    if not is_production:
        return truncate(message, DEVELOPMENT_MAX_CHARS)

    lowered = message.lower()
    if any(marker in lowered for marker in SAFE_ERROR_MARKERS):
        return truncate(message, PRODUCTION_MAX_CHARS)
    return GENERIC_ERROR_MESSAGE


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "sanitize_provider_error",
    "truncate",
]
