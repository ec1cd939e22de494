"""Per-request context shared with structured logging."""

import uuid
from contextvars import ContextVar

import structlog

REQUEST_ID_HEADER = "X-Request-ID"

_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)


def bind_request_id(request_id: str | None = None) -> str:
    """Set the request id for the current request and bind it to log records."""
    value = request_id or uuid.uuid4().hex
    _request_id.set(value)
    structlog.contextvars.bind_contextvars(request_id=value)
    return value


def get_request_id() -> str | None:
    """Get the request id if one was bound, None otherwise."""
    return _request_id.get()


def clear_request_context() -> None:
    """Clear the request context."""
    _request_id.set(None)
    structlog.contextvars.clear_contextvars()
