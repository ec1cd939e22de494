"""Rate limiting configuration for API endpoints.

Uses slowapi with in-memory storage; the service is a single process with no
shared state to keep in sync.
"""

from contextvars import ContextVar, Token

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.errors import RateLimitExceeded
from slowapi.util import get_remote_address
from starlette.responses import JSONResponse

from modelcompare.config import Settings, get_settings
from modelcompare.shared.logging import get_logger

logger = get_logger(__name__)


def _get_rate_limit_key(request: Request) -> str:
    """Rate limit per client IP; there are no user accounts."""
    return get_remote_address(request)


# Settings of the app serving the current request; set by the request middleware
_request_settings: ContextVar[Settings | None] = ContextVar("request_settings", default=None)


def bind_request_settings(settings: Settings) -> Token:
    return _request_settings.set(settings)


def reset_request_settings(token: Token) -> None:
    _request_settings.reset(token)


def get_chat_rate_limit() -> str:
    """Chat limit from the serving app's settings, e.g. ``60/900 seconds``.

    Falls back to the process settings outside a request.
    """
    settings = _request_settings.get() or get_settings()
    return settings.rate_limit


def _create_limiter(storage_uri: str = "memory://") -> Limiter:
    return Limiter(
        key_func=_get_rate_limit_key,
        storage_uri=storage_uri,
        strategy="fixed-window",
        headers_enabled=False,
    )


limiter = _create_limiter()


def rate_limit_exceeded_handler(request: Request, exc: RateLimitExceeded) -> Response:
    """Custom handler for rate limit exceeded errors."""
    logger.warning(
        "rate_limit_exceeded",
        path=request.url.path,
        method=request.method,
        key=_get_rate_limit_key(request),
        limit=str(exc.detail),
    )

    retry_after = getattr(exc, "retry_after", 60)
    return JSONResponse(
        status_code=429,
        content={
            "error": "Too many requests, please try again later.",
            "detail": str(exc.detail),
        },
        headers={"Retry-After": str(retry_after)},
    )
