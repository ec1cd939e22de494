"""FastAPI application entry point."""

from collections.abc import AsyncGenerator, Awaitable, Callable
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, Response
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi.errors import RateLimitExceeded

from modelcompare import __version__
from modelcompare.api.ratelimit import (
    bind_request_settings,
    limiter,
    rate_limit_exceeded_handler,
    reset_request_settings,
)
from modelcompare.api.router import api_router, root_router
from modelcompare.config import Settings, get_settings
from modelcompare.domain.chat import AggregatorConfig, ChatAggregator
from modelcompare.infrastructure.ai.factory import build_provider_adapters, close_provider_adapters
from modelcompare.observability.metrics import setup_metrics
from modelcompare.shared.context import REQUEST_ID_HEADER, bind_request_id, clear_request_context
from modelcompare.shared.exceptions import (
    ConfigurationError,
    ModelCompareError,
    ValidationError,
)
from modelcompare.shared.logging import get_logger, setup_logging

logger = get_logger(__name__)


def build_aggregator(settings: Settings) -> ChatAggregator | None:
    """Build the aggregator with its provider adapters.

    Returns None when provider clients cannot be initialized; the chat route
    then answers 500 while /health keeps working.
    """
    try:
        adapters = build_provider_adapters(settings)
    except ConfigurationError as e:
        logger.error("provider_initialization_failed", error=e.message, details=e.details)
        return None
    return ChatAggregator(adapters, AggregatorConfig.from_settings(settings))


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan - startup and shutdown events."""
    # Startup
    setup_logging()
    logger.info("modelcompare_starting", version=__version__)

    # Tests may inject their own aggregator before startup
    if getattr(app.state, "aggregator", None) is None:
        app.state.aggregator = build_aggregator(app.state.settings)

    yield

    # Shutdown
    logger.info("modelcompare_stopping")
    aggregator = getattr(app.state, "aggregator", None)
    if aggregator is not None:
        await close_provider_adapters(aggregator.adapters)


def create_app(settings: Settings | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = settings or get_settings()

    app = FastAPI(
        title="modelcompare API",
        description="Ask several LLM providers the same question and compare answers",
        version=__version__,
        docs_url="/docs" if settings.is_development else None,
        redoc_url="/redoc" if settings.is_development else None,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.aggregator = None

    # Rate limiting
    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)  # type: ignore[arg-type]

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=False,
        allow_methods=["GET", "POST", "OPTIONS"],
        allow_headers=["Content-Type", REQUEST_ID_HEADER],
        expose_headers=[REQUEST_ID_HEADER],
    )

    register_request_context(app)
    register_exception_handlers(app)

    app.include_router(api_router, prefix="/api")
    app.include_router(root_router)

    # Observability
    setup_metrics(app)

    return app


def register_request_context(app: FastAPI) -> None:
    """Tag every request (and its log lines) with a request id and the app settings."""

    @app.middleware("http")
    async def request_id_middleware(
        request: Request, call_next: Callable[[Request], Awaitable[Response]]
    ) -> Response:
        request_id = bind_request_id(request.headers.get(REQUEST_ID_HEADER))
        settings_token = bind_request_settings(request.app.state.settings)
        try:
            response = await call_next(request)
        finally:
            reset_request_settings(settings_token)
            clear_request_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response


def register_exception_handlers(app: FastAPI) -> None:
    """Register custom exception handlers."""

    @app.exception_handler(ValidationError)
    async def validation_error_handler(request: Request, exc: ValidationError) -> JSONResponse:
        _ = request
        logger.info("chat_request_rejected", error=exc.message, details=exc.details)
        return JSONResponse(status_code=400, content={"error": exc.message})

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        _ = request
        return JSONResponse(
            status_code=400,
            content={
                "error": "Request validation failed",
                "details": jsonable_encoder(exc.errors()),
            },
        )

    @app.exception_handler(ConfigurationError)
    async def configuration_error_handler(
        request: Request, exc: ConfigurationError
    ) -> JSONResponse:
        _ = request
        logger.error("configuration_error", error=exc.message, details=exc.details)
        return JSONResponse(status_code=500, content={"error": exc.message})

    @app.exception_handler(ModelCompareError)
    async def modelcompare_error_handler(
        request: Request, exc: ModelCompareError
    ) -> JSONResponse:
        _ = request
        logger.error("unhandled_error", error=exc.message, details=exc.details)
        return JSONResponse(status_code=500, content={"error": "Internal server error"})

    @app.exception_handler(Exception)
    async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
        _ = request
        logger.exception("unexpected_error", error=str(exc))
        return JSONResponse(status_code=500, content={"error": "Internal server error"})


# Create app instance
app = create_app()
