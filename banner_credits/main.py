"""
Main Application - FastAPI application setup.
"""

import asyncio
import time
from collections.abc import AsyncIterator, Awaitable, Callable
from contextlib import asynccontextmanager
from uuid import uuid4

from fastapi import FastAPI, Request, Response
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse
from prometheus_client import generate_latest

from banner_credits.api.routes import router
from banner_credits.api.status_routes import router as status_router
from banner_credits.config import settings
from banner_credits.db.session import close_engines
from banner_credits.observability import get_logger, log_context, metrics, setup_logging, setup_tracing
from banner_credits.observability.tracing import instrument_fastapi
from banner_credits.services.gemini_provider import GeminiImageProvider, GeminiPromptProvider
from banner_credits.services.memory_ledger import InMemoryLedgerStore
from banner_credits.services.paypal_processor import PayPalProcessor

# Setup logging before anything else
setup_logging()
logger = get_logger(__name__)


def build_payment_processor() -> PayPalProcessor:
    """PayPal processor from settings; unconfigured credentials fail per call."""
    return PayPalProcessor(
        client_id=settings.paypal_client_id,
        client_secret=settings.paypal_client_secret,
        api_url=settings.paypal_api_url,
        price=settings.subscription_price,
        currency=settings.subscription_currency,
        description=settings.subscription_description,
        timeout_seconds=settings.paypal_timeout_seconds,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application lifespan manager.

    Builds the long-lived providers and, for the memory backend, the
    process-wide ledger.
    """
    # Startup
    logger.info(
        "application_starting",
        service=settings.api_title,
        version=settings.api_version,
        ledger_backend=settings.ledger_backend,
        tracing_enabled=settings.tracing_enabled,
        metrics_enabled=settings.metrics_enabled,
        gemini_configured=bool(settings.gemini_api_key),
        paypal_configured=settings.paypal_configured,
    )

    if settings.ledger_backend == "postgres" and settings.run_migrations_on_startup:
        from banner_credits.db.migration_runner import run_migrations

        await asyncio.to_thread(run_migrations)

    if settings.ledger_backend == "memory":
        logger.warning("memory_ledger_enabled", detail="balances are lost on restart")
        app.state.memory_ledger = InMemoryLedgerStore()

    app.state.image_provider = GeminiImageProvider(
        api_key=settings.gemini_api_key,
        model=settings.image_model,
        timeout_seconds=settings.provider_timeout_seconds,
        aspect_ratio=settings.image_aspect_ratio,
    )
    app.state.prompt_provider = GeminiPromptProvider(
        api_key=settings.gemini_api_key,
        model=settings.prompt_model,
        timeout_seconds=settings.provider_timeout_seconds,
    )
    processor = build_payment_processor()
    app.state.payment_processor = processor

    yield

    # Shutdown
    logger.info("application_shutting_down")
    await processor.aclose()
    if settings.ledger_backend == "postgres":
        await close_engines()
        logger.info("database_engines_closed")


app = FastAPI(
    title=settings.api_title,
    version=settings.api_version,
    description=settings.api_description,
    lifespan=lifespan,
)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Log detailed validation errors for debugging."""
    # ctx may contain non-serializable objects (e.g. the raised ValueError)
    sanitized_errors = []
    for error in exc.errors():
        sanitized = {
            "type": error.get("type"),
            "loc": error.get("loc"),
            "msg": error.get("msg"),
        }
        if "ctx" in error:
            sanitized["ctx"] = {k: str(v) for k, v in error["ctx"].items()}
        sanitized_errors.append(sanitized)

    logger.warning(
        "validation_error",
        path=request.url.path,
        method=request.method,
        errors=sanitized_errors,
    )
    return JSONResponse(status_code=422, content={"detail": sanitized_errors})


# Setup tracing
setup_tracing()
instrument_fastapi(app)

# CORS middleware - the editor is served from a different origin
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.allowed_cors_origins,
    allow_credentials=False,
    allow_methods=["GET", "POST"],
    allow_headers=["*"],
)


@app.middleware("http")
async def logging_middleware(
    request: Request, call_next: Callable[[Request], Awaitable[Response]]
) -> Response:
    """Log all HTTP requests with timing."""
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID") or uuid4().hex
    endpoint = request.url.path
    method = request.method

    with log_context(request_id=request_id):
        logger.info("request_started", method=method, path=endpoint)
        metrics.http_requests_in_progress.labels(endpoint=endpoint, method=method).inc()

        try:
            response = await call_next(request)
            duration = time.time() - start_time
            metrics.record_http_request(endpoint, method, response.status_code, duration)

            logger.info(
                "request_completed",
                method=method,
                path=endpoint,
                status_code=response.status_code,
                duration_seconds=duration,
            )
            response.headers["X-Request-ID"] = request_id
            return response
        except Exception as e:
            duration = time.time() - start_time
            metrics.record_http_request(endpoint, method, 500, duration)
            metrics.record_error(type(e).__name__, "http_request")

            logger.error(
                "request_failed",
                method=method,
                path=endpoint,
                error=str(e),
                duration_seconds=duration,
                exc_info=True,
            )
            raise
        finally:
            metrics.http_requests_in_progress.labels(endpoint=endpoint, method=method).dec()


# Register routes
app.include_router(router)
app.include_router(status_router)


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {
        "service": settings.api_title,
        "version": settings.api_version,
        "status": "running",
    }


@app.get("/metrics")
async def metrics_endpoint() -> Response:
    """
    Prometheus metrics endpoint.

    Returns metrics in Prometheus text format.
    """
    return PlainTextResponse(generate_latest())


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "banner_credits.main:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=True,
        log_level=settings.log_level.lower(),
    )
