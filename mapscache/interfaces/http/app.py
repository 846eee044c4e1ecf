from contextlib import asynccontextmanager
from typing import Optional

import anyio
import httpx
from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from pydantic import ValidationError

from ...config import Settings
from ...container import Components, build_components
from ...domain.exceptions import BudgetExceededError, UpstreamError
from ...enums import ErrorType
from ...logging import init_logging, shutdown_logging, info, LogRecord, LogEvent
from .errors import log_and_return_error_response
from .middleware import logging_middleware
from .routes.health import router as health_router
from .routes.monitoring import router as monitoring_router
from .routes.places import router as places_router
from .routes.usage import router as usage_router


def _lifecycle(message: str, **data) -> None:
    info(LogRecord(event=LogEvent.LIFECYCLE.value, message=message, data=data or None))


def create_app(
    settings: Settings, components: Optional[Components] = None
) -> FastAPI:
    """Creates and configures the FastAPI application instance.

    Startup restores the cache snapshot and runs the expiry sweep and the
    periodic snapshot in a task group; shutdown stops both, writes a final
    snapshot and closes the provider HTTP client.

    Args:
        settings: Configuration settings object
        components: Prebuilt components, built from settings when None

    Returns:
        Fully configured FastAPI application instance
    """
    init_logging(settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        components: Components = app.state.components
        snapshot_manager = components.snapshot_manager

        if snapshot_manager is not None:
            restored = await snapshot_manager.load()
            _lifecycle("Cache snapshot restored", entries=restored)

        async with anyio.create_task_group() as tg:
            tg.start_soon(components.cache.run_cleanup_loop)
            tg.start_soon(components.ledger.run_flush_loop)
            if snapshot_manager is not None:
                tg.start_soon(snapshot_manager.run_autosave_loop)
            _lifecycle("Background cache tasks started")
            try:
                yield
            finally:
                tg.cancel_scope.cancel()

        _lifecycle("Initiating application shutdown")
        with anyio.CancelScope(shield=True):
            if snapshot_manager is not None:
                await snapshot_manager.save()
            await components.ledger.flush()
            await components.aclose()
        _lifecycle("Application shutdown complete")
        shutdown_logging()

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        docs_url=None,
        redoc_url=None,
        description="Caches maps provider responses and keeps API spend within a daily budget.",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.components = components or build_components(settings)

    app.middleware("http")(logging_middleware)

    app.include_router(health_router, tags=["Health"])
    app.include_router(usage_router, tags=["Usage"])
    app.include_router(monitoring_router, tags=["Monitoring"])
    app.include_router(places_router, tags=["Places"])

    @app.exception_handler(BudgetExceededError)
    async def budget_exceeded_handler(request: Request, exc: BudgetExceededError):
        return await log_and_return_error_response(
            request,
            429,
            ErrorType.BUDGET_EXCEEDED,
            exc.message,
            details={"category": exc.category, "budget": exc.budget_status},
            caught_exception=exc,
        )

    @app.exception_handler(UpstreamError)
    async def upstream_error_handler(request: Request, exc: UpstreamError):
        return await log_and_return_error_response(
            request,
            502,
            ErrorType.UPSTREAM,
            exc.message,
            details={
                "provider": exc.provider_name,
                "status_code": exc.status_code,
                "provider_status": exc.provider_status,
            },
            caught_exception=exc,
        )

    @app.exception_handler(httpx.TransportError)
    async def transport_error_handler(request: Request, exc: httpx.TransportError):
        return await log_and_return_error_response(
            request,
            504 if isinstance(exc, httpx.TimeoutException) else 502,
            ErrorType.UPSTREAM,
            "Maps provider is unreachable.",
            caught_exception=exc,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_error_handler(
        request: Request, exc: RequestValidationError
    ):
        return await log_and_return_error_response(
            request,
            422,
            ErrorType.INVALID_REQUEST,
            "Validation error.",
            details={"errors": jsonable_encoder(exc.errors())},
            caught_exception=exc,
        )

    @app.exception_handler(ValidationError)
    async def pydantic_validation_error_handler(request: Request, exc: ValidationError):
        return await log_and_return_error_response(
            request,
            422,
            ErrorType.INVALID_REQUEST,
            f"Validation error: {exc.error_count()} invalid field(s).",
            caught_exception=exc,
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        return await log_and_return_error_response(
            request, 400, ErrorType.INVALID_REQUEST, str(exc), caught_exception=exc
        )

    @app.exception_handler(Exception)
    async def generic_exception_handler(request: Request, exc: Exception):
        return await log_and_return_error_response(
            request,
            500,
            ErrorType.API_ERROR,
            "An unexpected internal server error occurred.",
            caught_exception=exc,
        )

    return app
