"""FastAPI application entry point.

Run with: uvicorn src.api.app:app_factory --factory
"""

import asyncio
import logging
from contextlib import asynccontextmanager

from dishka import AsyncContainer, make_async_container
from dishka.integrations.fastapi import setup_dishka
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from src.api.routes import health_router, router
from src.core.exceptions import (
    InvalidOrder,
    LookupUnavailable,
    OrderError,
    StorageFailure,
    UnknownAccount,
    UnknownSecurity,
)
from src.di.clients import HttpClientProvider, LookupClientProvider
from src.di.config import ProcessorConfigProvider
from src.di.database import DatabaseProvider
from src.di.publisher import PublisherProvider
from src.di.service import ServiceProvider
from src.logger import init_logging
from src.migrate import run_migrations
from src.processor.config.settings import ProcessorSettings

logger = logging.getLogger(__name__)


def status_for(exc: OrderError) -> int:
    if isinstance(exc, (LookupUnavailable, StorageFailure)):
        return 503
    if isinstance(exc, (UnknownSecurity, UnknownAccount)):
        return 404
    if isinstance(exc, InvalidOrder):
        return 422
    return 400


async def order_error_handler(request: Request, exc: OrderError) -> JSONResponse:
    status_code = status_for(exc)
    logger.info(f"{request.method} {request.url.path} -> {status_code}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "error": type(exc).__name__, "retryable": exc.retryable},
    )


def create_app(container: AsyncContainer, settings: ProcessorSettings | None = None) -> FastAPI:
    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Startup and shutdown events."""
        if settings is not None and settings.RUN_MIGRATIONS:
            await asyncio.to_thread(run_migrations, settings.database_uri)
        yield
        await container.close()

    app = FastAPI(
        title="TraderX Trade Processor",
        description="Books trade orders and maintains account positions",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.add_exception_handler(OrderError, order_error_handler)
    app.include_router(router)
    app.include_router(health_router)
    setup_dishka(container=container, app=app)
    return app


def app_factory() -> FastAPI:
    settings = ProcessorSettings()
    init_logging(settings.LOG_LEVEL)
    container = make_async_container(
        ProcessorConfigProvider(),
        DatabaseProvider(),
        HttpClientProvider(),
        LookupClientProvider(),
        PublisherProvider(),
        ServiceProvider(),
        context={ProcessorSettings: settings},
    )
    return create_app(container, settings)
