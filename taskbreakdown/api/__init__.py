"""FastAPI application for the task breakdown service.

``create_app`` wires settings, the provider client, the store, the generator
and the sequencer together; the route modules only see the resulting
``Services`` container. The ``main()`` entry point at the bottom serves the
app with uvicorn.
"""

from __future__ import annotations

import time
import uuid
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from taskbreakdown.api import _breakdown, _health, _subtasks, _tasks
from taskbreakdown.api._deps import Services
from taskbreakdown.api._errors import install_error_handlers
from taskbreakdown.breakdown import BreakdownGenerator
from taskbreakdown.config import AppSettings
from taskbreakdown.constants import API_PREFIX, SERVICE_VERSION
from taskbreakdown.errors import ProviderFailureCause, ProviderUnavailable
from taskbreakdown.llm import LiteLLMClient
from taskbreakdown.logger import setup_logging, stop_logging
from taskbreakdown.sequencer import SubtaskSequencer
from taskbreakdown.store import PostgresStore, Store

if TYPE_CHECKING:
    from collections.abc import AsyncIterator, Awaitable, Callable

    from fastapi import Request, Response

logger = structlog.get_logger()


async def _log_requests(request: Request, call_next: Callable[[Request], Awaitable[Response]]) -> Response:
    """Bind a request id to the log context and log one line per request."""
    request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(request_id=request_id)

    start = time.perf_counter()
    status = 500
    try:
        response = await call_next(request)
        status = response.status_code
    finally:
        logger.info(
            "request handled",
            method=request.method,
            path=request.url.path,
            status=status,
            duration_ms=round((time.perf_counter() - start) * 1000),
        )
    response.headers["X-Request-ID"] = request_id
    return response


def create_app(
    settings: AppSettings | None = None,
    *,
    llm: LiteLLMClient | None = None,
    store: Store | None = None,
) -> FastAPI:
    """Build the application; *llm* and *store* default to the real clients."""
    settings = settings or AppSettings()
    if llm is None:
        llm = LiteLLMClient(
            base_url=settings.litellm_url,
            api_key=settings.litellm_api_key,
            timeout=settings.provider_timeout,
        )
    if store is None:
        store = PostgresStore(settings.database_url, max_size=settings.db_pool_max)

    services = Services(
        settings=settings,
        llm=llm,
        store=store,
        generator=BreakdownGenerator(llm, model=settings.model),
        sequencer=SubtaskSequencer(store),
    )

    @asynccontextmanager
    async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
        try:
            await services.store.open()
            try:
                if settings.verify_provider and not await services.llm.health():
                    logger.error("provider health check failed", url=settings.litellm_url)
                    detail = f"provider at {settings.litellm_url} is not healthy"
                    raise ProviderUnavailable(ProviderFailureCause.UNKNOWN, detail)
                logger.info("service started", model=settings.model, version=SERVICE_VERSION)
                yield
            finally:
                await services.store.close()
        finally:
            await services.llm.close()
            logger.info("service stopped")

    app = FastAPI(title="Task Breakdown API", version=SERVICE_VERSION, lifespan=lifespan)
    app.state.services = services

    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.cors_origin],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.middleware("http")(_log_requests)
    install_error_handlers(app)

    app.include_router(_health.root_router)
    for module in (_health, _breakdown, _tasks, _subtasks):
        app.include_router(module.router, prefix=API_PREFIX)
    return app


def main() -> None:
    """Entry point for running the API server."""
    settings = AppSettings()
    setup_logging(service=settings.log_service, level=settings.log_level, fmt=settings.log_format)
    app = create_app(settings)
    try:
        # log_config=None keeps uvicorn on the root handler installed above.
        uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)
    finally:
        stop_logging()


if __name__ == "__main__":
    main()


__all__ = ["create_app", "main"]
