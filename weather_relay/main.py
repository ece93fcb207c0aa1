"""
FastAPI application entrypoint for the Netatmo weather relay.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Callable

from fastapi import FastAPI

from weather_relay.api.cors import PreflightCORSMiddleware, cors_options
from weather_relay.api.routes import router as api_router
from weather_relay.core.config import AppSettings, get_settings
from weather_relay.core.context import RelayContext, build_context
from weather_relay.core.logging import configure_logging

logger = logging.getLogger(__name__)

ContextBuilder = Callable[[AppSettings], RelayContext]


def _lifespan(settings: AppSettings, context_builder: ContextBuilder):
    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        context = context_builder(settings)
        # Bootstrap failures propagate and abort startup.
        await context.credentials.bootstrap()
        app.state.context = context
        await context.scheduler.start()
        logger.info(
            "Weather relay started (environment=%s, fetch every %ss)",
            settings.environment,
            settings.scheduler.fetch_interval_seconds,
        )
        try:
            yield
        finally:
            await context.scheduler.stop()
            logger.info("Weather relay stopped")

    return lifespan


def create_app(
    settings: AppSettings | None = None,
    context_builder: ContextBuilder = build_context,
) -> FastAPI:
    """Factory for the FastAPI application."""
    settings = settings or get_settings()
    configure_logging(settings.log_level)

    app = FastAPI(
        title="Netatmo Weather Relay",
        version="0.1.0",
        description="Serves the latest reading of a Netatmo weather station.",
        lifespan=_lifespan(settings, context_builder),
    )
    app.state.settings = settings
    app.add_middleware(PreflightCORSMiddleware, **cors_options(settings))
    app.include_router(api_router)
    return app


app = create_app()


def run() -> None:
    """Console entrypoint: serve the relay with uvicorn."""
    import uvicorn

    settings = get_settings()
    uvicorn.run(app, host=settings.host, port=settings.port, log_config=None)


__all__ = ["app", "create_app", "run"]
