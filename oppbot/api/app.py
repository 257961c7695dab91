"""FastAPI application factory with lifespan for oppbot."""

from __future__ import annotations

from contextlib import asynccontextmanager
from collections.abc import AsyncIterator

from fastapi import FastAPI

from oppbot import __version__
from oppbot.agent.dispatcher import EventDispatcher, build_dispatcher
from oppbot.settings import OppbotSettings, get_settings


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Shutdown: let in-flight analyses finish before the process exits."""
    yield
    dispatcher: EventDispatcher = app.state.dispatcher
    await dispatcher.runner.drain(timeout=app.state.settings.drain_timeout_seconds)


def create_app(
    settings: OppbotSettings | None = None,
    dispatcher: EventDispatcher | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    app = FastAPI(
        title=settings.app_name,
        version=__version__,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.dispatcher = dispatcher or build_dispatcher(settings)

    # ── mount routers ──
    from oppbot.api.routes import lark_webhook

    app.include_router(lark_webhook.router, tags=["lark"])

    return app
