"""
FastAPI Application Factory & Configuration.

This module builds the HTTP front-end for one timeline. It is responsible for:
1.  **Middleware Setup**: CORS for browser clients.
2.  **Exception Handling**: Timeline errors become structured JSON whose
    status code reflects the error kind.
3.  **Routing**: Mounting the timeline router and a health probe.
4.  **Lifecycle**: Resolving the configured app and running the first
    extraction at startup when no session was injected.

Design Pattern
--------------
An **Application Factory** (`create_app`) lets tests inject a ready-made
:class:`TimelineSession` instead of reading config files.
"""

from __future__ import annotations

from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from timelinemapper import __version__
from timelinemapper.api.routers import timeline
from timelinemapper.core.errors import (
    CompileError,
    ConfigError,
    EvaluationError,
    SourceQueryError,
    TimelineError,
)
from timelinemapper.core.registry import resolve_app_config
from timelinemapper.core.settings import get_logger, load_settings
from timelinemapper.timeline.session import TimelineSession

_logger = get_logger("timelinemapper.api")

#: HTTP status per error kind; anything else is a 500.
_STATUS_BY_ERROR: dict[type[TimelineError], int] = {
    CompileError: 422,
    EvaluationError: 422,
    SourceQueryError: 502,
    ConfigError: 500,
}


async def _open_configured_session() -> TimelineSession | None:
    """Resolve the app named by the settings and load its timeline."""
    current = load_settings()
    try:
        config, config_path = resolve_app_config(Path(current.registry_path), current.app_id)
        session = TimelineSession.from_app_config(config, config_path)
        await session.reload()
    except TimelineError as exc:
        _logger.error("could not open configured timeline (%s): %s", exc.kind, exc)
        return None
    return session


def create_app(session: TimelineSession | None = None) -> FastAPI:
    """
    Construct and configure the timeline FastAPI application.

    Parameters
    ----------
    session:
        Pre-built session to serve. When omitted, the app resolved from
        ``TIMELINE_REGISTRY`` / ``TIMELINE_APP`` is loaded at startup.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        if getattr(app.state, "session", None) is None:
            app.state.session = await _open_configured_session()
        _logger.info("timeline API ready (session=%s)", app.state.session is not None)
        yield

    app = FastAPI(
        title="timelinemapper API",
        description="Navigate geospatial features as a timeline of events",
        version=__version__,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )
    app.state.session = session

    # -----------------------------------------------------------------------
    # Middleware
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # -----------------------------------------------------------------------
    # Exception Handlers
    # -----------------------------------------------------------------------
    @app.exception_handler(TimelineError)
    async def timeline_error_handler(request: Request, exc: TimelineError) -> JSONResponse:
        """Return ``{"error": kind, "detail": ...}`` with a kind-specific status."""
        status_code = next(
            (code for cls, code in _STATUS_BY_ERROR.items() if isinstance(exc, cls)),
            500,
        )
        content: dict[str, object] = {
            "error": exc.kind,
            "detail": str(exc),
            "path": request.url.path,
        }
        if isinstance(exc, EvaluationError):
            content["object_id"] = exc.object_id
            content["field"] = exc.field
        return JSONResponse(status_code=status_code, content=content)

    # -----------------------------------------------------------------------
    # Routes
    # -----------------------------------------------------------------------
    app.include_router(timeline.router)

    @app.get("/health", tags=["System"])
    async def health_check() -> dict[str, object]:
        """Simple liveness probe."""
        return {
            "status": "ok",
            "environment": load_settings().environment,
            "version": __version__,
            "timeline_loaded": app.state.session is not None,
        }

    return app


__all__ = ["create_app"]
