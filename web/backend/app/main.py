"""FastAPI application for the shopassist API.

Provides REST API endpoints for:
- Product review moderation (background and inline)
- The product Q&A assistant
- LLM status and usage
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Optional

import math

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from shopassist import __version__
from shopassist.config import load_settings
from shopassist.context import ServiceContext
from shopassist.log import configure_logging
from web.backend.app.routers import chat, llm, moderation


def _json_safe(value):
    """Replace non-finite floats so validation errors can be echoed as JSON."""
    if isinstance(value, float) and not math.isfinite(value):
        return str(value)
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


def create_app(context: Optional[ServiceContext] = None) -> FastAPI:
    """Build the application.

    When *context* is omitted it is built from :func:`load_settings` at
    startup; tests pass a context assembled from fakes instead.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if getattr(app.state, "context", None) is None:
            settings = load_settings()
            configure_logging(settings.log_level)
            app.state.context = ServiceContext.from_settings(settings)
        yield

    app = FastAPI(
        title="shopassist API",
        description=(
            "REST API for the store's product assistant and review moderation. "
            "Reviews are acknowledged immediately and moderated in the background."
        ),
        version=__version__,
        lifespan=lifespan,
    )
    app.state.context = context

    # -----------------------------------------------------------------------
    # CORS middleware (the storefront is served from another origin)
    # -----------------------------------------------------------------------
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(moderation.router)
    app.include_router(chat.router)
    app.include_router(llm.router)

    @app.exception_handler(RequestValidationError)
    async def validation_error_handler(request: Request, exc: RequestValidationError):
        return JSONResponse(
            status_code=422,
            content={"detail": _json_safe(jsonable_encoder(exc.errors()))},
        )

    @app.get("/", tags=["meta"])
    async def root():
        """Return basic API information."""
        return {
            "name": "shopassist API",
            "version": __version__,
            "docs": "/docs",
            "openapi": "/openapi.json",
        }

    @app.get("/health", tags=["meta"])
    async def health_check():
        """Health check endpoint."""
        return {"status": "healthy"}

    return app


app = create_app()
