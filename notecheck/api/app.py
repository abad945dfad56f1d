"""FastAPI application with lifespan startup."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from notecheck import __version__
from notecheck.config import Settings
from notecheck.review.hybrid import HybridChecker
from notecheck.startup import build_checker

from . import routes

LOGGER = logging.getLogger(__name__)


def create_app(
    settings: Settings | None = None,
    *,
    checker: HybridChecker | None = None,
) -> FastAPI:
    """Return the API application.

    The checker is built in the lifespan from ``settings`` unless one is
    passed in, in which case the caller keeps ownership of it.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        app_settings = settings or Settings.from_env()
        owned = checker is None
        app.state.settings = app_settings
        app.state.checker = build_checker(app_settings) if owned else checker
        LOGGER.info(
            "Checker ready (dictionary=%s, ai=%s)",
            app.state.checker.dictionary_loaded,
            app.state.checker.ai_configured,
        )

        yield

        if owned:
            app.state.checker.close()

    app = FastAPI(
        title="notecheck",
        description="Hybrid dictionary and language model spell checking for speaker notes",
        version=__version__,
        lifespan=lifespan,
    )

    @app.exception_handler(RequestValidationError)
    async def _invalid_body(request: Request, exc: RequestValidationError) -> JSONResponse:
        LOGGER.debug("Rejected request body for %s: %s", request.url.path, exc)
        return JSONResponse(status_code=400, content={"error": "Invalid request body"})

    app.include_router(routes.router)
    return app
