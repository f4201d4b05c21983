"""Open When — FastAPI gateway application.

Creates shareable letter links and serves them back. The link is the
only record; the server keeps nothing but opened-letter state.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from openwhen.config import OpenWhenConfig, load_config
from openwhen.decoder import DecodeCascade
from openwhen.errors import (
    EncodeError,
    LetterLockedError,
    LetterNotFoundError,
    OpenWhenError,
    TokenNotFoundError,
)
from openwhen.opened import OpenedLetterStore
from openwhen.routes import collections, meta

logger = logging.getLogger("openwhen")
audit_logger = logging.getLogger("openwhen.audit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: log where links point. Shutdown: report opened count."""
    config: OpenWhenConfig = app.state.config
    logger.info("Open When gateway ready, links at %s", config.base_url)
    yield
    logger.info("Open When gateway shut down (%d letters opened)", app.state.opened.count())


def install_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def validation_handler(request: Request, exc: RequestValidationError):
        # Inputs are not echoed: drafts may hold text that cannot be encoded.
        errors = [
            {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
            for err in exc.errors()
        ]
        return JSONResponse(status_code=422, content={"detail": errors})

    @app.exception_handler(TokenNotFoundError)
    async def token_not_found_handler(request: Request, exc: TokenNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(LetterNotFoundError)
    async def letter_not_found_handler(request: Request, exc: LetterNotFoundError):
        return JSONResponse(status_code=404, content={"detail": str(exc)})

    @app.exception_handler(LetterLockedError)
    async def locked_handler(request: Request, exc: LetterLockedError):
        return JSONResponse(
            status_code=423,
            content={"detail": str(exc), "countdown": exc.countdown},
        )

    @app.exception_handler(EncodeError)
    async def encode_handler(request: Request, exc: EncodeError):
        logger.error("Encode failed: %s", exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    @app.exception_handler(OpenWhenError)
    async def openwhen_handler(request: Request, exc: OpenWhenError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(config: OpenWhenConfig | None = None) -> FastAPI:
    """Application factory."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title="Open When",
        description="Letters to open when the moment comes, carried entirely in the link",
        version=meta.GATEWAY_VERSION,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.decoder = DecodeCascade()
    app.state.opened = OpenedLetterStore()

    install_error_handlers(app)

    # ── Audit middleware ──────────────────────────────────────

    @app.middleware("http")
    async def audit_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        # Paths embed whole letters; log the route shape only.
        path = request.url.path
        if len(path) > 64:
            path = path[:64] + "…"
        audit_logger.info(
            "%s %s %d %.3fs",
            request.method,
            path,
            response.status_code,
            elapsed,
        )
        return response

    # ── Routers ───────────────────────────────────────────────

    app.include_router(meta.router)
    app.include_router(collections.router)

    return app
