"""sqidsring — FastAPI token gateway.

Hands out opaque tokens for internal integer IDs and resolves them back.
Clients never see the integers.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from sqidsring.deps import make_api_key_checker
from sqidsring.codec import build_codec
from sqidsring.config import SqidsRingConfig, load_config
from sqidsring.decoder import DecoderRing
from sqidsring.errors import CodecError, InvalidTokenError, TranscodeError
from sqidsring.routes import meta, tokens
from sqidsring.routes.meta import GATEWAY_VERSION

logger = logging.getLogger("sqidsring")
audit_logger = logging.getLogger("sqidsring.audit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup: build the codec. Nothing to release on shutdown."""
    config: SqidsRingConfig = app.state.config
    logger.info(
        "Building Sqids codec (min_length: %d, custom alphabet: %s)",
        config.min_length,
        bool(config.alphabet),
    )
    app.state.decoder = DecoderRing(build_codec(config))
    logger.info("Token gateway ready")
    yield
    logger.info("Token gateway shut down")


def install_exception_handlers(app: FastAPI) -> None:
    """Map transcoding errors to HTTP responses."""

    @app.exception_handler(InvalidTokenError)
    async def invalid_token_handler(request: Request, exc: InvalidTokenError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "field": exc.field},
        )

    @app.exception_handler(CodecError)
    async def codec_handler(request: Request, exc: CodecError):
        return JSONResponse(
            status_code=400,
            content={"detail": str(exc), "field": exc.field},
        )

    @app.exception_handler(TranscodeError)
    async def transcode_handler(request: Request, exc: TranscodeError):
        logger.error("Transcoding failed: %s", exc)
        return JSONResponse(status_code=500, content={"detail": str(exc)})


def create_app(config: SqidsRingConfig | None = None) -> FastAPI:
    """Application factory."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title="sqidsring",
        description="Token gateway — opaque public tokens for internal integer IDs",
        version=GATEWAY_VERSION,
        lifespan=lifespan,
    )
    app.state.config = config

    check_key = make_api_key_checker(config.api_key)

    install_exception_handlers(app)

    # ── Audit middleware ──────────────────────────────────────

    @app.middleware("http")
    async def audit_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        audit_logger.info(
            "%s %s %d %.3fs",
            request.method,
            request.url.path,
            response.status_code,
            elapsed,
        )
        return response

    # ── Routers ───────────────────────────────────────────────

    app.include_router(meta.router, dependencies=[Depends(check_key)])
    app.include_router(tokens.router, dependencies=[Depends(check_key)])

    return app
