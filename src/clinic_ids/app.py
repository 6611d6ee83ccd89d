"""clinic-ids — FastAPI gateway application.

Keeps raw record ids out of clinic URLs. Route handlers elsewhere in the
system encode ids through this gateway and decode the tokens that come
back on incoming requests.
"""

from __future__ import annotations

import logging
import time
from contextlib import asynccontextmanager

from fastapi import Depends, FastAPI, Request
from fastapi.responses import JSONResponse

from clinic_ids import __version__
from clinic_ids.auth import make_api_key_checker
from clinic_ids.codec import EncodeError
from clinic_ids.config import DEFAULT_SECRET, GatewayConfig, build_codec, load_config
from clinic_ids.routes import ids, meta

logger = logging.getLogger("clinic_ids")
audit_logger = logging.getLogger("clinic_ids.audit")


@asynccontextmanager
async def lifespan(app: FastAPI):
    config: GatewayConfig = app.state.config
    if config.obfuscation_secret == DEFAULT_SECRET:
        logger.warning("No obfuscation secret configured, using the built-in default")
    if not config.api_key:
        logger.warning("No API key configured, identifier endpoints are open")
    logger.info(
        "clinic-ids gateway ready (legacy ids: %s, strict encode: %s)",
        "accepted" if config.accept_legacy_ids else "rejected",
        config.strict_encode,
    )
    yield
    logger.info("clinic-ids gateway shut down")


def create_app(config: GatewayConfig | None = None) -> FastAPI:
    """Application factory."""
    if config is None:
        config = load_config()

    app = FastAPI(
        title="clinic-ids",
        description="Reversible obfuscation of clinic record identifiers",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.config = config
    app.state.codec = build_codec(config)

    check_key = make_api_key_checker(config.api_key)

    # ── Exception handlers ────────────────────────────────────

    @app.exception_handler(EncodeError)
    async def encode_error_handler(request: Request, exc: EncodeError):
        return JSONResponse(status_code=500, content={"detail": str(exc)})

    # ── Audit middleware ──────────────────────────────────────

    @app.middleware("http")
    async def audit_log(request: Request, call_next):
        start = time.monotonic()
        response = await call_next(request)
        elapsed = time.monotonic() - start
        # Route template, not the raw path: tokens stay out of the log.
        route = request.scope.get("route")
        path = getattr(route, "path", request.url.path)
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
    app.include_router(ids.router, dependencies=[Depends(check_key)])

    return app
