from typing import Optional

import httpx
import logging
import os
from logging.handlers import RotatingFileHandler
from fastapi import FastAPI, Request
import uvicorn

from gemini_relay.core.config import Settings, get_settings
from gemini_relay.core.credentials import KeyPool
from gemini_relay.core.errors import register_error_handlers
from gemini_relay.core.middleware import PathFixMiddleware, PreflightMiddleware
from gemini_relay.core.proxy import GeminiUpstream
from gemini_relay.api import routes_gemini, routes_openai, routes_passthrough

VERSION = "1.0.0"

logger = logging.getLogger(__name__)


# ============================================================================
# Logging Configuration
# ============================================================================
def configure_logging(settings: Settings) -> None:
    """
    Configure the root logger. Safe to call more than once: handlers are
    only attached when missing, levels are reapplied every time.
    """
    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    formatter = logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    root = logging.getLogger()
    root.setLevel(level)

    # Also keep console output
    if not root.handlers:
        console_handler = logging.StreamHandler()
        console_handler.setFormatter(formatter)
        root.addHandler(console_handler)

    if settings.log_file:
        log_path = os.path.abspath(settings.log_file)
        attached = any(
            isinstance(handler, RotatingFileHandler) and handler.baseFilename == log_path
            for handler in root.handlers
        )
        if not attached:
            # Create rotating file handler (10MB per file, keep 5 backups)
            file_handler = RotatingFileHandler(
                log_path,
                maxBytes=10 * 1024 * 1024,  # 10MB
                backupCount=5,
                encoding="utf-8"
            )
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

    # Body logging is emitted at DEBUG; handlers carry no level of their own
    if settings.log_bodies:
        logging.getLogger("gemini_relay").setLevel(logging.DEBUG)

    # Reduce noise from httpx
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def create_app(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    """
    Build the relay application.

    Args:
        settings: Immutable configuration; read from the environment if omitted.
        transport: Optional httpx transport for upstream calls (tests).
    """
    settings = settings or get_settings()
    configure_logging(settings)

    app = FastAPI(
        title="Gemini Relay",
        description="Reverse proxy for the Gemini generateContent API",
        version=VERSION,
    )
    app.state.settings = settings
    app.state.key_pool = KeyPool(settings.upstream_keys)
    app.state.upstream = GeminiUpstream(
        settings.base_url,
        timeout=settings.upstream_timeout,
        transport=transport,
    )

    register_error_handlers(app)

    # Last added runs first: preflights are answered before the path fix
    app.add_middleware(PathFixMiddleware)
    app.add_middleware(PreflightMiddleware)

    @app.get("/health")
    async def health_check(request: Request):
        return {
            "status": "ok",
            "version": VERSION,
            "pool_size": len(request.app.state.key_pool),
        }

    # OpenAI-compatible Proxy APIs
    app.include_router(routes_openai.router, prefix="/openai/v1", tags=["OpenAI Proxy"])

    # Gemini Native Proxy APIs (for Google SDK and chat clients)
    app.include_router(routes_gemini.router, tags=["Gemini Proxy"])

    # Generic byte passthrough for everything else under /v1*
    if settings.enable_passthrough:
        app.include_router(routes_passthrough.router, tags=["Passthrough"])

    if settings.pool_enabled:
        logger.info(f"Key pool enabled with {len(app.state.key_pool)} upstream keys")
        if not settings.gate_key:
            logger.warning("UPSTREAM_KEYS is set without GATE_KEY; any caller key is accepted")

    return app


def run() -> None:
    settings = get_settings()
    uvicorn.run(create_app(settings), host=settings.host, port=settings.port)


if __name__ == "__main__":
    run()
