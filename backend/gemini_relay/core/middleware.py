"""
Relay Middleware

CORS handling for browser clients and path normalisation.
"""
import logging

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import Response

logger = logging.getLogger(__name__)

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "POST, GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, x-goog-api-key",
}


class PreflightMiddleware(BaseHTTPMiddleware):
    """Answer every OPTIONS request with 204 and allow any origin on the rest."""

    async def dispatch(self, request: Request, call_next):
        if request.method == "OPTIONS":
            return Response(status_code=204, headers=CORS_HEADERS)

        response = await call_next(request)
        response.headers["Access-Control-Allow-Origin"] = "*"
        return response


class PathFixMiddleware(BaseHTTPMiddleware):
    """Collapse a doubled /v1beta prefix (common client configuration error)."""

    async def dispatch(self, request: Request, call_next):
        path = request.url.path
        if path.startswith("/v1beta/v1beta"):
            new_path = path.replace("/v1beta/v1beta", "/v1beta", 1)
            logger.info(f"[Path Fix] Rewriting {path} -> {new_path}")
            request.scope["path"] = new_path
        return await call_next(request)
