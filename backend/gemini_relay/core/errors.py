"""
Relay Errors

Every failure the relay reports is rendered as a Gemini-style envelope:
    {"error": {"code": 404, "message": "...", "status": "NOT_FOUND"}}
"""
import logging
from typing import Any, Dict, Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from gemini_relay.core.middleware import CORS_HEADERS

logger = logging.getLogger(__name__)


class RelayError(Exception):
    """Base class for errors rendered as a JSON error envelope."""
    code: int = 500
    status: str = "INTERNAL"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    def to_payload(self) -> Dict[str, Any]:
        return error_payload(self.code, self.message, self.status)


class NotFoundError(RelayError):
    code = 404
    status = "NOT_FOUND"


class InvalidArgumentError(RelayError):
    code = 400
    status = "INVALID_ARGUMENT"


class UnauthenticatedError(RelayError):
    code = 401
    status = "UNAUTHENTICATED"


class BadGatewayError(RelayError):
    code = 502
    status = "BAD_GATEWAY"


class InternalError(RelayError):
    code = 500
    status = "INTERNAL"


class UpstreamError(RelayError):
    """
    An upstream HTTP error response, relayed with its original status.

    If the upstream body is already an error envelope it is passed through
    untouched; otherwise it is wrapped into one.
    """

    def __init__(self, code: int, body: Any, text: str = ""):
        self.code = code
        self.body = body
        if _is_envelope(body):
            error = body["error"]
            self.status = str(error.get("status") or "UNKNOWN")
            message = str(error.get("message", ""))
        else:
            self.status = "UNKNOWN"
            message = text or f"Upstream returned HTTP {code}"
        super().__init__(message)

    def to_payload(self) -> Dict[str, Any]:
        if _is_envelope(self.body):
            return self.body
        return error_payload(self.code, self.message, self.status)


def _is_envelope(body: Any) -> bool:
    return isinstance(body, dict) and isinstance(body.get("error"), dict)


def error_payload(code: int, message: str, status: str) -> Dict[str, Any]:
    return {"error": {"code": code, "message": message, "status": status}}


def error_response(error: RelayError, headers: Optional[Dict[str, str]] = None) -> JSONResponse:
    return JSONResponse(status_code=error.code, content=error.to_payload(), headers=headers)


async def _relay_error_handler(request: Request, exc: RelayError) -> JSONResponse:
    logger.warning(f"Replying with error {exc.code} {exc.status}: {exc.message}")
    return error_response(exc)


async def _http_exception_handler(request: Request, exc: StarletteHTTPException) -> JSONResponse:
    # Unmatched routes and wrong methods both surface as NOT_FOUND
    if exc.status_code in (404, 405):
        return error_response(NotFoundError("Endpoint not found."))
    error = RelayError(str(exc.detail))
    error.code = exc.status_code
    error.status = "UNKNOWN"
    return error_response(error)


async def _validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return error_response(InvalidArgumentError(f"Invalid request: {exc.errors()}"))


async def _unhandled_error_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled error in relay")
    # Rendered outside the preflight middleware, so the origin header is set here
    return error_response(
        InternalError(str(exc) or "An unknown error occurred"),
        headers={"Access-Control-Allow-Origin": CORS_HEADERS["Access-Control-Allow-Origin"]},
    )


def register_error_handlers(app: FastAPI) -> None:
    """Install the envelope renderers on the application."""
    app.add_exception_handler(RelayError, _relay_error_handler)
    app.add_exception_handler(StarletteHTTPException, _http_exception_handler)
    app.add_exception_handler(RequestValidationError, _validation_error_handler)
    app.add_exception_handler(Exception, _unhandled_error_handler)
