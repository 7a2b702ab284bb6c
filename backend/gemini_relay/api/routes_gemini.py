"""
Gemini Native Protocol API Routes

Relays generateContent / streamGenerateContent calls to the Gemini API.
These allow direct use with the official Google SDKs and chat clients that
speak the Gemini REST convention.
"""
import json
import logging
from typing import Any, Dict

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse

from gemini_relay.api.routes_passthrough import forward_request
from gemini_relay.core.credentials import mask_key, resolve_request_key
from gemini_relay.core.errors import InternalError, InvalidArgumentError, NotFoundError, RelayError
from gemini_relay.core.proxy import classify_route, relay_sse
from gemini_relay.core.proxy.routing import is_api_version

logger = logging.getLogger(__name__)

router = APIRouter()


async def read_json_body(request: Request) -> Dict[str, Any]:
    try:
        body = await request.json()
    except Exception as e:
        raise InvalidArgumentError(f"Invalid JSON: {e}")
    if not isinstance(body, dict):
        raise InvalidArgumentError("Request body must be a JSON object.")
    return body


@router.post("/{api_version}/models/{model_action:path}")
async def generate_content(api_version: str, model_action: str, request: Request):
    """
    Gemini generateContent / streamGenerateContent endpoint.

    Path format: /v1beta/models/{model}:generateContent
                 /v1beta/models/{model}:streamGenerateContent

    Note: Using {model_action:path} to capture the full path including colons.
    """
    if not is_api_version(api_version):
        raise NotFoundError("Endpoint not found.")

    try:
        route = classify_route(f"models/{model_action}")
    except NotFoundError:
        # e.g. :countTokens, handed to the generic proxy when it is enabled
        if request.app.state.settings.enable_passthrough:
            return await forward_request(request, f"{api_version}/models/{model_action}")
        raise

    api_key = resolve_request_key(request)
    body = await read_json_body(request)

    settings = request.app.state.settings
    upstream = request.app.state.upstream
    mode = "STREAMING" if route.stream else "NON-STREAMING"
    logger.info(f"[Gemini] {mode} request for model {route.model} (key {mask_key(api_key)})")
    if settings.log_bodies:
        logger.debug(f"[Gemini] Request body: {json.dumps(body, ensure_ascii=False)}")

    try:
        if route.stream:
            chunks = await upstream.stream_generate_content(route.model, body, api_key, version=api_version)
            return StreamingResponse(
                relay_sse(chunks, route.model, settings.log_bodies),
                media_type="text/event-stream",
                headers={"Cache-Control": "no-cache", "X-Accel-Buffering": "no"},
            )

        result = await upstream.generate_content(route.model, body, api_key, version=api_version)
        if settings.log_bodies:
            logger.debug(f"[Gemini] Response body: {json.dumps(result, ensure_ascii=False)}")
        return JSONResponse(content=result)

    except RelayError:
        raise
    except Exception as e:
        logger.exception(f"[Gemini] Request for {route.model} failed")
        raise InternalError(str(e) or "An unknown error occurred") from e
