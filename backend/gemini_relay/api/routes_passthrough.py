"""
Generic Passthrough Routes

Forwards any other /v1* request to the Gemini API unchanged, with the
caller's key swapped for the resolved upstream key. Only mounted when
ENABLE_PASSTHROUGH is set.
"""
import logging

from fastapi import APIRouter, Request
from fastapi.responses import StreamingResponse
from starlette.background import BackgroundTask

from gemini_relay.core.credentials import resolve_request_key
from gemini_relay.core.errors import NotFoundError
from gemini_relay.core.proxy.routing import STREAM_MARKER, UNARY_MARKER, is_api_version

logger = logging.getLogger(__name__)

router = APIRouter()

RELAYED_RESPONSE_HEADERS = ("content-type", "content-encoding")


async def forward_request(request: Request, path: str) -> StreamingResponse:
    """Send the request upstream and stream the upstream bytes back untouched."""
    api_key = resolve_request_key(request)
    body = await request.body()

    logger.info(f"[Passthrough] {request.method} /{path}")
    upstream_response = await request.app.state.upstream.forward(
        request.method,
        path,
        request.query_params,
        request.headers,
        body,
        api_key,
    )

    headers = {
        name: upstream_response.headers[name]
        for name in RELAYED_RESPONSE_HEADERS
        if name in upstream_response.headers
    }
    return StreamingResponse(
        upstream_response.aiter_raw(),
        status_code=upstream_response.status_code,
        headers=headers,
        background=BackgroundTask(upstream_response.aclose),
    )


@router.api_route("/{api_version}/{path:path}", methods=["GET", "POST", "PUT", "PATCH", "DELETE"])
async def passthrough(api_version: str, path: str, request: Request):
    if not is_api_version(api_version):
        raise NotFoundError("Endpoint not found.")
    # Generation routes only answer POST
    if STREAM_MARKER in path or UNARY_MARKER in path:
        raise NotFoundError("Endpoint not found.")
    return await forward_request(request, f"{api_version}/{path}")
