"""
OpenAI Protocol API Routes

Exposes an OpenAI-compatible chat completion endpoint backed by Gemini.
"""
import json
import logging

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from gemini_relay.core.credentials import resolve_request_key
from gemini_relay.core.errors import InternalError, InvalidArgumentError, RelayError
from gemini_relay.core.proxy import (
    OpenAIRequest,
    map_model,
    transform_gemini_to_openai,
    transform_openai_to_gemini,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/chat/completions")
async def chat_completions(request: Request):
    """
    OpenAI-compatible /chat/completions endpoint (non-streaming).

    The requested model is mapped to a Gemini model, the messages are
    reshaped into Gemini contents, and the first candidate comes back as a
    chat.completion object.
    """
    api_key = resolve_request_key(request)

    try:
        body = await request.json()
        openai_request = OpenAIRequest(**body)
    except Exception as e:
        raise InvalidArgumentError(f"Invalid request format: {e}")

    settings = request.app.state.settings
    mapped_model = map_model(openai_request.model)
    gemini_body = transform_openai_to_gemini(openai_request)
    logger.info(f"[OpenAI] {openai_request.model} -> {mapped_model}")
    if settings.log_bodies:
        logger.debug(f"[OpenAI] Gemini request body: {json.dumps(gemini_body, ensure_ascii=False)}")

    try:
        gemini_response = await request.app.state.upstream.generate_content(
            mapped_model, gemini_body, api_key
        )
    except RelayError:
        raise
    except Exception as e:
        logger.exception(f"[OpenAI] Request for {mapped_model} failed")
        raise InternalError(str(e) or "An unknown error occurred") from e

    openai_response = transform_gemini_to_openai(gemini_response, openai_request.model)
    return JSONResponse(content=openai_response.model_dump())
