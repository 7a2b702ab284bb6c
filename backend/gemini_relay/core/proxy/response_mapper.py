"""
Gemini to OpenAI Response Mapper

Transforms Gemini API responses back into OpenAI API format.
"""
import time
import uuid
from typing import Any, Dict

from .openai_models import (
    OpenAIChatCompletionResponse,
    OpenAIChoice,
    OpenAIChoiceMessage,
    OpenAIUsage,
)

FINISH_REASONS = {
    "STOP": "stop",
    "MAX_TOKENS": "length",
    "SAFETY": "content_filter",
    "RECITATION": "content_filter",
}


def map_finish_reason(gemini_finish: str) -> str:
    if not gemini_finish:
        return "stop"
    return FINISH_REASONS.get(gemini_finish, gemini_finish.lower())


def transform_gemini_to_openai(gemini_response: Dict[str, Any], model: str) -> OpenAIChatCompletionResponse:
    """
    Transform a Gemini GenerateContent response into OpenAI ChatCompletion format.

    Only the first candidate is used. Token counts come from usageMetadata
    and are zero when the upstream omits it.

    Args:
        gemini_response: The response from Gemini API.
        model: The model name to include in the response.
    """
    content = ""
    finish_reason = "stop"

    candidates = gemini_response.get("candidates") or []
    if candidates:
        candidate = candidates[0]
        parts = (candidate.get("content") or {}).get("parts") or []
        content = "".join(part["text"] for part in parts if "text" in part)
        finish_reason = map_finish_reason(candidate.get("finishReason", ""))

    usage_meta = gemini_response.get("usageMetadata") or {}
    prompt_tokens = usage_meta.get("promptTokenCount", 0)
    completion_tokens = usage_meta.get("candidatesTokenCount", 0)
    usage = OpenAIUsage(
        prompt_tokens=prompt_tokens,
        completion_tokens=completion_tokens,
        total_tokens=usage_meta.get("totalTokenCount", prompt_tokens + completion_tokens),
    )

    return OpenAIChatCompletionResponse(
        id=f"chatcmpl-{uuid.uuid4().hex[:12]}",
        object="chat.completion",
        created=int(time.time()),
        model=model,
        usage=usage,
        choices=[
            OpenAIChoice(
                index=0,
                message=OpenAIChoiceMessage(role="assistant", content=content),
                finish_reason=finish_reason,
            )
        ],
    )
