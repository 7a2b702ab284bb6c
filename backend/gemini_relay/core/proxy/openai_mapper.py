"""
OpenAI to Gemini Request Mapper

Transforms an OpenAI chat-completion request into a Gemini generateContent
request body.
"""
from typing import Any, Dict, List

from .openai_models import OpenAIRequest

# Legacy OpenAI model names (map to Gemini)
MODEL_MAPPING = {
    "gpt-4": "gemini-1.5-pro",
    "gpt-4-turbo": "gemini-1.5-pro",
    "gpt-4o": "gemini-1.5-pro",
    "gpt-4o-mini": "gemini-1.5-flash",
    "gpt-3.5-turbo": "gemini-1.5-flash",
}

DEFAULT_MODEL = "gemini-1.5-flash"


def map_model(requested_model: str) -> str:
    """Map an incoming model name to a Gemini model."""
    if requested_model in MODEL_MAPPING:
        return MODEL_MAPPING[requested_model]
    if requested_model.startswith("gemini-"):
        return requested_model
    return DEFAULT_MODEL


def transform_openai_to_gemini(request: OpenAIRequest) -> Dict[str, Any]:
    """
    Transform an OpenAI ChatCompletion request into a Gemini GenerateContent body.

    Role "user" is kept; every other role becomes "model".
    """
    contents: List[Dict[str, Any]] = [
        {
            "role": "user" if msg.role == "user" else "model",
            "parts": [{"text": msg.content}],
        }
        for msg in request.messages
    ]

    body: Dict[str, Any] = {"contents": contents}

    gen_config: Dict[str, Any] = {}
    if request.temperature is not None:
        gen_config["temperature"] = request.temperature
    if request.max_tokens is not None:
        gen_config["maxOutputTokens"] = request.max_tokens
    if gen_config:
        body["generationConfig"] = gen_config

    return body
