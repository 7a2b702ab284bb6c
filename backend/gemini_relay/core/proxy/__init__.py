"""
Proxy module initialization.
"""
from .openai_models import OpenAIRequest, OpenAIChatCompletionResponse
from .openai_mapper import map_model, transform_openai_to_gemini
from .response_mapper import transform_gemini_to_openai
from .routing import RelayRoute, classify_route
from .sse import relay_sse, sse_frame
from .upstream import GeminiUpstream, PassthroughResponse

__all__ = [
    "OpenAIRequest",
    "OpenAIChatCompletionResponse",
    "map_model",
    "transform_openai_to_gemini",
    "transform_gemini_to_openai",
    "RelayRoute",
    "classify_route",
    "relay_sse",
    "sse_frame",
    "GeminiUpstream",
    "PassthroughResponse",
]
