"""
OpenAI Protocol Models

These Pydantic models define the structure of the OpenAI chat-completion
requests and responses accepted by the compatibility endpoint.
"""
from typing import List, Optional

from pydantic import BaseModel


class OpenAIMessage(BaseModel):
    role: str
    content: str = ""


class OpenAIRequest(BaseModel):
    model: str
    messages: List[OpenAIMessage]
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None


# --- OpenAI Response Models ---
class OpenAIChoiceMessage(BaseModel):
    role: str = "assistant"
    content: str = ""


class OpenAIChoice(BaseModel):
    index: int = 0
    message: OpenAIChoiceMessage
    finish_reason: Optional[str] = "stop"


class OpenAIUsage(BaseModel):
    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


class OpenAIChatCompletionResponse(BaseModel):
    id: str
    object: str = "chat.completion"
    created: int
    model: str
    usage: OpenAIUsage
    choices: List[OpenAIChoice]
