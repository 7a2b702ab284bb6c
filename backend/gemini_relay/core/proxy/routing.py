"""
Relay Route Classification

Decides whether a request path is a unary or streaming generation call and
pulls the model name out of it.

Path format: /v1beta/models/{model}:generateContent
             /v1beta/models/{model}:streamGenerateContent
"""
import re
from dataclasses import dataclass

from gemini_relay.core.errors import InvalidArgumentError, NotFoundError

STREAM_MARKER = ":streamGenerateContent"
UNARY_MARKER = ":generateContent"

MODEL_PATTERN = re.compile(r"models/(.+?):(streamGenerateContent|generateContent)")


@dataclass(frozen=True)
class RelayRoute:
    model: str
    stream: bool

    @property
    def method(self) -> str:
        return "streamGenerateContent" if self.stream else "generateContent"


def classify_route(path: str) -> RelayRoute:
    """
    Classify a request path.

    Raises:
        NotFoundError: The path carries no generation marker.
        InvalidArgumentError: The marker is present but no model name is.
    """
    if STREAM_MARKER in path:
        stream = True
    elif UNARY_MARKER in path:
        stream = False
    else:
        raise NotFoundError("Endpoint not found.")

    match = MODEL_PATTERN.search(path)
    if not match or not match.group(1).strip("/"):
        raise InvalidArgumentError("Request path does not contain a valid model name.")
    return RelayRoute(model=match.group(1), stream=stream)


def is_api_version(segment: str) -> bool:
    """True for version prefixes such as v1, v1beta, v1alpha."""
    return segment.startswith("v1")
