"""
Credential Resolution

Extracts the caller's API key and decides which key is sent upstream.

Inbound extraction tries, in order:
- Authorization: Bearer <token>
- x-goog-api-key header
- x-api-key header
- ?key= query parameter

With a key pool configured, the inbound key is checked against the gate key
and a random pool key is used for the upstream call. Without a pool the
inbound key goes upstream as-is.
"""
import hmac
import random
from typing import Callable, Mapping, Optional, Sequence, Tuple

from fastapi import Request

from gemini_relay.core.config import Settings
from gemini_relay.core.errors import UnauthenticatedError

Extractor = Callable[[Mapping[str, str], Mapping[str, str]], Optional[str]]


def from_bearer(headers: Mapping[str, str], query: Mapping[str, str]) -> Optional[str]:
    auth_header = headers.get("authorization", "")
    if auth_header.startswith("Bearer "):
        return auth_header[7:].strip() or None
    return None


def from_goog_header(headers: Mapping[str, str], query: Mapping[str, str]) -> Optional[str]:
    return headers.get("x-goog-api-key") or None


def from_api_key_header(headers: Mapping[str, str], query: Mapping[str, str]) -> Optional[str]:
    return headers.get("x-api-key") or None


def from_query(headers: Mapping[str, str], query: Mapping[str, str]) -> Optional[str]:
    return query.get("key") or None


EXTRACTORS: Tuple[Extractor, ...] = (
    from_bearer,
    from_goog_header,
    from_api_key_header,
    from_query,
)


def extract_credential(
    headers: Mapping[str, str],
    query: Mapping[str, str],
    extractors: Sequence[Extractor] = EXTRACTORS,
) -> Optional[str]:
    """Return the first non-empty credential found, or None."""
    for extractor in extractors:
        value = extractor(headers, query)
        if value:
            return value
    return None


class KeyPool:
    """Read-only pool of interchangeable upstream keys, picked uniformly at random."""

    def __init__(self, keys: Sequence[str], rng: Optional[random.Random] = None):
        self._keys: Tuple[str, ...] = tuple(keys)
        self._rng = rng or random.SystemRandom()

    def __len__(self) -> int:
        return len(self._keys)

    def __bool__(self) -> bool:
        return bool(self._keys)

    def choose(self) -> str:
        if not self._keys:
            raise ValueError("Key pool is empty.")
        return self._rng.choice(self._keys)


def resolve_upstream_key(inbound: Optional[str], settings: Settings, pool: KeyPool) -> str:
    """
    Validate the inbound credential and return the key for the upstream call.

    Raises:
        UnauthenticatedError: If the credential is missing or fails the gate.
    """
    if not inbound:
        raise UnauthenticatedError("API key is missing from headers.")

    # Gemini keys are plain ASCII and must fit in an outbound header
    if not inbound.isascii() or not inbound.isprintable():
        raise UnauthenticatedError("API key is not valid.")

    if not pool:
        return inbound

    if settings.gate_key and not hmac.compare_digest(
        inbound.encode("utf-8"), settings.gate_key.encode("utf-8")
    ):
        raise UnauthenticatedError("API key is not valid.")
    return pool.choose()


def resolve_request_key(request: Request) -> str:
    """Resolve the upstream key for an incoming FastAPI request."""
    inbound = extract_credential(request.headers, request.query_params)
    return resolve_upstream_key(inbound, request.app.state.settings, request.app.state.key_pool)


def mask_key(key: str) -> str:
    if len(key) <= 8:
        return "***"
    return f"{key[:4]}...{key[-4:]}"
