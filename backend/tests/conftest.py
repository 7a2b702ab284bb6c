"""
Shared fixtures: a relay app whose upstream is an httpx.MockTransport.
"""
from typing import Callable, List

import httpx
import pytest
from fastapi.testclient import TestClient

from gemini_relay.core.config import Settings
from gemini_relay.main import create_app

UPSTREAM_BASE = "https://upstream.test"


def streamed_response(status_code: int, content: bytes, content_type: str = "application/json") -> httpx.Response:
    """
    An upstream response that has not been read yet, so the relay can
    stream its raw bytes the way it does for a real connection.
    """
    return httpx.Response(
        status_code,
        headers={"Content-Type": content_type},
        stream=httpx.ByteStream(content),
    )


class UpstreamRecorder:
    """Records upstream requests and answers them with a configurable handler."""

    def __init__(self):
        self.requests: List[httpx.Request] = []
        self.handler: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"candidates": []}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.handler(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def upstream() -> UpstreamRecorder:
    return UpstreamRecorder()


@pytest.fixture
def make_client(upstream):
    """Factory building a TestClient for the given Settings overrides."""

    def _make(**overrides) -> TestClient:
        settings = Settings(base_url=UPSTREAM_BASE, **overrides)
        app = create_app(settings, transport=httpx.MockTransport(upstream))
        return TestClient(app)

    return _make


@pytest.fixture
def client(make_client) -> TestClient:
    return make_client()
