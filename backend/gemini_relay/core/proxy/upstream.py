"""
Upstream Client

Handles making requests to the Google Gemini API over raw HTTP.
"""
import json
import logging
from typing import Any, AsyncGenerator, AsyncIterator, Dict, Mapping, Optional

import httpx

from gemini_relay.core.errors import BadGatewayError, UpstreamError

logger = logging.getLogger(__name__)

# Request headers copied from the client on passthrough calls
FORWARDED_HEADERS = (
    "content-type",
    "accept",
    "user-agent",
    "accept-language",
    "accept-encoding",
    "x-goog-api-client",
)

USER_AGENT = "gemini-relay/python/1.0"


def _decode_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return None


class PassthroughResponse:
    """An open upstream response together with the client that owns it."""

    def __init__(self, client: httpx.AsyncClient, response: httpx.Response):
        self._client = client
        self.response = response

    @property
    def status_code(self) -> int:
        return self.response.status_code

    @property
    def headers(self) -> httpx.Headers:
        return self.response.headers

    def aiter_raw(self) -> AsyncIterator[bytes]:
        return self.response.aiter_raw()

    async def aclose(self) -> None:
        await self.response.aclose()
        await self._client.aclose()


class GeminiUpstream:
    """
    Thin async client for the Gemini REST API.

    A fresh httpx.AsyncClient is opened per call. `transport` lets tests swap
    the network for an httpx.MockTransport.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(timeout=self.timeout, transport=self._transport)

    def model_url(self, version: str, model: str, method: str) -> str:
        return f"{self.base_url}/{version}/models/{model}:{method}"

    @staticmethod
    def _headers(api_key: str) -> Dict[str, str]:
        return {
            "x-goog-api-key": api_key,
            "Content-Type": "application/json",
            "User-Agent": USER_AGENT,
        }

    async def generate_content(
        self,
        model: str,
        body: Dict[str, Any],
        api_key: str,
        version: str = "v1beta",
    ) -> Dict[str, Any]:
        """
        Make a non-streaming generateContent request.

        Returns:
            The JSON response from Gemini.

        Raises:
            UpstreamError: Gemini answered with a non-2xx status.
            BadGatewayError: Gemini could not be reached or sent no JSON.
        """
        url = self.model_url(version, model, "generateContent")
        try:
            async with self._client() as client:
                response = await client.post(url, json=body, headers=self._headers(api_key))
        except httpx.HTTPError as e:
            logger.warning(f"[Upstream] generateContent for {model} failed: {e}")
            raise BadGatewayError(f"Upstream request failed: {e}") from e

        if response.is_error:
            logger.warning(f"[Upstream] generateContent for {model} returned {response.status_code}")
            raise UpstreamError(response.status_code, _decode_body(response), response.text)

        result = _decode_body(response)
        if not isinstance(result, dict):
            raise BadGatewayError("Upstream returned a non-JSON response.")
        return result

    async def stream_generate_content(
        self,
        model: str,
        body: Dict[str, Any],
        api_key: str,
        version: str = "v1beta",
    ) -> AsyncGenerator[Dict[str, Any], None]:
        """
        Open a streamGenerateContent request.

        The upstream response is opened and checked before this returns, so a
        failure surfaces here rather than halfway through a client stream.

        Returns:
            An async iterator of decoded JSON chunks, in upstream order. It
            closes the upstream connection once exhausted.

        Raises:
            BadGatewayError: Gemini could not be reached or answered non-2xx.
        """
        url = self.model_url(version, model, "streamGenerateContent")
        client = self._client()
        request = client.build_request(
            "POST", url, params={"alt": "sse"}, json=body, headers=self._headers(api_key)
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            logger.warning(f"[Upstream] streamGenerateContent for {model} failed: {e}")
            raise BadGatewayError(f"Upstream stream could not be opened: {e}") from e

        if response.is_error:
            await response.aread()
            await response.aclose()
            await client.aclose()
            logger.warning(f"[Upstream] streamGenerateContent for {model} returned {response.status_code}")
            raise BadGatewayError(
                f"Upstream stream returned HTTP {response.status_code}: {response.text[:500]}"
            )

        return self._iter_chunks(client, response)

    @staticmethod
    async def _iter_chunks(
        client: httpx.AsyncClient, response: httpx.Response
    ) -> AsyncGenerator[Dict[str, Any], None]:
        try:
            async for line in response.aiter_lines():
                if not line.startswith("data:"):
                    continue
                data_str = line[5:].strip()
                if not data_str or data_str == "[DONE]":
                    continue
                yield json.loads(data_str)
        finally:
            await response.aclose()
            await client.aclose()

    async def forward(
        self,
        method: str,
        path: str,
        query: Mapping[str, str],
        headers: Mapping[str, str],
        body: bytes,
        api_key: str,
    ) -> PassthroughResponse:
        """
        Forward an arbitrary request to the upstream with the key substituted.

        Only allow-listed request headers are copied. The returned response
        is still streaming; the caller must `aclose()` it once relayed.

        Raises:
            BadGatewayError: Gemini could not be reached.
        """
        params = {k: v for k, v in query.items() if k != "key"}
        out_headers = {k: headers[k] for k in FORWARDED_HEADERS if k in headers}
        out_headers["x-goog-api-key"] = api_key

        client = self._client()
        request = client.build_request(
            method,
            f"{self.base_url}/{path.lstrip('/')}",
            params=params,
            headers=out_headers,
            content=body or None,
        )
        try:
            response = await client.send(request, stream=True)
        except httpx.HTTPError as e:
            await client.aclose()
            logger.warning(f"[Upstream] {method} {path} failed: {e}")
            raise BadGatewayError(f"Upstream request failed: {e}") from e

        return PassthroughResponse(client, response)
