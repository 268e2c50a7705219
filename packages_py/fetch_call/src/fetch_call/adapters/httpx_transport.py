"""
Default transport backed by httpx.AsyncClient.
"""
from collections.abc import AsyncIterable, Iterable, Mapping
import logging
from typing import Any, AsyncIterator, Optional

import httpx

from ..types import TransportRequest

logger = logging.getLogger("fetch_call.httpx_transport")

CHUNK_SIZE = 64 * 1024


def _as_bytes(chunk: Any) -> bytes:
    return chunk.encode("utf-8") if isinstance(chunk, str) else bytes(chunk)


async def _iter_sync_body(body: Any) -> AsyncIterator[bytes]:
    """Feed a file object or sync iterable to an AsyncClient chunk by chunk."""
    if hasattr(body, "read"):
        while True:
            chunk = body.read(CHUNK_SIZE)
            if not chunk:
                return
            yield _as_bytes(chunk)
    else:
        for chunk in body:
            yield _as_bytes(chunk)


def request_content(body: Any) -> Any:
    """
    Adapt a request body to something httpx.AsyncClient accepts as `content`.

    str/bytes and async iterables pass through; bytearray and memoryview are
    copied to bytes; files and sync iterables are wrapped in an async
    generator, so a one-shot body is consumed by the first send only.
    """
    if body is None or isinstance(body, (str, bytes)):
        return body
    if isinstance(body, (bytearray, memoryview)):
        return bytes(body)
    if isinstance(body, AsyncIterable):
        return body
    if hasattr(body, "read") or isinstance(body, Iterable):
        return _iter_sync_body(body)
    raise ValueError(f"Unsupported request body type: {type(body).__name__}")


class HttpxTransport:
    """
    Transport sending each attempt through an httpx.AsyncClient.

    Responses are opened in streaming mode so the body can be read
    incrementally; whoever consumes the body closes the response. An
    injected client is left open on `aclose()`, one created here is closed.
    Redirects are followed unless `follow_redirects=False` is passed; with
    `follow_redirects=None` the client's own setting applies.

    Example:
        transport = HttpxTransport(httpx.AsyncClient(base_url="https://api.example.com"))
        response = await transport(url, TransportRequest(method="GET", headers=headers))
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        follow_redirects: Optional[bool] = True,
        **client_kwargs: Any,
    ) -> None:
        if client is not None and client_kwargs:
            raise ValueError("Pass either an httpx.AsyncClient or client options, not both")
        self._owns_client = client is None
        self._client = client if client is not None else httpx.AsyncClient(**client_kwargs)
        self._follow_redirects = follow_redirects

    @property
    def client(self) -> httpx.AsyncClient:
        return self._client

    async def __call__(self, url: str, request: TransportRequest) -> httpx.Response:
        body = request.body
        if isinstance(body, Mapping):
            http_request = self._client.build_request(
                request.method, url, headers=request.headers, data=body
            )
        else:
            http_request = self._client.build_request(
                request.method, url, headers=request.headers, content=request_content(body)
            )

        if request.credentials == "omit" and "cookie" in http_request.headers:
            del http_request.headers["cookie"]

        logger.debug(f"HttpxTransport: {request.method} {url}")
        if self._follow_redirects is None:
            return await self._client.send(http_request, stream=True)
        return await self._client.send(
            http_request, stream=True, follow_redirects=self._follow_redirects
        )

    async def aclose(self) -> None:
        """Close the underlying client if this transport created it."""
        if self._owns_client:
            await self._client.aclose()
