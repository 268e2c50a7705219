"""
Client facade over the request orchestrator.
"""
import logging
import os
from typing import Any, Optional, Tuple

from ..adapters.httpx_transport import HttpxTransport
from ..auth.token_store import TokenStore
from ..config import CallConfig, RequestOptions, ResolvedConfig, resolve_config
from ..types import CallResult, HttpMethod, Transport
from .orchestrator import RequestOrchestrator

logger = logging.getLogger("fetch_call.base_client")


def _is_ssl_verify_disabled_by_env() -> bool:
    """
    Check if SSL verification is disabled via environment variables.

    Returns True if any of these are set:
    - NODE_TLS_REJECT_UNAUTHORIZED=0
    - SSL_CERT_VERIFY=0
    """
    node_tls = os.environ.get("NODE_TLS_REJECT_UNAUTHORIZED", "")
    ssl_cert_verify = os.environ.get("SSL_CERT_VERIFY", "")
    return node_tls == "0" or ssl_cert_verify == "0"


def resolve_transport(config: CallConfig) -> Tuple[Transport, bool]:
    """
    Pick the transport for a client.

    Order: an explicit transport, then an injected httpx.AsyncClient, then a
    new httpx.AsyncClient owned by the client.

    Returns:
        The transport and whether the client owns (and must close) it

    Raises:
        ValueError: The configured transport is not callable
    """
    if config.transport is not None:
        if not callable(config.transport):
            raise ValueError(f"Invalid transport: {config.transport!r} is not callable")
        return config.transport, False

    if config.httpx_client is not None:
        return HttpxTransport(config.httpx_client), True

    verify_ssl = not _is_ssl_verify_disabled_by_env()
    return HttpxTransport(verify=verify_ssl), True


class CallClient:
    """
    HTTP client with retries, layered event handlers and progress reporting.

    Example:
        async with CallClient(CallConfig(base_url="https://api.example.com")) as client:
            client.token.set("secret")
            result = await client.get("/users", params={"page": 2})
            users = result["content"]
    """

    def __init__(self, config: Optional[CallConfig] = None):
        config = config or CallConfig()
        self._config = resolve_config(config)
        self._transport, self._owns_transport = resolve_transport(config)
        self._token = TokenStore(config.token if isinstance(config.token, str) else None)
        self._orchestrator = RequestOrchestrator(self._config, self._transport, self._token)
        self._closed = False

    @property
    def config(self) -> ResolvedConfig:
        return self._config

    @property
    def token(self) -> TokenStore:
        """Cached bearer token shared by every call of this client."""
        return self._token

    async def request(self, path: str, **options: Any) -> CallResult:
        """
        Make a call.

        Args:
            path: Absolute URL, or a path relative to base_url/default_origin
            **options: Fields of RequestOptions (method, headers, params, json, ...)

        Returns:
            The CallResult, limited to the selected return fields
        """
        if self._closed:
            raise RuntimeError("Client has been closed")
        return await self._orchestrator.execute(path, RequestOptions(**options))

    async def _request_as(self, method: HttpMethod, path: str, options: dict) -> CallResult:
        options["method"] = method
        return await self.request(path, **options)

    async def get(self, path: str, **kwargs: Any) -> CallResult:
        """GET request."""
        return await self._request_as("GET", path, kwargs)

    async def post(self, path: str, **kwargs: Any) -> CallResult:
        """POST request."""
        return await self._request_as("POST", path, kwargs)

    async def put(self, path: str, **kwargs: Any) -> CallResult:
        """PUT request."""
        return await self._request_as("PUT", path, kwargs)

    async def patch(self, path: str, **kwargs: Any) -> CallResult:
        """PATCH request."""
        return await self._request_as("PATCH", path, kwargs)

    async def delete(self, path: str, **kwargs: Any) -> CallResult:
        """DELETE request."""
        return await self._request_as("DELETE", path, kwargs)

    async def head(self, path: str, **kwargs: Any) -> CallResult:
        """HEAD request."""
        return await self._request_as("HEAD", path, kwargs)

    async def options(self, path: str, **kwargs: Any) -> CallResult:
        """OPTIONS request."""
        return await self._request_as("OPTIONS", path, kwargs)

    async def close(self) -> None:
        """Close the client and the transport it owns."""
        if self._closed:
            return
        self._closed = True
        if self._owns_transport:
            aclose = getattr(self._transport, "aclose", None)
            if callable(aclose):
                await aclose()

    async def __aenter__(self) -> "CallClient":
        """Enter async context manager."""
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context manager."""
        await self.close()
