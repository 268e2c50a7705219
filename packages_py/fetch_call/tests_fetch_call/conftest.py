"""
Shared fixtures for fetch_call tests.
"""
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

import httpx

from fetch_call.adapters.httpx_transport import HttpxTransport
from fetch_call.config import CallConfig
from fetch_call.core.base_client import CallClient


class ScriptedServer:
    """
    httpx.MockTransport handler replaying a list of responses.

    Entries are httpx.Response objects, exceptions (raised with the request
    attached when they are httpx errors) or callables taking the request.
    The last entry repeats once the script is exhausted.
    """

    def __init__(self, *script):
        self.script = list(script)
        self.requests = []

    @property
    def calls(self):
        return len(self.requests)

    async def __call__(self, request):
        self.requests.append(request)
        index = min(len(self.requests), len(self.script)) - 1
        entry = self.script[index]
        if isinstance(entry, httpx.RequestError):
            entry.request = request
            raise entry
        if isinstance(entry, Exception):
            raise entry
        if callable(entry):
            entry = entry(request)
            if hasattr(entry, "__await__"):
                entry = await entry
        return entry


def make_config(server, **kwargs):
    """CallConfig wired to a ScriptedServer through the default httpx transport."""
    client = httpx.AsyncClient(transport=httpx.MockTransport(server))
    kwargs.setdefault("base_url", "https://api.example.com")
    return CallConfig(transport=HttpxTransport(client), **kwargs)


async def chunked(*chunks):
    for chunk in chunks:
        yield chunk


@pytest.fixture
def no_sleep():
    """Skip the waits between attempts; the mock records the delays."""
    with patch("fetch_call.core.orchestrator.async_sleep", new_callable=AsyncMock) as sleep:
        yield sleep


@pytest.fixture
def progress_channel():
    """Mock global progress channel."""
    channel = MagicMock()
    channel.start = MagicMock()
    channel.set = MagicMock()
    channel.done = MagicMock()
    return channel


@pytest.fixture
def serve():
    """Build a CallClient answering from a script; returns (client, server)."""
    def _serve(*script, **config):
        server = ScriptedServer(*script)
        return CallClient(make_config(server, **config)), server

    return _serve


@pytest.fixture
def chunked_body():
    """Async byte-chunk iterator factory for streamed response bodies."""
    return chunked
