"""Pytest configuration and fixtures."""

import inspect
import json
import uuid

import httpx
import pytest
import pytest_asyncio

from listmonk.sdk._http import HTTPClient
from listmonk.sdk.config import ListmonkConfig
from listmonk.sdk.server import start, stop


class FakeListmonk:
    """In-memory Listmonk API that records every request it receives.

    Routes are keyed by method and path. A route is either a canned
    response (rebuilt for every hit) or a handler taking the request.
    Unknown routes answer 404 like the real API.
    """

    def __init__(self):
        self.routes = {}
        self.requests = []

    def add(self, method, path, *, status=200, json=None, text=None, handler=None):
        if handler is None:
            def handler(request, status=status, body=json, text=text):
                if text is not None:
                    return httpx.Response(status, text=text)
                if body is not None:
                    return httpx.Response(status, json=body)
                return httpx.Response(status)
        self.routes[(method, path)] = handler

    async def handle(self, request):
        self.requests.append(request)
        route = self.routes.get((request.method, request.url.path))
        if route is None:
            return httpx.Response(404, json={"message": "Not found"})
        response = route(request)
        if inspect.isawaitable(response):
            response = await response
        return response

    def transport(self):
        return httpx.MockTransport(self.handle)

    def sent(self, method=None, path=None):
        """Return recorded requests, optionally filtered by method and path."""
        return [
            request
            for request in self.requests
            if (method is None or request.method == method)
            and (path is None or request.url.path == path)
        ]


def body_of(request):
    """Decode a recorded JSON request body."""
    return json.loads(request.content)


def page_of(results, total=None):
    """Build a paginated Listmonk envelope."""
    return {
        "data": {
            "results": results,
            "total": len(results) if total is None else total,
            "per_page": len(results),
            "page": 1,
        }
    }


@pytest.fixture
def fake():
    """Fake Listmonk instance."""
    return FakeListmonk()


@pytest.fixture
def config():
    """Complete connection settings pointing at the fake instance."""
    return ListmonkConfig.new(
        url="http://listmonk.test", username="api-user", password="api-secret"
    )


@pytest.fixture
def http_client(fake):
    """HTTP client wired to the fake instance."""
    return HTTPClient(transport=fake.transport())


@pytest.fixture
def unique_name():
    """Registry name that no other test uses."""
    return f"client-{uuid.uuid4().hex[:8]}"


@pytest_asyncio.fixture
async def handle(config, http_client):
    """Running client handle, stopped again after the test."""
    server = (await start(config, http_client=http_client)).unwrap()
    yield server
    if server.alive:
        await stop(server)
    await http_client.aclose()
