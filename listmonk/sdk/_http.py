"""Internal HTTP client wrapper for the Listmonk SDK.

This module provides a thin wrapper around httpx that performs one
authenticated round-trip against a Listmonk instance and normalizes the
outcome into a ``Result``. Requests are never retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib.metadata import PackageNotFoundError, version
from typing import Any

import httpx

from .config import ListmonkConfig
from .exceptions import ClientStoppedError, ConnectionError, HTTPError
from .result import Result

logger = logging.getLogger(__name__)

try:
    __version__ = version("listmonk-sdk")
except PackageNotFoundError:  # running from a source checkout
    __version__ = "0.0.0"

USER_AGENT = f"listmonk-python-sdk/{__version__}"


@dataclass
class TimeoutConfig:
    """Configuration for HTTP request timeouts."""

    read: float = 30.0
    connect: float = 10.0
    write: float = 30.0
    pool: float = 30.0


def build_url(base_url: str, path: str) -> str:
    """Join an instance URL and an API path with exactly one slash."""
    if base_url.endswith("/"):
        base_url = base_url[:-1]
    if not path.startswith("/"):
        path = f"/{path}"
    return base_url + path


def decode_body(response: httpx.Response) -> Any:
    """Return the response body as JSON when possible, else as text."""
    if not response.content:
        return None
    try:
        return response.json()
    except ValueError:
        return response.text


def error_from_response(response: httpx.Response) -> HTTPError:
    """Build an ``HTTPError`` from a non-2xx response."""
    status = response.status_code
    body = decode_body(response)

    if isinstance(body, dict):
        if "message" in body:
            message = str(body["message"])
        elif "error" in body:
            message = str(body["error"])
        else:
            message = f"HTTP {status}: {body}"
    elif body is None:
        message = f"HTTP {status}"
    else:
        message = f"HTTP {status}: {body}"

    return HTTPError(message, status_code=status, response_body=body)


class HTTPClient:
    """Async HTTP client used by one client handle."""

    def __init__(
        self,
        timeout_config: TimeoutConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self._client: httpx.AsyncClient | None = None
        self._closed = False
        self.timeout_config = timeout_config or TimeoutConfig()
        self._transport = transport

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            timeout = httpx.Timeout(
                read=self.timeout_config.read,
                connect=self.timeout_config.connect,
                write=self.timeout_config.write,
                pool=self.timeout_config.pool,
            )
            self._client = httpx.AsyncClient(timeout=timeout, transport=self._transport)
        return self._client

    async def _send(
        self, config: ListmonkConfig, method: str, path: str, **kwargs: Any
    ) -> Result[httpx.Response]:
        url = build_url(config.url or "", path)
        if self._closed:
            return Result.failure(ClientStoppedError(f"HTTP client closed, not sending to {url}"))
        headers = kwargs.pop("headers", None) or {}
        headers["User-Agent"] = USER_AGENT

        logger.debug("%s %s", method.upper(), url)
        try:
            resp = await self._get_client().request(
                method.upper(),
                url,
                auth=httpx.BasicAuth(config.username or "", config.password or ""),
                headers=headers,
                **kwargs,
            )
        except httpx.RequestError as exc:
            logger.warning("%s %s failed: %s", method.upper(), url, exc)
            return Result.failure(ConnectionError(url, exc))

        if not 200 <= resp.status_code <= 299:
            error = error_from_response(resp)
            logger.debug("%s %s -> %s", method.upper(), url, resp.status_code)
            return Result.failure(error)

        return Result.success(resp)

    async def request(
        self,
        config: ListmonkConfig,
        method: str,
        path: str,
        *,
        params: Any = None,
        json: Any = None,
        data: Any = None,
        files: Any = None,
    ) -> Result[dict]:
        """Make an authenticated request and return the decoded body.

        Parameters
        ----------
        config : ListmonkConfig
            Validated connection settings to use for this call
        method : str
            HTTP method (GET, POST, etc.)
        path : str
            API path, with or without a leading slash
        params, json, data, files
            Query string, JSON body, form body and multipart parts, passed
            through to httpx

        Returns
        -------
        Result[dict]
            JSON objects are returned as-is; any other payload is wrapped
            as ``{"data": <payload>}``. Failures carry an ``HTTPError`` or
            ``ConnectionError``.
        """
        kwargs = {
            key: value
            for key, value in (("params", params), ("json", json), ("data", data), ("files", files))
            if value is not None
        }
        result = await self._send(config, method, path, **kwargs)
        if not result.ok:
            return Result.failure(result.error)

        resp = result.value
        try:
            body = resp.json()
        except ValueError:
            return Result.success({"data": resp.text})

        if isinstance(body, dict):
            return Result.success(body)
        return Result.success({"data": body})

    async def send_multipart(
        self,
        config: ListmonkConfig,
        path: str,
        *,
        data: dict[str, Any] | None = None,
        files: list[tuple[str, Any]],
    ) -> Result[Any]:
        """POST a multipart body and return the decoded response body.

        Unlike ``request`` the body is not wrapped; JSON is decoded when
        possible and raw text is returned otherwise. Status codes map to
        errors exactly as in ``request``.
        """
        result = await self._send(config, "POST", path, data=data, files=files)
        if not result.ok:
            return Result.failure(result.error)
        return Result.success(decode_body(result.value))

    async def close(self) -> None:
        """Close the underlying HTTP client and release resources."""
        self._closed = True
        if self._client:
            await self._client.aclose()
            self._client = None

    async def aclose(self) -> None:
        """Alias for close() to match expected interface."""
        await self.close()
