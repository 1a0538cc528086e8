"""Process-style client handles for the Listmonk SDK.

A ``ClientServer`` owns one ``ListmonkConfig`` and one HTTP client and
services every message sent to it from a single worker task, one message
at a time, in the order the messages were queued. Configuration reads,
configuration updates and API requests all go through that mailbox, so a
request never observes a half-applied configuration.

Handles can be addressed by the ``ClientServer`` object or by the name it
was registered under::

    result = await start({"url": "https://lists.example.com",
                          "username": "api", "password": "secret"},
                         name="production")
    await request("production", "GET", "/api/lists")
    await set_config("production", new_config)
    await stop("production")

Do not use a handle after ``stop()``; such calls fail with
``ClientStoppedError``.
"""

from __future__ import annotations

import asyncio
import enum
import itertools
import logging
import threading
from typing import Any, Optional, Union

from ._http import HTTPClient
from .config import ConfigInput, ListmonkConfig, normalize_config, resolve, validate_config
from .exceptions import ClientStoppedError, ListmonkError, NameConflictError
from .result import Result

logger = logging.getLogger(__name__)


class ServerState(enum.Enum):
    CREATED = "created"
    RUNNING = "running"
    STOPPED = "stopped"


_GET_CONFIG = "get_config"
_SET_CONFIG = "set_config"
_REQUEST = "request"
_STOP = "stop"

_ids = itertools.count(1)

_registry: dict[str, "ClientServer"] = {}
_registry_lock = threading.Lock()


class ClientServer:
    """Worker owning the configuration of one logical Listmonk connection.

    Use ``start()`` rather than instantiating directly.

    Parameters
    ----------
    config : ListmonkConfig
        Already validated connection settings
    name : str, optional
        Symbolic name the handle is registered under
    http_client : HTTPClient, optional
        HTTP client to use; a new one is created when omitted
    """

    def __init__(
        self,
        config: ListmonkConfig,
        name: Optional[str] = None,
        http_client: Optional[HTTPClient] = None,
    ):
        self.ref = f"ClientServer.{next(_ids)}"
        self.name = name
        self.state = ServerState.CREATED
        self._config = config
        self._http = http_client or HTTPClient()
        self._mailbox: asyncio.Queue = asyncio.Queue()
        self._task: Optional[asyncio.Task] = None

    def __repr__(self) -> str:
        label = f" name={self.name!r}" if self.name else ""
        return f"<{self.ref}{label} {self.state.value}>"

    @property
    def http(self) -> HTTPClient:
        return self._http

    @property
    def alive(self) -> bool:
        return (
            self.state is ServerState.RUNNING
            and self._task is not None
            and not self._task.done()
        )

    def _run(self) -> None:
        self._task = asyncio.get_running_loop().create_task(
            self._loop(), name=f"listmonk-{self.ref}"
        )
        self.state = ServerState.RUNNING

    async def call(self, *message: Any) -> Any:
        """Queue a message and wait for the worker's reply."""
        if not self.alive:
            raise ClientStoppedError(f"Client {self.ref} is not running")

        future = asyncio.get_running_loop().create_future()
        self._mailbox.put_nowait((message, future))
        return await future

    async def _loop(self) -> None:
        future: Optional[asyncio.Future] = None
        try:
            while True:
                message, future = await self._mailbox.get()
                if message[0] == _STOP:
                    await self._http.aclose()
                    self._reply(future, None)
                    return

                try:
                    reply = await self._handle(message)
                except Exception as exc:
                    logger.exception("Client %s failed handling %s", self.ref, message[0])
                    if not future.done():
                        future.set_exception(exc)
                else:
                    self._reply(future, reply)
        finally:
            if future is not None and not future.done():
                future.set_exception(ClientStoppedError(f"Client {self.ref} was terminated"))
            self._terminate()

    @staticmethod
    def _reply(future: asyncio.Future, value: Any) -> None:
        if not future.done():
            future.set_result(value)

    async def _handle(self, message: tuple) -> Any:
        tag = message[0]

        if tag == _GET_CONFIG:
            return self._config

        if tag == _SET_CONFIG:
            new_config = message[1]
            result = validate_config(new_config)
            if result.ok:
                self._config = new_config
                logger.info("Client %s configuration replaced (url=%s)", self.ref, new_config.url)
            else:
                logger.warning(
                    "Client %s rejected configuration update: %s", self.ref, result.error
                )
            return result

        if tag == _REQUEST:
            _, method, path, options = message
            return await self._http.request(self._config, method, path, **options)

        raise ValueError(f"Unknown message {tag!r}")

    def _terminate(self) -> None:
        self.state = ServerState.STOPPED
        _unregister(self)

        while not self._mailbox.empty():
            _, future = self._mailbox.get_nowait()
            if not future.done():
                future.set_exception(ClientStoppedError(f"Client {self.ref} is not running"))


Server = Union[ClientServer, str]


def _register(name: str, server: ClientServer) -> Optional[NameConflictError]:
    with _registry_lock:
        current = _registry.get(name)
        if current is not None and current.state is not ServerState.STOPPED:
            return NameConflictError(name)
        _registry[name] = server
    return None


def _unregister(server: ClientServer) -> None:
    if server.name is None:
        return
    with _registry_lock:
        if _registry.get(server.name) is server:
            del _registry[server.name]


def whereis(name: str) -> Optional[ClientServer]:
    """Return the running client registered under ``name``, if any."""
    with _registry_lock:
        server = _registry.get(name)
    if server is not None and server.alive:
        return server
    return None


def lookup(server: Server) -> ClientServer:
    """Resolve a handle or a registered name to its ``ClientServer``."""
    if isinstance(server, ClientServer):
        return server
    found = whereis(server)
    if found is None:
        raise ClientStoppedError(f"No running client registered under {server!r}")
    return found


async def start(
    config: Optional[ConfigInput] = None,
    name: Optional[str] = None,
    *,
    http_client: Optional[HTTPClient] = None,
) -> Result[ClientServer]:
    """Start a new client handle.

    Parameters
    ----------
    config : ListmonkConfig or mapping, optional
        Connection settings; fields left out fall back to the
        ``LISTMONK_*`` environment variables
    name : str, optional
        Register the handle under this name as well
    http_client : HTTPClient, optional
        HTTP client the handle will own

    Returns
    -------
    Result[ClientServer]
        The running handle, or a ``ValidationError`` /
        ``NameConflictError``. No worker is started on failure.
    """
    try:
        resolved = resolve(config)
    except ListmonkError as exc:
        return Result.failure(exc)

    validation = validate_config(resolved)
    if not validation.ok:
        return Result.failure(validation.error)

    server = ClientServer(resolved, name=name, http_client=http_client)
    if name is not None:
        conflict = _register(name, server)
        if conflict is not None:
            return Result.failure(conflict)

    server._run()
    logger.info("Started Listmonk client %r for %s", server, resolved.url)
    return Result.success(server)


async def get_config(server: Server) -> ListmonkConfig:
    """Return the handle's current configuration.

    Raises
    ------
    ClientStoppedError
        If the handle is stopped or the name is not registered
    """
    return await lookup(server).call(_GET_CONFIG)


async def set_config(server: Server, new_config: ConfigInput) -> Result[None]:
    """Replace the handle's configuration.

    The new value is validated as given, without environment fallbacks.
    A rejected configuration leaves the current one untouched.
    """
    try:
        handle = lookup(server)
        config = normalize_config(new_config)
        return await handle.call(_SET_CONFIG, config)
    except ListmonkError as exc:
        return Result.failure(exc)


async def request(server: Server, method: str, path: str, **options: Any) -> Result[dict]:
    """Run one API request through the handle.

    ``options`` accepts ``params``, ``json``, ``data`` and ``files``. The
    request uses the configuration current when the worker services it.
    """
    try:
        return await lookup(server).call(_REQUEST, method, path, options)
    except ClientStoppedError as exc:
        return Result.failure(exc)


async def stop(server: Server) -> Result[None]:
    """Stop the handle after the messages already queued have been served.

    Stopping a handle twice returns ``ClientStoppedError``.
    """
    try:
        handle = lookup(server)
        await handle.call(_STOP)
    except ClientStoppedError as exc:
        return Result.failure(exc)

    logger.info("Stopped Listmonk client %r", handle)
    return Result.success()
