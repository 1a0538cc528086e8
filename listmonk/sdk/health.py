"""Instance health check."""

from __future__ import annotations

from .result import Result
from .server import Server, request


async def healthy(server: Server) -> Result[bool]:
    """Return whether the Listmonk instance reports itself healthy.

    A 2xx answer of ``{"data": true}`` means healthy and any other 2xx
    body means unhealthy; non-2xx answers and transport failures are
    returned as errors.
    """
    result = await request(server, "GET", "/api/health")
    if not result.ok:
        return Result.failure(result.error)
    return Result.success(result.value.get("data") is True)
