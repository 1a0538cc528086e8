"""Sequential page fetching for Listmonk collection endpoints."""

from __future__ import annotations

import logging
from typing import Any, Optional

from .exceptions import ProtocolError
from .result import Result
from .server import Server, request

logger = logging.getLogger(__name__)

# Guards against a server whose reported total never lets the loop finish.
MAX_PAGES = 10_000


async def fetch_all_pages(
    server: Server,
    path: str,
    params: Optional[dict[str, Any]] = None,
    *,
    page: int = 1,
    per_page: int = 100,
    max_pages: int = MAX_PAGES,
) -> Result[list[dict[str, Any]]]:
    """Fetch ``path`` page by page and concatenate the ``results`` arrays.

    Pages are requested one after another starting at ``page`` until
    ``page * per_page >= total`` as reported by the server, or until a
    page comes back empty.
    """
    collected: list[dict[str, Any]] = []

    for _ in range(max_pages):
        query = {**(params or {}), "page": page, "per_page": per_page}
        result = await request(server, "GET", path, params=query)
        if not result.ok:
            return result

        data = result.value.get("data")
        if not isinstance(data, dict) or not isinstance(data.get("results"), list):
            return Result.failure(
                ProtocolError(f"Unexpected response for {path}", response_body=result.value)
            )

        results = data["results"]
        total = data.get("total") or 0
        collected.extend(results)
        logger.debug("%s page %d: %d of %d", path, page, len(collected), total)

        if not results or page * per_page >= total:
            return Result.success(collected)
        page += 1

    return Result.failure(
        ProtocolError(f"Gave up on {path} after {max_pages} pages", response_body=None)
    )
