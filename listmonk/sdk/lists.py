"""Mailing list operations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from ._attrs import add_optional, enum_value, require
from ._pagination import fetch_all_pages
from .exceptions import HTTPError, ValidationError
from .models import ListType, MailingList, OptinType, decode, decode_all
from .result import Result
from .server import Server, request

logger = logging.getLogger(__name__)

PER_PAGE_ALL = 1_000_000


async def get(server: Server) -> Result[list[MailingList]]:
    """Retrieve all mailing lists."""
    result = await fetch_all_pages(server, "/api/lists", per_page=PER_PAGE_ALL)
    if not result.ok:
        return Result.failure(result.error)
    return decode_all(MailingList, result.value)


async def get_by_id(server: Server, list_id: int) -> Result[Optional[MailingList]]:
    """Retrieve a mailing list by ID, or None if it does not exist."""
    result = await request(server, "GET", f"/api/lists/{list_id}")
    if not result.ok:
        if isinstance(result.error, HTTPError) and result.error.status_code == 404:
            return Result.success(None)
        return Result.failure(result.error)

    data = result.value.get("data")
    if not isinstance(data, dict):
        return Result.success(None)

    # Some Listmonk versions answer with a results page instead of the list.
    if isinstance(data.get("results"), list):
        data = next(
            (
                row
                for row in data["results"]
                if isinstance(row, dict) and row.get("id") == list_id
            ),
            None,
        )

    if not data:
        return Result.success(None)
    return decode(MailingList, data)


def _create_payload(attrs: Mapping[str, Any]) -> dict[str, Any]:
    payload = {
        "name": require(attrs, "name", strip=True),
        "type": enum_value(ListType, attrs.get("type") or ListType.PUBLIC, "type"),
        "optin": enum_value(OptinType, attrs.get("optin") or OptinType.SINGLE, "optin"),
    }
    return add_optional(payload, attrs, "tags", "description")


async def create(server: Server, attrs: Mapping[str, Any]) -> Result[MailingList]:
    """Create a new mailing list.

    ``attrs`` takes ``name`` (required), ``type`` (public or private,
    default public), ``optin`` (single or double, default single),
    ``tags`` and ``description``.
    """
    try:
        payload = _create_payload(attrs)
    except ValidationError as exc:
        return Result.failure(exc)

    result = await request(server, "POST", "/api/lists", json=payload)
    if not result.ok:
        return Result.failure(result.error)
    return decode(MailingList, result.value.get("data"))


async def delete(server: Server, list_id: int) -> Result[bool]:
    """Delete a mailing list.

    Returns ``False`` without issuing a DELETE when the list does not exist.
    """
    found = await get_by_id(server, list_id)
    if not found.ok:
        return Result.failure(found.error)
    if found.value is None:
        logger.debug("List %s not found, nothing to delete", list_id)
        return Result.success(False)

    result = await request(server, "DELETE", f"/api/lists/{list_id}")
    if not result.ok:
        return Result.failure(result.error)
    return Result.success(result.value.get("data") is True)
