"""Subscriber operations."""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from typing import Any, Optional, Union

from ._attrs import enum_value, require
from ._pagination import fetch_all_pages
from .exceptions import ProtocolError, ValidationError
from .models import Subscriber, SubscriberStatus, decode, decode_all
from .result import Result
from .server import Server, request

logger = logging.getLogger(__name__)

DEFAULT_PER_PAGE = 100

OPTIN_SUCCESS_PHRASES = (
    "Subscribed successfully",
    "Confirmed",
    "no subscriptions to confirm",
    "No subscriptions",
)

_UPDATABLE = ("name", "email", "status", "attribs")


def _query_params(query: Optional[str], list_id: Optional[int]) -> dict[str, Any]:
    params: dict[str, Any] = {"order_by": "updated_at", "order": "DESC"}
    if query is not None:
        params["query"] = query
    if list_id is not None:
        params["list_id"] = list_id
    return params


async def get(
    server: Server,
    *,
    query: Optional[str] = None,
    list_id: Optional[int] = None,
    page: int = 1,
    per_page: int = DEFAULT_PER_PAGE,
) -> Result[list[Subscriber]]:
    """Retrieve every subscriber matching the filters.

    Parameters
    ----------
    server : ClientServer or str
        Client handle or registered name
    query : str, optional
        SQL expression understood by Listmonk, e.g.
        ``"subscribers.attribs->>'city' = 'Portland'"``
    list_id : int, optional
        Only subscribers of this list
    page : int, optional
        First page to fetch. Default is 1
    per_page : int, optional
        Page size used while walking the pages. Default is 100

    Returns
    -------
    Result[list[Subscriber]]
        All matching subscribers in server order
    """
    result = await fetch_all_pages(
        server,
        "/api/subscribers",
        _query_params(query, list_id),
        page=page,
        per_page=per_page,
    )
    if not result.ok:
        return Result.failure(result.error)
    return decode_all(Subscriber, result.value)


async def _get_one(server: Server, query: str) -> Result[Optional[Subscriber]]:
    params = {**_query_params(query, None), "page": 1, "per_page": 1}
    result = await request(server, "GET", "/api/subscribers", params=params)
    if not result.ok:
        return Result.failure(result.error)

    data = result.value.get("data")
    rows = (data.get("results") or []) if isinstance(data, dict) else None
    if not isinstance(rows, list):
        return Result.failure(
            ProtocolError("Unexpected response for /api/subscribers", response_body=result.value)
        )
    if not rows:
        return Result.success(None)
    return decode(Subscriber, rows[0])


async def get_by_email(server: Server, email: str) -> Result[Optional[Subscriber]]:
    """Retrieve a subscriber by email address, or None if there is none."""
    email = email.replace("'", "''")
    return await _get_one(server, f"subscribers.email='{email}'")


async def get_by_id(server: Server, subscriber_id: int) -> Result[Optional[Subscriber]]:
    """Retrieve a subscriber by ID, or None if there is none."""
    return await _get_one(server, f"subscribers.id={int(subscriber_id)}")


async def get_by_uuid(server: Server, uuid: str) -> Result[Optional[Subscriber]]:
    """Retrieve a subscriber by UUID, or None if there is none."""
    uuid = uuid.replace("'", "''")
    return await _get_one(server, f"subscribers.uuid='{uuid}'")


def _create_payload(attrs: Mapping[str, Any]) -> dict[str, Any]:
    return {
        "email": require(attrs, "email", strip=True),
        "name": require(attrs, "name", strip=True),
        "status": enum_value(
            SubscriberStatus, attrs.get("status") or SubscriberStatus.ENABLED, "status"
        ),
        "lists": list(require(attrs, "lists")),
        "preconfirm_subscriptions": attrs.get("preconfirm", True),
        "attribs": attrs.get("attribs") or {},
    }


async def create(server: Server, attrs: Mapping[str, Any]) -> Result[Subscriber]:
    """Create a new subscriber.

    ``attrs`` takes ``email``, ``name`` and ``lists`` (required) plus
    ``status`` (default enabled), ``preconfirm`` (default True) and
    ``attribs``.
    """
    try:
        payload = _create_payload(attrs)
    except ValidationError as exc:
        return Result.failure(exc)

    result = await request(server, "POST", "/api/subscribers", json=payload)
    if not result.ok:
        return Result.failure(result.error)
    return decode(Subscriber, result.value.get("data"))


def merge_list_ids(
    current: Iterable[int],
    add_lists: Optional[Iterable[int]] = None,
    remove_lists: Optional[Iterable[int]] = None,
) -> list[int]:
    """Apply list additions and removals to a subscriber's current lists."""
    ids = (set(current) | set(add_lists or ())) - set(remove_lists or ())
    return sorted(ids)


async def update(
    server: Server, subscriber: Subscriber, attrs: Mapping[str, Any]
) -> Result[Optional[Subscriber]]:
    """Update a subscriber and return the record as stored by the server.

    ``attrs`` may change ``name``, ``email``, ``status`` and ``attribs``
    and adjust membership with ``add_lists`` / ``remove_lists``. The API
    has no partial update, so the whole record is sent back.
    """
    if subscriber.id is None:
        return Result.failure(ValidationError("subscriber id is required", field="id"))

    changes = {key: attrs[key] for key in _UPDATABLE if key in attrs}
    try:
        if changes.get("status") is not None:
            changes["status"] = enum_value(SubscriberStatus, changes["status"], "status")
        updated = subscriber.merge(**changes)
    except ValidationError as exc:
        return Result.failure(exc)

    list_ids = merge_list_ids(
        subscriber.list_ids, attrs.get("add_lists"), attrs.get("remove_lists")
    )
    payload = updated.to_payload(list_ids=list_ids, preconfirm=attrs.get("preconfirm", True))

    result = await request(server, "PUT", f"/api/subscribers/{subscriber.id}", json=payload)
    if not result.ok:
        return Result.failure(result.error)
    return await get_by_id(server, subscriber.id)


async def delete(server: Server, identifier: Union[str, int]) -> Result[bool]:
    """Delete a subscriber by email address or ID.

    An email address that matches no subscriber returns ``False``.
    """
    if isinstance(identifier, str):
        found = await get_by_email(server, identifier)
        if not found.ok:
            return Result.failure(found.error)
        if found.value is None:
            logger.debug("No subscriber with email %s, nothing to delete", identifier)
            return Result.success(False)
        identifier = found.value.id

    result = await request(server, "DELETE", f"/api/subscribers/{identifier}")
    if not result.ok:
        return Result.failure(result.error)
    return Result.success(result.value.get("data") is True)


async def enable(server: Server, subscriber: Subscriber) -> Result[Optional[Subscriber]]:
    return await update(server, subscriber, {"status": SubscriberStatus.ENABLED})


async def disable(server: Server, subscriber: Subscriber) -> Result[Optional[Subscriber]]:
    return await update(server, subscriber, {"status": SubscriberStatus.DISABLED})


async def block(server: Server, subscriber: Subscriber) -> Result[Optional[Subscriber]]:
    """Blocklist (unsubscribe) a subscriber."""
    return await update(server, subscriber, {"status": SubscriberStatus.BLOCKLISTED})


async def confirm_optin(server: Server, subscriber_uuid: str, list_uuid: str) -> Result[bool]:
    """Confirm a double opt-in subscription on behalf of a subscriber.

    The endpoint answers with an HTML page; success is recognised from the
    messages Listmonk renders on it.
    """
    result = await request(
        server,
        "POST",
        f"/subscription/optin/{subscriber_uuid}",
        data={"l": list_uuid, "confirm": "true"},
    )
    if not result.ok:
        return Result.failure(result.error)

    body = result.value.get("data") or result.value
    if not isinstance(body, str):
        return Result.success(False)
    return Result.success(any(phrase in body for phrase in OPTIN_SUCCESS_PHRASES))
