"""Campaign operations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from datetime import datetime, timezone
from typing import Any, Optional

from ._attrs import add_optional, enum_value, require
from ._pagination import fetch_all_pages
from .exceptions import HTTPError, ValidationError
from .models import Campaign, CampaignType, ContentType, decode, decode_all, parse_datetime
from .result import Result
from .server import Server, request

logger = logging.getLogger(__name__)

PER_PAGE_ALL = 1_000_000

_UPDATABLE = (
    "name",
    "subject",
    "from_email",
    "body",
    "altbody",
    "type",
    "content_type",
    "messenger",
    "template_id",
    "tags",
    "headers",
    "send_at",
)


async def get(server: Server) -> Result[list[Campaign]]:
    """Retrieve all campaigns."""
    result = await fetch_all_pages(server, "/api/campaigns", per_page=PER_PAGE_ALL)
    if not result.ok:
        return Result.failure(result.error)
    return decode_all(Campaign, result.value)


async def get_by_id(server: Server, campaign_id: int) -> Result[Optional[Campaign]]:
    """Retrieve a campaign by ID, or None if it does not exist."""
    result = await request(server, "GET", f"/api/campaigns/{campaign_id}")
    if not result.ok:
        if isinstance(result.error, HTTPError) and result.error.status_code == 404:
            return Result.success(None)
        return Result.failure(result.error)

    data = result.value.get("data")
    if not isinstance(data, dict) or not data:
        return Result.success(None)
    return decode(Campaign, data)


async def preview(server: Server, campaign_id: int) -> Result[str]:
    """Render a campaign and return the resulting HTML."""
    result = await request(server, "GET", f"/api/campaigns/{campaign_id}/preview")
    if not result.ok:
        return Result.failure(result.error)

    body = result.value.get("data")
    if isinstance(body, str):
        return Result.success(body)
    return Result.success(str(result.value))


def _format_send_at(value: Any) -> Optional[str]:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, str) and parse_datetime(value) is not None:
        return value
    if value is None:
        return None
    raise ValidationError("send_at must be a datetime or an ISO-8601 string", field="send_at")


def _create_payload(attrs: Mapping[str, Any]) -> dict[str, Any]:
    payload = {
        "name": require(attrs, "name", strip=True),
        "subject": require(attrs, "subject"),
        "lists": list(attrs.get("lists") or [1]),
        "type": enum_value(CampaignType, attrs.get("type") or CampaignType.REGULAR, "type"),
        "content_type": enum_value(
            ContentType, attrs.get("content_type") or ContentType.RICHTEXT, "content_type"
        ),
        "tags": attrs.get("tags") or [],
        "headers": attrs.get("headers") or {},
    }
    add_optional(payload, attrs, "from_email", "body", "altbody", "messenger", "template_id")

    send_at = _format_send_at(attrs.get("send_at"))
    if send_at is not None:
        payload["send_at"] = send_at
    return payload


async def create(server: Server, attrs: Mapping[str, Any]) -> Result[Campaign]:
    """Create a new campaign.

    ``attrs`` takes ``name`` and ``subject`` (required), ``lists``
    (default ``[1]``), ``type`` (default regular), ``content_type``
    (default richtext), ``from_email``, ``body``, ``altbody``,
    ``send_at``, ``messenger``, ``template_id``, ``tags`` and ``headers``.
    """
    try:
        payload = _create_payload(attrs)
    except ValidationError as exc:
        return Result.failure(exc)

    result = await request(server, "POST", "/api/campaigns", json=payload)
    if not result.ok:
        return Result.failure(result.error)
    return decode(Campaign, result.value.get("data"))


def drop_past_send_at(payload: dict[str, Any], now: Optional[datetime] = None) -> dict[str, Any]:
    """Remove a ``send_at`` that lies in the past; the API rejects those."""
    send_at = parse_datetime(payload.get("send_at"))
    if send_at is None:
        return payload
    if send_at.tzinfo is None:
        send_at = send_at.replace(tzinfo=timezone.utc)
    if send_at < (now or datetime.now(timezone.utc)):
        payload = {key: value for key, value in payload.items() if key != "send_at"}
    return payload


async def update(
    server: Server, campaign: Campaign, attrs: Mapping[str, Any]
) -> Result[Optional[Campaign]]:
    """Update a campaign and return the record as stored by the server.

    Accepts the same attributes as ``create``. ``lists`` replaces the
    campaign's lists; otherwise the current lists are kept.
    """
    if campaign.id is None:
        return Result.failure(ValidationError("campaign id is required", field="id"))

    changes = {key: attrs[key] for key in _UPDATABLE if key in attrs}
    try:
        if changes.get("type") is not None:
            changes["type"] = enum_value(CampaignType, changes["type"], "type")
        if changes.get("content_type") is not None:
            changes["content_type"] = enum_value(
                ContentType, changes["content_type"], "content_type"
            )
        if "send_at" in changes:
            _format_send_at(changes["send_at"])
        updated = campaign.merge(**changes)
    except ValidationError as exc:
        return Result.failure(exc)

    list_ids = list(attrs["lists"]) if attrs.get("lists") else campaign.list_ids
    payload = drop_past_send_at(updated.to_payload(list_ids=list_ids))

    result = await request(server, "PUT", f"/api/campaigns/{campaign.id}", json=payload)
    if not result.ok:
        return Result.failure(result.error)
    return await get_by_id(server, campaign.id)


async def delete(server: Server, campaign_id: int) -> Result[bool]:
    """Delete a campaign.

    Returns ``False`` without issuing a DELETE when the campaign does not
    exist.
    """
    found = await get_by_id(server, campaign_id)
    if not found.ok:
        return Result.failure(found.error)
    if found.value is None:
        logger.debug("Campaign %s not found, nothing to delete", campaign_id)
        return Result.success(False)

    result = await request(server, "DELETE", f"/api/campaigns/{campaign_id}")
    if not result.ok:
        return Result.failure(result.error)
    return Result.success(result.value.get("data") is True)
