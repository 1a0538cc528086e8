"""Template operations."""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Optional

from ._attrs import add_optional, enum_value, require
from .exceptions import HTTPError, ValidationError
from .models import Template, TemplateType, decode, decode_all
from .result import Result
from .server import Server, request

logger = logging.getLogger(__name__)

CONTENT_PLACEHOLDER = '{{ template "content" . }}'

_UPDATABLE = ("name", "subject", "body", "type")


async def get(server: Server) -> Result[list[Template]]:
    """Retrieve all templates."""
    result = await request(server, "GET", "/api/templates")
    if not result.ok:
        return Result.failure(result.error)

    return decode_all(Template, result.value.get("data"))


async def get_by_id(server: Server, template_id: int) -> Result[Optional[Template]]:
    """Retrieve a template by ID, or None if it does not exist."""
    result = await request(server, "GET", f"/api/templates/{template_id}")
    if not result.ok:
        if isinstance(result.error, HTTPError) and result.error.status_code == 404:
            return Result.success(None)
        return Result.failure(result.error)

    data = result.value.get("data")
    if not isinstance(data, dict) or not data:
        return Result.success(None)
    return decode(Template, data)


async def preview(server: Server, template_id: int) -> Result[str]:
    """Render a template with sample content and return the HTML."""
    result = await request(server, "GET", f"/api/templates/{template_id}/preview")
    if not result.ok:
        return Result.failure(result.error)

    body = result.value.get("data")
    if isinstance(body, str):
        return Result.success(body)
    return Result.success(str(result.value))


def _check_body(body: str) -> None:
    if CONTENT_PLACEHOLDER not in body:
        raise ValidationError(
            f"The placeholder {CONTENT_PLACEHOLDER} should appear in the template body",
            field="body",
        )


def _create_payload(attrs: Mapping[str, Any]) -> dict[str, Any]:
    name = require(attrs, "name", strip=True)
    body = require(attrs, "body")
    _check_body(body)

    payload = {
        "name": name,
        "body": body,
        "type": enum_value(TemplateType, attrs.get("type") or TemplateType.CAMPAIGN, "type"),
        "is_default": bool(attrs.get("is_default", False)),
    }
    return add_optional(payload, attrs, "subject")


async def create(server: Server, attrs: Mapping[str, Any]) -> Result[Template]:
    """Create a new template.

    ``attrs`` takes ``name`` and ``body`` (required; the body must include
    ``{{ template "content" . }}``), ``type`` (campaign or tx, default
    campaign), ``subject`` and ``is_default``.
    """
    try:
        payload = _create_payload(attrs)
    except ValidationError as exc:
        return Result.failure(exc)

    result = await request(server, "POST", "/api/templates", json=payload)
    if not result.ok:
        return Result.failure(result.error)
    return decode(Template, result.value.get("data"))


async def update(
    server: Server, template: Template, attrs: Mapping[str, Any]
) -> Result[Optional[Template]]:
    """Update a template's name, subject, body or type."""
    if template.id is None:
        return Result.failure(ValidationError("template id is required", field="id"))

    changes = {key: attrs[key] for key in _UPDATABLE if key in attrs}
    try:
        if changes.get("type") is not None:
            changes["type"] = enum_value(TemplateType, changes["type"], "type")
        if changes.get("body") is not None:
            _check_body(changes["body"])
        payload = template.merge(**changes).to_payload()
    except ValidationError as exc:
        return Result.failure(exc)

    result = await request(server, "PUT", f"/api/templates/{template.id}", json=payload)
    if not result.ok:
        return Result.failure(result.error)
    return await get_by_id(server, template.id)


async def delete(server: Server, template_id: int) -> Result[bool]:
    """Delete a template, returning ``False`` if it does not exist."""
    found = await get_by_id(server, template_id)
    if not found.ok:
        return Result.failure(found.error)
    if found.value is None:
        logger.debug("Template %s not found, nothing to delete", template_id)
        return Result.success(False)

    result = await request(server, "DELETE", f"/api/templates/{template_id}")
    if not result.ok:
        return Result.failure(result.error)
    return Result.success(result.value.get("data") is True)


async def set_default(server: Server, template_id: int) -> Result[bool]:
    """Make a template the default, returning ``False`` if it does not exist."""
    found = await get_by_id(server, template_id)
    if not found.ok:
        return Result.failure(found.error)
    if found.value is None:
        return Result.success(False)

    result = await request(server, "PUT", f"/api/templates/{template_id}/default")
    if not result.ok:
        return Result.failure(result.error)
    return Result.success(result.value.get("data") is True)
