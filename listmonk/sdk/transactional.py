"""Transactional email."""

from __future__ import annotations

import json
import logging
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import Any, Union

from ._attrs import add_optional, enum_value, require
from .exceptions import ClientStoppedError, ListmonkError, ValidationError
from .models import ContentType
from .result import Result
from .server import Server, get_config, lookup, request

logger = logging.getLogger(__name__)

TX_PATH = "/api/tx"

# Transactional messages cannot be richtext.
TX_CONTENT_TYPES = (ContentType.HTML, ContentType.MARKDOWN, ContentType.PLAIN)


def _content_type(value: Any) -> str:
    content_type = enum_value(ContentType, value, "content_type")
    if content_type not in {member.value for member in TX_CONTENT_TYPES}:
        raise ValidationError(
            "content_type must be one of: html, markdown, plain", field="content_type"
        )
    return content_type


def _build_message(attrs: Mapping[str, Any]) -> dict[str, Any]:
    message = {
        "subscriber_email": require(attrs, "subscriber_email", strip=True).lower(),
        "template_id": require(attrs, "template_id"),
        "data": attrs.get("data") or {},
        "messenger": attrs.get("messenger") or "email",
        "content_type": _content_type(attrs.get("content_type") or ContentType.HTML),
        "headers": attrs.get("headers") or [],
    }
    return add_optional(message, attrs, "from_email")


def check_attachments(paths: Sequence[Union[str, Path]]) -> list[Path]:
    """Return the attachment paths, failing if any is not a regular file."""
    checked = []
    for raw in paths:
        path = Path(raw)
        if not path.exists():
            raise ValidationError(f"Attachment file not found: {path}", field="attachments")
        if not path.is_file():
            raise ValidationError(
                f"Attachment path is not a file: {path}", field="attachments"
            )
        checked.append(path)
    return checked


async def send_email(server: Server, attrs: Mapping[str, Any]) -> Result[bool]:
    """Send a transactional email built from a template.

    Parameters
    ----------
    server : ClientServer or str
        Client handle or registered name
    attrs : mapping
        ``subscriber_email`` and ``template_id`` (required),
        ``from_email``, ``data`` (exposed to the template as
        ``{{ .Tx.Data.* }}``), ``messenger`` (default "email"),
        ``content_type`` (html, markdown or plain; default html),
        ``headers`` (list of single-entry dicts) and ``attachments``
        (file paths)

    Returns
    -------
    Result[bool]
        Whether Listmonk accepted the message

    Notes
    -----
    Messages with attachments are posted as multipart form data using the
    handle's current configuration, outside the handle's request queue.
    """
    try:
        message = _build_message(attrs)
        attachments = check_attachments(attrs.get("attachments") or [])
    except ValidationError as exc:
        return Result.failure(exc)

    if not attachments:
        result = await request(server, "POST", TX_PATH, json=message)
        if not result.ok:
            return Result.failure(result.error)
        return Result.success(result.value.get("data") is True)

    try:
        handle = lookup(server)
        config = await get_config(handle)
    except ListmonkError as exc:
        return Result.failure(exc)
    if not handle.alive:
        return Result.failure(ClientStoppedError(f"Client {handle.ref} is not running"))

    files: list[tuple[str, Any]] = [("data", (None, json.dumps(message), "application/json"))]
    files.extend(("file", (path.name, path.read_bytes())) for path in attachments)

    logger.debug("Sending transactional email with %d attachment(s)", len(attachments))
    result = await handle.http.send_multipart(config, TX_PATH, files=files)
    if not result.ok:
        return Result.failure(result.error)

    body = result.value
    if isinstance(body, dict):
        body = body.get("data", body)
    return Result.success(body is True)
