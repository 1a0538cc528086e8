"""Helpers for turning caller-supplied attribute maps into API payloads."""

from __future__ import annotations

import enum
from collections.abc import Mapping
from typing import Any

from .exceptions import ValidationError


def require(attrs: Mapping[str, Any], field: str, *, strip: bool = False) -> Any:
    """Return ``attrs[field]``, raising ``ValidationError`` when it is missing.

    ``None`` and empty strings count as missing.
    """
    value = attrs.get(field)
    if isinstance(value, str):
        if strip:
            value = value.strip()
        if not value:
            value = None
    if value is None:
        raise ValidationError(f"{field} is required", field=field)
    return value


def enum_value(enum_cls: type[enum.Enum], value: Any, field: str) -> str:
    """Return the wire string for ``value``, which may be a member or its value."""
    try:
        return enum_cls(value).value
    except (ValueError, TypeError):
        allowed = ", ".join(member.value for member in enum_cls)
        raise ValidationError(f"{field} must be one of: {allowed}", field=field) from None


def add_optional(
    payload: dict[str, Any], attrs: Mapping[str, Any], *keys: str
) -> dict[str, Any]:
    """Copy each of ``keys`` from ``attrs`` into ``payload`` when not None."""
    for key in keys:
        if attrs.get(key) is not None:
            payload[key] = attrs[key]
    return payload
