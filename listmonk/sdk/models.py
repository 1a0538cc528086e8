"""Typed records for Listmonk API resources.

Records decode leniently: an enum value the SDK does not recognise falls
back to a documented default instead of failing, and malformed
timestamps decode to ``None``.
"""

from __future__ import annotations

import enum
from datetime import datetime
from typing import Any, Optional

from pydantic import BaseModel, Field, field_validator
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ProtocolError, ValidationError
from .result import Result


class SubscriberStatus(str, enum.Enum):
    ENABLED = "enabled"
    DISABLED = "disabled"
    BLOCKLISTED = "blocklisted"


class ListType(str, enum.Enum):
    PUBLIC = "public"
    PRIVATE = "private"


class OptinType(str, enum.Enum):
    SINGLE = "single"
    DOUBLE = "double"


class CampaignType(str, enum.Enum):
    REGULAR = "regular"
    OPTIN = "optin"


class ContentType(str, enum.Enum):
    RICHTEXT = "richtext"
    HTML = "html"
    MARKDOWN = "markdown"
    PLAIN = "plain"


class CampaignStatus(str, enum.Enum):
    DRAFT = "draft"
    SCHEDULED = "scheduled"
    RUNNING = "running"
    PAUSED = "paused"
    FINISHED = "finished"
    CANCELLED = "cancelled"


class TemplateType(str, enum.Enum):
    CAMPAIGN = "campaign"
    TX = "tx"


def parse_enum(enum_cls: type[enum.Enum], value: Any, default: Any) -> Any:
    """Map a wire value onto ``enum_cls``, or ``default`` if unknown."""
    try:
        return enum_cls(value)
    except (ValueError, TypeError):
        return default


def parse_datetime(value: Any) -> Optional[datetime]:
    if isinstance(value, datetime):
        return value
    if not isinstance(value, str):
        return None
    try:
        return datetime.fromisoformat(value)
    except ValueError:
        return None


def extract_list_ids(lists: Optional[list[Any]]) -> list[int]:
    """Pull list ids out of a list of list objects and/or bare ids."""
    ids = []
    for item in lists or []:
        if isinstance(item, dict) and item.get("id") is not None:
            ids.append(item["id"])
        elif isinstance(item, int) and not isinstance(item, bool):
            ids.append(item)
    return ids


class _Record(BaseModel):
    @classmethod
    def from_api(cls, data: Any):
        """Create a record from API response data.

        Raises ``ProtocolError`` when ``data`` is not an object or has
        fields of the wrong type.
        """
        if not isinstance(data, dict):
            raise ProtocolError(
                f"Expected a {cls.__name__} object, got {type(data).__name__}",
                response_body=data,
            )
        try:
            return cls.model_validate(data)
        except PydanticValidationError as exc:
            raise ProtocolError(
                f"Malformed {cls.__name__} in response: {exc}", response_body=data
            ) from exc

    def to_api(self) -> dict[str, Any]:
        """Convert the record to its wire representation, dropping unset fields."""
        return {
            key: value
            for key, value in self.model_dump(mode="json").items()
            if value is not None
        }

    def merge(self, **changes: Any):
        """Return a copy with ``changes`` applied and re-validated."""
        try:
            return type(self).model_validate({**self.model_dump(), **changes})
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid {type(self).__name__} attributes: {exc}") from exc

    @field_validator("created_at", "updated_at", mode="before", check_fields=False)
    @classmethod
    def coerce_timestamps(cls, value: Any) -> Optional[datetime]:
        return parse_datetime(value)


def decode(record_cls: type[_Record], data: Any) -> Result:
    """Decode one record, returning a ``ProtocolError`` for a malformed body."""
    try:
        return Result.success(record_cls.from_api(data))
    except ProtocolError as exc:
        return Result.failure(exc)


def decode_all(record_cls: type[_Record], rows: Any) -> Result:
    """Decode a list of records; one malformed row fails the whole list."""
    if not isinstance(rows, list):
        return Result.failure(
            ProtocolError(f"Expected a list of {record_cls.__name__}", response_body=rows)
        )
    try:
        return Result.success([record_cls.from_api(row) for row in rows])
    except ProtocolError as exc:
        return Result.failure(exc)

class Subscriber(_Record):
    """A Listmonk subscriber."""

    id: Optional[int] = None
    uuid: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None
    status: Optional[SubscriberStatus] = None
    lists: list[Any] = Field(default_factory=list)
    attribs: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> Optional[SubscriberStatus]:
        return parse_enum(SubscriberStatus, value, None)

    @field_validator("lists", mode="before")
    @classmethod
    def coerce_lists(cls, value: Any) -> list[Any]:
        return value or []

    @field_validator("attribs", mode="before")
    @classmethod
    def coerce_attribs(cls, value: Any) -> dict[str, Any]:
        return value or {}

    @property
    def list_ids(self) -> list[int]:
        return extract_list_ids(self.lists)

    def to_payload(
        self, list_ids: Optional[list[int]] = None, preconfirm: bool = True
    ) -> dict[str, Any]:
        """Build the body for a full-record PUT of this subscriber."""
        payload = {
            "email": self.email,
            "name": self.name,
            "status": (self.status or SubscriberStatus.ENABLED).value,
            "lists": self.list_ids if list_ids is None else list_ids,
            "attribs": self.attribs or {},
            "preconfirm_subscriptions": preconfirm,
        }
        return {key: value for key, value in payload.items() if value is not None}


class MailingList(_Record):
    """A Listmonk mailing list."""

    id: Optional[int] = None
    uuid: Optional[str] = None
    name: Optional[str] = None
    type: ListType = ListType.PUBLIC
    optin: OptinType = OptinType.SINGLE
    tags: list[str] = Field(default_factory=list)
    description: Optional[str] = None
    subscriber_count: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, value: Any) -> ListType:
        return parse_enum(ListType, value, ListType.PUBLIC)

    @field_validator("optin", mode="before")
    @classmethod
    def coerce_optin(cls, value: Any) -> OptinType:
        return parse_enum(OptinType, value, OptinType.SINGLE)

    @field_validator("tags", mode="before")
    @classmethod
    def coerce_tags(cls, value: Any) -> list[str]:
        return value or []


class Campaign(_Record):
    """A Listmonk campaign."""

    id: Optional[int] = None
    uuid: Optional[str] = None
    name: Optional[str] = None
    subject: Optional[str] = None
    from_email: Optional[str] = None
    body: Optional[str] = None
    altbody: Optional[str] = None
    type: CampaignType = CampaignType.REGULAR
    content_type: ContentType = ContentType.RICHTEXT
    status: CampaignStatus = CampaignStatus.DRAFT
    lists: list[Any] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    template_id: Optional[int] = None
    messenger: Optional[str] = None
    headers: Any = Field(default_factory=dict)
    send_at: Optional[datetime] = None
    started_at: Optional[datetime] = None
    to_send: Optional[int] = None
    sent: Optional[int] = None
    views: Optional[int] = None
    clicks: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, value: Any) -> CampaignType:
        return parse_enum(CampaignType, value, CampaignType.REGULAR)

    @field_validator("content_type", mode="before")
    @classmethod
    def coerce_content_type(cls, value: Any) -> ContentType:
        return parse_enum(ContentType, value, ContentType.RICHTEXT)

    @field_validator("status", mode="before")
    @classmethod
    def coerce_status(cls, value: Any) -> CampaignStatus:
        return parse_enum(CampaignStatus, value, CampaignStatus.DRAFT)

    @field_validator("lists", "tags", mode="before")
    @classmethod
    def coerce_sequences(cls, value: Any) -> list[Any]:
        return value or []

    @field_validator("headers", mode="before")
    @classmethod
    def coerce_headers(cls, value: Any) -> Any:
        return value if value is not None else {}

    @field_validator("send_at", "started_at", mode="before")
    @classmethod
    def coerce_schedule(cls, value: Any) -> Optional[datetime]:
        return parse_datetime(value)

    @property
    def list_ids(self) -> list[int]:
        return extract_list_ids(self.lists)

    def to_payload(self, list_ids: Optional[list[int]] = None) -> dict[str, Any]:
        """Build the body for a full-record PUT of this campaign."""
        payload = {
            "name": self.name,
            "subject": self.subject,
            "from_email": self.from_email,
            "body": self.body,
            "altbody": self.altbody,
            "type": self.type.value,
            "content_type": self.content_type.value,
            "lists": self.list_ids if list_ids is None else list_ids,
            "tags": self.tags or [],
            "template_id": self.template_id,
            "messenger": self.messenger,
            "headers": self.headers if self.headers is not None else {},
            "send_at": self.send_at.isoformat() if self.send_at else None,
        }
        return {key: value for key, value in payload.items() if value is not None}


class Template(_Record):
    """A Listmonk template."""

    id: Optional[int] = None
    name: Optional[str] = None
    subject: Optional[str] = None
    body: Optional[str] = None
    type: TemplateType = TemplateType.CAMPAIGN
    is_default: Optional[bool] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("type", mode="before")
    @classmethod
    def coerce_type(cls, value: Any) -> TemplateType:
        return parse_enum(TemplateType, value, TemplateType.CAMPAIGN)

    def to_payload(self) -> dict[str, Any]:
        """Build the body for a full-record PUT of this template."""
        payload = {
            "name": self.name,
            "subject": self.subject,
            "body": self.body,
            "type": self.type.value,
            "is_default": bool(self.is_default),
        }
        return {key: value for key, value in payload.items() if value is not None}
