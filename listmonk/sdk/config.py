"""Connection settings for the Listmonk SDK."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any, Optional, Union

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .exceptions import ValidationError
from .result import Result

ENV_URL = "LISTMONK_URL"
ENV_USERNAME = "LISTMONK_USERNAME"
ENV_PASSWORD = "LISTMONK_PASSWORD"

_FIELDS = ("url", "username", "password")


class ListmonkConfig(BaseModel):
    """Connection settings for one Listmonk instance."""

    model_config = ConfigDict(frozen=True)

    url: Optional[str] = Field(default=None)
    username: Optional[str] = Field(default=None)
    password: Optional[str] = Field(default=None)

    @classmethod
    def new(
        cls,
        url: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
    ) -> "ListmonkConfig":
        return cls(url=url, username=username, password=password)

    @classmethod
    def from_environment(cls) -> "ListmonkConfig":
        """Create configuration from ``LISTMONK_*`` environment variables."""
        return cls(
            url=_get_env_var(ENV_URL),
            username=_get_env_var(ENV_USERNAME),
            password=_get_env_var(ENV_PASSWORD),
        )

    def __repr_args__(self):
        # Shared by repr() and str(); the password is never rendered.
        for name, value in super().__repr_args__():
            if name == "password" and value:
                value = "***"
            yield name, value


ConfigInput = Union[ListmonkConfig, Mapping[str, Any]]


def normalize_config(config: ConfigInput) -> ListmonkConfig:
    """Accept either a ``ListmonkConfig`` or a mapping of its fields."""
    if isinstance(config, ListmonkConfig):
        return config
    if isinstance(config, Mapping):
        unknown = set(config) - set(_FIELDS)
        if unknown:
            raise ValidationError(
                f"Unknown configuration fields: {', '.join(sorted(unknown))}"
            )
        try:
            return ListmonkConfig(**config)
        except PydanticValidationError as exc:
            raise ValidationError(f"Invalid configuration provided: {exc}") from exc
    raise ValidationError("Invalid configuration provided")


def resolve(explicit: Optional[ConfigInput] = None) -> ListmonkConfig:
    """Merge explicit settings over the environment, field by field.

    An explicit ``None`` or empty string falls back to the matching
    environment variable. The environment is re-read on every call.
    """
    env_config = ListmonkConfig.from_environment()
    if explicit is None:
        return env_config

    config = normalize_config(explicit)
    merged = {
        field: getattr(config, field) or getattr(env_config, field)
        for field in _FIELDS
    }
    return ListmonkConfig(**merged)


def validate_config(config: ListmonkConfig) -> Result[None]:
    """Check that a configuration can be used for requests.

    Checks run in order (url, username, password, url scheme) and the
    first failure is reported.
    """
    for field in _FIELDS:
        if not getattr(config, field):
            return Result.failure(
                ValidationError(f"Missing required configuration: {field}", field=field)
            )

    if not config.url.startswith(("http://", "https://")):
        return Result.failure(
            ValidationError("URL must start with http:// or https://", field="url")
        )

    return Result.success()


def _get_env_var(key: str) -> Optional[str]:
    """Get a trimmed environment variable, treating blank values as unset."""
    value = os.getenv(key)
    if value is None:
        return None
    value = value.strip()
    return value or None


def load_dotenv_for_sdk(path: Optional[Path] = None, *, override: bool = False) -> None:
    """Load ``LISTMONK_*`` variables from a .env file.

    Defaults to ``.env`` in the current working directory; a missing file
    is ignored.
    """
    if path is None:
        path = Path.cwd() / ".env"

    if path.exists():
        load_dotenv(path, override=override)
