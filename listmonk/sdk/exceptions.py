"""Exception classes for the Listmonk SDK.

This module defines the error taxonomy shared by every SDK operation.
Non-raising operations hand these back inside a ``Result``; the
``ListmonkClient`` facade and ``Result.unwrap()`` raise them.
"""

from __future__ import annotations

from typing import Any


class ListmonkError(Exception):
    """Base exception for all Listmonk SDK errors.

    All custom exceptions in the SDK inherit from this base class,
    allowing applications to catch all SDK-specific errors with a
    single except clause if desired.

    Attributes
    ----------
    message : str
        Human-readable description of the failure
    status_code : int or None
        HTTP status code when the failure came from a response, else None
    response_body : Any
        Decoded response body when available
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        response_body: Any = None,
    ):
        self.message = message
        self.status_code = status_code
        self.response_body = response_body
        super().__init__(message)


class ValidationError(ListmonkError):
    """Raised when required input is missing or malformed.

    Detected before any network call is made.

    Attributes
    ----------
    field : str or None
        Name of the offending field, if the failure concerns one
    """

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message)


class HTTPError(ListmonkError):
    """Raised when an HTTP request returns an error status code.

    This exception provides access to both the HTTP status code and
    the decoded response body, allowing for detailed error handling
    based on the specific API error.
    """

    def __init__(self, message: str, status_code: int, response_body: Any = None):
        super().__init__(message, status_code=status_code, response_body=response_body)

    @property
    def body(self) -> Any:
        return self.response_body


class ConnectionError(ListmonkError):
    """Raised when unable to reach the Listmonk API.

    This typically indicates network issues, an incorrect instance URL,
    a timeout, or the Listmonk service being unavailable.

    Attributes
    ----------
    url : str
        The URL that failed
    original_error : Exception
        The underlying exception that caused the failure
    """

    def __init__(self, url: str, original_error: Exception):
        self.url = url
        self.original_error = original_error
        super().__init__(f"Request failed: {original_error}")


class ClientStoppedError(ListmonkError):
    """Raised when a client handle is used after it has been stopped."""


class NameConflictError(ListmonkError):
    """Raised when a client name is already held by a running client."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"A client is already registered under the name {name!r}")


class ProtocolError(ListmonkError):
    """Raised when a response does not have the shape an operation needs."""
