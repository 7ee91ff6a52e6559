"""
Typed errors for the glossary service.

Every error raised on purpose is a :class:`GlossaryError`.  Each subclass
carries the HTTP status and the ``error`` name used in the JSON envelope
``{"error": ..., "message": ...}``.

Hierarchy::

    GlossaryError
    ├── ValidationError   400
    ├── NotFoundError     404
    ├── ConflictError     409
    ├── CompletionError   502  upstream generation failed (after retries)
    ├── ConfigError       503  a required setting is missing
    └── BadGatewayError   502  the gateway could not reach an upstream

Store-level absence is *not* an error: ``TermStore.get`` returns ``None`` and
``TermStore.delete`` returns ``False``.  Routers turn those into
:class:`NotFoundError`.

Usage:
    from glossary.core.errors import ConflictError

    if await store.find_duplicate_name(name):
        raise ConflictError("Term already exists")
"""

from __future__ import annotations

from typing import Any


class GlossaryError(Exception):
    """Base class for all deliberate glossary errors."""

    status_code: int = 500
    error: str = "ServerError"

    def __init__(
        self,
        message: str,
        *,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.cause = cause
        if cause is not None:
            self.__cause__ = cause

    def to_dict(self) -> dict[str, Any]:
        """The wire envelope for this error."""
        return {"error": self.error, "message": self.message}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.message!r})"


class ValidationError(GlossaryError):
    """Request input is missing or malformed."""

    status_code = 400
    error = "ValidationError"


class NotFoundError(GlossaryError):
    """The addressed term does not exist."""

    status_code = 404
    error = "NotFound"


class ConflictError(GlossaryError):
    """A term with the same (case-insensitive) name already exists."""

    status_code = 409
    error = "Conflict"


class CompletionError(GlossaryError):
    """The text-generation service failed, possibly after retries."""

    status_code = 502
    error = "CompletionError"

    def __init__(
        self,
        message: str,
        *,
        status: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        super().__init__(message, cause=cause)
        self.status = status

    def to_dict(self) -> dict[str, Any]:
        body = super().to_dict()
        if self.status is not None:
            body["status"] = self.status
        return body


class ConfigError(GlossaryError):
    """A setting needed for this operation is not configured."""

    status_code = 503
    error = "ServiceUnavailable"


class BadGatewayError(GlossaryError):
    """The gateway could not reach an upstream service."""

    status_code = 502
    error = "BadGateway"


__all__ = [
    "GlossaryError",
    "ValidationError",
    "NotFoundError",
    "ConflictError",
    "CompletionError",
    "ConfigError",
    "BadGatewayError",
]
