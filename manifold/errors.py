"""Exception hierarchy for the Manifold client.

Every failure a stream can end with is a :class:`ManifoldError` subclass, so a
caller can tell a terminal error apart from a clean end of data.
"""

from __future__ import annotations

from typing import Any

EXPECTED_ARRAY = "expected array"
MISSING_ID = "missing id"


class ManifoldError(Exception):
    """Base exception for all client errors."""

    def __init__(self, message: str, original_error: Exception | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.original_error = original_error


class DecodeError(ManifoldError):
    """Raised when a payload is not valid JSON or does not validate as the requested type."""

    def __init__(
        self, message: str, value: Any | None = None, original_error: Exception | None = None
    ) -> None:
        super().__init__(message, original_error)
        self.value = value


class TransportError(ManifoldError):
    """Raised on network failures, timeouts and non-2xx responses.

    ``status_code`` is ``None`` when no response was received at all.
    """

    def __init__(
        self,
        message: str,
        url: str | None = None,
        status_code: int | None = None,
        body: str | None = None,
        original_error: Exception | None = None,
    ) -> None:
        super().__init__(message, original_error)
        self.url = url
        self.status_code = status_code
        self.body = body

    @property
    def is_network_error(self) -> bool:
        return self.status_code is None


class SchemaViolationError(ManifoldError):
    """Raised when a response breaks the pagination contract."""

    def __init__(self, kind: str, value: Any | None = None, detail: str | None = None) -> None:
        msg = f"Unexpected schema: {kind}"
        if detail:
            msg += f" ({detail})"
        super().__init__(msg)
        self.kind = kind
        self.value = value


class OtherError(ManifoldError):
    """Opaque failure raised by layers built on top of the client."""


class AuthError(ManifoldError):
    """Raised when credentials are missing or unusable."""
