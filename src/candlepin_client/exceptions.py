"""Client-specific exceptions."""

from __future__ import annotations

from typing import Mapping


class CandlepinError(Exception):
    """Base exception for all Candlepin client failures."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: object = None,
        headers: Mapping[str, str] | None = None,
        request_id: str | None = None,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.body = body
        self.headers = dict(headers) if headers is not None else {}
        self.request_id = request_id
        self.cause = cause

    def __str__(self) -> str:  # pragma: no cover - simple formatting
        if self.status_code is None:
            return self.message
        return f"{self.status_code}: {self.message}"


class ConfigurationError(CandlepinError, ValueError):
    """Raised when an option mapping or client configuration is invalid."""


class ConstructionConflictError(ConfigurationError):
    """Raised when a factory and the caller both supply the certificate or key."""


class MissingKeyError(CandlepinError, KeyError):
    """Raised when required keys are absent from an option mapping."""

    def __init__(self, message: str, *, missing: list[object] | None = None) -> None:
        super().__init__(message)
        self.missing = list(missing or [])


class TransportError(CandlepinError):
    """Raised for network and TLS failures; the httpx exception is kept as the cause."""


class ServerError(CandlepinError):
    """Raised for non-2xx HTTP responses."""
