"""Connection settings for each client variant."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any, Mapping

import httpx
from cryptography import x509
from pydantic import BaseModel, ConfigDict, field_validator

from .security import load_certificate, load_private_key


class ClientConfig(BaseModel):
    """Settings shared by every client.

    Field names are the complete set of options a client accepts. ``context``
    always starts with ``/``, including after assignment.
    """

    model_config = ConfigDict(
        extra="forbid",
        validate_assignment=True,
        arbitrary_types_allowed=True,
    )

    host: str = "localhost"
    port: int = 8443
    context: str | None = "/candlepin"
    use_ssl: bool = True
    # Test deployments mostly run with self-signed certificates.
    insecure: bool = True
    ca_path: Path | None = None
    connection_timeout: float = 3
    debug: bool = False

    @field_validator("context")
    @classmethod
    def _normalize_context(cls, value: str | None) -> str | None:
        if value is not None and not value.startswith("/"):
            return f"/{value}"
        return value

    @field_validator("port")
    @classmethod
    def _check_port(cls, value: int) -> int:
        if not 0 < value < 65536:
            raise ValueError("port must be between 1 and 65535")
        return value

    @field_validator("connection_timeout")
    @classmethod
    def _check_timeout(cls, value: float) -> float:
        if value <= 0:
            raise ValueError("connection_timeout must be greater than 0")
        return value

    @classmethod
    def option_defaults(cls) -> dict[str, Any]:
        return {name: field.get_default(call_default_factory=True) for name, field in cls.model_fields.items()}

    @property
    def scheme(self) -> str:
        return "https" if self.use_ssl else "http"

    @property
    def base_url(self) -> str:
        url = httpx.URL(scheme=self.scheme, host=self.host, port=self.port, path=self.context or "")
        return str(url)


class CertificateClientConfig(ClientConfig):
    client_cert: x509.Certificate | None = None
    client_key: Any = None

    @field_validator("client_cert", mode="before")
    @classmethod
    def _parse_cert(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            return load_certificate(value)
        return value

    @field_validator("client_key", mode="before")
    @classmethod
    def _parse_key(cls, value: Any) -> Any:
        if isinstance(value, (str, bytes)):
            return load_private_key(value)
        if value is not None and not hasattr(value, "private_bytes"):
            raise ValueError("client_key must be a private key or PEM text")
        return value


class BasicAuthClientConfig(ClientConfig):
    username: str = "admin"
    password: str = "admin"


class OAuthClientConfig(ClientConfig):
    oauth_key: str | None = None
    oauth_secret: str | None = None


def options_from_env(prefix: str = "CANDLEPIN_", *, environ: Mapping[str, str] | None = None) -> dict[str, str]:
    """Collect shared client options from ``<prefix><OPTION>`` environment variables.

    Values stay strings; the config model coerces them on construction.
    """
    environ = os.environ if environ is None else environ
    options: dict[str, str] = {}
    for name in ClientConfig.model_fields:
        value = environ.get(f"{prefix}{name.upper()}")
        if value is not None:
            options[name] = value
    return options
