"""TLS and credential helpers."""

from __future__ import annotations

import os
import ssl
import tempfile
from pathlib import Path
from typing import Any, Mapping

from cryptography import x509
from cryptography.hazmat.primitives import serialization

from .exceptions import ConfigurationError


SENSITIVE_HEADERS = {
    "authorization",
    "cookie",
    "proxy-authorization",
}


def sanitize_headers(headers: Mapping[str, str]) -> dict[str, str]:
    """Return headers with sensitive values redacted for logging."""
    redacted: dict[str, str] = {}
    for key, value in headers.items():
        if key.lower() in SENSITIVE_HEADERS:
            redacted[key] = "[REDACTED]"
        else:
            redacted[key] = value
    return redacted


def _as_bytes(pem: str | bytes) -> bytes:
    return pem.encode() if isinstance(pem, str) else pem


def load_certificate(pem: str | bytes) -> x509.Certificate:
    """Parse a PEM encoded X.509 certificate."""
    try:
        return x509.load_pem_x509_certificate(_as_bytes(pem))
    except ValueError as exc:
        raise ConfigurationError("invalid PEM certificate", cause=exc) from exc


def load_private_key(pem: str | bytes, password: bytes | None = None) -> Any:
    """Parse a PEM encoded private key."""
    try:
        return serialization.load_pem_private_key(_as_bytes(pem), password=password)
    except (ValueError, TypeError) as exc:
        raise ConfigurationError("invalid PEM private key", cause=exc) from exc


def _read_pem(path: str | os.PathLike[str], what: str) -> bytes:
    try:
        return Path(path).read_bytes()
    except OSError as exc:
        raise ConfigurationError(f"cannot read {what} from {os.fspath(path)}: {exc.strerror}", cause=exc) from exc


def read_certificate(path: str | os.PathLike[str]) -> x509.Certificate:
    return load_certificate(_read_pem(path, "client certificate"))


def read_private_key(path: str | os.PathLike[str]) -> Any:
    return load_private_key(_read_pem(path, "client key"))


def _load_client_identity(context: ssl.SSLContext, cert: x509.Certificate, key: Any) -> None:
    # ssl only loads certificate chains from files.
    with tempfile.TemporaryDirectory(prefix="candlepin-") as workdir:
        cert_file = Path(workdir) / "cert.pem"
        key_file = Path(workdir) / "key.pem"
        cert_file.write_bytes(cert.public_bytes(serialization.Encoding.PEM))
        key_file.write_bytes(
            key.private_bytes(
                encoding=serialization.Encoding.PEM,
                format=serialization.PrivateFormat.PKCS8,
                encryption_algorithm=serialization.NoEncryption(),
            )
        )
        os.chmod(key_file, 0o600)
        try:
            context.load_cert_chain(certfile=str(cert_file), keyfile=str(key_file))
        except ssl.SSLError as exc:
            raise ConfigurationError("client certificate does not match private key", cause=exc) from exc


def build_ssl_context(
    *,
    insecure: bool,
    ca_path: str | None = None,
    client_cert: x509.Certificate | None = None,
    client_key: Any = None,
) -> ssl.SSLContext:
    """Build the SSL context for a transport.

    ``insecure`` disables hostname and certificate verification; otherwise
    ``ca_path`` (a bundle file or a hashed certificate directory) is added to
    the trust store when given.
    """
    if (client_cert is None) != (client_key is None):
        raise ConfigurationError("client_cert and client_key must be supplied together")

    context = ssl.create_default_context()
    if insecure:
        context.check_hostname = False
        context.verify_mode = ssl.CERT_NONE
    elif ca_path:
        try:
            if os.path.isdir(ca_path):
                context.load_verify_locations(capath=ca_path)
            else:
                context.load_verify_locations(cafile=ca_path)
        except (OSError, ssl.SSLError) as exc:
            raise ConfigurationError(f"cannot load CA certificates from {ca_path}", cause=exc) from exc

    if client_cert is not None:
        _load_client_identity(context, client_cert, client_key)
    return context
