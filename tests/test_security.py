from __future__ import annotations

import ssl

import pytest

from candlepin_client.exceptions import ConfigurationError
from candlepin_client.security import (
    build_ssl_context,
    load_certificate,
    load_private_key,
    read_certificate,
    read_private_key,
    sanitize_headers,
)

from conftest import Identity


def test_sanitize_headers_redacts_credentials() -> None:
    headers = {"Authorization": "Basic YWRtaW46YWRtaW4=", "Accept": "application/json"}
    assert sanitize_headers(headers) == {"Authorization": "[REDACTED]", "Accept": "application/json"}


def test_insecure_context() -> None:
    context = build_ssl_context(insecure=True, ca_path="/does/not/matter")
    assert context.verify_mode == ssl.CERT_NONE
    assert context.check_hostname is False


def test_ca_bundle_is_trusted(tmp_path, identity: Identity) -> None:
    bundle = tmp_path / "ca.pem"
    bundle.write_text(identity.cert_pem)

    context = build_ssl_context(insecure=False, ca_path=str(bundle))

    assert context.verify_mode == ssl.CERT_REQUIRED
    subjects = [dict(item[0] for item in cert["subject"]) for cert in context.get_ca_certs()]
    assert {"commonName": "test-consumer"} in subjects


def test_missing_ca_bundle(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="CA certificates"):
        build_ssl_context(insecure=False, ca_path=str(tmp_path / "missing.pem"))


def test_client_identity_is_loaded(identity: Identity) -> None:
    context = build_ssl_context(
        insecure=True,
        client_cert=load_certificate(identity.cert_pem),
        client_key=load_private_key(identity.key_pem),
    )
    assert isinstance(context, ssl.SSLContext)


def test_client_identity_requires_both_parts(identity: Identity) -> None:
    with pytest.raises(ConfigurationError, match="together"):
        build_ssl_context(insecure=True, client_cert=load_certificate(identity.cert_pem))


def test_invalid_pem() -> None:
    with pytest.raises(ConfigurationError, match="certificate"):
        load_certificate("garbage")
    with pytest.raises(ConfigurationError, match="private key"):
        load_private_key(b"garbage")


def test_unreadable_pem_files(tmp_path) -> None:
    with pytest.raises(ConfigurationError, match="cannot read client certificate"):
        read_certificate(tmp_path / "missing.pem")
    with pytest.raises(ConfigurationError, match="cannot read client key"):
        read_private_key(tmp_path)
