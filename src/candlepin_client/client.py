"""Candlepin clients, one per authentication scheme."""

from __future__ import annotations

import os
import ssl
from typing import Any, ClassVar, Mapping

import httpx
from pydantic import ValidationError

from .config import BasicAuthClientConfig, CertificateClientConfig, ClientConfig, OAuthClientConfig
from .exceptions import CandlepinError, ConfigurationError, ConstructionConflictError
from .logging_config import get_logger
from .models import Consumer
from .options import merge_defaults
from .request_options import RequestOptions
from .resources import CandlepinAPI
from .security import (
    build_ssl_context,
    load_certificate,
    load_private_key,
    read_certificate,
    read_private_key,
)
from .transport import JSONTransport

logger = get_logger(__name__)

# Only the connect phase honours connection_timeout.
DEFAULT_TIMEOUT = 60.0


class NoAuthClient(CandlepinAPI):
    """Client that sends no credentials.

    Options are the fields of :attr:`config_class`; anything else raises
    :class:`ConfigurationError`. ``config`` may be changed afterwards, the
    connection picks the changes up on :meth:`reload`::

        client = NoAuthClient(host="candlepin.example.com", insecure=False, ca_path="/etc/ca.pem")
        client.config.port = 443
        client.reload()
    """

    config_class: ClassVar[type[ClientConfig]] = ClientConfig

    def __init__(
        self,
        *,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
        **options: Any,
    ) -> None:
        self.uuid: str | None = None
        self._transport = transport
        self._async_transport = async_transport
        self.config = self._build_config(options)
        self._connection = self._new_connection()

    @classmethod
    def _build_config(cls, options: Mapping[str, Any]) -> ClientConfig:
        merged = merge_defaults(options, cls.config_class.option_defaults())
        try:
            return cls.config_class(**merged)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid client configuration: {exc}", cause=exc) from exc

    def __enter__(self) -> "NoAuthClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> "NoAuthClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    @property
    def base_url(self) -> str:
        return self.config.base_url

    @property
    def connection(self) -> JSONTransport:
        return self._connection

    def close(self) -> None:
        self.connection.close()

    async def aclose(self) -> None:
        await self.connection.aclose()

    def _new_connection(self) -> JSONTransport:
        connection = self.build_transport()
        logger.debug("transport_built", client=type(self).__name__, base_url=connection.base_url)
        return connection

    def reload(self) -> JSONTransport:
        """Replace the connection with one built from the current ``config``.

        Inside a running event loop, a connection that has served async
        requests must be replaced with :meth:`areload` instead.
        """
        connection = self._new_connection()
        try:
            self._connection.close()
        except CandlepinError:
            connection.close()
            raise
        self._connection = connection
        return connection

    async def areload(self) -> JSONTransport:
        """Like :meth:`reload`, closing the previous async connection pool too."""
        connection = self._new_connection()
        previous, self._connection = self._connection, connection
        await previous.aclose()
        return connection

    def build_transport(self) -> JSONTransport:
        return JSONTransport(
            **self._transport_options(),
            transport=self._transport,
            async_transport=self._async_transport,
        )

    def _ssl_options(self) -> dict[str, Any]:
        ca_path = self.config.ca_path
        return {
            "insecure": self.config.insecure,
            "ca_path": os.fspath(ca_path) if ca_path is not None else None,
        }

    def _transport_options(self) -> dict[str, Any]:
        verify: ssl.SSLContext | bool = True
        if self.config.use_ssl:
            verify = build_ssl_context(**self._ssl_options())
        return {
            "base_url": self.base_url,
            "timeout": httpx.Timeout(DEFAULT_TIMEOUT, connect=self.config.connection_timeout),
            "verify": verify,
            "debug": self.config.debug,
        }

    def request(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.connection.request(method, path, body=body, query=query, headers=headers, options=options)

    def get(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.connection.get(path, query=query, headers=headers, options=options)

    def post(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.connection.post(path, body, query=query, headers=headers, options=options)

    def put(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.connection.put(path, body, query=query, headers=headers, options=options)

    def delete(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.connection.delete(path, query=query, body=body, headers=headers, options=options)

    async def request_async(
        self,
        method: str,
        path: str,
        *,
        body: Any = None,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.connection.request_async(
            method, path, body=body, query=query, headers=headers, options=options
        )

    async def get_async(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.connection.get_async(path, query=query, headers=headers, options=options)

    async def post_async(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.connection.post_async(path, body, query=query, headers=headers, options=options)

    async def put_async(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.connection.put_async(path, body, query=query, headers=headers, options=options)

    async def delete_async(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.connection.delete_async(path, query=query, body=body, headers=headers, options=options)


class CertificateClient(NoAuthClient):
    """Client authenticating with an X.509 certificate over mutual TLS.

    ``client_cert`` and ``client_key`` accept cryptography objects or PEM text.
    """

    config_class: ClassVar[type[ClientConfig]] = CertificateClientConfig
    config: CertificateClientConfig

    @staticmethod
    def _reject_explicit_identity(options: Mapping[str, Any]) -> None:
        if "client_cert" in options or "client_key" in options:
            raise ConstructionConflictError("Cannot specify client_cert or client_key for this method")

    @classmethod
    def from_registration(
        cls,
        response: Consumer | Mapping[str, Any],
        *,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
        **options: Any,
    ) -> "CertificateClient":
        """Build a client from the consumer document returned by registration."""
        cls._reject_explicit_identity(options)
        try:
            consumer = Consumer.from_response(response)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid registration response: {exc}", cause=exc) from exc
        if consumer.id_cert is None:
            raise ConfigurationError("registration response carries no identity certificate")

        client = cls(
            transport=transport,
            async_transport=async_transport,
            client_cert=load_certificate(consumer.id_cert.cert),
            client_key=load_private_key(consumer.id_cert.key),
            **options,
        )
        client.uuid = consumer.uuid
        return client

    @classmethod
    def from_files(
        cls,
        cert: str | os.PathLike[str],
        key: str | os.PathLike[str],
        *,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
        **options: Any,
    ) -> "CertificateClient":
        """Build a client from PEM certificate and key files."""
        cls._reject_explicit_identity(options)
        return cls(
            transport=transport,
            async_transport=async_transport,
            client_cert=read_certificate(cert),
            client_key=read_private_key(key),
            **options,
        )

    def _ssl_options(self) -> dict[str, Any]:
        ssl_options = super()._ssl_options()
        ssl_options["client_cert"] = self.config.client_cert
        ssl_options["client_key"] = self.config.client_key
        return ssl_options

    def _transport_options(self) -> dict[str, Any]:
        if (self.config.client_cert is None) != (self.config.client_key is None):
            raise ConfigurationError("client_cert and client_key must be supplied together")
        return super()._transport_options()


class BasicAuthClient(NoAuthClient):
    """Client sending HTTP basic credentials with every request, not only after a 401."""

    config_class: ClassVar[type[ClientConfig]] = BasicAuthClientConfig
    config: BasicAuthClientConfig

    def _transport_options(self) -> dict[str, Any]:
        transport_options = super()._transport_options()
        transport_options["auth"] = httpx.BasicAuth(self.config.username, self.config.password)
        return transport_options


class OAuthClient(NoAuthClient):
    """Client carrying OAuth consumer credentials.

    Request signing is not implemented: requests go out unsigned, exactly as
    from :class:`NoAuthClient`.
    """

    config_class: ClassVar[type[ClientConfig]] = OAuthClientConfig
    config: OAuthClientConfig

    def build_transport(self) -> JSONTransport:
        if self.config.oauth_key is not None:
            logger.warning("oauth_signing_not_implemented", oauth_key=self.config.oauth_key)
        return super().build_transport()
