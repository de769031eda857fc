"""JSON aware HTTP transport shared by every Candlepin client."""

from __future__ import annotations

import asyncio
import json
import re
import ssl
from types import MappingProxyType
from typing import Any, Mapping

import httpx

from ._version import __version__
from .exceptions import CandlepinError, ServerError, TransportError
from .logging_config import get_logger
from .request_options import RequestOptions
from .security import sanitize_headers

logger = get_logger(__name__)

JSON_CONTENT_TYPE_PATTERN = re.compile(r"(application|text)/(x-)?json", re.IGNORECASE)
REQUEST_ID_HEADER = "x-candlepin-request-uuid"


def is_json_content_type(content_type: str | None) -> bool:
    return bool(content_type) and JSON_CONTENT_TYPE_PATTERN.search(content_type) is not None


def encode_body(body: Any, content_type: str) -> tuple[str | bytes | None, dict[str, str]]:
    """Serialize ``body`` for sending.

    Returns the payload and the headers it requires. ``None`` sends nothing and
    ``str``/``bytes`` are sent untouched; anything else is JSON encoded and
    gets ``content_type`` for this request only.
    """
    if body is None:
        return None, {}
    if isinstance(body, (str, bytes, bytearray)):
        return bytes(body) if isinstance(body, bytearray) else body, {}
    return json.dumps(body), {"Content-Type": content_type}


def decode_body(response: httpx.Response) -> Any:
    """Return the decoded JSON document or the raw text of ``response``."""
    if not is_json_content_type(response.headers.get("content-type")):
        return response.text
    if not response.content:
        return None
    return response.json()


def _coerce_query_params(query: Mapping[str, Any] | None) -> dict[str, Any]:
    if query is None:
        return {}
    normalized: dict[str, Any] = {}
    for key, value in query.items():
        if value is None:
            continue
        if isinstance(value, (list, tuple)):
            normalized[key] = ["" if v is None else v for v in value]
            continue
        normalized[key] = value
    return normalized


def _normalize_headers(headers: Mapping[str, str] | None) -> dict[str, str]:
    if not headers:
        return {}
    return {str(key): str(value) for key, value in headers.items()}


def _error_message(body: Any, response: httpx.Response) -> str:
    if isinstance(body, Mapping):
        for key in ("displayMessage", "message", "error"):
            if isinstance(body.get(key), str):
                return body[key]
    if isinstance(body, str) and body:
        return body
    return response.reason_phrase or "request failed"


def _log_request(request: httpx.Request) -> None:
    logger.info(
        "http_request",
        method=request.method,
        url=str(request.url),
        headers=sanitize_headers(request.headers),
    )


def _log_response(response: httpx.Response) -> None:
    logger.info(
        "http_response",
        method=response.request.method,
        url=str(response.request.url),
        status_code=response.status_code,
        headers=sanitize_headers(response.headers),
    )


async def _alog_request(request: httpx.Request) -> None:
    _log_request(request)


async def _alog_response(response: httpx.Response) -> None:
    _log_response(response)


class JSONTransport:
    """Sends requests relative to ``base_url`` and decodes JSON responses.

    The JSON content type is attached to the outgoing request that carries the
    serialized body and to nothing else, so one transport can serve concurrent
    requests.
    """

    default_headers = MappingProxyType(
        {
            "Accept": "application/json",
            "User-Agent": f"candlepin-client-python/{__version__}",
        }
    )

    def __init__(
        self,
        *,
        base_url: str,
        timeout: httpx.Timeout,
        verify: ssl.SSLContext | bool = True,
        auth: httpx.Auth | None = None,
        debug: bool = False,
        transport: httpx.BaseTransport | None = None,
        async_transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url
        self.timeout = timeout
        self.debug = debug
        self._async_transport = async_transport
        self._client_kwargs: dict[str, Any] = {
            "base_url": base_url,
            "timeout": timeout,
            "verify": verify,
            "auth": auth,
            "headers": dict(self.default_headers),
            "follow_redirects": True,
            "trust_env": False,
        }
        event_hooks = {"request": [_log_request], "response": [_log_response]} if debug else None
        self._httpx = httpx.Client(**self._client_kwargs, transport=transport, event_hooks=event_hooks)
        self._async_httpx: httpx.AsyncClient | None = None

    def __enter__(self) -> "JSONTransport":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    async def __aenter__(self) -> "JSONTransport":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    def close(self) -> None:
        """Close both connection pools.

        An async pool that was opened is closed on a private event loop, which
        is not possible from inside a running loop: use :meth:`aclose` there.
        """
        if self._async_httpx is not None:
            try:
                asyncio.get_running_loop()
            except RuntimeError:
                pass
            else:
                raise CandlepinError("an async connection is open; use aclose() inside a running event loop")
        self._httpx.close()
        if self._async_httpx is not None:
            asyncio.run(self._async_httpx.aclose())
            self._async_httpx = None

    async def aclose(self) -> None:
        self._httpx.close()
        if self._async_httpx is not None:
            await self._async_httpx.aclose()
            self._async_httpx = None

    def _async_client(self) -> httpx.AsyncClient:
        if self._async_httpx is None:
            event_hooks = {"request": [_alog_request], "response": [_alog_response]} if self.debug else None
            self._async_httpx = httpx.AsyncClient(
                **self._client_kwargs,
                transport=self._async_transport,
                event_hooks=event_hooks,
            )
        return self._async_httpx

    @staticmethod
    def _path(path: str) -> str:
        if "://" in path:
            raise ValueError("Full URLs are not allowed in path for request method")
        if not path.startswith("/"):
            raise ValueError("Path must be absolute and start with '/'")
        if "\x00" in path:
            raise ValueError("Invalid path characters")
        return path

    def _build_request(
        self,
        client: httpx.Client | httpx.AsyncClient,
        method: str,
        path: str,
        *,
        body: Any,
        query: Mapping[str, Any] | None,
        headers: Mapping[str, str] | None,
        options: RequestOptions | None,
    ) -> httpx.Request:
        request_options = options or RequestOptions()
        content, body_headers = encode_body(body, request_options.content_type)

        # Case-insensitive, so the JSON content type replaces any caller spelling of it.
        final_headers = httpx.Headers(_normalize_headers(headers))
        final_headers.update(_normalize_headers(request_options.headers))
        final_headers.update(body_headers)

        final_query = _coerce_query_params(request_options.query)
        final_query.update(_coerce_query_params(query))

        timeout: Any = httpx.USE_CLIENT_DEFAULT
        if request_options.timeout is not None:
            if request_options.timeout <= 0:
                raise ValueError("timeout must be greater than 0")
            timeout = request_options.timeout

        return client.build_request(
            method.upper(),
            self._path(path),
            content=content,
            params=final_query or None,
            headers=final_headers,
            timeout=timeout,
        )

    @staticmethod
    def _handle_response(response: httpx.Response) -> Any:
        if response.is_success:
            try:
                return decode_body(response)
            except ValueError as exc:
                raise CandlepinError(
                    "response declared JSON but could not be decoded",
                    status_code=response.status_code,
                    body=response.text,
                    cause=exc,
                ) from exc

        try:
            body = decode_body(response)
        except ValueError:
            body = response.text

        message = _error_message(body, response)
        request_id = response.headers.get(REQUEST_ID_HEADER)
        logger.warning(
            "request_failed",
            method=response.request.method,
            url=str(response.request.url),
            status_code=response.status_code,
            request_id=request_id,
        )
        raise ServerError(
            message,
            status_code=response.status_code,
            body=body,
            headers=MappingProxyType(dict(response.headers)),
            request_id=request_id,
        )

    @staticmethod
    def _transport_error(request: httpx.Request, exc: httpx.TransportError) -> TransportError:
        return TransportError(f"{request.method} {request.url} failed: {exc}", cause=exc)

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
        request = self._build_request(
            self._httpx, method, path, body=body, query=query, headers=headers, options=options
        )
        try:
            response = self._httpx.send(request)
        except httpx.TransportError as exc:
            raise self._transport_error(request, exc) from exc
        return self._handle_response(response)

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
        client = self._async_client()
        request = self._build_request(
            client, method, path, body=body, query=query, headers=headers, options=options
        )
        try:
            response = await client.send(request)
        except httpx.TransportError as exc:
            raise self._transport_error(request, exc) from exc
        return self._handle_response(response)

    def get(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.request("GET", path, query=query, headers=headers, options=options)

    def post(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.request("POST", path, body=body, query=query, headers=headers, options=options)

    def put(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.request("PUT", path, body=body, query=query, headers=headers, options=options)

    def delete(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return self.request("DELETE", path, body=body, query=query, headers=headers, options=options)

    async def get_async(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request_async("GET", path, query=query, headers=headers, options=options)

    async def post_async(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request_async("POST", path, body=body, query=query, headers=headers, options=options)

    async def put_async(
        self,
        path: str,
        body: Any = None,
        *,
        query: Mapping[str, Any] | None = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request_async("PUT", path, body=body, query=query, headers=headers, options=options)

    async def delete_async(
        self,
        path: str,
        *,
        query: Mapping[str, Any] | None = None,
        body: Any = None,
        headers: Mapping[str, str] | None = None,
        options: RequestOptions | None = None,
    ) -> Any:
        return await self.request_async("DELETE", path, body=body, query=query, headers=headers, options=options)
