"""Per-request overrides for the Candlepin clients."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping

JSON_CONTENT_TYPE = "application/json; charset=utf-8"


@dataclass(frozen=True)
class RequestOptions:
    timeout: float | None = None
    headers: Mapping[str, str] | None = None
    query: Mapping[str, object] | None = None
    # Sent with JSON-serialized bodies only; raw bodies keep their own headers.
    content_type: str = JSON_CONTENT_TYPE
