"""Typed views of the Candlepin documents the client itself consumes."""

from __future__ import annotations

from typing import Any, Mapping

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel


class CandlepinModel(BaseModel):
    model_config = ConfigDict(
        extra="ignore",
        alias_generator=to_camel,
        populate_by_name=True,
    )


class IdentityCertificate(CandlepinModel):
    cert: str
    key: str
    serial: dict[str, Any] | None = None
    created: str | None = None
    updated: str | None = None


class ConsumerType(CandlepinModel):
    label: str | None = None
    manifest: bool | None = None

    @model_validator(mode="before")
    @classmethod
    def _coerce_label(cls, value: Any) -> Any:
        # Registration accepts a bare label where the server returns an object.
        if isinstance(value, str):
            return {"label": value}
        return value


class Consumer(CandlepinModel):
    """Consumer document returned by registration."""

    uuid: str | None = None
    name: str | None = None
    username: str | None = None
    type: ConsumerType | None = None
    owner: dict[str, Any] | None = None
    facts: dict[str, Any] = Field(default_factory=dict)
    id_cert: IdentityCertificate | None = None

    @classmethod
    def from_response(cls, response: "Consumer | Mapping[str, Any]") -> "Consumer":
        if isinstance(response, Consumer):
            return response
        return cls.model_validate(response)
