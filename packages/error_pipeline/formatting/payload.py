"""Client-facing error payload models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class PayloadExtensions(BaseModel):
    """Optional diagnostic members of an error payload."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    internal_details: dict[str, Any] | None = None
    stack_trace: list[str] | None = None
    field: str | None = None
    validation_details: dict[str, list[str]] | None = None

    @property
    def is_empty(self) -> bool:
        """Return True when no member is set."""
        return all(value is None for value in self.model_dump().values())


class ErrorPayload(BaseModel):
    """The one wire shape every transport emits for an error."""

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        alias_generator=to_camel,
        populate_by_name=True,
    )

    message: str
    code: str
    timestamp: str
    request_id: str
    extensions: PayloadExtensions | None = None

    def to_wire(self) -> dict[str, Any]:
        """Return the camelCase JSON-ready dict without null members."""
        return self.model_dump(by_alias=True, exclude_none=True)
