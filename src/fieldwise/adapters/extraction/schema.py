"""Pydantic models describing extraction payloads handed to the engine."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import date  # noqa: TC003
from typing import Any, cast
from uuid import UUID  # noqa: TC003

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class ExtractionBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class DocumentPayload(ExtractionBaseModel):
    id: UUID | None = None
    filename: str
    document_type: str | None = Field(default=None, alias="type")
    period_end: date | None = Field(default=None, alias="periodEnd")

    _normalize_type = field_validator("document_type", mode="before")(_blank_to_none)
    _normalize_period = field_validator("period_end", mode="before")(_blank_to_none)


class FieldPayload(ExtractionBaseModel):
    value: Any = None
    confidence: float | None = Field(default=None, ge=0, le=100)
    alternatives: list[Any] = Field(default_factory=list[Any])
    source: str | None = None

    @model_validator(mode="before")
    @classmethod
    def _normalize_bare_value(cls, value: object) -> object:
        # ``"noi": 1200000`` is shorthand for ``"noi": {"value": 1200000}``
        if isinstance(value, Mapping):
            return cast(Mapping[str, object], value)
        return {"value": value}

    _normalize_source = field_validator("source", mode="before")(_blank_to_none)


class ExtractionPayload(ExtractionBaseModel):
    document: DocumentPayload
    fields: dict[str, FieldPayload]

    @field_validator("fields")
    @classmethod
    def _reject_blank_names(cls, value: dict[str, FieldPayload]) -> dict[str, FieldPayload]:
        if any(not name.strip() for name in value):
            raise ValueError("Field names must not be blank")
        return value


ExtractionPayloadInput = ExtractionPayload | Mapping[str, object]
