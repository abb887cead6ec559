"""Pydantic models describing the practice API payloads.

Only the fields the sync reads are modelled; everything else stays in the raw
matter dict that is stored on the case.
"""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


def _id_to_str(value: object) -> object:
    if isinstance(value, int) and not isinstance(value, bool):
        return str(value)
    return _blank_to_none(value)


class PracticeBaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class CustomFieldRef(PracticeBaseModel):
    id: str | None = None
    label: str | None = None

    _normalize_id = field_validator("id", mode="before")(_id_to_str)


class CustomFieldPayload(PracticeBaseModel):
    custom_field_ref: CustomFieldRef | None = None
    value_string: str | None = None

    _normalize_value = field_validator("value_string", mode="before")(_blank_to_none)

    @property
    def label(self) -> str | None:
        return self.custom_field_ref.label if self.custom_field_ref else None


class MatterPayload(PracticeBaseModel):
    id: str
    name: str | None = None
    display_name: str | None = None
    status: str | None = None
    updated_at: datetime | None = None
    custom_field_values: list[CustomFieldPayload] = Field(default_factory=list)

    _normalize_id = field_validator("id", mode="before")(_id_to_str)
    _normalize_text = field_validator("name", "display_name", "status", mode="before")(
        _blank_to_none
    )

    @field_validator("updated_at", mode="before")
    @classmethod
    def _lenient_timestamp(cls, value: object) -> object:
        return None if value in ("", None) else value

    @field_validator("custom_field_values", mode="before")
    @classmethod
    def _null_to_empty(cls, value: object) -> object:
        return [] if value is None else value

    @property
    def title(self) -> str:
        return self.name or self.display_name or f"Matter {self.id}"


class TokenResponse(PracticeBaseModel):
    access_token: str
    refresh_token: str | None = None
    expires_in: int | None = None
    token_type: str | None = None

    _normalize_refresh = field_validator("refresh_token", mode="before")(_blank_to_none)


class ErrorResponse(PracticeBaseModel):
    error: str | None = None
    error_description: str | None = None
    message: str | None = Field(default=None, alias="Message")

    @property
    def detail(self) -> str | None:
        return self.error_description or self.message or self.error
