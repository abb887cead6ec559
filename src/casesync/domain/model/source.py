"""Typed view of the raw matter payload copied from the practice system.

The payload arrives as loosely structured JSON. ``SourcePayload.from_raw`` turns
it into small immutable records with explicit absent variants (``None`` or an
empty tuple), so extraction code matches on shapes instead of probing for keys.
Sub-records that cannot be interpreted are dropped; parsing never raises.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, cast

type RawMapping = Mapping[str, object]


def _identifier(value: object) -> str | None:
    match value:
        case bool():
            return None
        case int():
            return str(value)
        case str() if value.strip():
            return value.strip()
        case _:
            return None


def _text(value: object) -> str | None:
    match value:
        case str() if value.strip():
            return value.strip()
        case _:
            return None


def _as_mapping(value: object) -> RawMapping | None:
    match value:
        case Mapping():
            return cast(RawMapping, value)
        case _:
            return None


def _entries(value: object) -> list[object]:
    match value:
        case [*items]:
            return list(items)
        case _:
            return []


@dataclass(frozen=True, slots=True)
class AccountRef:
    id: str | None
    display_name: str
    raw: RawMapping = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def parse(cls, value: object) -> AccountRef | None:
        data = _as_mapping(value)
        if data is None:
            return None
        account_id = _identifier(data.get("id"))
        display_name = _text(data.get("display_name"))
        if account_id is None and display_name is None:
            return None
        return cls(id=account_id, display_name=display_name or "", raw=dict(data))


@dataclass(frozen=True, slots=True)
class AssignedUser:
    id: str | None
    display_name: str
    email: str | None = None
    raw: RawMapping = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def parse(cls, value: object) -> AssignedUser | None:
        data = _as_mapping(value)
        if data is None:
            return None
        user_id = _identifier(data.get("id"))
        display_name = _text(data.get("display_name"))
        email = _text(data.get("email_address")) or _text(data.get("email"))
        if user_id is None and display_name is None and email is None:
            return None
        return cls(id=user_id, display_name=display_name or "", email=email, raw=dict(data))


@dataclass(frozen=True, slots=True)
class ContactRef:
    id: str | None
    display_name: str
    account_id: str | None = None
    raw: RawMapping = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def parse(cls, value: object) -> ContactRef | None:
        data = _as_mapping(value)
        if data is None:
            return None
        contact_id = _identifier(data.get("id"))
        display_name = _text(data.get("display_name"))
        if contact_id is None and display_name is None:
            return None
        account = AccountRef.parse(data.get("account_ref"))
        return cls(
            id=contact_id,
            display_name=display_name or "",
            account_id=account.id if account is not None else None,
            raw=dict(data),
        )


@dataclass(frozen=True, slots=True)
class CustomFieldValue:
    label: str
    contact: ContactRef | None = None
    value_string: str | None = None
    raw: RawMapping = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def parse(cls, value: object) -> CustomFieldValue | None:
        data = _as_mapping(value)
        if data is None:
            return None
        field_ref = _as_mapping(data.get("custom_field_ref"))
        label = _text(field_ref.get("label")) if field_ref is not None else None
        return cls(
            label=label or "",
            contact=ContactRef.parse(data.get("contact_ref")),
            value_string=_text(data.get("value_string")),
            raw=dict(data),
        )


@dataclass(frozen=True, slots=True)
class SourcePayload:
    account: AccountRef | None = None
    assigned_users: tuple[AssignedUser, ...] = ()
    custom_fields: tuple[CustomFieldValue, ...] = ()
    raw: RawMapping = field(default_factory=dict, compare=False, repr=False)

    @classmethod
    def from_raw(cls, raw: object) -> SourcePayload | None:
        data = _as_mapping(raw)
        if not data:
            return None
        users = (AssignedUser.parse(item) for item in _entries(data.get("assigned_to_users")))
        fields = (
            CustomFieldValue.parse(item) for item in _entries(data.get("custom_field_values"))
        )
        return cls(
            account=AccountRef.parse(data.get("account_ref")),
            assigned_users=tuple(user for user in users if user is not None),
            custom_fields=tuple(item for item in fields if item is not None),
            raw=dict(data),
        )

    def custom_field(self, label: str) -> CustomFieldValue | None:
        """Return the first custom field with exactly this label."""

        for item in self.custom_fields:
            if item.label == label:
                return item
        return None

    def to_json(self) -> dict[str, Any]:
        return dict(self.raw)
