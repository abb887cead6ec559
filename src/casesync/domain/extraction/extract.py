"""Derive candidate people from a case's source payload and text fields.

Rules run in a fixed order and each contributes zero or more candidates:

1. the matter's account reference (the client),
2. every assigned user (coordinators),
3. custom fields whose value is a contact reference,
4. free-text name fields on the case plus the referral source.

Everything here is pure: no store access, no network, and no exceptions for
malformed input. The same case always yields the same ordered list.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Final

from casesync.domain.model import (
    AccountRef,
    AssignedUser,
    CustomFieldValue,
    ParticipantRole,
    PersonKind,
    RoleHint,
    UserRole,
)

from .candidates import CandidateEntity
from .names import ParsedName, classify_custom_field_label, has_text_value, parse_display_name

if TYPE_CHECKING:
    from collections.abc import Iterable

    from casesync.domain.model import Case, SourcePayload

REFERRAL_SOURCE_LABEL: Final[str] = "Referral Source"
REFERRAL_EMAIL_LABEL: Final[str] = "Referral Source Email"


@dataclass(frozen=True, slots=True)
class TextField:
    name: str
    role_hint: RoleHint
    is_company: bool = False


TEXT_FIELDS: Final[tuple[TextField, ...]] = (
    TextField("buyer_1_name", RoleHint.BUYER),
    TextField("buyer_2_name", RoleHint.BUYER),
    TextField("seller_1_name", RoleHint.SELLER),
    TextField("seller_2_name", RoleHint.SELLER),
    TextField("bank", RoleHint.ORGANIZATION, is_company=True),
)


def extract_candidates(case: Case) -> list[CandidateEntity]:
    payload = case.source
    if payload is None:
        return []

    candidates: list[CandidateEntity] = []
    candidates.extend(_account_candidates(payload.account))
    candidates.extend(_assigned_user_candidates(payload.assigned_users))
    candidates.extend(_custom_field_candidates(payload.custom_fields))
    candidates.extend(_text_field_candidates(case, payload))
    return candidates


def _account_candidates(account: AccountRef | None) -> list[CandidateEntity]:
    match account:
        case AccountRef(id=account_id, display_name=display_name):
            return [
                CandidateEntity(
                    source="source.account_ref",
                    kind=PersonKind.CONTACT,
                    role_hint=RoleHint.CLIENT,
                    display_name=display_name,
                    parsed_name=parse_display_name(display_name),
                    external_contact_id=account_id,
                    is_primary_contact=True,
                    should_add_as_participant=True,
                    participant_role=ParticipantRole.CLIENT,
                    should_set_as_client=True,
                    raw_snapshot=account.raw,
                )
            ]
        case None:
            return []


def _assigned_user_candidates(users: Iterable[AssignedUser]) -> list[CandidateEntity]:
    candidates: list[CandidateEntity] = []
    for index, user in enumerate(users):
        candidates.append(
            CandidateEntity(
                source=f"source.assigned_to_users[{index}]",
                kind=PersonKind.USER,
                role_hint=RoleHint.ATTORNEY,
                display_name=user.display_name,
                parsed_name=parse_display_name(user.display_name),
                external_user_id=user.id,
                email=user.email,
                user_role=UserRole.COORDINATOR,
                # system role and case role differ on purpose
                should_add_as_participant=True,
                participant_role=ParticipantRole.THIRD_PARTY,
                should_set_as_coordinator=True,
                raw_snapshot=user.raw,
            )
        )
    return candidates


def _custom_field_candidates(fields: Iterable[CustomFieldValue]) -> list[CandidateEntity]:
    candidates: list[CandidateEntity] = []
    for index, custom_field in enumerate(fields):
        match custom_field:
            case CustomFieldValue(contact=None):
                continue
            case CustomFieldValue(label=label, contact=contact) if contact is not None:
                candidates.append(
                    CandidateEntity(
                        source=f"source.custom_field_values[{index}]",
                        kind=PersonKind.CONTACT,
                        role_hint=classify_custom_field_label(label),
                        display_name=contact.display_name,
                        parsed_name=parse_display_name(contact.display_name),
                        external_contact_id=contact.id,
                        account_ref_id=contact.account_id,
                        custom_field_label=label,
                        should_add_as_participant=True,
                        participant_role=ParticipantRole.THIRD_PARTY,
                        raw_snapshot=contact.raw,
                    )
                )
    return candidates


def _text_field_candidates(case: Case, payload: SourcePayload) -> list[CandidateEntity]:
    candidates: list[CandidateEntity] = []
    for text_field in TEXT_FIELDS:
        value = case.text_field(text_field.name)
        if value is None or not has_text_value(value):
            continue
        candidates.append(
            _text_candidate(
                source=f"case.{text_field.name}",
                value=value.strip(),
                role_hint=text_field.role_hint,
                is_company=text_field.is_company,
            )
        )

    referral = payload.custom_field(REFERRAL_SOURCE_LABEL)
    if referral is not None and has_text_value(referral.value_string):
        email_field = payload.custom_field(REFERRAL_EMAIL_LABEL)
        email = email_field.value_string if email_field is not None else None
        candidates.append(
            _text_candidate(
                source="source.referral_source",
                value=(referral.value_string or "").strip(),
                role_hint=RoleHint.REFERRAL,
                email=email if has_text_value(email) else None,
            )
        )
    return candidates


def _text_candidate(
    *,
    source: str,
    value: str,
    role_hint: RoleHint,
    is_company: bool = False,
    email: str | None = None,
) -> CandidateEntity:
    parsed = ParsedName(company=value) if is_company else parse_display_name(value)
    return CandidateEntity(
        source=source,
        kind=PersonKind.CONTACT,
        role_hint=role_hint,
        display_name=value,
        parsed_name=parsed,
        email=email,
        should_add_as_participant=not is_company,
        participant_role=None if is_company else ParticipantRole.THIRD_PARTY,
    )


@dataclass(slots=True)
class ExtractionStatistics:
    total: int = 0
    users: int = 0
    contacts: int = 0
    participants: int = 0
    by_role: dict[str, int] = field(default_factory=dict)
    by_source: dict[str, int] = field(default_factory=dict)


def summarize_candidates(candidates: Iterable[CandidateEntity]) -> ExtractionStatistics:
    items = list(candidates)
    return ExtractionStatistics(
        total=len(items),
        users=sum(1 for item in items if item.kind is PersonKind.USER),
        contacts=sum(1 for item in items if item.kind is PersonKind.CONTACT),
        participants=sum(1 for item in items if item.should_add_as_participant),
        by_role=dict(Counter(item.role_hint.value for item in items)),
        by_source=dict(Counter(item.source_root for item in items)),
    )
