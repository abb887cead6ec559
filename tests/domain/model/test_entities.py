from __future__ import annotations

from datetime import timedelta
from uuid import uuid4

import pytest

from casesync.domain.errors import SyncLogFinalizedError
from casesync.domain.model import (
    Contact,
    FailureReason,
    ParticipantLink,
    ParticipantRole,
    PersonKind,
    SyncLogEntry,
    SyncStatus,
    User,
)
from tests.helpers.cases import FIXED_NOW, make_case


def test_assign_case_keeps_assignments_unique_and_counted() -> None:
    contact = Contact(first_name="Alice")
    case_id = uuid4()

    assert contact.assign_case(case_id, now=FIXED_NOW) is True
    later = FIXED_NOW + timedelta(hours=1)
    assert contact.assign_case(case_id, now=later) is False

    assert contact.assigned_cases == [case_id]
    assert contact.case_count == 1
    assert contact.last_assignment_at == later


def test_set_primary_links_mirrors_coordinator_to_attorney() -> None:
    case = make_case()
    coordinator = uuid4()
    later = FIXED_NOW + timedelta(minutes=1)

    staged = case.set_primary_links(now=later, coordinator_id=coordinator)

    assert staged == {"coordinator_id": coordinator, "primary_attorney_id": coordinator}
    assert case.primary_attorney_id == coordinator
    assert case.client_id is None
    assert case.updated_at == later
    assert case.set_primary_links(now=later) == {}


def test_participant_link_points_at_one_kind_of_person() -> None:
    user = User(email="jane@example.com")
    contact = Contact(company="Acme Title LLC")
    case_id = uuid4()

    user_link = ParticipantLink.for_person(
        case_id=case_id, person=user, role=ParticipantRole.COORDINATOR, now=FIXED_NOW
    )
    contact_link = ParticipantLink.for_person(
        case_id=case_id, person=contact, role=ParticipantRole.CLIENT, now=FIXED_NOW
    )

    assert (user_link.person_kind, user_link.person_id) == (PersonKind.USER, user.id)
    assert user_link.contact_id is None
    assert (contact_link.person_kind, contact_link.person_id) == (PersonKind.CONTACT, contact.id)


def test_sync_log_entry_is_finalised_once() -> None:
    entry = SyncLogEntry(case_id=uuid4(), started_at=FIXED_NOW)

    entry.fail(FailureReason.TIMEOUT, "Sync timeout", now=FIXED_NOW)

    assert entry.status is SyncStatus.FAILED
    assert entry.errors == {"reason": "timeout", "message": "Sync timeout"}
    with pytest.raises(SyncLogFinalizedError):
        entry.complete({}, now=FIXED_NOW)
