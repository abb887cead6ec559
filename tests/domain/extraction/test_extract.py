from __future__ import annotations

from casesync.domain.extraction import extract_candidates, summarize_candidates
from casesync.domain.model import Case, ParticipantRole, PersonKind, RoleHint, UserRole
from tests.helpers.cases import contact_field, make_case, make_matter, text_field


def test_case_without_source_yields_nothing() -> None:
    assert extract_candidates(Case(name="Bare")) == []


def test_candidates_follow_rule_order() -> None:
    matter = make_matter(
        custom_fields=[
            contact_field("Settlement Agent", "c-9", "Acme Title & Escrow LLC"),
            text_field("Referral Source", "Bob Referrer"),
            text_field("Referral Source Email", "bob@example.com"),
        ]
    )
    case = make_case(matter, buyer_1_name="Alice Buyer", bank="First National Bank")

    candidates = extract_candidates(case)

    assert [candidate.source for candidate in candidates] == [
        "source.account_ref",
        "source.assigned_to_users[0]",
        "source.custom_field_values[0]",
        "case.buyer_1_name",
        "case.bank",
        "source.referral_source",
    ]


def test_account_candidate_is_primary_client() -> None:
    (client,) = [c for c in extract_candidates(make_case()) if c.role_hint is RoleHint.CLIENT]

    assert client.kind is PersonKind.CONTACT
    assert client.external_contact_id == "acc-1"
    assert (client.parsed_name.first_name, client.parsed_name.last_name) == ("John", "Smith")
    assert client.is_primary_contact
    assert client.should_set_as_client
    assert client.participant_role is ParticipantRole.CLIENT


def test_assigned_user_is_coordinator_but_third_party_participant() -> None:
    (user,) = [c for c in extract_candidates(make_case()) if c.kind is PersonKind.USER]

    assert user.user_role is UserRole.COORDINATOR
    assert user.participant_role is ParticipantRole.THIRD_PARTY
    assert user.should_set_as_coordinator
    assert user.email == "jane@example.com"
    assert user.external_id == "u-1"


def test_custom_field_without_contact_is_ignored() -> None:
    matter = make_matter(
        account={},
        users=[],
        custom_fields=[
            text_field("Notes", "call back"),
            contact_field("Buyer's Attorney", "c-2", "Saul Goodman"),
        ],
    )

    candidates = extract_candidates(make_case(matter))

    assert len(candidates) == 1
    assert candidates[0].source == "source.custom_field_values[1]"
    assert candidates[0].role_hint is RoleHint.ATTORNEY
    assert candidates[0].custom_field_label == "Buyer's Attorney"


def test_placeholder_text_fields_are_skipped() -> None:
    case = make_case(
        make_matter(account={}, users=[]),
        buyer_1_name="false",
        buyer_2_name="   ",
        seller_1_name="null",
        seller_2_name="Sam Seller",
    )

    candidates = extract_candidates(case)

    assert [candidate.source for candidate in candidates] == ["case.seller_2_name"]
    assert candidates[0].role_hint is RoleHint.SELLER


def test_bank_is_company_and_not_a_participant() -> None:
    case = make_case(make_matter(account={}, users=[]), bank="Wells Fargo")

    (bank,) = extract_candidates(case)

    assert bank.company == "Wells Fargo"
    assert bank.role_hint is RoleHint.ORGANIZATION
    assert not bank.should_add_as_participant
    assert bank.participant_role is None


def test_referral_email_is_attached_when_present() -> None:
    matter = make_matter(
        account={},
        users=[],
        custom_fields=[
            text_field("Referral Source", "Bob Referrer"),
            text_field("Referral Source Email", "undefined"),
        ],
    )

    (referral,) = extract_candidates(make_case(matter))

    assert referral.role_hint is RoleHint.REFERRAL
    assert referral.email is None
    assert referral.display_name == "Bob Referrer"


def test_extraction_is_deterministic() -> None:
    case = make_case(buyer_1_name="Alice Buyer")

    assert extract_candidates(case) == extract_candidates(case)


def test_summarize_candidates_counts_by_role_and_source() -> None:
    case = make_case(buyer_1_name="Alice Buyer", bank="Chase Bank")

    statistics = summarize_candidates(extract_candidates(case))

    assert statistics.total == 4
    assert statistics.users == 1
    assert statistics.contacts == 3
    assert statistics.participants == 3
    assert statistics.by_role == {"client": 1, "attorney": 1, "buyer": 1, "organization": 1}
    assert statistics.by_source == {
        "source.account_ref": 1,
        "source.assigned_to_users": 1,
        "case.buyer_1_name": 1,
        "case.bank": 1,
    }
