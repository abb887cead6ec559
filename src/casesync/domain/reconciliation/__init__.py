"""Reconcile extracted candidates with stored people and case links."""

from __future__ import annotations

from .match import find_existing, lookup_for, select_match
from .participants import AssignmentStatus, ParticipantAssignment, assign_participants
from .primary_links import PrimaryLinkUpdate, first_flagged, update_primary_links
from .upsert import UpsertOutcome, build_person, generate_credential_marker, upsert_candidate

__all__ = [
    "AssignmentStatus",
    "ParticipantAssignment",
    "PrimaryLinkUpdate",
    "UpsertOutcome",
    "assign_participants",
    "build_person",
    "find_existing",
    "first_flagged",
    "generate_credential_marker",
    "lookup_for",
    "select_match",
    "update_primary_links",
    "upsert_candidate",
]
