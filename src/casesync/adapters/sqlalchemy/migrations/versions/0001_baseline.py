"""Baseline schema: cases, people, participants and sync logs.

Revision ID: 0001_baseline
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

import sqlalchemy as sa
from alembic import op

revision = "0001_baseline"
down_revision = None
branch_labels = None
depends_on = None

SYNC_STATUSES = ("pending", "running", "completed", "failed")
SYNC_TRIGGERS = ("manual", "full", "incremental", "scheduled")
USER_ROLES = ("admin", "coordinator", "client", "third_party")
PARTICIPANT_ROLES = ("client", "coordinator", "third_party")
CONTACT_TYPES = (
    "client",
    "attorney",
    "buyer",
    "seller",
    "referral",
    "organization",
    "settlement_agent",
    "internal",
    "other",
)


def _enum(values: tuple[str, ...], name: str) -> sa.Enum:
    return sa.Enum(*values, name=name, native_enum=False, length=32)


def _timestamps() -> list[sa.Column[object]]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def _person_columns() -> list[sa.Column[object]]:
    return [
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("external_id", sa.String(64), nullable=True),
        sa.Column("email", sa.String(320), nullable=True),
        sa.Column("first_name", sa.String(200), nullable=False),
        sa.Column("last_name", sa.String(200), nullable=False),
        sa.Column("display_name", sa.String(400), nullable=False),
        sa.Column("assigned_cases", sa.Text(), nullable=False),
        sa.Column("case_count", sa.Integer(), nullable=False),
        sa.Column("last_assignment_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("raw_snapshot", sa.JSON(), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    ]


def upgrade() -> None:
    op.create_table(
        "users",
        *_person_columns(),
        sa.Column("role", _enum(USER_ROLES, "user_role"), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("credential_hash", sa.String(256), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_users"),
        sa.UniqueConstraint("external_id", name="uq_users_external_id"),
    )
    op.create_index("ix_users_email", "users", ["email"])

    op.create_table(
        "contacts",
        *_person_columns(),
        sa.Column("contact_type", _enum(CONTACT_TYPES, "contact_type"), nullable=False),
        sa.Column("company", sa.String(400), nullable=True),
        sa.Column("account_ref_id", sa.String(64), nullable=True),
        sa.Column("is_primary_contact", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_contacts"),
        sa.UniqueConstraint("external_id", name="uq_contacts_external_id"),
    )
    op.create_index("ix_contacts_email", "contacts", ["email"])
    op.create_index("ix_contacts_company", "contacts", ["company"])
    op.create_index("ix_contacts_name", "contacts", ["first_name", "last_name"])

    op.create_table(
        "cases",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(400), nullable=False),
        sa.Column("external_id", sa.String(64), nullable=True),
        sa.Column("external_status", sa.String(64), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("source", sa.JSON(), nullable=True),
        sa.Column("buyer_1_name", sa.String(400), nullable=True),
        sa.Column("buyer_2_name", sa.String(400), nullable=True),
        sa.Column("seller_1_name", sa.String(400), nullable=True),
        sa.Column("seller_2_name", sa.String(400), nullable=True),
        sa.Column("bank", sa.String(400), nullable=True),
        sa.Column("client_id", sa.Uuid(), nullable=True),
        sa.Column("coordinator_id", sa.Uuid(), nullable=True),
        sa.Column("primary_attorney_id", sa.Uuid(), nullable=True),
        sa.Column("synced_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("sync_status", _enum(SYNC_STATUSES, "case_sync_status"), nullable=True),
        sa.Column("source_synced_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id", name="pk_cases"),
        sa.UniqueConstraint("external_id", name="uq_cases_external_id"),
        sa.ForeignKeyConstraint(
            ["client_id"],
            ["contacts.id"],
            name="fk_cases_client_id_contacts",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["coordinator_id"],
            ["users.id"],
            name="fk_cases_coordinator_id_users",
            ondelete="SET NULL",
        ),
        sa.ForeignKeyConstraint(
            ["primary_attorney_id"],
            ["users.id"],
            name="fk_cases_primary_attorney_id_users",
            ondelete="SET NULL",
        ),
    )
    op.create_index("ix_cases_synced_at", "cases", ["synced_at"])
    op.create_index("ix_cases_updated_at", "cases", ["updated_at"])

    op.create_table(
        "case_participants",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("case_id", sa.Uuid(), nullable=False),
        sa.Column("role", _enum(PARTICIPANT_ROLES, "participant_role"), nullable=False),
        sa.Column("user_id", sa.Uuid(), nullable=True),
        sa.Column("contact_id", sa.Uuid(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id", name="pk_case_participants"),
        sa.UniqueConstraint("case_id", "user_id", name="uq_case_participants_case_id_user_id"),
        sa.UniqueConstraint(
            "case_id", "contact_id", name="uq_case_participants_case_id_contact_id"
        ),
        sa.ForeignKeyConstraint(
            ["case_id"], ["cases.id"], name="fk_case_participants_case_id_cases", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["user_id"], ["users.id"], name="fk_case_participants_user_id_users", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["contact_id"],
            ["contacts.id"],
            name="fk_case_participants_contact_id_contacts",
            ondelete="CASCADE",
        ),
    )

    op.create_table(
        "sync_logs",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("case_id", sa.Uuid(), nullable=False),
        sa.Column("trigger", _enum(SYNC_TRIGGERS, "sync_trigger"), nullable=False),
        sa.Column("status", _enum(SYNC_STATUSES, "sync_log_status"), nullable=False),
        sa.Column("started_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("completed_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("results", sa.JSON(), nullable=False),
        sa.Column("errors", sa.JSON(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_sync_logs"),
    )
    op.create_index("ix_sync_logs_case_id", "sync_logs", ["case_id"])
    op.create_index("ix_sync_logs_started_at", "sync_logs", ["started_at"])


def downgrade() -> None:
    op.drop_table("sync_logs")
    op.drop_table("case_participants")
    op.drop_table("cases")
    op.drop_table("contacts")
    op.drop_table("users")
