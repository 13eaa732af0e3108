"""initial clarification schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-09-28 10:12:41.118204
"""

from __future__ import annotations

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

revision: str = "0001_initial_schema"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "deal",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("facility_type", sa.String(length=3), nullable=False),
        sa.Column("state", sa.String(length=2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("has_unresolved_conflicts", sa.Boolean(), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_deal"),
    )
    op.create_table(
        "document",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("case_id", sa.Uuid(), nullable=False),
        sa.Column("filename", sa.String(), nullable=False),
        sa.Column("document_type", sa.String(), nullable=True),
        sa.Column("period_end", sa.Date(), nullable=True),
        sa.Column("ingested_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("extraction_revision", sa.Integer(), nullable=False),
        sa.Column("overall_confidence", sa.Float(), nullable=True),
        sa.Column("pending_issue_count", sa.Integer(), nullable=False),
        sa.ForeignKeyConstraint(
            ["case_id"],
            ["deal.id"],
            name="fk_document_case_id_deal",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_document"),
    )
    op.create_index("ix_document_case_ingested", "document", ["case_id", "ingested_at"])

    op.create_table(
        "extracted_field",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("document_id", sa.Uuid(), nullable=False),
        sa.Column("field_name", sa.String(), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("alternatives", sa.Text(), nullable=False),
        sa.Column("revision", sa.Integer(), nullable=False),
        sa.Column("source", sa.String(), nullable=True),
        sa.ForeignKeyConstraint(
            ["document_id"],
            ["document.id"],
            name="fk_extracted_field_document_id_document",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_extracted_field"),
        sa.UniqueConstraint(
            "document_id", "revision", "field_name", name="uq_extracted_field_revision"
        ),
    )

    op.create_table(
        "issue",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("case_id", sa.Uuid(), nullable=False),
        sa.Column("document_id", sa.Uuid(), nullable=False),
        sa.Column("field_name", sa.String(), nullable=False),
        sa.Column("kind", sa.String(length=14), nullable=False),
        sa.Column("priority", sa.Integer(), nullable=False),
        sa.Column("reason", sa.Text(), nullable=False),
        sa.Column("extracted_value", sa.Text(), nullable=False),
        sa.Column("confidence", sa.Float(), nullable=True),
        sa.Column("suggested_values", sa.Text(), nullable=False),
        sa.Column("benchmark_range", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(length=8), nullable=False),
        sa.Column("resolved_value", sa.Text(), nullable=True),
        sa.Column("resolved_by", sa.String(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("resolution_notes", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["case_id"], ["deal.id"], name="fk_issue_case_id_deal", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["document_id"],
            ["document.id"],
            name="fk_issue_document_id_document",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_issue"),
        sa.UniqueConstraint("case_id", "document_id", "field_name", "kind", name="uq_issue_key"),
    )
    op.create_index("ix_issue_case_status", "issue", ["case_id", "status"])

    op.create_table(
        "conflict",
        sa.Column("id", sa.Uuid(), nullable=False),
        sa.Column("case_id", sa.Uuid(), nullable=False),
        sa.Column("field_name", sa.String(), nullable=False),
        sa.Column("document1_id", sa.Uuid(), nullable=False),
        sa.Column("document2_id", sa.Uuid(), nullable=False),
        sa.Column("value1", sa.Text(), nullable=False),
        sa.Column("value2", sa.Text(), nullable=False),
        sa.Column("variance", sa.Float(), nullable=False),
        sa.Column("severity", sa.String(length=8), nullable=False),
        sa.Column("suggested_resolution", sa.String(length=13), nullable=False),
        sa.Column("reasoning", sa.Text(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("resolution", sa.String(length=12), nullable=False),
        sa.Column("resolved_value", sa.Text(), nullable=True),
        sa.Column("resolved_by", sa.String(), nullable=True),
        sa.Column("resolved_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("rationale", sa.Text(), nullable=True),
        sa.ForeignKeyConstraint(
            ["case_id"], ["deal.id"], name="fk_conflict_case_id_deal", ondelete="CASCADE"
        ),
        sa.ForeignKeyConstraint(
            ["document1_id"],
            ["document.id"],
            name="fk_conflict_document1_id_document",
            ondelete="CASCADE",
        ),
        sa.ForeignKeyConstraint(
            ["document2_id"],
            ["document.id"],
            name="fk_conflict_document2_id_document",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_conflict"),
        sa.UniqueConstraint(
            "case_id", "field_name", "document1_id", "document2_id", name="uq_conflict_pair"
        ),
    )
    op.create_index("ix_conflict_case_resolution", "conflict", ["case_id", "resolution"])


def downgrade() -> None:
    op.drop_index("ix_conflict_case_resolution", table_name="conflict")
    op.drop_table("conflict")
    op.drop_index("ix_issue_case_status", table_name="issue")
    op.drop_table("issue")
    op.drop_table("extracted_field")
    op.drop_index("ix_document_case_ingested", table_name="document")
    op.drop_table("document")
    op.drop_table("deal")
