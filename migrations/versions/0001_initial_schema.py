"""initial schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 00:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

revision: str = "0001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

REFLECTION_CATEGORIES = (
    "wellness_check", "session_reflection", "team_sync",
    "values_alignment", "stress_management", "growth_assessment",
)
CONTEXT_TYPES = ("medical", "legal", "educational", "mental_health", "community", "general")
PATTERN_CODES = ("BURNOUT_RISK", "STRESS_RISING", "STRESS_DECLINING", "STRESS_STABLE")
RECEIPT_TYPES = (
    "readiness", "recovery", "wellness_check", "team_sync", "training_complete",
    "shift_ready", "break_taken", "debrief_complete", "wellness_threshold_met",
)


def upgrade() -> None:
    # --- ENUM types ---
    sa.Enum(*REFLECTION_CATEGORIES, name="reflection_category_enum").create(op.get_bind(), checkfirst=True)
    sa.Enum(*CONTEXT_TYPES, name="context_type_enum").create(op.get_bind(), checkfirst=True)
    sa.Enum(*PATTERN_CODES, name="pattern_code_enum").create(op.get_bind(), checkfirst=True)
    sa.Enum(*RECEIPT_TYPES, name="receipt_type_enum").create(op.get_bind(), checkfirst=True)

    # --- anonymized_reflections ---
    op.create_table(
        "anonymized_reflections",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identity_hash", sa.String(64), nullable=False),
        sa.Column("session_hash", sa.String(64), nullable=False),
        sa.Column("category", sa.Enum(
            *REFLECTION_CATEGORIES, name="reflection_category_enum", create_type=False,
        ), nullable=False),
        sa.Column("metrics", sa.JSON(), nullable=False),
        sa.Column("context_type", sa.Enum(
            *CONTEXT_TYPES, name="context_type_enum", create_type=False,
        ), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_anonymized_reflections_id", "anonymized_reflections", ["id"])
    op.create_index("ix_anonymized_reflections_identity_hash", "anonymized_reflections", ["identity_hash"])
    op.create_index("ix_anonymized_reflections_week_start", "anonymized_reflections", ["week_start"])

    # --- wellness_metrics ---
    op.create_table(
        "wellness_metrics",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identity_hash", sa.String(64), nullable=False),
        sa.Column("week_start", sa.Date(), nullable=False, comment="Monday of the ISO week (UTC)"),
        sa.Column("stress_level", sa.Numeric(3, 1), nullable=True),
        sa.Column("energy_level", sa.Numeric(3, 1), nullable=True),
        sa.Column("confidence_score", sa.Numeric(3, 1), nullable=True),
        sa.Column("burnout_score", sa.Numeric(3, 1), nullable=True),
        sa.Column("high_stress_pattern", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("recovery_needed", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("reading_count", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("identity_hash", "week_start", name="uq_wellness_identity_week"),
    )
    op.create_index("ix_wellness_metrics_id", "wellness_metrics", ["id"])
    op.create_index("ix_wellness_metrics_identity_hash", "wellness_metrics", ["identity_hash"])
    op.create_index("ix_wellness_metrics_week_start", "wellness_metrics", ["week_start"])

    # --- pattern_insights ---
    op.create_table(
        "pattern_insights",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identity_hash", sa.String(64), nullable=False),
        sa.Column("pattern_code", sa.Enum(
            *PATTERN_CODES, name="pattern_code_enum", create_type=False,
        ), nullable=False),
        sa.Column("confidence", sa.Numeric(3, 2), nullable=False),
        sa.Column("month_start", sa.Date(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_pattern_insights_id", "pattern_insights", ["id"])
    op.create_index("ix_pattern_insights_identity_hash", "pattern_insights", ["identity_hash"])
    op.create_index("ix_pattern_insights_pattern_code", "pattern_insights", ["pattern_code"])
    op.create_index("ix_pattern_insights_month_start", "pattern_insights", ["month_start"])

    # --- emotional_labor_entries ---
    op.create_table(
        "emotional_labor_entries",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("identity_hash", sa.String(64), nullable=False),
        sa.Column("session_hash", sa.String(64), nullable=False),
        sa.Column("context_category", sa.Enum(
            *CONTEXT_TYPES, name="context_type_enum", create_type=False,
        ), nullable=False),
        sa.Column("assessment", sa.JSON(), nullable=False),
        sa.Column("compensation", sa.JSON(), nullable=False),
        sa.Column("recorded_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_emotional_labor_entries_id", "emotional_labor_entries", ["id"])
    op.create_index("ix_emotional_labor_entries_identity_hash", "emotional_labor_entries", ["identity_hash"])
    op.create_index("ix_emotional_labor_entries_recorded_at", "emotional_labor_entries", ["recorded_at"])

    # --- attestation_receipts ---
    op.create_table(
        "attestation_receipts",
        sa.Column("receipt_id", sa.String(36), nullable=False),
        sa.Column("identity_hash", sa.String(64), nullable=False),
        sa.Column("receipt_type", sa.Enum(
            *RECEIPT_TYPES, name="receipt_type_enum", create_type=False,
        ), nullable=False),
        sa.Column("receipt_hash", sa.String(64), nullable=False),
        sa.Column("signature", sa.String(64), nullable=False),
        sa.Column("nonce", sa.String(32), nullable=False),
        sa.Column("criteria", sa.JSON(), nullable=True),
        sa.Column("issued_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("valid_until", sa.DateTime(timezone=True), nullable=True),
        sa.Column("verification_count", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("receipt_id"),
        sa.UniqueConstraint("receipt_hash"),
    )
    op.create_index("ix_attestation_receipts_identity_hash", "attestation_receipts", ["identity_hash"])

    # --- attestation_verifications ---
    op.create_table(
        "attestation_verifications",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("receipt_id", sa.String(36), nullable=False),
        sa.Column("verifier_hash", sa.String(64), nullable=True),
        sa.Column("reason", sa.String(16), nullable=False),
        sa.Column("verified_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.ForeignKeyConstraint(["receipt_id"], ["attestation_receipts.receipt_id"]),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index("ix_attestation_verifications_id", "attestation_verifications", ["id"])
    op.create_index("ix_attestation_verifications_receipt_id", "attestation_verifications", ["receipt_id"])


def downgrade() -> None:
    op.drop_table("attestation_verifications")
    op.drop_table("attestation_receipts")
    op.drop_table("emotional_labor_entries")
    op.drop_table("pattern_insights")
    op.drop_table("wellness_metrics")
    op.drop_table("anonymized_reflections")

    op.execute("DROP TYPE IF EXISTS receipt_type_enum")
    op.execute("DROP TYPE IF EXISTS pattern_code_enum")
    op.execute("DROP TYPE IF EXISTS context_type_enum")
    op.execute("DROP TYPE IF EXISTS reflection_category_enum")
