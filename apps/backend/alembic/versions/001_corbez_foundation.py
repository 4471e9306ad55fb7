"""
============================================================
TARJETA CRC (Class / Responsibilities / Collaborators)
============================================================
Class: 001_corbez_foundation (Alembic Migration)

Responsibilities:
  - Crear el esquema completo del motor de perks desde cero.
  - Índices únicos parciales que sostienen las escrituras condicionales:
      ux_claimed_coupons_active_pair    (employee_id, merchant_id) WHERE ACTIVE
      ux_discounts_base_per_merchant    (merchant_id) WHERE type = 'BASE'
      ux_employee_passes_active         (employee_id) WHERE ACTIVE

Collaborators:
  - PostgreSQL 16+
  - infrastructure/repositories/postgres (usa este esquema como contrato)

Policy:
  - Migración BASELINE. Downgrade NO soportado.
  - Estados como strings (sin enums DB) para evitar acople.
============================================================
"""

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "001_corbez_foundation"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

UUID = postgresql.UUID(as_uuid=True)
JSONB = postgresql.JSONB


def _timestamp(name: str, *, nullable: bool = True, default: bool = False) -> sa.Column:
    return sa.Column(
        name,
        sa.DateTime(timezone=True),
        nullable=nullable,
        server_default=sa.text("NOW()") if default else None,
    )


def _version() -> sa.Column:
    return sa.Column("version", sa.Integer, nullable=False, server_default="0")


def upgrade() -> None:
    # =========================================================
    # 1) ORGANIZATIONS
    # =========================================================
    op.create_table(
        "companies",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        _timestamp("suspended_until"),
        sa.Column("suspended_reason", sa.Text, nullable=True),
        _version(),
    )

    op.create_table(
        "merchants",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("business_name", sa.String(255), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("locations", JSONB, nullable=False, server_default="[]"),
        sa.Column("avg_order_value", sa.Numeric(10, 2), nullable=True),
        sa.Column("price_tier", sa.String(10), nullable=True),
        _timestamp("suspended_until"),
        sa.Column("suspended_reason", sa.Text, nullable=True),
        _version(),
    )

    op.create_table(
        "employees",
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "company_id",
            UUID,
            sa.ForeignKey("companies.id", name="fk_employees_company_id__companies"),
            nullable=False,
        ),
        sa.Column("user_id", UUID, nullable=True),
        sa.Column("email", sa.String(320), nullable=False, server_default=""),
        sa.Column("status", sa.String(20), nullable=False, server_default="PENDING"),
        sa.Column("warning_count", sa.Integer, nullable=False, server_default="0"),
        _timestamp("suspended_until"),
        sa.Column("suspended_reason", sa.Text, nullable=True),
        sa.Column("referred_by", UUID, nullable=True),
        sa.Column("referral_points", sa.Integer, nullable=False, server_default="0"),
        _timestamp("first_redeemed_at"),
        _timestamp("created_at", nullable=False, default=True),
        _version(),
    )
    op.create_index("ix_employees_company_id", "employees", ["company_id"])
    op.create_index(
        "ix_employees_suspended_until",
        "employees",
        ["suspended_until"],
        postgresql_where=sa.text("status = 'SUSPENDED'"),
    )

    # =========================================================
    # 2) DISCOUNTS
    # =========================================================
    op.create_table(
        "discounts",
        sa.Column("id", UUID, primary_key=True),
        sa.Column(
            "merchant_id",
            UUID,
            sa.ForeignKey("merchants.id", name="fk_discounts_merchant_id__merchants"),
            nullable=False,
        ),
        sa.Column("type", sa.String(20), nullable=False),
        sa.Column("percentage", sa.Integer, nullable=False),
        sa.Column("company_id", UUID, nullable=True),
        sa.Column("min_spend", sa.Numeric(10, 2), nullable=True),
        sa.Column("monthly_usage_limit", sa.Integer, nullable=True),
        sa.Column("first_time_bonus_percentage", sa.Integer, nullable=True),
        sa.Column("is_active", sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column("priority", sa.Integer, nullable=False, server_default="0"),
        sa.Column("description", sa.Text, nullable=True),
        sa.Column("perk_description", sa.Text, nullable=True),
        _timestamp("created_at", nullable=False, default=True),
        _timestamp("updated_at", nullable=False, default=True),
        _version(),
        sa.CheckConstraint(
            "percentage BETWEEN 0 AND 100", name="ck_discounts_percentage_range"
        ),
    )
    op.create_index("ix_discounts_merchant_id", "discounts", ["merchant_id"])
    op.create_index("ix_discounts_company_id", "discounts", ["company_id"])
    op.create_index(
        "ux_discounts_base_per_merchant",
        "discounts",
        ["merchant_id"],
        unique=True,
        postgresql_where=sa.text("type = 'BASE'"),
    )

    # =========================================================
    # 3) CLAIMED COUPONS
    # =========================================================
    op.create_table(
        "claimed_coupons",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("employee_id", UUID, nullable=False),
        sa.Column("merchant_id", UUID, nullable=False),
        sa.Column("discount_id", UUID, nullable=False),
        sa.Column("unique_code", sa.String(16), nullable=False),
        sa.Column("signature", sa.String(64), nullable=False),
        sa.Column("signed_payload", JSONB, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        _timestamp("expires_at"),
        sa.Column("usage_history", JSONB, nullable=False, server_default="[]"),
        sa.Column("usage_this_month", sa.Integer, nullable=False, server_default="0"),
        sa.Column("last_reset_period", sa.Integer, nullable=True),
        _timestamp("claimed_at", nullable=False, default=True),
        _timestamp("updated_at", nullable=False, default=True),
        _version(),
        sa.UniqueConstraint("unique_code", name="uq_claimed_coupons_unique_code"),
    )
    op.create_index("ix_claimed_coupons_employee_id", "claimed_coupons", ["employee_id"])
    op.create_index(
        "ux_claimed_coupons_active_pair",
        "claimed_coupons",
        ["employee_id", "merchant_id"],
        unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )
    op.create_index(
        "ix_claimed_coupons_expires_at",
        "claimed_coupons",
        ["expires_at"],
        postgresql_where=sa.text("status = 'ACTIVE' AND expires_at IS NOT NULL"),
    )

    # =========================================================
    # 4) EMPLOYEE PASSES
    # =========================================================
    op.create_table(
        "employee_passes",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("pass_id", sa.String(32), nullable=False),
        sa.Column("employee_id", UUID, nullable=False),
        sa.Column("user_id", UUID, nullable=False),
        sa.Column("company_id", UUID, nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("signature", sa.String(64), nullable=False),
        sa.Column("signed_payload", JSONB, nullable=False),
        _timestamp("issued_at", nullable=False, default=True),
        _timestamp("revoked_at"),
        sa.UniqueConstraint("pass_id", name="uq_employee_passes_pass_id"),
    )
    op.create_index(
        "ux_employee_passes_active",
        "employee_passes",
        ["employee_id"],
        unique=True,
        postgresql_where=sa.text("status = 'ACTIVE'"),
    )

    # =========================================================
    # 5) MODERATION + AUDIT (append-only)
    # =========================================================
    op.create_table(
        "moderation_actions",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("target_type", sa.String(20), nullable=False),
        sa.Column("target_id", UUID, nullable=False),
        sa.Column("action", sa.String(20), nullable=False),
        sa.Column("actor_id", sa.String(64), nullable=False),
        sa.Column("reason", sa.String(40), nullable=False),
        sa.Column("previous_state", JSONB, nullable=False, server_default="{}"),
        sa.Column("new_state", JSONB, nullable=False, server_default="{}"),
        sa.Column("notes", sa.Text, nullable=True),
        sa.Column("duration", JSONB, nullable=True),
        sa.Column("is_appealable", sa.Boolean, nullable=False, server_default=sa.false()),
        _timestamp("appeal_deadline"),
        sa.Column("appeal_status", sa.String(20), nullable=False, server_default="NONE"),
        _timestamp("created_at", nullable=False, default=True),
    )
    op.create_index(
        "ix_moderation_actions_target",
        "moderation_actions",
        ["target_type", "target_id", "created_at"],
    )
    op.create_index(
        "ix_moderation_actions_appeal_status",
        "moderation_actions",
        ["appeal_status", "created_at"],
    )

    op.create_table(
        "audit_events",
        sa.Column("id", UUID, primary_key=True),
        sa.Column("actor", sa.String(128), nullable=False),
        sa.Column("action", sa.String(64), nullable=False),
        sa.Column("target_id", sa.String(64), nullable=True),
        sa.Column("correlation_id", sa.String(64), nullable=True),
        sa.Column("metadata", JSONB, nullable=False, server_default="{}"),
        _timestamp("created_at", nullable=False, default=True),
    )
    op.create_index("ix_audit_events_action", "audit_events", ["action", "created_at"])


def downgrade() -> None:
    raise NotImplementedError("Baseline migration: downgrade not supported")
