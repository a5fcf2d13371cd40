"""Initial schema for Progresstrack.

Creates the earned value tables: projects, milestone_templates, components,
manhour_budgets, component_manhour_allocations, and milestone_events, plus
the partial unique index that allows one active budget per project.

Revision ID: 001
Revises: None
Create Date: 2026-10-19
"""

from __future__ import annotations

from typing import Sequence, Union

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects.postgresql import ENUM, JSONB

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
    ]


def upgrade() -> None:
    calculation_basis = sa.Enum(
        "dimension", "linear_length", "fixed", "manual_override",
        name="calculationbasis",
    )
    calculation_basis.create(op.get_bind(), checkfirst=True)

    op.create_table(
        "projects",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("name", sa.Text(), nullable=False),
        sa.Column("code", sa.Text(), nullable=True),
        *_timestamps(),
    )

    op.create_table(
        "milestone_templates",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False, server_default="1"),
        sa.Column("milestones", JSONB(), nullable=False),
        sa.Column("created_by", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("category", "version", name="uq_milestone_templates_category_version"),
    )
    op.create_index("ix_milestone_templates_category", "milestone_templates", ["category"])

    op.create_table(
        "components",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("category", sa.Text(), nullable=False),
        sa.Column("identity_key", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")),
        sa.Column("attributes", JSONB(), nullable=True),
        sa.Column(
            "template_id", sa.Uuid(), sa.ForeignKey("milestone_templates.id"), nullable=True
        ),
        sa.Column(
            "current_milestones", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column("percent_complete", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("is_retired", sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column("area", sa.Text(), nullable=True),
        sa.Column("system", sa.Text(), nullable=True),
        sa.Column("test_package", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_components_project_id", "components", ["project_id"])

    op.create_table(
        "manhour_budgets",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("project_id", sa.Uuid(), sa.ForeignKey("projects.id"), nullable=False),
        sa.Column("version_number", sa.Integer(), nullable=False),
        sa.Column("total_budgeted_manhours", sa.Numeric(12, 2), nullable=False),
        sa.Column("revision_reason", sa.Text(), nullable=False, server_default=""),
        sa.Column("effective_date", sa.Date(), nullable=False),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Text(), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint(
            "project_id", "version_number", name="uq_manhour_budgets_project_version"
        ),
        sa.CheckConstraint("total_budgeted_manhours > 0", name="ck_manhour_budgets_total_positive"),
    )
    op.create_index("ix_manhour_budgets_project_id", "manhour_budgets", ["project_id"])
    op.create_index(
        "uq_manhour_budgets_one_active",
        "manhour_budgets",
        ["project_id"],
        unique=True,
        postgresql_where=sa.text("is_active"),
    )

    op.create_table(
        "component_manhour_allocations",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("component_id", sa.Uuid(), sa.ForeignKey("components.id"), nullable=False),
        sa.Column("budget_id", sa.Uuid(), sa.ForeignKey("manhour_budgets.id"), nullable=False),
        sa.Column("budgeted_manhours", sa.Numeric(12, 2), nullable=False),
        sa.Column("earned_manhours", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("weight", sa.Float(), nullable=False),
        sa.Column(
            "calculation_basis",
            ENUM(name="calculationbasis", create_type=False),
            nullable=False,
        ),
        sa.Column(
            "calculation_trace", JSONB(), nullable=False, server_default=sa.text("'{}'::jsonb")
        ),
        sa.Column("last_recalculated_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.UniqueConstraint("component_id", "budget_id", name="uq_allocations_component_budget"),
        sa.CheckConstraint("budgeted_manhours >= 0", name="ck_allocations_budgeted_non_negative"),
        sa.CheckConstraint("earned_manhours >= 0", name="ck_allocations_earned_non_negative"),
    )
    op.create_index(
        "ix_component_manhour_allocations_component_id",
        "component_manhour_allocations",
        ["component_id"],
    )
    op.create_index(
        "ix_component_manhour_allocations_budget_id",
        "component_manhour_allocations",
        ["budget_id"],
    )

    op.create_table(
        "milestone_events",
        sa.Column("id", sa.Uuid(), server_default=sa.text("gen_random_uuid()"), primary_key=True),
        sa.Column("component_id", sa.Uuid(), sa.ForeignKey("components.id"), nullable=False),
        sa.Column("milestone_name", sa.Text(), nullable=False),
        sa.Column("previous_value", sa.Numeric(5, 2), nullable=True),
        sa.Column("value", sa.Numeric(5, 2), nullable=False),
        sa.Column("delta_manhours", sa.Numeric(12, 4), nullable=False, server_default="0"),
        sa.Column("budget_id", sa.Uuid(), sa.ForeignKey("manhour_budgets.id"), nullable=True),
        sa.Column("user_id", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_milestone_events_component_id", "milestone_events", ["component_id"])


def downgrade() -> None:
    op.drop_table("milestone_events")
    op.drop_table("component_manhour_allocations")
    op.drop_table("manhour_budgets")
    op.drop_table("components")
    op.drop_table("milestone_templates")
    op.drop_table("projects")

    sa.Enum(name="calculationbasis").drop(op.get_bind(), checkfirst=True)
