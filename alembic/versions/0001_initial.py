"""initial pricing schema

Revision ID: 0001_initial
Revises:
Create Date: 2026-10-17 00:00:00

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = "0001_initial"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

SCOPE_COLUMNS = ("sport_type", "tournament_id", "team_id", "event_id", "ticket_id")


def _scope_columns() -> list[sa.Column]:
    return [
        sa.Column("sport_type", sa.String(length=100), nullable=True),
        sa.Column("tournament_id", sa.String(length=100), nullable=True),
        sa.Column("team_id", sa.String(length=100), nullable=True),
        sa.Column("event_id", sa.String(length=100), nullable=True),
        sa.Column("ticket_id", sa.String(length=100), nullable=True),
        sa.Column("scope_key", sa.String(length=520), nullable=False),
        sa.Column("level", sa.String(length=16), nullable=False),
        sa.Column("sport_name", sa.String(length=255), nullable=True),
        sa.Column("tournament_name", sa.String(length=255), nullable=True),
        sa.Column("team_name", sa.String(length=255), nullable=True),
        sa.Column("event_name", sa.String(length=255), nullable=True),
        sa.Column("ticket_name", sa.String(length=255), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
    ]


def _create_scope_indexes(table: str) -> None:
    for column in (*SCOPE_COLUMNS, "level", "is_active"):
        op.create_index(f"ix_{table}_{column}", table, [column], unique=False)


def _drop_scope_indexes(table: str) -> None:
    for column in (*SCOPE_COLUMNS, "level", "is_active"):
        op.drop_index(f"ix_{table}_{column}", table_name=table)


def upgrade() -> None:
    op.create_table(
        "hospitalities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("price_usd", sa.Numeric(10, 2), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_hospitalities"),
    )
    op.create_index("ix_hospitalities_is_active", "hospitalities", ["is_active"], unique=False)
    op.create_index("ix_hospitalities_sort_order", "hospitalities", ["sort_order"], unique=False)

    op.create_table(
        "markup_rules",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("markup_type", sa.String(length=16), nullable=False, server_default="fixed"),
        sa.Column("markup_amount", sa.Numeric(10, 2), nullable=False, server_default="0"),
        *_scope_columns(),
        sa.PrimaryKeyConstraint("id", name="pk_markup_rules"),
        sa.UniqueConstraint("scope_key", name="uq_markup_rules_scope_key"),
    )
    _create_scope_indexes("markup_rules")

    op.create_table(
        "hospitality_assignments",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("hospitality_id", sa.Integer(), nullable=False),
        *_scope_columns(),
        sa.ForeignKeyConstraint(
            ["hospitality_id"],
            ["hospitalities.id"],
            name="fk_hospitality_assignments_hospitality_id_hospitalities",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_hospitality_assignments"),
        sa.UniqueConstraint("hospitality_id", "scope_key", name="uq_hospitality_assignments_hospitality_scope"),
    )
    _create_scope_indexes("hospitality_assignments")
    op.create_index(
        "ix_hospitality_assignments_hospitality_id", "hospitality_assignments", ["hospitality_id"], unique=False
    )

    op.create_table(
        "ticket_markups",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.String(length=100), nullable=False),
        sa.Column("ticket_id", sa.String(length=100), nullable=False),
        sa.Column("markup_type", sa.String(length=16), nullable=False, server_default="fixed"),
        sa.Column("markup_price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column("markup_percentage", sa.Numeric(5, 2), nullable=True),
        sa.Column("base_price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column("final_price_usd", sa.Numeric(10, 2), nullable=False),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("updated_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("id", name="pk_ticket_markups"),
        sa.UniqueConstraint("event_id", "ticket_id", name="uq_ticket_markups_event_ticket"),
    )
    op.create_index("ix_ticket_markups_event_id", "ticket_markups", ["event_id"], unique=False)
    op.create_index("ix_ticket_markups_ticket_id", "ticket_markups", ["ticket_id"], unique=False)

    op.create_table(
        "ticket_hospitalities",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("event_id", sa.String(length=100), nullable=False),
        sa.Column("ticket_id", sa.String(length=100), nullable=False),
        sa.Column("hospitality_id", sa.Integer(), nullable=False),
        sa.Column("custom_price_usd", sa.Numeric(10, 2), nullable=True),
        sa.Column("created_by", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(
            ["hospitality_id"],
            ["hospitalities.id"],
            name="fk_ticket_hospitalities_hospitality_id_hospitalities",
            ondelete="CASCADE",
        ),
        sa.PrimaryKeyConstraint("id", name="pk_ticket_hospitalities"),
        sa.UniqueConstraint(
            "event_id", "ticket_id", "hospitality_id", name="uq_ticket_hospitalities_event_ticket_hospitality"
        ),
    )
    op.create_index("ix_ticket_hospitalities_event_id", "ticket_hospitalities", ["event_id"], unique=False)
    op.create_index("ix_ticket_hospitalities_ticket_id", "ticket_hospitalities", ["ticket_id"], unique=False)
    op.create_index(
        "ix_ticket_hospitalities_hospitality_id", "ticket_hospitalities", ["hospitality_id"], unique=False
    )


def downgrade() -> None:
    op.drop_index("ix_ticket_hospitalities_hospitality_id", table_name="ticket_hospitalities")
    op.drop_index("ix_ticket_hospitalities_ticket_id", table_name="ticket_hospitalities")
    op.drop_index("ix_ticket_hospitalities_event_id", table_name="ticket_hospitalities")
    op.drop_table("ticket_hospitalities")

    op.drop_index("ix_ticket_markups_ticket_id", table_name="ticket_markups")
    op.drop_index("ix_ticket_markups_event_id", table_name="ticket_markups")
    op.drop_table("ticket_markups")

    op.drop_index("ix_hospitality_assignments_hospitality_id", table_name="hospitality_assignments")
    _drop_scope_indexes("hospitality_assignments")
    op.drop_table("hospitality_assignments")

    _drop_scope_indexes("markup_rules")
    op.drop_table("markup_rules")

    op.drop_index("ix_hospitalities_sort_order", table_name="hospitalities")
    op.drop_index("ix_hospitalities_is_active", table_name="hospitalities")
    op.drop_table("hospitalities")
