"""Alembic migration: statements and statement_expenses tables.

One statement per user and month is enforced by ``uq_statement_user_period``.

Revision ID: 002_statements
Revises: 001_users_invoices
Create Date: 2026-10-01
"""
from alembic import op
import sqlalchemy as sa

revision = "002_statements"
down_revision = "001_users_invoices"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "statements",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column("user_id", sa.Integer(), sa.ForeignKey("users.id"), nullable=False),
        sa.Column("period_month", sa.Integer(), nullable=False),
        sa.Column("period_year", sa.Integer(), nullable=False),
        sa.Column("declared_total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("calculated_total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("difference", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("status", sa.String(20), nullable=False, server_default="in_review"),
        sa.Column("source_filename", sa.String(500), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint(
            "user_id", "period_month", "period_year", name="uq_statement_user_period"
        ),
    )
    op.create_index("ix_statements_user_id", "statements", ["user_id"])

    op.create_table(
        "statement_expenses",
        sa.Column("id", sa.Integer(), nullable=False),
        sa.Column(
            "statement_id",
            sa.Integer(),
            sa.ForeignKey("statements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("description", sa.String(500), nullable=False),
        sa.Column("value", sa.Numeric(12, 2), nullable=False),
        sa.Column("expense_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(), nullable=False, server_default=sa.func.now()),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_statement_expenses_statement_id", "statement_expenses", ["statement_id"]
    )


def downgrade() -> None:
    op.drop_index("ix_statement_expenses_statement_id", table_name="statement_expenses")
    op.drop_table("statement_expenses")
    op.drop_index("ix_statements_user_id", table_name="statements")
    op.drop_table("statements")
