"""initial schema

Revision ID: 202501150900
Revises:
Create Date: 2025-01-15 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


revision = "202501150900"
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    op.create_table(
        "users",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=False),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("birthday", sa.Date(), nullable=False),
    )

    op.create_table(
        "costs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("category", sa.String(length=20), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.CheckConstraint("amount >= 0", name="ck_costs_amount_positive"),
    )
    op.create_index("ix_costs_user_created", "costs", ["user_id", "created_at"])

    op.create_table(
        "reports",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("user_id", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("report", sa.JSON(), nullable=False),
        sa.Column("computed_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("user_id", "year", "month", name="uq_report_user_month"),
        sa.CheckConstraint("month BETWEEN 1 AND 12", name="ck_report_month_range"),
    )

    op.create_table(
        "logs",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column("ts", sa.DateTime(), nullable=False),
        sa.Column("service", sa.String(length=60), nullable=False),
        sa.Column("type", sa.String(length=40), nullable=False),
        sa.Column("method", sa.String(length=10)),
        sa.Column("path", sa.Text()),
        sa.Column("status_code", sa.Integer()),
        sa.Column("response_time_ms", sa.Float()),
        sa.Column("message", sa.Text()),
        sa.Column("meta", sa.JSON()),
    )
    op.create_index("ix_logs_ts", "logs", ["ts"])


def downgrade():
    op.drop_index("ix_logs_ts", table_name="logs")
    op.drop_table("logs")
    op.drop_table("reports")
    op.drop_index("ix_costs_user_created", table_name="costs")
    op.drop_table("costs")
    op.drop_table("users")
