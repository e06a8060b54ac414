"""reports and violations tables

Revision ID: 202610190001
Revises:
Create Date: 2026-10-19
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "202610190001"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "reports",
        sa.Column("report_id", sa.String(), nullable=False),
        sa.Column("drone_id", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint("report_id"),
        sa.UniqueConstraint("drone_id", "date", name="uq_reports_drone_date"),
    )
    op.create_index("ix_reports_drone_id", "reports", ["drone_id"])
    op.create_index("ix_reports_date", "reports", ["date"])
    op.create_index("ix_reports_uploaded_at", "reports", ["uploaded_at"])

    op.create_table(
        "violations",
        sa.Column("seq", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("id", sa.String(), nullable=False),
        sa.Column("report_id", sa.String(), nullable=False),
        sa.Column("drone_id", sa.String(), nullable=False),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("location", sa.String(), nullable=False),
        sa.Column("type", sa.String(), nullable=False),
        sa.Column("timestamp", sa.String(length=8), nullable=False),
        sa.Column("latitude", sa.Float(), nullable=False),
        sa.Column("longitude", sa.Float(), nullable=False),
        sa.Column("image_url", sa.String(), nullable=False),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.ForeignKeyConstraint(["report_id"], ["reports.report_id"]),
        sa.CheckConstraint("latitude >= -90 AND latitude <= 90", name="ck_violations_latitude_range"),
        sa.CheckConstraint("longitude >= -180 AND longitude <= 180", name="ck_violations_longitude_range"),
        sa.PrimaryKeyConstraint("seq"),
    )
    op.create_index("ix_violations_id", "violations", ["id"], unique=True)
    op.create_index("ix_violations_report_id", "violations", ["report_id"])
    op.create_index("ix_violations_drone_id", "violations", ["drone_id"])
    op.create_index("ix_violations_date", "violations", ["date"])
    op.create_index("ix_violations_location", "violations", ["location"])
    op.create_index("ix_violations_type", "violations", ["type"])
    op.create_index("ix_violations_uploaded_at", "violations", ["uploaded_at"])
    op.create_index("ix_violations_date_timestamp", "violations", ["date", "timestamp"])
    op.create_index("ix_violations_drone_type", "violations", ["drone_id", "type"])


def downgrade() -> None:
    op.drop_index("ix_violations_drone_type", table_name="violations")
    op.drop_index("ix_violations_date_timestamp", table_name="violations")
    op.drop_index("ix_violations_uploaded_at", table_name="violations")
    op.drop_index("ix_violations_type", table_name="violations")
    op.drop_index("ix_violations_location", table_name="violations")
    op.drop_index("ix_violations_date", table_name="violations")
    op.drop_index("ix_violations_drone_id", table_name="violations")
    op.drop_index("ix_violations_report_id", table_name="violations")
    op.drop_index("ix_violations_id", table_name="violations")
    op.drop_table("violations")

    op.drop_index("ix_reports_uploaded_at", table_name="reports")
    op.drop_index("ix_reports_date", table_name="reports")
    op.drop_index("ix_reports_drone_id", table_name="reports")
    op.drop_table("reports")
