"""create staff assignments

Revision ID: 20261019_0002
Revises: 20261019_0001
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

revision = "20261019_0002"
down_revision = "20261019_0001"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "staff_assignments",
        sa.Column("id", sa.String(length=36), primary_key=True, nullable=False),
        sa.Column("class_number", sa.Integer(), nullable=False),
        sa.Column("section", sa.String(length=1), nullable=False),
        sa.Column("subject", sa.String(length=100), nullable=False),
        sa.Column(
            "teacher_id",
            sa.String(length=36),
            sa.ForeignKey("users.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("day", sa.String(length=10), nullable=False),
        sa.Column("start_time", sa.String(length=5), nullable=False),
        sa.Column("end_time", sa.String(length=5), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.UniqueConstraint(
            "class_number",
            "section",
            "subject",
            "day",
            "start_time",
            "end_time",
            "academic_year",
            name="uq_staff_assignments_slot",
        ),
    )
    op.create_index(
        "ix_staff_assignments_teacher_day",
        "staff_assignments",
        ["teacher_id", "day", "academic_year"],
    )
    op.create_index(
        "ix_staff_assignments_class_day",
        "staff_assignments",
        ["class_number", "section", "day", "academic_year"],
    )


def downgrade() -> None:
    op.drop_index("ix_staff_assignments_class_day", table_name="staff_assignments")
    op.drop_index("ix_staff_assignments_teacher_day", table_name="staff_assignments")
    op.drop_table("staff_assignments")
