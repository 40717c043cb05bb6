"""add task exceptions and completions"""
from __future__ import annotations

from alembic import op
import sqlalchemy as sa

revision = "0002_add_occurrence_tables"
down_revision = "0001_create_tasks"
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "task_exceptions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("exception_date", sa.Date(), nullable=False),
        sa.Column("type", sa.String(length=10), nullable=False),
        sa.Column("title", sa.String(length=200), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("time", sa.String(length=5), nullable=True),
        sa.Column("reminder_enabled", sa.Boolean(), nullable=True),
        sa.Column("reminder_offset_minutes", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.UniqueConstraint("task_id", "exception_date", name="uq_task_exceptions_task_date"),
    )
    op.create_index("ix_task_exceptions_task_id", "task_exceptions", ["task_id"], unique=False)

    op.create_table(
        "task_completions",
        sa.Column("id", sa.Integer(), primary_key=True),
        sa.Column(
            "task_id",
            sa.Integer(),
            sa.ForeignKey("tasks.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("date", sa.Date(), nullable=False),
        sa.Column("completed", sa.Boolean(), nullable=False, server_default=sa.text("true")),
        sa.Column("completed_at", sa.DateTime(), nullable=True),
        sa.UniqueConstraint("task_id", "date", name="uq_task_completions_task_date"),
    )
    op.create_index("ix_task_completions_task_id", "task_completions", ["task_id"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_task_completions_task_id", table_name="task_completions")
    op.drop_table("task_completions")
    op.drop_index("ix_task_exceptions_task_id", table_name="task_exceptions")
    op.drop_table("task_exceptions")
