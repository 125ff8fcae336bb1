"""init schema (users, tasks)

Revision ID: 0001_init_schema
Revises:
Create Date: 2025-09-20 00:00:00.000000

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "0001_init_schema"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create users and tasks tables with the indexes used by the due-task scan."""
    # users
    op.create_table(
        "users",
        sa.Column("username", sa.String(), nullable=False),
        sa.Column("password_hash", sa.String(), nullable=False),
        sa.Column("device_token", sa.String(), nullable=True),
        sa.Column("expo_push_token", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("username"),
    )

    # tasks
    op.create_table(
        "tasks",
        sa.Column("id", sa.String(length=32), nullable=False),
        sa.Column("owner", sa.String(), nullable=False),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("status", sa.String(), nullable=True),
        sa.Column("priority", sa.String(), nullable=True),
        sa.Column("repeat", sa.String(), nullable=True),
        sa.Column("days", sa.JSON(), nullable=True),
        sa.Column("dates", sa.JSON(), nullable=True),
        sa.Column("time", sa.String(length=5), nullable=True),
        sa.Column("task_time", sa.DateTime(), nullable=True),
        sa.Column("last_notified_at", sa.DateTime(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=True),
        sa.Column("updated_at", sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(op.f("ix_tasks_owner"), "tasks", ["owner"], unique=False)
    op.create_index("ix_tasks_status", "tasks", ["status"], unique=False)
    op.create_index("ix_tasks_time", "tasks", ["time"], unique=False)
    op.create_index("ix_tasks_task_time", "tasks", ["task_time"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_tasks_task_time", table_name="tasks")
    op.drop_index("ix_tasks_time", table_name="tasks")
    op.drop_index("ix_tasks_status", table_name="tasks")
    op.drop_index(op.f("ix_tasks_owner"), table_name="tasks")
    op.drop_table("tasks")
    op.drop_table("users")
