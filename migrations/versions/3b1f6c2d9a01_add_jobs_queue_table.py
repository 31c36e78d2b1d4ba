"""add jobs queue table for scheduled jobs

Revision ID: 3b1f6c2d9a01
Revises:
Create Date: 2026-10-19 09:12:31.482113

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "3b1f6c2d9a01"
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "jobs",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.Text, nullable=False, comment="Job definition name"),
        sa.Column(
            "scheduled_time",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            comment="When the job is due",
        ),
        sa.Column(
            "metadata",
            sa.JSON,
            nullable=False,
            comment="Copy of the definition's metadata at enqueue time",
        ),
        sa.Column(
            "executed_at",
            sa.TIMESTAMP(timezone=True),
            nullable=True,
            comment="When the job was claimed for execution",
        ),
        sa.Column(
            "error_message",
            sa.Text,
            nullable=True,
            comment="Failure of the execution attempt, if any",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        # One row per job and due time; duplicate inserts from racing
        # schedulers fail here
        sa.UniqueConstraint(
            "name", "scheduled_time", name="jobs_name_scheduled_time_unique"
        ),
    )

    # Processing tick scans unclaimed due rows
    op.create_index(
        "ix_jobs_pending_scheduled_time",
        "jobs",
        ["scheduled_time"],
        postgresql_where=sa.text("executed_at IS NULL"),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index("ix_jobs_pending_scheduled_time", table_name="jobs")
    op.drop_table("jobs")
