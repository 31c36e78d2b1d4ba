"""add synced commits and branch heads tables

Revision ID: 7c4e2a9f1b53
Revises: 3b1f6c2d9a01
Create Date: 2026-10-20 14:03:52.917204

"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = "7c4e2a9f1b53"
down_revision: Union[str, Sequence[str], None] = "3b1f6c2d9a01"
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        "synced_commits",
        sa.Column("id", sa.UUID(as_uuid=True), primary_key=True),
        sa.Column("repo", sa.Text, nullable=False, comment="owner/name"),
        sa.Column("branch", sa.Text, nullable=False),
        sa.Column("sha", sa.Text, nullable=False),
        sa.Column("parent_sha", sa.Text, nullable=True),
        sa.Column(
            "committed_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            comment="Committer date",
        ),
        sa.Column(
            "pr_number",
            sa.Integer,
            nullable=True,
            comment="Pull request merged by this commit",
        ),
        sa.Column(
            "created_at",
            sa.TIMESTAMP(timezone=True),
            nullable=False,
            server_default=sa.func.now(),
        ),
        sa.UniqueConstraint("repo", "sha", name="synced_commits_repo_sha_unique"),
    )

    # /bors-commit-list reads the most recent commits
    op.create_index(
        "ix_synced_commits_committed_at", "synced_commits", ["committed_at"]
    )

    op.create_table(
        "branch_heads",
        sa.Column("repo", sa.Text, primary_key=True, comment="owner/name"),
        sa.Column("branch", sa.Text, nullable=False),
        sa.Column("sha", sa.Text, nullable=False),
        sa.Column("updated_at", sa.TIMESTAMP(timezone=True), nullable=False),
    )


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_table("branch_heads")
    op.drop_index("ix_synced_commits_committed_at", table_name="synced_commits")
    op.drop_table("synced_commits")
