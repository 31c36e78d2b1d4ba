"""
Repository state mirrored from GitHub by the scheduled jobs.
"""

from datetime import UTC, datetime
from uuid import UUID, uuid4

from sqlalchemy import TIMESTAMP, Integer, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from forgebot.infra.database import Base

UNIQUE_SYNCED_COMMIT = "synced_commits_repo_sha_unique"


class SyncedCommit(Base):
    """A commit pulled from a tracked branch."""

    __tablename__ = "synced_commits"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    repo: Mapped[str] = mapped_column(Text, nullable=False, comment="owner/name")
    branch: Mapped[str] = mapped_column(Text, nullable=False)
    sha: Mapped[str] = mapped_column(Text, nullable=False)
    parent_sha: Mapped[str | None] = mapped_column(Text, nullable=True)
    committed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, comment="Committer date"
    )
    pr_number: Mapped[int | None] = mapped_column(
        Integer, nullable=True, comment="Pull request merged by this commit"
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (UniqueConstraint("repo", "sha", name=UNIQUE_SYNCED_COMMIT),)


class BranchHead(Base):
    """Last seen head of a documentation branch."""

    __tablename__ = "branch_heads"

    repo: Mapped[str] = mapped_column(Text, primary_key=True, comment="owner/name")
    branch: Mapped[str] = mapped_column(Text, nullable=False)
    sha: Mapped[str] = mapped_column(Text, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(TIMESTAMP(timezone=True), nullable=False)
