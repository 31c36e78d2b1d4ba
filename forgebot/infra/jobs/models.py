"""
Job queue model.
"""

from datetime import UTC, datetime
from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, TIMESTAMP, Text, UniqueConstraint, Uuid
from sqlalchemy.orm import Mapped, mapped_column

from forgebot.infra.database import Base

UNIQUE_SCHEDULED_JOB = "jobs_name_scheduled_time_unique"


class QueueEntry(Base):
    """
    One due instance of a scheduled job.

    Coordination between processes relies on two store-level rules:
    - (name, scheduled_time) is unique, so concurrent expansions of the
      same schedule converge to a single row
    - executed_at is set with a conditional UPDATE, so exactly one
      process claims a due row
    """

    __tablename__ = "jobs"

    id: Mapped[UUID] = mapped_column(Uuid, primary_key=True, default=uuid4)
    name: Mapped[str] = mapped_column(
        Text, nullable=False, comment="Job definition name"
    )
    scheduled_time: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), nullable=False, comment="When the job is due"
    )
    # "metadata" is reserved on declarative classes
    job_metadata: Mapped[dict[str, Any]] = mapped_column(
        "metadata",
        JSON,
        nullable=False,
        default=dict,
        comment="Copy of the definition's metadata at enqueue time",
    )
    executed_at: Mapped[datetime | None] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=True,
        comment="When the job was claimed for execution",
    )
    error_message: Mapped[str | None] = mapped_column(
        Text, nullable=True, comment="Failure of the execution attempt, if any"
    )
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True),
        nullable=False,
        default=lambda: datetime.now(UTC),
    )

    __table_args__ = (
        UniqueConstraint("name", "scheduled_time", name=UNIQUE_SCHEDULED_JOB),
    )

    def is_pending(self) -> bool:
        """Check if the entry has not been claimed yet."""
        return self.executed_at is None

    def has_failed(self) -> bool:
        """Check if the entry ran and its execution failed."""
        return self.executed_at is not None and self.error_message is not None
