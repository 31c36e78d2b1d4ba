"""
Job queue operations on the durable store.
"""

import logging
from datetime import datetime
from typing import Any
from uuid import UUID

from sqlalchemy import and_, desc, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forgebot.infra.jobs.models import QueueEntry

logger = logging.getLogger(__name__)


class JobQueue:
    """
    Persisted queue of scheduled job instances.

    Every operation commits its own unit of work so that a failure on one
    entry never rolls back another.
    """

    async def insert_job(
        self,
        session: AsyncSession,
        name: str,
        scheduled_time: datetime,
        metadata: dict[str, Any],
    ) -> bool:
        """
        Queue an instance of ``name`` due at ``scheduled_time``.

        Returns:
            True if a row was created, False if one already existed
            (another process or an earlier tick got there first).
        """
        entry = QueueEntry(
            name=name,
            scheduled_time=scheduled_time,
            job_metadata=dict(metadata),
        )

        try:
            session.add(entry)
            await session.commit()
        except IntegrityError:
            # Unique (name, scheduled_time): lost the race, nothing to do
            await session.rollback()
            logger.debug(
                "Job already queued",
                extra={"job_name": name, "scheduled_time": scheduled_time.isoformat()},
            )
            return False

        logger.info(
            "Job queued",
            extra={
                "job_id": str(entry.id),
                "job_name": name,
                "scheduled_time": scheduled_time.isoformat(),
            },
        )
        return True

    async def get_job_by_name_and_scheduled_time(
        self, session: AsyncSession, name: str, scheduled_time: datetime
    ) -> QueueEntry | None:
        result = await session.execute(
            select(QueueEntry).where(
                and_(
                    QueueEntry.name == name,
                    QueueEntry.scheduled_time == scheduled_time,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_jobs_to_execute(
        self, session: AsyncSession, now: datetime, limit: int = 100
    ) -> list[QueueEntry]:
        """Unclaimed entries that are due at ``now``, oldest first."""
        result = await session.execute(
            select(QueueEntry)
            .where(
                and_(
                    QueueEntry.scheduled_time <= now,
                    QueueEntry.executed_at.is_(None),
                )
            )
            .order_by(QueueEntry.scheduled_time, QueueEntry.name)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def claim_job(self, session: AsyncSession, job_id: UUID, now: datetime) -> bool:
        """
        Atomically mark an entry as executed.

        Returns:
            True if this call set executed_at, False if the entry was
            already claimed.
        """
        result = await session.execute(
            update(QueueEntry)
            .where(and_(QueueEntry.id == job_id, QueueEntry.executed_at.is_(None)))
            .values(executed_at=now)
            .execution_options(synchronize_session=False)
        )
        await session.commit()

        return result.rowcount == 1

    async def record_failure(
        self, session: AsyncSession, job_id: UUID, error: str
    ) -> None:
        """Store the error of a failed execution attempt."""
        await session.execute(
            update(QueueEntry)
            .where(QueueEntry.id == job_id)
            .values(error_message=error)
            .execution_options(synchronize_session=False)
        )
        await session.commit()

    async def list_jobs(
        self, session: AsyncSession, name: str | None = None, limit: int = 50
    ) -> list[QueueEntry]:
        """Queue history, most recently scheduled first."""
        query = select(QueueEntry)
        if name:
            query = query.where(QueueEntry.name == name)
        query = query.order_by(desc(QueueEntry.scheduled_time)).limit(limit)

        result = await session.execute(query)
        return list(result.scalars().all())
