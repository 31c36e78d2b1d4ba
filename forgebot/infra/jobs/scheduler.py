"""
Cron-driven job scheduler with two independent loops.

- The scheduling loop expands every job definition into queue entries for
  the upcoming cadence window.
- The processing loop claims due entries and runs them.

Both loops run inside the web process. Several processes may run them
against the same database; the queue's uniqueness and claim rules keep
each scheduled time to a single execution.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from forgebot.config.logging import get_logger, job_context
from forgebot.core.context import Context
from forgebot.core.registries import JobRegistry
from forgebot.infra.jobs.models import QueueEntry
from forgebot.infra.jobs.service import JobQueue

logger = get_logger(__name__)


def utcnow() -> datetime:
    return datetime.now(UTC)


class JobScheduler:
    """
    Expands job definitions into the queue and executes due entries.

    A failed job is logged and its error recorded on the entry; it is not
    retried. The next scheduled time produces a fresh entry.
    """

    def __init__(
        self,
        ctx: Context,
        registry: JobRegistry,
        queue: JobQueue | None = None,
        session_factory: async_sessionmaker[AsyncSession] | None = None,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.ctx = ctx
        self.registry = registry
        self.queue = queue or JobQueue()
        self.session_factory = session_factory or ctx.database.SessionLocal
        self.clock = clock
        self.scheduling_cadence = timedelta(
            seconds=ctx.settings.job_scheduling_cadence_s
        )
        self.processing_cadence = timedelta(
            seconds=ctx.settings.job_processing_cadence_s
        )
        self.running = False
        self._scheduled_until: datetime | None = None

    async def start(self) -> None:
        """Run both loops until ``stop`` is called or the task is cancelled."""
        if self.running:
            raise RuntimeError("Scheduler is already running")

        self.running = True
        logger.info(
            "Starting job scheduler",
            jobs=self.registry.list(),
            scheduling_cadence_s=self.scheduling_cadence.total_seconds(),
            processing_cadence_s=self.processing_cadence.total_seconds(),
        )

        try:
            await asyncio.gather(self._scheduling_loop(), self._processing_loop())
        finally:
            self.running = False

    def stop(self) -> None:
        """Ask both loops to exit after their current tick."""
        logger.info("Stopping job scheduler")
        self.running = False

    async def _scheduling_loop(self) -> None:
        while self.running:
            try:
                await self.schedule_jobs()
            except Exception:
                logger.exception("Error while scheduling jobs")
            await asyncio.sleep(self.scheduling_cadence.total_seconds())

    async def _processing_loop(self) -> None:
        while self.running:
            try:
                await self.process_jobs()
            except Exception:
                logger.exception("Error while processing jobs")
            await asyncio.sleep(self.processing_cadence.total_seconds())

    async def schedule_jobs(self, now: datetime | None = None) -> int:
        """
        Queue every occurrence due before the next scheduling tick.

        The window starts where the previous one ended (or at ``now``), so
        a tick that fires late does not skip occurrences. The first
        occurrence after ``now`` is always queued, even when it falls
        beyond the window.

        Returns:
            Number of entries this call created.
        """
        now = now or self.clock()
        window_start = now
        if self._scheduled_until is not None and self._scheduled_until < now:
            window_start = self._scheduled_until
        window_end = now + self.scheduling_cadence

        created = 0
        async with self.session_factory() as session:
            for definition in self.registry.definitions():
                due_times = set(definition.schedule.between(window_start, window_end))
                due_times.update(definition.schedule.after(now))

                for scheduled_time in sorted(due_times):
                    if await self.queue.insert_job(
                        session, definition.name, scheduled_time, definition.metadata
                    ):
                        created += 1

        self._scheduled_until = window_end
        logger.debug(
            "Jobs scheduled",
            created=created,
            window_start=window_start.isoformat(),
            window_end=window_end.isoformat(),
        )
        return created

    async def process_jobs(self, now: datetime | None = None) -> int:
        """
        Claim and run every due entry.

        Returns:
            Number of entries this call claimed and executed.
        """
        now = now or self.clock()

        async with self.session_factory() as session:
            due = await self.queue.get_jobs_to_execute(session, now)

        executed = 0
        for entry in due:
            async with self.session_factory() as session:
                if not await self.queue.claim_job(session, entry.id, now):
                    logger.debug("Job claimed elsewhere", job_id=str(entry.id))
                    continue

            await self._run(entry)
            executed += 1

        return executed

    async def _run(self, entry: QueueEntry) -> None:
        with job_context(
            job_id=str(entry.id),
            job_name=entry.name,
            scheduled_time=entry.scheduled_time.isoformat(),
        ):
            try:
                job = self.registry.get(entry.name)
            except KeyError as e:
                logger.error("No job registered for queued entry")
                await self._record_failure(entry, str(e))
                return

            try:
                logger.info("Running job")
                await job.run(self.ctx, entry.name, entry.job_metadata)
            except Exception as e:
                logger.exception("Job failed")
                await self._record_failure(entry, f"{e.__class__.__name__}: {e}")
                return

            logger.info("Job finished")

    async def _record_failure(self, entry: QueueEntry, error: str) -> None:
        async with self.session_factory() as session:
            await self.queue.record_failure(session, entry.id, error)
