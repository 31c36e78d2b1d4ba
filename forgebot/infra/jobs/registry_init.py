"""
Job registry initialization.

Registers all scheduled jobs with the global job registry. Every schedule is
parsed here, so a broken cron expression stops the process at startup.
"""

import logging

from forgebot.core.registries import Job, JobRegistry, job_registry
from forgebot.infra.jobs.handlers import CommitsSyncJob, DocsUpdateJob

logger = logging.getLogger(__name__)


def default_jobs() -> list[Job]:
    """The jobs to schedule, repeatedly."""
    return [
        DocsUpdateJob(),
        CommitsSyncJob(),
    ]


def register_jobs(registry: JobRegistry = job_registry) -> None:
    """Register all scheduled jobs with the job registry."""

    if registry.list():
        return

    logger.info("Registering scheduled jobs")

    for job in default_jobs():
        registry.add(job)

    logger.info("Scheduled jobs registered", extra={"registered_jobs": registry.list()})
