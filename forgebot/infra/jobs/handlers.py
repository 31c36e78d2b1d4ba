"""
Scheduled jobs.

Each class implements the Job protocol: ``schedule()`` describes the job's
name, cron expression and metadata, and ``run()`` executes one queued
instance with the metadata copied into the queue entry.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Any

from forgebot.core.context import Context
from forgebot.infra.jobs.cron import JobDefinition
from forgebot.repos.service import RepoStore

logger = logging.getLogger(__name__)


class DocsUpdateJob:
    """
    Records the head of each documentation repository in the docs index.

    Metadata expected:
    {
        "repos": [{"repo": "owner/name", "branch": "main"}, ...]
    }
    """

    name = "docs_update"

    def schedule(self) -> JobDefinition:
        # Mondays at 12:00 UTC
        return JobDefinition.create(
            self.name,
            "0 0 12 * * MON *",
            {
                "repos": [
                    {"repo": "rust-lang/book", "branch": "main"},
                    {"repo": "rust-lang/reference", "branch": "master"},
                    {"repo": "rust-lang/rust-by-example", "branch": "master"},
                ]
            },
        )

    async def run(self, ctx: Context, name: str, metadata: dict[str, Any]) -> None:
        repos = metadata.get("repos")
        if not isinstance(repos, list):
            raise ValueError("repos list is required in metadata")

        heads: dict[str, tuple[str, str]] = {}
        for entry in repos:
            repo = entry["repo"]
            branch = entry.get("branch", "main")
            heads[repo] = (branch, await ctx.github.get_branch_head(repo, branch))

        async with ctx.database.SessionLocal() as session:
            await RepoStore().record_branch_heads(session, heads, datetime.now(UTC))

        logger.info("Docs index refreshed", extra={"job_name": name, "repos": sorted(heads)})


class CommitsSyncJob:
    """
    Pulls the commits landed on a branch and stores the new ones.

    The lookback overlaps the previous run; already stored commits are skipped.

    Metadata expected:
    {
        "repo": "owner/name",
        "branch": "master",
        "lookback_minutes": 60
    }
    """

    name = "commits_sync"

    def schedule(self) -> JobDefinition:
        # Every half hour
        return JobDefinition.create(
            self.name,
            "0 0,30 * * * *",
            {"repo": "rust-lang/rust", "branch": "master", "lookback_minutes": 60},
        )

    async def run(self, ctx: Context, name: str, metadata: dict[str, Any]) -> None:
        repo = metadata.get("repo")
        if not repo:
            raise ValueError("repo is required in metadata")

        branch = metadata.get("branch", "master")
        lookback = timedelta(minutes=int(metadata.get("lookback_minutes", 60)))
        since = datetime.now(UTC) - lookback

        commits = await ctx.github.list_commits(repo, branch, since=since)

        async with ctx.database.SessionLocal() as session:
            created = await RepoStore().record_commits(session, repo, branch, commits)

        logger.info(
            "Commits pulled",
            extra={
                "job_name": name,
                "repo": repo,
                "branch": branch,
                "commit_count": len(commits),
                "new_commits": created,
                "latest": commits[0]["sha"] if commits else None,
            },
        )
