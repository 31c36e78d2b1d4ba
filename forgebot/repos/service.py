"""
Storage of commits and branch heads pulled from GitHub.
"""

import logging
import re
from datetime import datetime
from typing import Any

from sqlalchemy import and_, desc, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from forgebot.repos.models import BranchHead, SyncedCommit

logger = logging.getLogger(__name__)

# Merge commits made by bors or the GitHub merge button
_MERGED_PR = re.compile(r"^(?:Auto merge of|Merge pull request) #(\d+)")


def merged_pr_number(message: str) -> int | None:
    """Pull request number a merge commit message refers to, if any."""
    match = _MERGED_PR.match(message)
    return int(match.group(1)) if match else None


def parse_commit(data: dict[str, Any]) -> dict[str, Any]:
    """
    Extract the stored fields from a GitHub commit object.

    Raises:
        ValueError: required fields are missing
    """
    try:
        sha = data["sha"]
        details = data["commit"]
        committed_at = datetime.fromisoformat(details["committer"]["date"])
    except (KeyError, TypeError) as e:
        raise ValueError(f"Malformed commit object: missing {e}") from e

    parents = data.get("parents") or []
    return {
        "sha": sha,
        "parent_sha": parents[0]["sha"] if parents else None,
        "committed_at": committed_at,
        "pr_number": merged_pr_number(details.get("message", "")),
    }


class RepoStore:
    """
    Persisted commits and branch heads.

    Like the job queue, each write commits on its own so a duplicate row
    only skips that row.
    """

    async def record_commits(
        self,
        session: AsyncSession,
        repo: str,
        branch: str,
        commits: list[dict[str, Any]],
    ) -> int:
        """
        Store GitHub commit objects, skipping ones already stored.

        Returns:
            Number of new rows.
        """
        created = 0
        for data in commits:
            session.add(SyncedCommit(repo=repo, branch=branch, **parse_commit(data)))
            try:
                await session.commit()
            except IntegrityError:
                await session.rollback()
                continue
            created += 1

        logger.info(
            "Commits recorded",
            extra={"repo": repo, "branch": branch, "received": len(commits), "created": created},
        )
        return created

    async def list_recent_commits(
        self,
        session: AsyncSession,
        since: datetime,
        repo: str | None = None,
        limit: int = 1000,
    ) -> list[SyncedCommit]:
        """Commits made after ``since``, newest first."""
        conditions = [SyncedCommit.committed_at >= since]
        if repo:
            conditions.append(SyncedCommit.repo == repo)

        result = await session.execute(
            select(SyncedCommit)
            .where(and_(*conditions))
            .order_by(desc(SyncedCommit.committed_at))
            .limit(limit)
        )
        return list(result.scalars().all())

    async def record_branch_heads(
        self,
        session: AsyncSession,
        heads: dict[str, tuple[str, str]],
        now: datetime,
    ) -> None:
        """Replace the stored head of each ``repo: (branch, sha)`` pair."""
        for repo, (branch, sha) in heads.items():
            await session.merge(BranchHead(repo=repo, branch=branch, sha=sha, updated_at=now))
        await session.commit()

    async def get_branch_heads(self, session: AsyncSession) -> list[BranchHead]:
        result = await session.execute(select(BranchHead).order_by(BranchHead.repo))
        return list(result.scalars().all())
