"""
Read-only views of the repository state the jobs keep in sync.
"""

from datetime import UTC, datetime, timedelta

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from forgebot.infra.database import get_session
from forgebot.repos.schemas import BranchHeadResponse, SyncedCommitResponse
from forgebot.repos.service import RepoStore

router = APIRouter(tags=["repos"])

# Window the perf tooling expects commits from
COMMIT_LIST_DAYS = 168


@router.get("/bors-commit-list", response_model=list[SyncedCommitResponse])
async def bors_commit_list(
    repo: str | None = Query(default=None, description="Filter by owner/name"),
    days: int = Query(default=COMMIT_LIST_DAYS, ge=1, le=3650),
    session: AsyncSession = Depends(get_session),
) -> list[SyncedCommitResponse]:
    """Commits synced during the last ``days`` days, newest first."""

    since = datetime.now(UTC) - timedelta(days=days)
    commits = await RepoStore().list_recent_commits(session, since, repo=repo)

    return [SyncedCommitResponse.model_validate(commit) for commit in commits]


@router.get("/docs-index", response_model=list[BranchHeadResponse])
async def docs_index(
    session: AsyncSession = Depends(get_session),
) -> list[BranchHeadResponse]:
    """Current head of each tracked documentation branch."""

    heads = await RepoStore().get_branch_heads(session)

    return [BranchHeadResponse.model_validate(head) for head in heads]
