"""
Job queue history endpoint.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from forgebot.infra.database import get_session
from forgebot.infra.jobs.schemas import QueueEntryResponse, QueueListResponse
from forgebot.infra.jobs.service import JobQueue

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("", response_model=QueueListResponse)
async def list_jobs(
    name: str | None = Query(default=None, description="Filter by job name"),
    limit: int = Query(default=50, ge=1, le=1000, description="Maximum results"),
    session: AsyncSession = Depends(get_session),
) -> QueueListResponse:
    """List queued and executed job instances, newest first."""

    entries = await JobQueue().list_jobs(session, name=name, limit=limit)

    return QueueListResponse(
        jobs=[QueueEntryResponse.model_validate(entry) for entry in entries],
        limit=limit,
    )
