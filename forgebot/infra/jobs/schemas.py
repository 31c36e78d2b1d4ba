"""
Job queue Pydantic schemas.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class QueueEntryResponse(BaseModel):
    """Schema for queue entry API responses."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    scheduled_time: datetime
    metadata: dict[str, Any] = Field(
        validation_alias=AliasChoices("job_metadata", "metadata")
    )
    executed_at: datetime | None = None
    error_message: str | None = None
    created_at: datetime


class QueueListResponse(BaseModel):
    """Schema for queue history listings."""

    jobs: list[QueueEntryResponse]
    limit: int
