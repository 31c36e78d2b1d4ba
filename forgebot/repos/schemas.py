from datetime import datetime

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class SyncedCommitResponse(BaseModel):
    """Commit as listed by /bors-commit-list."""

    model_config = ConfigDict(from_attributes=True)

    sha: str
    parent_sha: str | None = None
    time: datetime = Field(validation_alias=AliasChoices("committed_at", "time"))
    pr: int | None = Field(default=None, validation_alias=AliasChoices("pr_number", "pr"))
    repo: str
    branch: str


class BranchHeadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    repo: str
    branch: str
    sha: str
    updated_at: datetime
