from typing import Any

from pydantic import BaseModel, Field


class ZulipMessage(BaseModel):
    """The message that triggered an outgoing webhook."""

    sender_id: int
    sender_full_name: str = ""
    sender_email: str = ""
    content: str = ""


class ZulipRequest(BaseModel):
    """Body Zulip posts to an outgoing webhook."""

    token: str = Field(..., description="Bot token configured in Zulip")
    data: str = Field(..., description="Message text with the bot mention removed")
    message: ZulipMessage


class ZulipResponse(BaseModel):
    """Reply Zulip posts back into the conversation."""

    content: str

    def to_dict(self) -> dict[str, Any]:
        return self.model_dump()
