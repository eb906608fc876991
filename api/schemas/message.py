from pydantic import BaseModel, Field, field_validator
from api.schemas.auth import trimmed


class LeaveMessageRequest(BaseModel):
    code: str = ""
    nickname: str = ""
    content: str = ""

    @field_validator("code", "nickname", "content", mode="before")
    @classmethod
    def trim_fields(cls, v):
        return trimmed(v)


class MessageRecord(BaseModel):
    """One entry of the mailbox file; field order is the on-disk order."""
    nickname: str
    content: str
    created_at: str = Field(alias="createdAt")

    class Config:
        populate_by_name = True
