from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator


class UserInputLogRequest(BaseModel):
    # rawInput and response are stored untrimmed, the log keeps exactly what was sent
    raw_input: str = Field("", alias="rawInput")
    response: Optional[str] = None
    # entries are checked one by one when saved, a bad one is just dropped
    images: Optional[List[Any]] = None

    # only a missing value is normalised
    @field_validator("raw_input", mode="before")
    @classmethod
    def default_raw_input(cls, v):
        return "" if v is None else v


class InputLogEntry(BaseModel):
    timestamp: str
    raw_input: str = Field(alias="rawInput")
    response: Optional[str] = None
    client_ip: Optional[str] = Field(None, alias="clientIp")
    images: Optional[List[str]] = None

    class Config:
        populate_by_name = True

    def to_record(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)
