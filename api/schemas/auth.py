from typing import Optional
from pydantic import BaseModel, field_validator


def trimmed(v: Optional[str]) -> str:
    if v is None:
        return ""
    if isinstance(v, str):
        return v.strip()
    return v  # let pydantic reject non-strings


class PromptAuthRequest(BaseModel):
    code: str = ""

    @field_validator("code", mode="before")
    @classmethod
    def trim_code(cls, v):
        return trimmed(v)


class ApiResult(BaseModel):
    success: bool
    message: Optional[str] = None
