from __future__ import annotations

from pydantic import BaseModel, Field, field_validator
from datetime import datetime


class UserInfoResponse(BaseModel):
    stu_id: str
    name: str
    sex: str | None = None
    college: str | None = None
    grade: int | None = None
    major: str | None = None


class InvitationCodeResponse(BaseModel):
    code: str
    created_at: datetime


class BindInvitationRequest(BaseModel):
    code: str = Field(min_length=4, max_length=32)

    @field_validator("code")
    @classmethod
    def normalize_code(cls, v: str) -> str:
        return v.strip().upper()


class BindInvitationResponse(BaseModel):
    ok: bool


class FriendListItem(BaseModel):
    stu_id: str
    name: str | None = None
    college: str | None = None
    major: str | None = None
