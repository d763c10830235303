import uuid
from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field


class GroupCreate(BaseModel):
    name: str = Field(min_length=1)


class MemberCreate(BaseModel):
    name: str = Field(min_length=1)
    email: str = Field(min_length=3)


class MemberResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    user_id: uuid.UUID
    role: str
    display_name: str | None = None
    email: str | None = None
    is_guest: bool = False
    joined_at: datetime


class GroupResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    name: str
    created_by: uuid.UUID
    created_at: datetime
    members: list[MemberResponse] = []


class GroupListResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)
    id: uuid.UUID
    name: str
    created_by: uuid.UUID
    created_at: datetime
