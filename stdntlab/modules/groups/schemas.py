from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime


class GroupCreate(BaseModel):
    name: str = Field(min_length=3, max_length=100)
    description: Optional[str] = Field(default=None, max_length=500)
    tags: List[str] = Field(default_factory=list, max_length=10)
    is_public: bool = True
    max_members: int = Field(default=4, ge=4, le=100)

    @field_validator("description")
    @classmethod
    def blank_description_is_null(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @field_validator("tags")
    @classmethod
    def tag_length(cls, v):
        for tag in v:
            if not 1 <= len(tag) <= 30:
                raise ValueError("Tags must be between 1 and 30 characters")
        return v


class GroupResponse(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    tags: Optional[List[str]] = None
    is_public: bool = True
    max_members: int
    owner_id: int
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class UserGroupResponse(GroupResponse):
    member_count: int = 0
    user_role: str = "member"


class GroupMemberResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    role: str
    joined_at: Optional[datetime] = None
    name: Optional[str] = None

    class Config:
        from_attributes = True
