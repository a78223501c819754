from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime


class MaterialBase(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1)

    @field_validator("title", "content")
    @classmethod
    def not_blank(cls, v):
        if not v.strip():
            raise ValueError("Title and content are required")
        return v.strip()


class MaterialCreate(MaterialBase):
    pass


class MaterialUpdate(MaterialBase):
    pass


class MaterialResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    title: str
    content: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    author_name: Optional[str] = None

    class Config:
        from_attributes = True
