from pydantic import BaseModel, field_validator
from typing import Optional, List
from datetime import datetime


class ProfileResponse(BaseModel):
    id: int
    user_id: Optional[str] = None
    email: str
    name: Optional[str] = None
    timezone: Optional[str] = None
    days_of_week: Optional[List[str]] = None
    study_times: Optional[List[str]] = None
    education_level: Optional[str] = None
    subjects: Optional[List[str]] = None
    study_style: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class PreferencesUpdate(BaseModel):
    name: Optional[str] = None
    timezone: Optional[str] = None
    days_of_week: Optional[List[str]] = None
    study_times: Optional[List[str]] = None
    education_level: Optional[str] = None
    subjects: Optional[List[str]] = None
    study_style: Optional[str] = None

    @field_validator("name")
    @classmethod
    def name_length(cls, v):
        if v is not None and len(v.strip()) < 2:
            raise ValueError("Name must be at least 2 characters")
        return v.strip() if v is not None else v

    @field_validator("timezone", "education_level", "study_style")
    @classmethod
    def not_blank(cls, v, info):
        if v is not None and not v.strip():
            raise ValueError(f"{info.field_name.replace('_', ' ').capitalize()} is required")
        return v

    @field_validator("days_of_week", "study_times", "subjects")
    @classmethod
    def at_least_one(cls, v, info):
        if v is not None and len(v) == 0:
            raise ValueError(f"At least one entry is required for {info.field_name}")
        return v


class ProfileCompletionResponse(BaseModel):
    complete: bool
    percentage: int
    empty_fields: List[str]
