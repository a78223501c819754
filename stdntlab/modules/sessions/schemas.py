from pydantic import BaseModel, Field, computed_field, field_validator
from typing import Optional, Literal
from datetime import datetime
from stdntlab.modules.sessions.upcoming import detect_meeting_platform, platform_display_name

RequestStatus = Literal["pending", "accepted", "rejected"]
SessionStatus = Literal["upcoming", "completed", "cancelled"]


class SessionRequestCreate(BaseModel):
    topic: str = Field(min_length=1, max_length=200)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    start_time: str = Field(min_length=4)
    end_time: str = Field(min_length=4)


class SessionRequestResponse(BaseModel):
    id: int
    group_id: int
    requested_by: int
    topic: str
    date: str
    start_time: str
    end_time: str
    status: RequestStatus = "pending"
    session_id: Optional[int] = None
    created_at: Optional[datetime] = None
    requester_name: Optional[str] = None

    class Config:
        from_attributes = True


class SessionAccept(BaseModel):
    """Optional overrides applied when turning a request into a session"""
    meeting_link: Optional[str] = None
    topic: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class SessionCreate(BaseModel):
    topic: str = Field(min_length=1, max_length=200)
    date: str = Field(pattern=r"^\d{4}-\d{2}-\d{2}$")
    start_time: str = Field(min_length=4)
    end_time: str = Field(min_length=4)
    meeting_link: Optional[str] = None
    request_id: Optional[int] = None


class SessionUpdate(BaseModel):
    topic: Optional[str] = Field(default=None, min_length=1, max_length=200)
    date: Optional[str] = Field(default=None, pattern=r"^\d{4}-\d{2}-\d{2}$")
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    meeting_link: Optional[str] = None
    status: Optional[SessionStatus] = None

    @field_validator("topic", "date", "start_time", "end_time", "status")
    @classmethod
    def required_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        return v


class SessionResponse(BaseModel):
    id: int
    group_id: int
    created_by: int
    topic: str
    date: str
    start_time: str
    end_time: str
    meeting_link: Optional[str] = None
    request_id: Optional[int] = None
    status: SessionStatus = "upcoming"
    created_at: Optional[datetime] = None
    creator_name: Optional[str] = None
    group_name: Optional[str] = None

    @computed_field
    @property
    def meeting_platform(self) -> Optional[str]:
        return detect_meeting_platform(self.meeting_link)

    @computed_field
    @property
    def meeting_platform_name(self) -> Optional[str]:
        return platform_display_name(self.meeting_platform)

    class Config:
        from_attributes = True
