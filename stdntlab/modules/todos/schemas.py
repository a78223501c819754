from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List, Literal
from datetime import datetime

TodoStatus = Literal["pending", "in_progress", "completed"]
TodoType = Literal["personal", "group"]
TodoPriority = Literal["low", "medium", "high"]
ActivityType = Literal["todo_created", "todo_completed", "todo_updated", "todo_deleted"]


class TodoCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[str] = None
    status: TodoStatus = "pending"
    type: TodoType = "personal"
    priority: Optional[TodoPriority] = None
    group_id: Optional[int] = None

    @field_validator("title")
    @classmethod
    def title_not_blank(cls, v):
        if not v.strip():
            raise ValueError("Title is required")
        return v.strip()

    @field_validator("description", "due_date")
    @classmethod
    def blank_is_null(cls, v):
        if v is None:
            return None
        return v.strip() or None

    @model_validator(mode="after")
    def group_todo_needs_group(self):
        if self.type == "group" and self.group_id is None:
            raise ValueError("group_id is required for group todos")
        return self


class TodoUpdate(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=200)
    description: Optional[str] = Field(default=None, max_length=1000)
    due_date: Optional[str] = None
    status: Optional[TodoStatus] = None
    type: Optional[TodoType] = None
    priority: Optional[TodoPriority] = None
    group_id: Optional[int] = None

    @field_validator("title", "status", "type")
    @classmethod
    def required_not_null(cls, v, info):
        if v is None:
            raise ValueError(f"{info.field_name} cannot be null")
        if info.field_name == "title":
            if not v.strip():
                raise ValueError("Title is required")
            return v.strip()
        return v

    @model_validator(mode="after")
    def group_todo_needs_group(self):
        if self.type == "group" and "group_id" in self.model_fields_set and self.group_id is None:
            raise ValueError("group_id is required for group todos")
        return self


class TodoStatusUpdate(BaseModel):
    status: TodoStatus


class TodoResponse(BaseModel):
    id: int
    user_id: int
    title: str
    description: Optional[str] = None
    due_date: Optional[str] = None
    status: TodoStatus = "pending"
    type: TodoType = "personal"
    priority: Optional[TodoPriority] = None
    group_id: Optional[int] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class TodoFilters(BaseModel):
    """In-memory filter; leaving group_id unset means any group, null means personal only"""
    status: List[TodoStatus] = []
    type: List[TodoType] = []
    priority: List[TodoPriority] = []
    group_id: Optional[int] = None
    date_from: Optional[str] = None
    date_to: Optional[str] = None


class ActivityResponse(BaseModel):
    id: str
    type: ActivityType
    message: str
    todo_id: int
    todo_title: str
    created_at: datetime
    time_ago: str
