from pydantic import BaseModel
from typing import Optional
from datetime import datetime


class GroupFileResponse(BaseModel):
    id: int
    group_id: int
    user_id: int
    file_id: str
    path: str
    file_name: str
    mimetype: str
    size: int
    created_at: Optional[datetime] = None
    uploader_name: Optional[str] = None

    class Config:
        from_attributes = True


class SignedUrlResponse(BaseModel):
    url: str
    expires_in: int
