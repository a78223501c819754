from pydantic import BaseModel, EmailStr, Field
from typing import Optional
from stdntlab.modules.users.schemas import ProfileResponse


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class RegisterRequest(BaseModel):
    email: EmailStr
    password: str = Field(min_length=6)
    # Display name; defaults to the part of the email before the @
    name: Optional[str] = Field(default=None, max_length=100)


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    user_id: str
    profile_id: Optional[int] = None
    email: str


class RegisterResponse(BaseModel):
    user_id: str
    profile_id: Optional[int] = None
    email: str
    message: str


class CurrentUserResponse(BaseModel):
    """Auth account plus its Users row; profile is null until the row exists"""
    id: str
    email: Optional[str] = None
    name: str
    profile_id: Optional[int] = None
    profile: Optional[ProfileResponse] = None
