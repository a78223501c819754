from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, CurrentUserResponse
)
from stdntlab.modules.auth.service import AuthService, display_name
from stdntlab.core.dependencies import get_auth_service, get_current_user_id, security
from stdntlab.modules.users.service import UserService
from supabase import Client
from typing import Dict, Optional

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access token"""
    return service.login(login_data)


@router.post("/logout", status_code=200)
async def logout(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    service.logout(credentials.credentials)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=CurrentUserResponse)
async def get_current_user(
    current_user: Dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase),
):
    """Current auth user; the name falls back to sign-up metadata, then the email, while no profile row exists"""
    profile = UserService(supabase).get_profile_by_auth_id(current_user["id"])
    return CurrentUserResponse(
        id=current_user["id"],
        email=current_user.get("email"),
        name=display_name(
            current_user.get("email"),
            current_user.get("user_metadata"),
            profile.name if profile else None,
        ),
        profile_id=profile.id if profile else None,
        profile=profile,
    )
