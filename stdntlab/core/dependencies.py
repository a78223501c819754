"""
Core dependencies for route protection and group access checks
"""

from fastapi import Depends, HTTPException, Security, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.auth.service import AuthService
from supabase import Client
from typing import Optional, Dict, Any
import logging

logger = logging.getLogger(__name__)

# auto_error=False so a missing header is reported as 401, not 403
security = HTTPBearer(auto_error=False)


def get_auth_service(supabase: Client = Depends(get_supabase)) -> AuthService:
    return AuthService(supabase)


def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[dict]:
    """Auth user for the bearer token, or None when no token was sent"""
    if credentials is None:
        return None
    return auth_service.get_current_user(credentials.credentials)


def get_current_user_id(user_data: Optional[dict] = Depends(get_optional_user)) -> dict:
    """Extract current auth user info from JWT token"""
    if user_data is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Unauthorized"
        )
    return user_data


def resolve_profile(auth_user_id: str, supabase: Client) -> Optional[Dict[str, Any]]:
    """Return the Users row for an auth user id (numeric id lives there)"""
    result = supabase.table("Users")\
        .select("*")\
        .eq("user_id", auth_user_id)\
        .maybe_single()\
        .execute()
    if not result or not result.data:
        return None
    return result.data


def get_current_profile(
    user_data: dict = Depends(get_current_user_id),
    supabase: Client = Depends(get_supabase)
) -> Dict[str, Any]:
    """Current user's Users row; every other table references its numeric id"""
    try:
        profile = resolve_profile(user_data["id"], supabase)
    except Exception as e:
        logger.error(f"Error resolving profile for {user_data['id']}: {e}")
        raise HTTPException(status_code=500, detail="Failed to load user profile")
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")
    return profile


def get_membership(group_id: int, user_id: int, supabase: Client) -> Optional[Dict[str, Any]]:
    """Return the group_members row for (group, user) or None"""
    result = supabase.table("group_members")\
        .select("*")\
        .eq("group_id", group_id)\
        .eq("user_id", user_id)\
        .limit(1)\
        .execute()
    if not result.data:
        return None
    return result.data[0]


def check_group_member(group_id: int, profile: Dict[str, Any], supabase: Client) -> Dict[str, Any]:
    """Raise 403 unless the user is a member of the group; returns the membership row"""
    membership = get_membership(group_id, profile["id"], supabase)
    if membership is None:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You must be a member of this group"
        )
    return membership


def check_group_owner(group_id: int, profile: Dict[str, Any], supabase: Client) -> Dict[str, Any]:
    """Raise 404/403 unless the user owns the group; returns the group row"""
    group_result = supabase.table("groups")\
        .select("*")\
        .eq("id", group_id)\
        .maybe_single()\
        .execute()

    if not group_result or not group_result.data:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Group not found"
        )

    if group_result.data.get("owner_id") != profile["id"]:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Only the group owner can perform this action"
        )
    return group_result.data
