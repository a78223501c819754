from fastapi import APIRouter, Depends
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.users.schemas import ProfileResponse, PreferencesUpdate, ProfileCompletionResponse
from stdntlab.modules.users.service import UserService
from stdntlab.modules.groups.schemas import UserGroupResponse
from stdntlab.modules.groups.routes import get_group_service
from stdntlab.modules.groups.service import GroupService
from stdntlab.core.dependencies import get_current_profile
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/users", tags=["users"])


def get_user_service(supabase: Client = Depends(get_supabase)) -> UserService:
    return UserService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(profile: Dict = Depends(get_current_profile)):
    """Current user's profile"""
    return ProfileResponse(**profile)


@router.put("/me/preferences", response_model=ProfileResponse)
async def update_my_preferences(
    preferences: PreferencesUpdate,
    profile: Dict = Depends(get_current_profile),
    service: UserService = Depends(get_user_service)
):
    """Update study preferences used for group matching"""
    return service.update_preferences(profile["id"], preferences)


@router.get("/me/completion", response_model=ProfileCompletionResponse)
async def get_my_profile_completion(
    profile: Dict = Depends(get_current_profile),
    service: UserService = Depends(get_user_service)
):
    """Which preference fields are still empty"""
    return service.get_completion(profile)


@router.get("/me/groups", response_model=List[UserGroupResponse])
async def get_my_groups(
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Groups the current user belongs to"""
    return service.list_user_groups(profile["id"])
