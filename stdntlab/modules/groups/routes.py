from fastapi import APIRouter, Depends
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.groups.schemas import (
    GroupCreate, GroupResponse, UserGroupResponse, GroupMemberResponse
)
from stdntlab.modules.groups.service import GroupService
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.core.dependencies import get_current_profile, check_group_member
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/groups", tags=["groups"])


def get_group_service(
    supabase: Client = Depends(get_supabase),
    cache: ResourceCache = Depends(get_resource_cache)
) -> GroupService:
    return GroupService(supabase, cache)


@router.post("", response_model=GroupResponse, status_code=201)
async def create_group(
    group_data: GroupCreate,
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Create a new group; the creator becomes its owner"""
    return service.create_group(group_data, profile["id"])


@router.get("", response_model=List[UserGroupResponse])
async def list_my_groups(
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """List groups the user is a member of"""
    return service.list_user_groups(profile["id"])


@router.get("/{group_id}", response_model=GroupResponse)
async def get_group(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Get group by ID"""
    return service.get_group(group_id)


@router.post("/{group_id}/join", response_model=GroupMemberResponse, status_code=201)
async def join_group(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Join a group that has space"""
    return service.join_group(group_id, profile["id"])


@router.post("/{group_id}/leave", status_code=204)
async def leave_group(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Leave a group (owners cannot leave)"""
    service.leave_group(group_id, profile["id"])
    return None


@router.get("/{group_id}/members", response_model=List[GroupMemberResponse])
async def list_members(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service),
    supabase: Client = Depends(get_supabase)
):
    """List all members of a group (only if user is a member)"""
    check_group_member(group_id, profile, supabase)
    return service.list_members(group_id)


@router.delete("/{group_id}/members/{user_id}", status_code=204)
async def remove_member(
    group_id: int,
    user_id: int,
    profile: Dict = Depends(get_current_profile),
    service: GroupService = Depends(get_group_service)
):
    """Remove a member from the group (owner only)"""
    service.remove_member(group_id, user_id, profile["id"])
    return None
