from fastapi import APIRouter, Depends, Body
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.sessions.schemas import (
    SessionRequestCreate, SessionRequestResponse, SessionAccept,
    SessionCreate, SessionUpdate, SessionResponse
)
from stdntlab.modules.sessions.service import SessionService
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.core.dependencies import get_current_profile, check_group_member, check_group_owner
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/sessions", tags=["sessions"])


def get_session_service(
    supabase: Client = Depends(get_supabase),
    cache: ResourceCache = Depends(get_resource_cache)
) -> SessionService:
    return SessionService(supabase, cache)


@router.get("/me", response_model=List[SessionResponse])
async def list_my_sessions(
    upcoming: bool = False,
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service)
):
    """Sessions from every group the user belongs to"""
    return service.list_user_sessions(profile["id"], upcoming_only=upcoming)


@router.post("/group/{group_id}/requests", response_model=SessionRequestResponse, status_code=201)
async def create_session_request(
    group_id: int,
    request_data: SessionRequestCreate,
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service),
    supabase: Client = Depends(get_supabase)
):
    """Request a study session (members)"""
    check_group_member(group_id, profile, supabase)
    return service.create_session_request(group_id, profile["id"], request_data)


@router.get("/group/{group_id}/requests", response_model=List[SessionRequestResponse])
async def list_session_requests(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, profile, supabase)
    return service.list_session_requests(group_id)


@router.post("/requests/{request_id}/accept", response_model=SessionResponse, status_code=201)
async def accept_session_request(
    request_id: int,
    acceptance: Optional[SessionAccept] = Body(default=None),
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service),
    supabase: Client = Depends(get_supabase)
):
    """Accept a pending request and schedule the session (owner only)"""
    request = service.get_session_request(request_id)
    check_group_owner(request["group_id"], profile, supabase)
    return service.accept_session_request(request_id, profile["id"], acceptance)


@router.post("/requests/{request_id}/reject", response_model=SessionRequestResponse)
async def reject_session_request(
    request_id: int,
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service),
    supabase: Client = Depends(get_supabase)
):
    """Reject a pending request (owner only)"""
    request = service.get_session_request(request_id)
    check_group_owner(request["group_id"], profile, supabase)
    return service.reject_session_request(request_id)


@router.post("/group/{group_id}", response_model=SessionResponse, status_code=201)
async def create_session(
    group_id: int,
    session_data: SessionCreate,
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service),
    supabase: Client = Depends(get_supabase)
):
    """Schedule a session directly (owner only)"""
    check_group_owner(group_id, profile, supabase)
    return service.create_session(group_id, profile["id"], session_data)


@router.get("/group/{group_id}", response_model=List[SessionResponse])
async def list_group_sessions(
    group_id: int,
    upcoming: bool = False,
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, profile, supabase)
    return service.list_group_sessions(group_id, upcoming_only=upcoming)


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: int,
    updates: SessionUpdate,
    profile: Dict = Depends(get_current_profile),
    service: SessionService = Depends(get_session_service),
    supabase: Client = Depends(get_supabase)
):
    """Edit topic, time, link or status (owner only)"""
    session = service.get_session(session_id)
    check_group_owner(session["group_id"], profile, supabase)
    return service.update_session(session_id, updates)
