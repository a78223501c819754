from fastapi import APIRouter, Depends, HTTPException, Query
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.todos.schemas import (
    TodoCreate, TodoUpdate, TodoStatusUpdate, TodoResponse, TodoFilters,
    TodoStatus, TodoType, TodoPriority, ActivityResponse
)
from stdntlab.modules.todos.service import TodoService, get_todos_by_filter
from stdntlab.modules.todos.activity import ActivityLog, get_activity_log
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.core.dependencies import get_current_profile, get_membership
from supabase import Client
from typing import List, Dict, Optional

router = APIRouter(prefix="/todos", tags=["todos"])


def get_todo_service(
    supabase: Client = Depends(get_supabase),
    cache: ResourceCache = Depends(get_resource_cache),
    activity: ActivityLog = Depends(get_activity_log)
) -> TodoService:
    return TodoService(supabase, cache, activity)


def _check_todo_access(todo: Dict, profile: Dict, supabase: Client):
    """Creators can touch their todos; group todos are open to group members"""
    if todo["user_id"] == profile["id"]:
        return
    if todo.get("group_id") is not None and get_membership(todo["group_id"], profile["id"], supabase):
        return
    raise HTTPException(status_code=403, detail="You do not have access to this todo")


@router.get("", response_model=List[TodoResponse])
async def list_todos(
    status: List[TodoStatus] = Query(default=[]),
    type: List[TodoType] = Query(default=[]),
    priority: List[TodoPriority] = Query(default=[]),
    group_id: Optional[int] = None,
    personal_only: bool = False,
    date_from: Optional[str] = None,
    date_to: Optional[str] = None,
    profile: Dict = Depends(get_current_profile),
    service: TodoService = Depends(get_todo_service)
):
    """List the user's todos, optionally filtered"""
    todos = service.list_todos(profile["id"])
    # Passing group_id explicitly (even None) turns the group filter on
    group_filter = {}
    if personal_only:
        group_filter["group_id"] = None
    elif group_id is not None:
        group_filter["group_id"] = group_id
    filters = TodoFilters(
        status=status, type=type, priority=priority,
        date_from=date_from, date_to=date_to, **group_filter
    )
    return get_todos_by_filter(todos, filters)


@router.post("", response_model=TodoResponse, status_code=201)
async def create_todo(
    todo_data: TodoCreate,
    profile: Dict = Depends(get_current_profile),
    service: TodoService = Depends(get_todo_service)
):
    return service.create_todo(profile["id"], todo_data)


@router.get("/activity", response_model=List[ActivityResponse])
async def recent_activity(
    limit: int = Query(default=10, ge=1, le=50),
    profile: Dict = Depends(get_current_profile),
    activity: ActivityLog = Depends(get_activity_log)
):
    """Recent todo activity of the current user"""
    return activity.recent(profile["id"], limit)


@router.put("/{todo_id}", response_model=TodoResponse)
async def update_todo(
    todo_id: int,
    todo_data: TodoUpdate,
    profile: Dict = Depends(get_current_profile),
    service: TodoService = Depends(get_todo_service),
    supabase: Client = Depends(get_supabase)
):
    """Update a todo; a status change on a group todo is recorded for the caller"""
    _check_todo_access(service.get_todo(todo_id), profile, supabase)
    return service.update_todo(todo_id, todo_data, user_id=profile["id"])


@router.patch("/{todo_id}/status", response_model=TodoResponse)
async def toggle_todo_status(
    todo_id: int,
    status_data: TodoStatusUpdate,
    profile: Dict = Depends(get_current_profile),
    service: TodoService = Depends(get_todo_service),
    supabase: Client = Depends(get_supabase)
):
    _check_todo_access(service.get_todo(todo_id), profile, supabase)
    return service.toggle_todo_status(todo_id, status_data.status, caller_id=profile["id"])


@router.delete("/{todo_id}", status_code=204)
async def delete_todo(
    todo_id: int,
    profile: Dict = Depends(get_current_profile),
    service: TodoService = Depends(get_todo_service)
):
    """Delete a todo (creator only)"""
    todo = service.get_todo(todo_id)
    if todo["user_id"] != profile["id"]:
        raise HTTPException(status_code=403, detail="Only the creator can delete this todo")
    service.delete_todo(todo_id, profile["id"])
    return None
