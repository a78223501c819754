from supabase import Client
from stdntlab.config import settings
from stdntlab.core import cache as cache_keys
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.core.dependencies import get_membership
from stdntlab.modules.todos.activity import ActivityLog, get_activity_log
from stdntlab.modules.todos.completion import is_group_todo, with_effective_status
from stdntlab.modules.todos.schemas import TodoCreate, TodoUpdate, TodoResponse, TodoFilters
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


def get_todos_by_filter(todos: List[TodoResponse], filters: TodoFilters) -> List[TodoResponse]:
    """Filter an already loaded todo list; todos without a due date drop out once a date bound is set"""
    filtered = list(todos)
    if filters.status:
        filtered = [t for t in filtered if t.status in filters.status]
    if filters.type:
        filtered = [t for t in filtered if t.type in filters.type]
    if filters.priority:
        filtered = [t for t in filtered if t.priority and t.priority in filters.priority]
    if "group_id" in filters.model_fields_set:
        filtered = [t for t in filtered if t.group_id == filters.group_id]
    if filters.date_from:
        filtered = [t for t in filtered if t.due_date and t.due_date >= filters.date_from]
    if filters.date_to:
        filtered = [t for t in filtered if t.due_date and t.due_date <= filters.date_to]
    return filtered


class TodoService:
    def __init__(
        self,
        supabase: Client,
        cache: Optional[ResourceCache] = None,
        activity: Optional[ActivityLog] = None
    ):
        self.supabase = supabase
        self.cache = cache if cache is not None else get_resource_cache()
        self.activity = activity if activity is not None else get_activity_log()

    def _invalidate(self, todo: Dict[str, Any]):
        if is_group_todo(todo):
            # Group todos show up in every member's list
            self.cache.invalidate_resource(cache_keys.TODOS)
        else:
            self.cache.invalidate(todo["user_id"], cache_keys.TODOS)

    def create_todo(self, user_id: int, todo_data: TodoCreate) -> TodoResponse:
        """Create a personal todo, or a group todo for a group the user belongs to"""
        if todo_data.group_id is not None:
            try:
                membership = get_membership(todo_data.group_id, user_id, self.supabase)
            except Exception as e:
                raise HTTPException(status_code=500, detail=str(e))
            if membership is None:
                raise HTTPException(status_code=403, detail="You must be a member of this group")

        try:
            result = self.supabase.table("Todos").insert({
                "user_id": user_id,
                "title": todo_data.title,
                "description": todo_data.description,
                "due_date": todo_data.due_date,
                "status": todo_data.status,
                "type": todo_data.type,
                "priority": todo_data.priority,
                "group_id": todo_data.group_id,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create todo")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating todo: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        todo = result.data[0]
        self._invalidate(todo)
        self.activity.record(user_id, "todo_created", todo)
        return TodoResponse(**todo)

    def get_todo(self, todo_id: int) -> Dict[str, Any]:
        try:
            result = self.supabase.table("Todos")\
                .select("*")\
                .eq("id", todo_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Todo not found")
        return result.data

    def _completions(self, user_id: int, todo_ids: List[int]) -> List[Dict[str, Any]]:
        if not todo_ids:
            return []
        result = self.supabase.table("todo_completions")\
            .select("*")\
            .eq("user_id", user_id)\
            .in_("todo_id", todo_ids)\
            .execute()
        return result.data or []

    def record_completion(self, todo_id: int, user_id: int):
        """Insert a completion row unless one already exists for (todo, user)"""
        existing = self.supabase.table("todo_completions")\
            .select("id")\
            .eq("todo_id", todo_id)\
            .eq("user_id", user_id)\
            .limit(1)\
            .execute()
        if existing.data:
            return
        self.supabase.table("todo_completions").insert({
            "todo_id": todo_id,
            "user_id": user_id,
            "completed": True,
            "completed_at": datetime.now(timezone.utc).isoformat(),
        }).execute()

    def _remove_completion(self, todo_id: int, user_id: int):
        self.supabase.table("todo_completions")\
            .delete()\
            .eq("todo_id", todo_id)\
            .eq("user_id", user_id)\
            .execute()

    def _check_move(self, todo: Dict[str, Any], update_data: Dict[str, Any], acting_user_id: int):
        """Only the creator moves a todo between personal and group, and only into their own groups"""
        if acting_user_id != todo["user_id"]:
            raise HTTPException(status_code=403, detail="Only the creator can change the group of a todo")

        group_id = update_data.get("group_id", todo.get("group_id"))
        todo_type = update_data.get("type", todo.get("type"))
        if todo_type == "group" and group_id is None:
            raise HTTPException(status_code=400, detail="group_id is required for group todos")

        if group_id is not None and group_id != todo.get("group_id"):
            try:
                membership = get_membership(group_id, acting_user_id, self.supabase)
            except Exception as e:
                raise HTTPException(status_code=500, detail=str(e))
            if membership is None:
                raise HTTPException(status_code=403, detail="You must be a member of this group")

    def update_todo(self, todo_id: int, todo_data: TodoUpdate, user_id: Optional[int] = None) -> TodoResponse:
        """
        Update a todo.

        Personal todos get their status written to the row. For group todos
        a status change only adds or removes the acting user's completion
        row; the acting user is user_id, or the creator when not given.
        """
        todo = self.get_todo(todo_id)
        update_data = todo_data.model_dump(exclude_unset=True)
        status = update_data.pop("status", None)
        group_todo = is_group_todo(todo)
        acting_user_id = user_id if user_id is not None else todo["user_id"]
        if "group_id" in update_data or "type" in update_data:
            self._check_move(todo, update_data, acting_user_id)

        if status is not None and not group_todo:
            update_data["status"] = status

        try:
            if update_data:
                update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
                result = self.supabase.table("Todos")\
                    .update(update_data)\
                    .eq("id", todo_id)\
                    .execute()
                if not result.data:
                    raise HTTPException(status_code=404, detail="Todo not found")
                row = result.data[0]
            else:
                row = todo

            if status is not None:
                if not group_todo:
                    if status == "completed" and todo.get("status") != "completed":
                        self.record_completion(todo_id, todo["user_id"])
                elif status == "completed":
                    self.record_completion(todo_id, acting_user_id)
                else:
                    self._remove_completion(todo_id, acting_user_id)

            if group_todo:
                if status is not None:
                    row = {**row, "status": status}
                else:
                    row = with_effective_status(row, self._completions(acting_user_id, [todo_id]), acting_user_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating todo {todo_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        self._invalidate(todo)
        if row.get("group_id") != todo.get("group_id"):
            self._invalidate(row)
        activity_type = "todo_completed" if status == "completed" else "todo_updated"
        self.activity.record(acting_user_id, activity_type, row)
        return TodoResponse(**row)

    def toggle_todo_status(self, todo_id: int, status: str, caller_id: Optional[int] = None) -> TodoResponse:
        """Status-only update; who the completion is recorded for follows settings.todo_toggle_acting_user"""
        acting_user_id = None
        if settings.todo_toggle_acting_user == "caller":
            acting_user_id = caller_id
        return self.update_todo(todo_id, TodoUpdate(status=status), user_id=acting_user_id)

    def delete_todo(self, todo_id: int, user_id: Optional[int] = None) -> bool:
        """Hard delete; completion rows of the todo go first"""
        todo = self.get_todo(todo_id)
        try:
            self.supabase.table("todo_completions")\
                .delete()\
                .eq("todo_id", todo_id)\
                .execute()
            self.supabase.table("Todos")\
                .delete()\
                .eq("id", todo_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting todo {todo_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        self._invalidate(todo)
        self.activity.record(user_id if user_id is not None else todo["user_id"], "todo_deleted", todo)
        return True

    def list_todos(self, user_id: int, group_id: Optional[int] = None) -> List[TodoResponse]:
        """Own todos plus group todos of the user's groups, newest first, with the user's effective status"""
        todos = self.cache.get(user_id, cache_keys.TODOS)
        if todos is None:
            todos = self._load_todos(user_id)
            self.cache.set(user_id, cache_keys.TODOS, todos)
        if group_id is not None:
            return [t for t in todos if t.group_id == group_id]
        return todos

    def _load_todos(self, user_id: int) -> List[TodoResponse]:
        try:
            own_result = self.supabase.table("Todos")\
                .select("*")\
                .eq("user_id", user_id)\
                .execute()
            rows = {row["id"]: row for row in (own_result.data or [])}

            members_result = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            group_ids = list(dict.fromkeys(m["group_id"] for m in (members_result.data or [])))
            if group_ids:
                group_result = self.supabase.table("Todos")\
                    .select("*")\
                    .in_("group_id", group_ids)\
                    .execute()
                for row in group_result.data or []:
                    rows.setdefault(row["id"], row)

            group_todo_ids = [row["id"] for row in rows.values() if is_group_todo(row)]
            completions = self._completions(user_id, group_todo_ids)
        except Exception as e:
            logger.error(f"Error fetching todos for user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        ordered = sorted(
            rows.values(),
            key=lambda row: (row.get("created_at") or "", row["id"]),
            reverse=True,
        )
        return [TodoResponse(**with_effective_status(row, completions, user_id)) for row in ordered]
