"""
Read-time view of a todo's status.

Personal todos carry their status on the row. Group todos are completed
per member, so their status depends on who is looking.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Optional, Union


@dataclass(frozen=True)
class CompletionRecord:
    user_id: int
    completed: bool = True
    completed_at: Optional[str] = None


@dataclass
class PersonalTodo:
    row: Dict[str, Any]

    @property
    def status(self) -> str:
        return self.row.get("status") or "pending"

    def effective_status(self, user_id: Optional[int] = None) -> str:
        return self.status


@dataclass
class GroupTodo:
    row: Dict[str, Any]
    per_user_completions: Dict[int, CompletionRecord] = field(default_factory=dict)

    def effective_status(self, user_id: int) -> str:
        record = self.per_user_completions.get(user_id)
        if record is not None and record.completed:
            return "completed"
        return self.row.get("status") or "pending"


Todo = Union[PersonalTodo, GroupTodo]


def is_group_todo(row: Dict[str, Any]) -> bool:
    return row.get("group_id") is not None


def materialize(row: Dict[str, Any], completions: Iterable[Dict[str, Any]] = ()) -> Todo:
    """Build the variant for a Todos row from its todo_completions rows"""
    if not is_group_todo(row):
        return PersonalTodo(row=row)
    records = {}
    for completion in completions:
        if completion.get("todo_id") != row["id"]:
            continue
        records[completion["user_id"]] = CompletionRecord(
            user_id=completion["user_id"],
            completed=bool(completion.get("completed", True)),
            completed_at=completion.get("completed_at"),
        )
    return GroupTodo(row=row, per_user_completions=records)


def with_effective_status(row: Dict[str, Any], completions: Iterable[Dict[str, Any]], user_id: int) -> Dict[str, Any]:
    """Copy of the row with status replaced by what user_id should see"""
    todo = materialize(row, completions)
    return {**row, "status": todo.effective_status(user_id)}
