"""
Recent todo activity, kept in process memory per user.
"""

from collections import defaultdict, deque
from datetime import datetime, timezone
from typing import Deque, Dict, List, Optional
import uuid

MAX_ACTIVITIES = 50

_MESSAGES = {
    "todo_created": "Created todo",
    "todo_completed": "Completed todo",
    "todo_updated": "Updated todo",
    "todo_deleted": "Deleted todo",
}


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}{'s' if count > 1 else ''} ago"


def time_ago(created_at: datetime, now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    seconds = int((now - created_at).total_seconds())
    if seconds < 60:
        return "just now"
    minutes = seconds // 60
    if minutes < 60:
        return _plural(minutes, "minute")
    hours = minutes // 60
    if hours < 24:
        return _plural(hours, "hour")
    days = hours // 24
    if days < 7:
        return _plural(days, "day")
    weeks = days // 7
    if weeks < 4:
        return _plural(weeks, "week")
    return _plural(max(1, days // 30), "month")


class ActivityLog:
    def __init__(self, max_entries: int = MAX_ACTIVITIES):
        self.max_entries = max_entries
        self._entries: Dict[int, Deque[dict]] = defaultdict(lambda: deque(maxlen=self.max_entries))

    def record(self, user_id: int, activity_type: str, todo: dict) -> dict:
        entry = {
            "id": f"activity_{uuid.uuid4().hex}",
            "type": activity_type,
            "message": f'{_MESSAGES[activity_type]} "{todo["title"]}"',
            "todo_id": todo["id"],
            "todo_title": todo["title"],
            "created_at": datetime.now(timezone.utc),
        }
        self._entries[user_id].appendleft(entry)
        return entry

    def recent(self, user_id: int, limit: int = 10, now: Optional[datetime] = None) -> List[dict]:
        entries = sorted(self._entries.get(user_id, ()), key=lambda e: e["created_at"], reverse=True)
        return [{**e, "time_ago": time_ago(e["created_at"], now)} for e in entries[:limit]]

    def clear(self):
        self._entries.clear()


activity_log = ActivityLog()


def get_activity_log() -> ActivityLog:
    return activity_log
