"""
Time and link helpers for study sessions.

Session status is never advanced by a scheduler, so whether a session is
still ahead is decided when it is read.
"""

from datetime import datetime
from typing import Any, Dict, Iterable, List, Optional

GOOGLE_MEET = "google-meet"
ZOOM = "zoom"
TEAMS = "teams"
OTHER = "other"

PLATFORM_NAMES = {
    GOOGLE_MEET: "Google Meet",
    ZOOM: "Zoom",
    TEAMS: "Microsoft Teams",
    OTHER: "Meeting",
}

_PLATFORM_HOSTS = (
    (GOOGLE_MEET, ("meet.google.com", "google.com/meet")),
    (ZOOM, ("zoom.us", "zoom.com")),
    (TEAMS, ("teams.microsoft.com", "teams.live.com")),
)


def detect_meeting_platform(url: Optional[str]) -> Optional[str]:
    """Platform id for a meeting link, None when there is no link"""
    if not url or not url.strip():
        return None
    lowered = url.lower()
    for platform, hosts in _PLATFORM_HOSTS:
        if any(host in lowered for host in hosts):
            return platform
    return OTHER


def platform_display_name(platform: Optional[str]) -> Optional[str]:
    if platform is None:
        return None
    return PLATFORM_NAMES.get(platform, PLATFORM_NAMES[OTHER])


def _parse_iso(value: str) -> Optional[datetime]:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None


def parse_session_start(session: Dict[str, Any]) -> Optional[datetime]:
    """
    Start of a session.

    Tries start_time as a full timestamp, then date plus the HH:MM prefix
    of start_time, then date at midnight. Returns None if nothing parses.
    """
    start_time = session.get("start_time")
    date = session.get("date")

    if start_time:
        parsed = _parse_iso(str(start_time))
        if parsed is not None:
            return parsed

    if date and start_time:
        try:
            return datetime.strptime(f"{date} {str(start_time)[:5]}", "%Y-%m-%d %H:%M")
        except ValueError:
            pass

    if date:
        try:
            return datetime.strptime(str(date), "%Y-%m-%d")
        except ValueError:
            return None
    return None


def _comparable(start: datetime, now: datetime) -> datetime:
    if start.tzinfo is not None and now.tzinfo is None:
        return start.astimezone().replace(tzinfo=None)
    if start.tzinfo is None and now.tzinfo is not None:
        return start.replace(tzinfo=now.tzinfo)
    return start


def is_upcoming(session: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    """True for 'upcoming' sessions starting at or after the current minute; unparseable times count as upcoming"""
    if session.get("status") != "upcoming":
        return False
    start = parse_session_start(session)
    if start is None:
        return True
    now = (now or datetime.now()).replace(second=0, microsecond=0)
    return _comparable(start, now) >= now


def filter_upcoming(sessions: Iterable[Dict[str, Any]], now: Optional[datetime] = None) -> List[Dict[str, Any]]:
    now = now or datetime.now()
    return [s for s in sessions if is_upcoming(s, now)]
