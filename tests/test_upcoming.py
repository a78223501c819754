from datetime import datetime

from stdntlab.modules.sessions.upcoming import (
    is_upcoming, filter_upcoming, parse_session_start, detect_meeting_platform, platform_display_name
)

NOW = datetime(2025, 3, 10, 14, 30, 45)


def _session(**kwargs):
    session = {"status": "upcoming", "date": "2025-03-10", "start_time": "15:00:00"}
    session.update(kwargs)
    return session


class TestParseStart:

    def test_iso_timestamp_in_start_time(self):
        assert parse_session_start(_session(start_time="2025-03-11T09:15:00")) == datetime(2025, 3, 11, 9, 15)

    def test_date_plus_hh_mm(self):
        assert parse_session_start(_session(start_time="08:05:59")) == datetime(2025, 3, 10, 8, 5)

    def test_date_only_is_midnight(self):
        assert parse_session_start(_session(start_time="")) == datetime(2025, 3, 10, 0, 0)

    def test_unparseable(self):
        assert parse_session_start(_session(date="soon", start_time="later")) is None


class TestIsUpcoming:

    def test_later_today(self):
        assert is_upcoming(_session(), NOW)

    def test_earlier_today(self):
        assert not is_upcoming(_session(start_time="14:00"), NOW)

    def test_same_minute_counts_as_upcoming(self):
        # now is truncated to 14:30
        assert is_upcoming(_session(start_time="14:30"), NOW)

    def test_other_statuses_are_never_upcoming(self):
        assert not is_upcoming(_session(status="completed", date="2030-01-01"), NOW)
        assert not is_upcoming(_session(status="cancelled", date="2030-01-01"), NOW)

    def test_unparseable_is_upcoming(self):
        assert is_upcoming(_session(date="not a date", start_time="nope"), NOW)

    def test_filter_keeps_order(self):
        sessions = [
            _session(id=1, date="2025-03-12"),
            _session(id=2, date="2025-03-01"),
            _session(id=3, date="2025-03-11", status="cancelled"),
            _session(id=4, date="2025-03-11"),
        ]
        assert [s["id"] for s in filter_upcoming(sessions, NOW)] == [1, 4]


class TestMeetingPlatform:

    def test_known_platforms(self):
        assert detect_meeting_platform("https://meet.google.com/abc-defg-hij") == "google-meet"
        assert detect_meeting_platform("https://us02web.zoom.us/j/123") == "zoom"
        assert detect_meeting_platform("https://teams.microsoft.com/l/meetup-join/x") == "teams"
        assert detect_meeting_platform("https://teams.live.com/meet/1") == "teams"

    def test_other_and_missing(self):
        assert detect_meeting_platform("https://jitsi.example.org/room") == "other"
        assert detect_meeting_platform(None) is None
        assert detect_meeting_platform("   ") is None

    def test_display_names(self):
        assert platform_display_name("google-meet") == "Google Meet"
        assert platform_display_name("teams") == "Microsoft Teams"
        assert platform_display_name("other") == "Meeting"
