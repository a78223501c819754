"""
Session database models (handled by Supabase)

session_requests:
    id, group_id, requested_by (Users.id), topic, date, start_time, end_time,
    status ('pending' | 'accepted' | 'rejected'), session_id (nullable),
    created_at

sessions:
    id, group_id, created_by (Users.id), topic, date, start_time, end_time,
    meeting_link (nullable), request_id (nullable),
    status ('upcoming' | 'completed' | 'cancelled'), created_at
"""
