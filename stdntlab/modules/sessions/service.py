from supabase import Client
from stdntlab.core import cache as cache_keys
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.modules.sessions.schemas import (
    SessionRequestCreate, SessionRequestResponse, SessionAccept,
    SessionCreate, SessionUpdate, SessionResponse
)
from stdntlab.modules.sessions.upcoming import filter_upcoming, is_upcoming
from stdntlab.modules.users.service import UserService
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


class SessionService:
    def __init__(self, supabase: Client, cache: Optional[ResourceCache] = None):
        self.supabase = supabase
        self.cache = cache if cache is not None else get_resource_cache()

    def _invalidate(self):
        # A session is visible to every member of its group
        self.cache.invalidate_resource(cache_keys.SESSIONS)

    def create_session_request(
        self, group_id: int, user_id: int, data: SessionRequestCreate
    ) -> SessionRequestResponse:
        """Member proposes a session; the owner accepts or rejects it later"""
        try:
            result = self.supabase.table("session_requests").insert({
                "group_id": group_id,
                "requested_by": user_id,
                "topic": data.topic,
                "date": data.date,
                "start_time": data.start_time,
                "end_time": data.end_time,
                "status": "pending",
                "session_id": None,
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create session request")

            return SessionRequestResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating session request in group {group_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_session_request(self, request_id: int) -> Dict[str, Any]:
        try:
            result = self.supabase.table("session_requests")\
                .select("*")\
                .eq("id", request_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Session request not found")
        return result.data

    def _require_pending(self, request: Dict[str, Any]):
        if request["status"] != "pending":
            raise HTTPException(
                status_code=409,
                detail=f"Session request is already {request['status']}"
            )

    def _find_session_for_request(self, request_id: int) -> Optional[Dict[str, Any]]:
        result = self.supabase.table("sessions")\
            .select("*")\
            .eq("request_id", request_id)\
            .limit(1)\
            .execute()
        return result.data[0] if result.data else None

    def accept_session_request(
        self, request_id: int, user_id: int, acceptance: Optional[SessionAccept] = None
    ) -> SessionResponse:
        """
        Turn a pending request into an upcoming session.

        A session left behind by an earlier attempt for the same request is
        reused. If marking the request accepted fails, a session created by
        this call is deleted again so a retry still ends with one session.
        """
        acceptance = acceptance or SessionAccept()
        request = self.get_session_request(request_id)
        self._require_pending(request)

        created = False
        try:
            session = self._find_session_for_request(request_id)
            if session is None:
                result = self.supabase.table("sessions").insert({
                    "group_id": request["group_id"],
                    "created_by": user_id,
                    "topic": acceptance.topic or request["topic"],
                    "date": acceptance.date or request["date"],
                    "start_time": acceptance.start_time or request["start_time"],
                    "end_time": acceptance.end_time or request["end_time"],
                    "meeting_link": acceptance.meeting_link or None,
                    "request_id": request_id,
                    "status": "upcoming",
                }).execute()
                if not result.data:
                    raise HTTPException(status_code=500, detail="Failed to create session")
                session = result.data[0]
                created = True
            else:
                logger.info(f"Reusing session {session['id']} for request {request_id}")
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating session for request {request_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        try:
            self.supabase.table("session_requests")\
                .update({"status": "accepted", "session_id": session["id"]})\
                .eq("id", request_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error marking request {request_id} accepted: {e}")
            if created:
                try:
                    self.supabase.table("sessions").delete().eq("id", session["id"]).execute()
                except Exception as rollback_error:
                    logger.error(f"Rollback of session {session['id']} failed: {rollback_error}")
            raise HTTPException(status_code=500, detail="Failed to accept session request")

        self._invalidate()
        return SessionResponse(**session)

    def reject_session_request(self, request_id: int) -> SessionRequestResponse:
        """Reject a pending request; no session is created"""
        request = self.get_session_request(request_id)
        self._require_pending(request)
        try:
            result = self.supabase.table("session_requests")\
                .update({"status": "rejected"})\
                .eq("id", request_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error rejecting request {request_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        row = result.data[0] if result.data else {**request, "status": "rejected"}
        return SessionRequestResponse(**row)

    def create_session(self, group_id: int, user_id: int, data: SessionCreate) -> SessionResponse:
        """Schedule a session directly (owner)"""
        try:
            result = self.supabase.table("sessions").insert({
                "group_id": group_id,
                "created_by": user_id,
                "topic": data.topic,
                "date": data.date,
                "start_time": data.start_time,
                "end_time": data.end_time,
                "meeting_link": data.meeting_link or None,
                "request_id": data.request_id,
                "status": "upcoming",
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to create session")

            self._invalidate()
            return SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating session in group {group_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def get_session(self, session_id: int) -> Dict[str, Any]:
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .eq("id", session_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            raise HTTPException(status_code=404, detail="Session not found")
        return result.data

    def update_session(self, session_id: int, updates: SessionUpdate) -> SessionResponse:
        session = self.get_session(session_id)
        update_data = updates.model_dump(exclude_unset=True)
        if not update_data:
            return SessionResponse(**session)

        try:
            result = self.supabase.table("sessions")\
                .update(update_data)\
                .eq("id", session_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="Session not found")

            self._invalidate()
            return SessionResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating session {session_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def list_session_requests(self, group_id: int) -> List[SessionRequestResponse]:
        """Requests of a group, newest first, with requester names"""
        try:
            result = self.supabase.table("session_requests")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("created_at", desc=True)\
                .execute()
            requests = result.data or []
            names = UserService(self.supabase).get_names([r["requested_by"] for r in requests])
            return [
                SessionRequestResponse(**r, requester_name=names.get(r["requested_by"], "Unknown"))
                for r in requests
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_group_sessions(self, group_id: int, upcoming_only: bool = False) -> List[SessionResponse]:
        """Sessions of a group ordered by date then start time"""
        try:
            result = self.supabase.table("sessions")\
                .select("*")\
                .eq("group_id", group_id)\
                .order("date")\
                .order("start_time")\
                .execute()
            sessions = result.data or []
            if upcoming_only:
                sessions = filter_upcoming(sessions)
            names = UserService(self.supabase).get_names([s["created_by"] for s in sessions])
            return [
                SessionResponse(**s, creator_name=names.get(s["created_by"], "Unknown"))
                for s in sessions
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_user_sessions(self, user_id: int, upcoming_only: bool = False) -> List[SessionResponse]:
        """Sessions across every group the user belongs to, with creator and group names"""
        sessions = self.cache.get(user_id, cache_keys.SESSIONS)
        if sessions is None:
            sessions = self._load_user_sessions(user_id)
            self.cache.set(user_id, cache_keys.SESSIONS, sessions)

        if upcoming_only:
            return [s for s in sessions if is_upcoming(s.model_dump())]
        return sessions

    def _load_user_sessions(self, user_id: int) -> List[SessionResponse]:
        try:
            members_result = self.supabase.table("group_members")\
                .select("group_id")\
                .eq("user_id", user_id)\
                .execute()
            group_ids = list(dict.fromkeys(m["group_id"] for m in (members_result.data or [])))
            if not group_ids:
                return []

            sessions_result = self.supabase.table("sessions")\
                .select("*")\
                .in_("group_id", group_ids)\
                .order("date")\
                .order("start_time")\
                .execute()
            sessions = sessions_result.data or []

            groups_result = self.supabase.table("groups")\
                .select("id, name")\
                .in_("id", group_ids)\
                .execute()
            group_names = {g["id"]: g["name"] for g in (groups_result.data or [])}
            names = UserService(self.supabase).get_names([s["created_by"] for s in sessions])

            return [
                SessionResponse(
                    **s,
                    creator_name=names.get(s["created_by"], "Unknown"),
                    group_name=group_names.get(s["group_id"], "Unknown"),
                )
                for s in sessions
            ]
        except Exception as e:
            logger.error(f"Error fetching sessions for user {user_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))
