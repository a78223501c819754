from supabase import Client
from stdntlab.modules.users.schemas import PreferencesUpdate, ProfileResponse, ProfileCompletionResponse
from typing import Any, Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone

PREFERENCE_FIELDS = (
    "name",
    "timezone",
    "days_of_week",
    "study_times",
    "education_level",
    "subjects",
    "study_style",
)


def _is_empty(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str):
        return value.strip() == ""
    if isinstance(value, (list, tuple)):
        return len(value) == 0
    return False


def get_empty_fields(profile: Optional[Dict[str, Any]]) -> List[str]:
    """Preference fields that are missing, blank or empty lists"""
    if not profile:
        return list(PREFERENCE_FIELDS)
    return [field for field in PREFERENCE_FIELDS if _is_empty(profile.get(field))]


def is_profile_complete(profile: Optional[Dict[str, Any]]) -> bool:
    return len(get_empty_fields(profile)) == 0


def get_profile_completion_percentage(profile: Optional[Dict[str, Any]]) -> int:
    if not profile:
        return 0
    completed = len(PREFERENCE_FIELDS) - len(get_empty_fields(profile))
    return round(completed / len(PREFERENCE_FIELDS) * 100)


class UserService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile(self, user_id: int) -> ProfileResponse:
        """Get user profile by numeric ID"""
        try:
            result = self.supabase.table("Users")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return ProfileResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_profile_by_auth_id(self, auth_user_id: str) -> Optional[ProfileResponse]:
        """Get user profile by Supabase Auth uuid"""
        try:
            result = self.supabase.table("Users")\
                .select("*")\
                .eq("user_id", auth_user_id)\
                .maybe_single()\
                .execute()
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

        if not result or not result.data:
            return None
        return ProfileResponse(**result.data)

    def update_preferences(self, user_id: int, preferences: PreferencesUpdate) -> ProfileResponse:
        """Partial update of study preferences; only provided fields are written"""
        update_data = preferences.model_dump(exclude_none=True)
        if not update_data:
            return self.get_profile(user_id)
        update_data["updated_at"] = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("Users")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()

            if not result.data:
                raise HTTPException(status_code=404, detail="User not found")

            return ProfileResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def get_completion(self, profile: Dict[str, Any]) -> ProfileCompletionResponse:
        empty = get_empty_fields(profile)
        return ProfileCompletionResponse(
            complete=not empty,
            percentage=get_profile_completion_percentage(profile),
            empty_fields=empty,
        )

    def get_names(self, user_ids: List[int]) -> Dict[int, str]:
        """Map of numeric user id -> display name ("Unknown" when unset)"""
        ids = list({uid for uid in user_ids if uid is not None})
        if not ids:
            return {}
        result = self.supabase.table("Users")\
            .select("id, name")\
            .in_("id", ids)\
            .execute()
        return {row["id"]: row.get("name") or "Unknown" for row in (result.data or [])}
