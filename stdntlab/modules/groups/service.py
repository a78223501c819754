from supabase import Client
from stdntlab.core import cache as cache_keys
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.core.dependencies import get_membership
from stdntlab.modules.groups.schemas import (
    GroupCreate, GroupResponse, UserGroupResponse, GroupMemberResponse
)
from stdntlab.modules.users.service import UserService
from typing import Dict, List, Optional
from fastapi import HTTPException
from datetime import datetime, timezone
import logging

logger = logging.getLogger(__name__)


class GroupService:
    def __init__(self, supabase: Client, cache: Optional[ResourceCache] = None):
        self.supabase = supabase
        self.cache = cache if cache is not None else get_resource_cache()

    def _invalidate_user(self, user_id: int):
        # Membership changes what sessions and group todos a user sees, and
        # the member counts every member's group list shows
        self.cache.invalidate(user_id, cache_keys.SESSIONS)
        self.cache.invalidate(user_id, cache_keys.TODOS)
        self.cache.invalidate_resource(cache_keys.GROUPS)

    def create_group(self, group_data: GroupCreate, owner_id: int) -> GroupResponse:
        """Create a group and add the creator as owner; the group row is removed if the owner row fails"""
        try:
            result = self.supabase.table("groups").insert({
                "name": group_data.name,
                "description": group_data.description,
                "tags": group_data.tags,
                "is_public": group_data.is_public,
                "max_members": group_data.max_members,
                "owner_id": owner_id,
                "created_from_match": False,
            }).execute()
        except Exception as e:
            logger.error(f"Error creating group: {e}")
            raise HTTPException(status_code=500, detail=str(e))

        if not result.data:
            raise HTTPException(status_code=500, detail="Failed to create group")

        group = result.data[0]

        try:
            self.supabase.table("group_members").insert({
                "group_id": group["id"],
                "user_id": owner_id,
                "role": "owner",
                "joined_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
        except Exception as e:
            logger.error(f"Error adding owner to group {group['id']}: {e}")
            try:
                self.supabase.table("groups").delete().eq("id", group["id"]).execute()
            except Exception as rollback_error:
                logger.error(f"Rollback of group {group['id']} failed: {rollback_error}")
            raise HTTPException(status_code=500, detail="Failed to add owner to group")

        self._invalidate_user(owner_id)
        return GroupResponse(**group)

    def get_group(self, group_id: int) -> GroupResponse:
        """Get group by ID"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("id", group_id)\
                .maybe_single()\
                .execute()

            if not result or not result.data:
                raise HTTPException(status_code=404, detail="Group not found")

            return GroupResponse(**result.data)
        except HTTPException:
            raise
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def count_members(self, group_ids: List[int]) -> Dict[int, int]:
        """Member count per group from a single group_members query"""
        counts = {group_id: 0 for group_id in group_ids}
        if not group_ids:
            return counts
        result = self.supabase.table("group_members")\
            .select("group_id")\
            .in_("group_id", group_ids)\
            .execute()
        for row in result.data or []:
            counts[row["group_id"]] = counts.get(row["group_id"], 0) + 1
        return counts

    def get_user_group_ids(self, user_id: int) -> List[int]:
        result = self.supabase.table("group_members")\
            .select("group_id")\
            .eq("user_id", user_id)\
            .execute()
        return list(dict.fromkeys(row["group_id"] for row in (result.data or [])))

    def list_user_groups(self, user_id: int) -> List[UserGroupResponse]:
        """Groups the user belongs to, with member counts and the user's role"""
        cached = self.cache.get(user_id, cache_keys.GROUPS)
        if cached is not None:
            return cached
        try:
            members_result = self.supabase.table("group_members")\
                .select("group_id, role, joined_at")\
                .eq("user_id", user_id)\
                .execute()
            if not members_result.data:
                self.cache.set(user_id, cache_keys.GROUPS, [])
                return []

            roles = {m["group_id"]: m["role"] for m in members_result.data}
            groups_result = self.supabase.table("groups")\
                .select("*")\
                .in_("id", list(roles.keys()))\
                .execute()
            counts = self.count_members(list(roles.keys()))

            groups = [
                UserGroupResponse(
                    **group,
                    member_count=counts.get(group["id"], 0),
                    user_role=roles.get(group["id"], "member"),
                )
                for group in (groups_result.data or [])
            ]
            self.cache.set(user_id, cache_keys.GROUPS, groups)
            return groups
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_public_groups(self) -> List[dict]:
        """Raw rows of every public group (matching candidates)"""
        try:
            result = self.supabase.table("groups")\
                .select("*")\
                .eq("is_public", True)\
                .order("id")\
                .execute()
            return result.data or []
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def list_members(self, group_id: int) -> List[GroupMemberResponse]:
        """List all members of a group with their display names"""
        try:
            result = self.supabase.table("group_members")\
                .select("*")\
                .eq("group_id", group_id)\
                .execute()
            members = result.data or []
            names = UserService(self.supabase).get_names([m["user_id"] for m in members])
            return [
                GroupMemberResponse(**member, name=names.get(member["user_id"], "Unknown"))
                for member in members
            ]
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))

    def join_group(self, group_id: int, user_id: int) -> GroupMemberResponse:
        """Join a group as a regular member (capacity and duplicate checks)"""
        group = self.get_group(group_id)
        try:
            member_count = self.count_members([group_id])[group_id]
            if member_count >= group.max_members:
                raise HTTPException(status_code=409, detail="This group is full")

            existing = self.supabase.table("group_members")\
                .select("id")\
                .eq("group_id", group_id)\
                .eq("user_id", user_id)\
                .execute()
            if existing.data:
                raise HTTPException(status_code=409, detail="You are already a member of this group")

            result = self.supabase.table("group_members").insert({
                "group_id": group_id,
                "user_id": user_id,
                "role": "member",
                "joined_at": datetime.now(timezone.utc).isoformat(),
            }).execute()

            if not result.data:
                raise HTTPException(status_code=500, detail="Failed to join group")

            self._invalidate_user(user_id)
            return GroupMemberResponse(**result.data[0])
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error joining group {group_id}: {e}")
            raise HTTPException(status_code=500, detail=str(e))

    def _cascade_member_content(self, group_id: int, user_id: int):
        """Delete the user's quiz submissions and materials in the group. Failures are logged, not raised."""
        try:
            quizzes_result = self.supabase.table("quizzes")\
                .select("id")\
                .eq("group_id", group_id)\
                .execute()
            quiz_ids = [q["id"] for q in (quizzes_result.data or [])]
            if quiz_ids:
                self.supabase.table("quiz_submission")\
                    .delete()\
                    .eq("user_id", user_id)\
                    .in_("quiz_id", quiz_ids)\
                    .execute()
        except Exception as e:
            logger.error(f"Error deleting quiz submissions of user {user_id} in group {group_id}: {e}")

        try:
            self.supabase.table("material")\
                .delete()\
                .eq("group_id", group_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting materials of user {user_id} in group {group_id}: {e}")

    def _delete_membership(self, group_id: int, user_id: int) -> bool:
        try:
            result = self.supabase.table("group_members")\
                .delete()\
                .eq("group_id", group_id)\
                .eq("user_id", user_id)\
                .execute()
        except Exception as e:
            logger.error(f"Error deleting membership of user {user_id} in group {group_id}: {e}")
            raise HTTPException(status_code=500, detail="Failed to remove membership")
        self._invalidate_user(user_id)
        return len(result.data or []) > 0

    def leave_group(self, group_id: int, user_id: int) -> bool:
        """Leave a group; owners are blocked since ownership cannot be transferred"""
        membership = self._get_membership(group_id, user_id)
        if membership is None:
            raise HTTPException(status_code=404, detail="You are not a member of this group")
        if membership["role"] == "owner":
            raise HTTPException(
                status_code=400,
                detail="Group owners cannot leave their own groups. Please transfer ownership first."
            )
        self._cascade_member_content(group_id, user_id)
        return self._delete_membership(group_id, user_id)

    def remove_member(self, group_id: int, member_user_id: int, acting_user_id: int) -> bool:
        """Owner removes another member, with the same content cascade as leaving"""
        group = self.get_group(group_id)
        if group.owner_id != acting_user_id:
            raise HTTPException(status_code=403, detail="Only the group owner can remove members")

        membership = self._get_membership(group_id, member_user_id)
        if membership is None:
            raise HTTPException(status_code=404, detail="Member not found")
        if membership["role"] == "owner":
            raise HTTPException(status_code=400, detail="Cannot remove the group owner")

        self._cascade_member_content(group_id, member_user_id)
        return self._delete_membership(group_id, member_user_id)

    def _get_membership(self, group_id: int, user_id: int) -> Optional[dict]:
        try:
            return get_membership(group_id, user_id, self.supabase)
        except Exception as e:
            raise HTTPException(status_code=500, detail=str(e))
