from supabase import Client
from stdntlab.config import settings
from stdntlab.modules.groups.service import GroupService
from stdntlab.modules.matching.scorer import (
    MatchScorer, MatchStrategy, MatchProfile, MatchCandidate, WEIGHTED, OVERLAP
)
from stdntlab.modules.matching.schemas import GroupRecommendation
from typing import Any, Dict, List
from fastapi import HTTPException
import logging

logger = logging.getLogger(__name__)


def get_strategy(name: str) -> MatchStrategy:
    """Named matching strategies; limits come from settings"""
    if name == "weighted":
        return MatchStrategy(name="weighted", weights=WEIGHTED, limit=settings.recommendation_limit)
    if name == "overlap":
        return MatchStrategy(
            name="overlap",
            weights=OVERLAP,
            limit=settings.quick_match_limit,
            min_score=0,
            candidate_limit=settings.quick_match_candidate_limit,
        )
    raise ValueError(f"Unknown match strategy: {name}")


class MatchingService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.groups = GroupService(supabase)

    def _profile(self, user: Dict[str, Any]) -> MatchProfile:
        return MatchProfile(
            subjects=list(user.get("subjects") or []),
            education_level=user.get("education_level"),
            study_style=user.get("study_style"),
            timezone=user.get("timezone"),
        )

    def _available_groups(self, user_id: int) -> List[Dict[str, Any]]:
        """Public groups the user is not in and that still have space, with member_count"""
        groups = self.groups.list_public_groups()
        if not groups:
            return []
        my_group_ids = set(self.groups.get_user_group_ids(user_id))
        candidates = [g for g in groups if g["id"] not in my_group_ids]
        counts = self.groups.count_members([g["id"] for g in candidates])
        available = []
        for group in candidates:
            member_count = counts.get(group["id"], 0)
            if member_count < (group.get("max_members") or 0):
                available.append({**group, "member_count": member_count})
        return available

    def _owners(self, groups: List[Dict[str, Any]]) -> Dict[int, Dict[str, Any]]:
        owner_ids = list({g["owner_id"] for g in groups if g.get("owner_id") is not None})
        if not owner_ids:
            return {}
        result = self.supabase.table("Users")\
            .select("id, timezone, subjects")\
            .in_("id", owner_ids)\
            .execute()
        return {row["id"]: row for row in (result.data or [])}

    def recommend(self, user: Dict[str, Any], strategy: MatchStrategy) -> List[GroupRecommendation]:
        """Rank available groups for the user; scores are computed per call and never stored"""
        try:
            groups = self._available_groups(user["id"])
            if strategy.candidate_limit is not None:
                groups = groups[:strategy.candidate_limit]
            owners = self._owners(groups) if strategy.weights.uses_owner else {}
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error loading match candidates for user {user['id']}: {e}")
            raise HTTPException(status_code=500, detail="Failed to fetch groups")

        by_id = {g["id"]: g for g in groups}
        candidates = []
        for group in groups:
            owner = owners.get(group.get("owner_id"), {})
            candidates.append(MatchCandidate(
                group_id=group["id"],
                tags=list(group.get("tags") or []),
                member_count=group["member_count"],
                max_members=group.get("max_members") or 0,
                owner_timezone=owner.get("timezone"),
                owner_subjects=list(owner.get("subjects") or []),
            ))

        ranked = MatchScorer(strategy.weights).rank(
            self._profile(user), candidates, limit=strategy.limit, min_score=strategy.min_score
        )
        logger.debug("Strategy %s ranked %d of %d candidates", strategy.name, len(ranked), len(candidates))
        return [
            GroupRecommendation(
                id=candidate.group_id,
                name=by_id[candidate.group_id]["name"],
                description=by_id[candidate.group_id].get("description"),
                tags=candidate.tags,
                max_members=candidate.max_members,
                member_count=candidate.member_count,
                match_score=round(score, 2),
            )
            for candidate, score in ranked
        ]
