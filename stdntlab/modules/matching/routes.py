from fastapi import APIRouter, Depends
from stdntlab.config import settings
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.matching.schemas import GroupRecommendation
from stdntlab.modules.matching.service import MatchingService, get_strategy
from stdntlab.core.dependencies import get_current_profile
from supabase import Client
from typing import List, Dict

router = APIRouter(prefix="/matching", tags=["matching"])


def get_matching_service(supabase: Client = Depends(get_supabase)) -> MatchingService:
    return MatchingService(supabase)


@router.get("/recommendations", response_model=List[GroupRecommendation])
async def get_recommendations(
    profile: Dict = Depends(get_current_profile),
    service: MatchingService = Depends(get_matching_service)
):
    """Dashboard recommended groups, ranked by the configured strategy"""
    return service.recommend(profile, get_strategy(settings.match_strategy))


@router.get("/quick-match", response_model=List[GroupRecommendation])
async def quick_match(
    profile: Dict = Depends(get_current_profile),
    service: MatchingService = Depends(get_matching_service)
):
    """Top few groups sharing timezone, subjects or tags with the user"""
    return service.recommend(profile, get_strategy("overlap"))
