from fastapi import APIRouter, Depends, HTTPException, Security
from fastapi.security import HTTPAuthorizationCredentials
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.auth.service import AuthService
from stdntlab.modules.quizzes.generator import QuizGenerator, get_quiz_generator
from stdntlab.modules.quizzes.schemas import (
    QuizCreateRequest, QuizCreateResponse, QuizSummary, QuizDetail,
    QuizSubmitRequest, QuizSubmissionResponse, LeaderboardEntry
)
from stdntlab.modules.quizzes.service import QuizService
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.core.dependencies import (
    security, get_auth_service, get_current_profile, resolve_profile, check_group_member
)
from supabase import Client
from typing import List, Dict, Optional
import logging

logger = logging.getLogger(__name__)

# Mounted at /api/quiz, outside the versioned API prefix
create_router = APIRouter(prefix="/api/quiz", tags=["quizzes"])
router = APIRouter(prefix="/quizzes", tags=["quizzes"])


def get_quiz_service(
    supabase: Client = Depends(get_supabase),
    cache: ResourceCache = Depends(get_resource_cache)
) -> QuizService:
    return QuizService(supabase, cache)


@create_router.post("/create", response_model=QuizCreateResponse)
async def create_quiz(
    body: QuizCreateRequest,
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service),
    service: QuizService = Depends(get_quiz_service),
    generator: QuizGenerator = Depends(get_quiz_generator),
    supabase: Client = Depends(get_supabase)
):
    """Generate a quiz from a group material"""
    if not body.materialId:
        raise HTTPException(status_code=400, detail="Material ID is required")
    if not body.groupId:
        raise HTTPException(status_code=400, detail="Group ID is required")
    if not body.userId:
        raise HTTPException(status_code=400, detail="User ID is required")

    if credentials is None:
        raise HTTPException(status_code=401, detail="Unauthorized")
    auth_user = auth_service.get_current_user(credentials.credentials)

    try:
        profile = resolve_profile(auth_user["id"], supabase)
    except Exception as e:
        logger.error(f"Error resolving profile for {auth_user['id']}: {e}")
        profile = None
    if profile is None:
        raise HTTPException(status_code=404, detail="User not found")

    return await service.create_quiz_from_material(body.materialId, body.groupId, profile["id"], generator)


@router.get("/group/{group_id}", response_model=List[QuizSummary])
async def list_group_quizzes(
    group_id: int,
    profile: Dict = Depends(get_current_profile),
    service: QuizService = Depends(get_quiz_service),
    supabase: Client = Depends(get_supabase)
):
    check_group_member(group_id, profile, supabase)
    return service.list_group_quizzes(group_id, profile["id"])


@router.get("/{quiz_id}", response_model=QuizDetail)
async def get_quiz(
    quiz_id: int,
    profile: Dict = Depends(get_current_profile),
    service: QuizService = Depends(get_quiz_service),
    supabase: Client = Depends(get_supabase)
):
    """Quiz with its questions; correct answers are shown once the caller has submitted"""
    quiz = service.get_quiz_row(quiz_id)
    check_group_member(quiz["group_id"], profile, supabase)
    return service.get_quiz(quiz_id, include_answers=service.has_submitted(quiz_id, profile["id"]))


@router.post("/{quiz_id}/submit", response_model=QuizSubmissionResponse, status_code=201)
async def submit_quiz(
    quiz_id: int,
    submission: QuizSubmitRequest,
    profile: Dict = Depends(get_current_profile),
    service: QuizService = Depends(get_quiz_service),
    supabase: Client = Depends(get_supabase)
):
    quiz = service.get_quiz_row(quiz_id)
    check_group_member(quiz["group_id"], profile, supabase)
    return service.submit_quiz(quiz_id, profile["id"], submission.answers)


@router.get("/{quiz_id}/leaderboard", response_model=List[LeaderboardEntry])
async def get_leaderboard(
    quiz_id: int,
    profile: Dict = Depends(get_current_profile),
    service: QuizService = Depends(get_quiz_service),
    supabase: Client = Depends(get_supabase)
):
    quiz = service.get_quiz_row(quiz_id)
    check_group_member(quiz["group_id"], profile, supabase)
    return service.get_leaderboard(quiz_id)
