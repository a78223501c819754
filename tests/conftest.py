"""
Test fixtures - in-memory Supabase fake + HTTP client bound to the app
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport

from stdntlab.main import app
from stdntlab.core.cache import ResourceCache, get_resource_cache
from stdntlab.database.supabase_client import get_supabase
from stdntlab.modules.auth.service import clear_auth_cache
from stdntlab.modules.quizzes.generator import QuizGenerationError, get_quiz_generator
from stdntlab.modules.quizzes.schemas import GeneratedQuiz
from stdntlab.modules.todos.activity import ActivityLog, get_activity_log
from tests.fakes import FakeSupabase


class FakeQuizGenerator:
    def __init__(self):
        self.calls = []
        self.error = None
        self.quiz = GeneratedQuiz.model_validate({
            "questions": [
                {
                    "question": "What is 2 + 2?",
                    "options": ["3", "4", "5", "22"],
                    "correct_answer": "4",
                },
                {
                    "question": "What is the derivative of x^2?",
                    "options": ["x", "2x", "x^2", "2"],
                    "correct_answer": "2x",
                },
            ]
        })

    async def generate(self, title, content):
        self.calls.append((title, content))
        if self.error is not None:
            raise QuizGenerationError(self.error)
        return self.quiz


@pytest.fixture()
def db():
    """Fake Supabase project seeded with three users"""
    fake = FakeSupabase()
    for index, name in enumerate(["alice", "bob", "carol"], start=1):
        fake.auth.add_user(f"auth-{name}", f"{name}@example.com", f"token-{name}", name=name.title())
        fake.seed("Users", {
            "id": index,
            "user_id": f"auth-{name}",
            "email": f"{name}@example.com",
            "name": name.title(),
            "timezone": "Europe/Berlin",
            "subjects": ["Mathematics"],
            "education_level": "Undergraduate",
            "study_style": "Visual",
            "days_of_week": ["Monday"],
            "study_times": ["Evening"],
        })
    return fake


@pytest.fixture()
def cache():
    return ResourceCache(ttl_seconds=60)


@pytest.fixture()
def activity():
    return ActivityLog()


@pytest.fixture()
def quiz_generator():
    return FakeQuizGenerator()


@pytest.fixture()
def group(db):
    """Group 1 owned by alice (user 1) with bob (user 2) as member"""
    db.seed("groups", {
        "id": 1, "name": "Calculus Crew", "description": "Limits and friends",
        "tags": ["mathematics", "undergraduate"], "is_public": True,
        "max_members": 4, "owner_id": 1,
    })
    db.seed("group_members",
            {"group_id": 1, "user_id": 1, "role": "owner"},
            {"group_id": 1, "user_id": 2, "role": "member"})
    return db.rows("groups", id=1)[0]


@pytest_asyncio.fixture()
async def client(db, cache, activity, quiz_generator):
    """httpx AsyncClient bound to the FastAPI app; authenticate per request with tests.fakes.bearer"""
    clear_auth_cache()
    app.dependency_overrides[get_supabase] = lambda: db
    app.dependency_overrides[get_resource_cache] = lambda: cache
    app.dependency_overrides[get_activity_log] = lambda: activity
    app.dependency_overrides[get_quiz_generator] = lambda: quiz_generator

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()
    clear_auth_cache()
