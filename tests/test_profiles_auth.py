"""
Auth, profiles, materials and the per-user cache.
"""
from types import SimpleNamespace

import pytest

from stdntlab.config import settings
from stdntlab.core import cache as cache_module
from stdntlab.core.cache import ResourceCache
from stdntlab.modules.users.schemas import PreferencesUpdate
from stdntlab.modules.users.service import get_empty_fields, get_profile_completion_percentage, is_profile_complete
from tests.fakes import bearer


class TestProfileCompletion:

    def test_complete_profile(self, db):
        profile = db.rows("Users", id=1)[0]
        assert is_profile_complete(profile)
        assert get_profile_completion_percentage(profile) == 100

    def test_blank_and_empty_fields_count_as_missing(self):
        profile = {"name": "Dana", "timezone": "  ", "subjects": [], "study_style": "Visual"}
        assert get_empty_fields(profile) == [
            "timezone", "days_of_week", "study_times", "education_level", "subjects"
        ]
        assert get_profile_completion_percentage(profile) == 29

    def test_no_profile(self):
        assert get_profile_completion_percentage(None) == 0
        assert not is_profile_complete(None)


class TestPreferencesValidation:

    def test_rejects_empty_values(self):
        with pytest.raises(ValueError):
            PreferencesUpdate(name="A")
        with pytest.raises(ValueError):
            PreferencesUpdate(timezone=" ")
        with pytest.raises(ValueError):
            PreferencesUpdate(subjects=[])

    def test_partial_update_is_allowed(self):
        assert PreferencesUpdate(study_style="Auditory").model_dump(exclude_none=True) == {"study_style": "Auditory"}


class TestResourceCache:

    def test_expired_entries_are_dropped(self, monkeypatch):
        clock = [100.0]
        monkeypatch.setattr(cache_module, "time", SimpleNamespace(monotonic=lambda: clock[0]))
        cache = ResourceCache(ttl_seconds=10)
        cache.set(1, "todos", ["a"])
        assert cache.get(1, "todos") == ["a"]
        clock[0] = 111.0
        assert cache.get(1, "todos") is None

    def test_invalidation(self):
        cache = ResourceCache(ttl_seconds=60)
        cache.set(1, "todos", ["a"])
        cache.set(2, "todos", ["b"])
        cache.set(1, "groups", ["g"])

        cache.invalidate(1, "todos")
        assert cache.get(1, "todos") is None
        assert cache.get(2, "todos") == ["b"]

        cache.invalidate_resource("todos")
        assert cache.get(2, "todos") is None
        assert cache.get(1, "groups") == ["g"]

    def test_zero_ttl_disables_caching(self):
        cache = ResourceCache(ttl_seconds=0)
        cache.set(1, "todos", ["a"])
        assert cache.get(1, "todos") is None


# ===================== API =====================


async def test_register_login_me_logout(client, db):
    r = await client.post("/api/v1/auth/register",
                          json={"email": "dave@example.com", "password": "secret123", "name": "Dave"})
    assert r.status_code == 201
    assert r.json()["profile_id"] is not None
    assert db.rows("Users", email="dave@example.com")[0]["name"] == "Dave"

    r = await client.post("/api/v1/auth/register", json={"email": "dave@example.com", "password": "secret123"})
    assert r.status_code == 400

    r = await client.post("/api/v1/auth/login", json={"email": "dave@example.com", "password": "wrong-pass"})
    assert r.status_code == 401

    r = await client.post("/api/v1/auth/login", json={"email": "dave@example.com", "password": "secret123"})
    assert r.status_code == 200
    token = r.json()["access_token"]

    r = await client.get("/api/v1/auth/me", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert r.json()["profile"]["email"] == "dave@example.com"

    r = await client.post("/api/v1/auth/logout", headers={"Authorization": f"Bearer {token}"})
    assert r.status_code == 200
    assert db.auth.signed_out == 1


async def test_missing_or_bad_token(client, db):
    assert (await client.get("/api/v1/users/me")).status_code == 401
    r = await client.get("/api/v1/users/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401


async def test_update_preferences_and_completion(client, db):
    db.rows("Users", id=3)[0]["subjects"] = []
    r = await client.get("/api/v1/users/me/completion", headers=bearer("carol"))
    assert r.json() == {"complete": False, "percentage": 86, "empty_fields": ["subjects"]}

    r = await client.put("/api/v1/users/me/preferences", json={"subjects": ["Physics"]}, headers=bearer("carol"))
    assert r.status_code == 200
    assert r.json()["subjects"] == ["Physics"]
    assert r.json()["timezone"] == "Europe/Berlin"

    r = await client.put("/api/v1/users/me/preferences", json={"subjects": []}, headers=bearer("carol"))
    assert r.status_code == 422


async def test_my_groups(client, db, group):
    r = await client.get("/api/v1/users/me/groups", headers=bearer("bob"))
    assert [(g["name"], g["user_role"], g["member_count"]) for g in r.json()] == [("Calculus Crew", "member", 2)]


async def test_materials_author_or_owner(client, db, group):
    r = await client.post("/api/v1/materials/group/1", json={"title": " Limits ", "content": "epsilon-delta"},
                          headers=bearer("bob"))
    assert r.status_code == 201
    assert r.json()["title"] == "Limits"
    material_id = r.json()["id"]

    r = await client.post("/api/v1/materials/group/1", json={"title": "   ", "content": "x"}, headers=bearer("bob"))
    assert r.status_code == 422

    db.seed("group_members", {"group_id": 1, "user_id": 3, "role": "member"})
    r = await client.put(f"/api/v1/materials/{material_id}", json={"title": "Mine", "content": "x"},
                         headers=bearer("carol"))
    assert r.status_code == 403

    r = await client.put(f"/api/v1/materials/{material_id}", json={"title": "Limits II", "content": "more"},
                         headers=bearer("alice"))
    assert r.status_code == 200
    assert r.json()["title"] == "Limits II"

    r = await client.get("/api/v1/materials/group/1", headers=bearer("carol"))
    assert [m["author_name"] for m in r.json()] == ["Bob"]

    assert (await client.delete(f"/api/v1/materials/{material_id}", headers=bearer("bob"))).status_code == 204
    assert db.rows("material") == []


async def test_health_and_security_headers(client):
    r = await client.get("/health")
    assert r.json() == {"status": "healthy"}
    assert r.headers["x-content-type-options"] == "nosniff"
    assert r.headers["x-frame-options"] == "DENY"


async def test_login_creates_missing_profile(client, db):
    db.auth.add_user("auth-erin", "erin@example.com", "token-erin", password="secret123", name="Erin")
    r = await client.post("/api/v1/auth/login", json={"email": "erin@example.com", "password": "secret123"})
    assert r.status_code == 200
    profile = db.rows("Users", user_id="auth-erin")[0]
    assert r.json()["profile_id"] == profile["id"]
    assert profile["name"] == "Erin"

    r = await client.post("/api/v1/auth/login", json={"email": "erin@example.com", "password": "secret123"})
    assert len(db.rows("Users", user_id="auth-erin")) == 1


async def test_me_without_profile_falls_back_to_email(client, db):
    db.auth.add_user("auth-frank", "frank@example.com", "token-frank")
    r = await client.get("/api/v1/auth/me", headers=bearer("frank"))
    assert r.status_code == 200
    assert r.json()["name"] == "frank"
    assert r.json()["profile"] is None


async def test_ready_reports_checks(client, monkeypatch):
    monkeypatch.setattr(settings, "supabase_url", "")
    r = await client.get("/ready")
    assert r.status_code == 503
    assert r.json()["checks"]["supabase"] is False

    monkeypatch.setattr(settings, "supabase_url", "https://project.supabase.co")
    monkeypatch.setattr(settings, "supabase_key", "anon-key")
    r = await client.get("/ready")
    assert r.status_code == 200
    assert r.json()["status"] == "ready"
