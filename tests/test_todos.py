"""
Todo tracker: personal vs group completion, filters and recent activity.
"""
from datetime import datetime, timedelta, timezone

import pytest

from stdntlab.config import settings
from stdntlab.core.cache import ResourceCache
from stdntlab.modules.todos.activity import ActivityLog, time_ago
from stdntlab.modules.todos.completion import GroupTodo, PersonalTodo, materialize
from stdntlab.modules.todos.schemas import TodoCreate, TodoFilters, TodoResponse, TodoUpdate
from stdntlab.modules.todos.service import TodoService, get_todos_by_filter
from tests.fakes import bearer


@pytest.fixture()
def service(db):
    return TodoService(db, ResourceCache(ttl_seconds=60), ActivityLog())


@pytest.fixture()
def group_todo(service, group):
    return service.create_todo(1, TodoCreate(title="Read chapter 3", type="group", group_id=1))


@pytest.fixture()
def personal_todo(service):
    return service.create_todo(2, TodoCreate(title="Buy notebook"))


class TestMaterialize:

    def test_personal_uses_stored_status(self):
        todo = materialize({"id": 1, "group_id": None, "status": "in_progress"},
                           [{"todo_id": 1, "user_id": 1, "completed": True}])
        assert isinstance(todo, PersonalTodo)
        assert todo.effective_status(1) == "in_progress"

    def test_group_status_is_per_user(self):
        todo = materialize({"id": 1, "group_id": 5, "status": "pending"},
                           [{"todo_id": 1, "user_id": 2, "completed": True},
                            {"todo_id": 9, "user_id": 3, "completed": True}])
        assert isinstance(todo, GroupTodo)
        assert todo.effective_status(2) == "completed"
        assert todo.effective_status(3) == "pending"

    def test_completion_row_with_completed_false_does_not_count(self):
        todo = materialize({"id": 1, "group_id": 5, "status": "pending"},
                           [{"todo_id": 1, "user_id": 2, "completed": False}])
        assert todo.effective_status(2) == "pending"


class TestGroupCompletion:

    def test_completing_never_changes_row_status(self, service, db, group_todo):
        result = service.update_todo(group_todo.id, TodoUpdate(status="completed"), user_id=2)

        assert result.status == "completed"
        assert db.rows("Todos", id=group_todo.id)[0]["status"] == "pending"
        assert len(db.rows("todo_completions", todo_id=group_todo.id, user_id=2)) == 1

        assert [t.status for t in service.list_todos(2, group_id=1)] == ["completed"]
        assert [t.status for t in service.list_todos(1, group_id=1)] == ["pending"]

    def test_reopening_removes_completion(self, service, db, group_todo):
        service.update_todo(group_todo.id, TodoUpdate(status="completed"), user_id=2)
        result = service.update_todo(group_todo.id, TodoUpdate(status="pending"), user_id=2)

        assert result.status == "pending"
        assert db.rows("todo_completions", todo_id=group_todo.id) == []
        assert db.rows("Todos", id=group_todo.id)[0]["status"] == "pending"

    def test_completing_twice_keeps_one_row(self, service, db, group_todo):
        service.update_todo(group_todo.id, TodoUpdate(status="completed"), user_id=2)
        service.update_todo(group_todo.id, TodoUpdate(status="completed"), user_id=2)
        assert len(db.rows("todo_completions", todo_id=group_todo.id, user_id=2)) == 1

    def test_non_status_fields_are_written(self, service, db, group_todo):
        result = service.update_todo(group_todo.id, TodoUpdate(title="Read chapter 4", priority="high"), user_id=2)
        row = db.rows("Todos", id=group_todo.id)[0]
        assert row["title"] == "Read chapter 4"
        assert row["priority"] == "high"
        assert result.status == "pending"

    def test_update_without_user_records_for_creator(self, service, db, group_todo):
        service.update_todo(group_todo.id, TodoUpdate(status="completed"))
        assert [c["user_id"] for c in db.rows("todo_completions", todo_id=group_todo.id)] == [1]

    def test_toggle_records_for_creator_by_default(self, service, db, group_todo):
        service.toggle_todo_status(group_todo.id, "completed", caller_id=2)
        assert [c["user_id"] for c in db.rows("todo_completions", todo_id=group_todo.id)] == [1]

    def test_toggle_records_for_caller_when_configured(self, service, db, group_todo, monkeypatch):
        monkeypatch.setattr(settings, "todo_toggle_acting_user", "caller")
        service.toggle_todo_status(group_todo.id, "completed", caller_id=2)
        assert [c["user_id"] for c in db.rows("todo_completions", todo_id=group_todo.id)] == [2]


class TestPersonalCompletion:

    def test_status_written_to_row(self, service, db, personal_todo):
        result = service.update_todo(personal_todo.id, TodoUpdate(status="in_progress"))
        assert result.status == "in_progress"
        assert db.rows("Todos", id=personal_todo.id)[0]["status"] == "in_progress"
        assert db.rows("todo_completions") == []

    def test_completion_recorded_once_across_update_and_toggle(self, service, db, personal_todo):
        service.update_todo(personal_todo.id, TodoUpdate(status="completed"))
        service.toggle_todo_status(personal_todo.id, "completed")
        service.update_todo(personal_todo.id, TodoUpdate(status="pending"))
        service.toggle_todo_status(personal_todo.id, "completed")

        assert db.rows("Todos", id=personal_todo.id)[0]["status"] == "completed"
        assert len(db.rows("todo_completions", todo_id=personal_todo.id)) == 1


class TestDelete:

    def test_delete_cascades_completions(self, service, db, group_todo):
        service.update_todo(group_todo.id, TodoUpdate(status="completed"), user_id=2)
        service.delete_todo(group_todo.id, 1)

        assert db.rows("Todos", id=group_todo.id) == []
        assert db.rows("todo_completions", todo_id=group_todo.id) == []
        assert db.calls.index(("todo_completions", "delete")) < db.calls.index(("Todos", "delete"))


class TestListAndFilter:

    def test_own_and_group_todos_newest_first(self, service, db, group_todo, personal_todo):
        db.seed("Todos", {"user_id": 3, "title": "Someone else's", "status": "pending",
                          "type": "personal", "group_id": None})
        titles = [t.title for t in service.list_todos(2)]
        assert titles == ["Buy notebook", "Read chapter 3"]

    def test_list_is_cached_until_a_write(self, service, db, personal_todo):
        service.list_todos(2)
        calls = len(db.calls)
        service.list_todos(2)
        assert len(db.calls) == calls

        service.create_todo(2, TodoCreate(title="Another"))
        assert len(service.list_todos(2)) == 2

    def test_filter(self):
        todos = [
            TodoResponse(id=1, user_id=1, title="a", status="pending", type="personal", priority="high",
                         due_date="2025-01-05"),
            TodoResponse(id=2, user_id=1, title="b", status="completed", type="group", group_id=3,
                         due_date="2025-01-10"),
            TodoResponse(id=3, user_id=1, title="c", status="pending", type="personal"),
        ]
        assert [t.id for t in get_todos_by_filter(todos, TodoFilters(status=["pending"]))] == [1, 3]
        assert [t.id for t in get_todos_by_filter(todos, TodoFilters(priority=["high"]))] == [1]
        assert [t.id for t in get_todos_by_filter(todos, TodoFilters(group_id=None))] == [1, 3]
        assert [t.id for t in get_todos_by_filter(todos, TodoFilters(group_id=3))] == [2]
        assert [t.id for t in get_todos_by_filter(todos, TodoFilters())] == [1, 2, 3]
        assert [t.id for t in get_todos_by_filter(todos, TodoFilters(date_from="2025-01-06"))] == [2]
        assert [t.id for t in get_todos_by_filter(todos, TodoFilters(date_to="2025-01-06"))] == [1]


class TestActivity:

    def test_time_ago(self):
        now = datetime(2025, 6, 1, 12, 0, tzinfo=timezone.utc)
        assert time_ago(now - timedelta(seconds=30), now) == "just now"
        assert time_ago(now - timedelta(minutes=1), now) == "1 minute ago"
        assert time_ago(now - timedelta(minutes=5), now) == "5 minutes ago"
        assert time_ago(now - timedelta(hours=3), now) == "3 hours ago"
        assert time_ago(now - timedelta(days=2), now) == "2 days ago"
        assert time_ago(now - timedelta(days=14), now) == "2 weeks ago"
        assert time_ago(now - timedelta(days=29), now) == "1 month ago"
        assert time_ago(now - timedelta(days=65), now) == "2 months ago"

    def test_keeps_last_fifty(self):
        log = ActivityLog()
        for i in range(60):
            log.record(1, "todo_created", {"id": i, "title": f"t{i}"})
        recent = log.recent(1, limit=100)
        assert len(recent) == 50
        assert recent[0]["todo_id"] == 59

    def test_service_records_events(self, service, personal_todo):
        service.update_todo(personal_todo.id, TodoUpdate(status="completed"))
        service.delete_todo(personal_todo.id, 2)
        types = [a["type"] for a in service.activity.recent(2)]
        assert types == ["todo_deleted", "todo_completed", "todo_created"]
        assert service.activity.recent(2)[1]["message"] == 'Completed todo "Buy notebook"'


# ===================== API =====================


async def test_group_todo_requires_membership(client, db, group):
    r = await client.post("/api/v1/todos", json={"title": "x", "type": "group", "group_id": 1},
                          headers=bearer("carol"))
    assert r.status_code == 403


async def test_group_todo_requires_group_id(client, db):
    r = await client.post("/api/v1/todos", json={"title": "x", "type": "group"}, headers=bearer("alice"))
    assert r.status_code == 422


async def test_title_length_validated(client, db):
    r = await client.post("/api/v1/todos", json={"title": "x" * 201}, headers=bearer("alice"))
    assert r.status_code == 422


async def test_members_complete_group_todo_independently(client, db, group):
    r = await client.post("/api/v1/todos", json={"title": "Revise", "type": "group", "group_id": 1},
                          headers=bearer("alice"))
    todo_id = r.json()["id"]

    r = await client.put(f"/api/v1/todos/{todo_id}", json={"status": "completed"}, headers=bearer("bob"))
    assert r.status_code == 200
    assert r.json()["status"] == "completed"

    bob = await client.get("/api/v1/todos", headers=bearer("bob"))
    alice = await client.get("/api/v1/todos", headers=bearer("alice"))
    assert [t["status"] for t in bob.json()] == ["completed"]
    assert [t["status"] for t in alice.json()] == ["pending"]

    r = await client.put(f"/api/v1/todos/{todo_id}", json={"status": "completed"}, headers=bearer("carol"))
    assert r.status_code == 403


async def test_list_filters_and_activity(client, db, group):
    await client.post("/api/v1/todos", json={"title": "Personal", "priority": "low"}, headers=bearer("alice"))
    await client.post("/api/v1/todos", json={"title": "Shared", "type": "group", "group_id": 1},
                      headers=bearer("alice"))

    r = await client.get("/api/v1/todos", params={"personal_only": True}, headers=bearer("alice"))
    assert [t["title"] for t in r.json()] == ["Personal"]
    r = await client.get("/api/v1/todos", params={"group_id": 1}, headers=bearer("alice"))
    assert [t["title"] for t in r.json()] == ["Shared"]

    r = await client.get("/api/v1/todos/activity", params={"limit": 1}, headers=bearer("alice"))
    assert r.status_code == 200
    assert len(r.json()) == 1
    assert r.json()[0]["time_ago"] == "just now"


async def test_only_creator_deletes(client, db, group):
    r = await client.post("/api/v1/todos", json={"title": "Shared", "type": "group", "group_id": 1},
                          headers=bearer("alice"))
    todo_id = r.json()["id"]
    assert (await client.delete(f"/api/v1/todos/{todo_id}", headers=bearer("bob"))).status_code == 403
    assert (await client.delete(f"/api/v1/todos/{todo_id}", headers=bearer("alice"))).status_code == 204
    assert db.rows("Todos", id=todo_id) == []


async def test_null_title_or_status_is_rejected(client, db, group):
    r = await client.post("/api/v1/todos", json={"title": "Shared", "type": "group", "group_id": 1},
                          headers=bearer("alice"))
    todo_id = r.json()["id"]

    for body in ({"title": None}, {"status": None}, {"type": None}, {"title": "   "}):
        r = await client.put(f"/api/v1/todos/{todo_id}", json=body, headers=bearer("bob"))
        assert r.status_code == 422

    assert ("Todos", "update") not in db.calls
    for name in ("alice", "bob"):
        r = await client.get("/api/v1/todos", headers=bearer(name))
        assert [t["title"] for t in r.json()] == ["Shared"]


async def test_cannot_move_todo_into_foreign_group(client, db, group):
    db.seed("groups", {"id": 2, "name": "Chemistry", "is_public": True, "max_members": 4, "owner_id": 3})
    db.seed("group_members", {"group_id": 2, "user_id": 3, "role": "owner"})
    r = await client.post("/api/v1/todos", json={"title": "Mine"}, headers=bearer("bob"))
    todo_id = r.json()["id"]

    r = await client.put(f"/api/v1/todos/{todo_id}", json={"group_id": 2, "type": "group"}, headers=bearer("bob"))
    assert r.status_code == 403
    assert db.rows("Todos", id=todo_id)[0]["group_id"] is None

    r = await client.get("/api/v1/todos", headers=bearer("carol"))
    assert r.json() == []


async def test_creator_moves_todo_into_own_group(client, db, group):
    r = await client.post("/api/v1/todos", json={"title": "Mine"}, headers=bearer("bob"))
    todo_id = r.json()["id"]
    assert (await client.get("/api/v1/todos", headers=bearer("alice"))).json() == []

    r = await client.put(f"/api/v1/todos/{todo_id}", json={"group_id": 1, "type": "group"}, headers=bearer("bob"))
    assert r.status_code == 200
    assert r.json()["group_id"] == 1

    r = await client.get("/api/v1/todos", headers=bearer("alice"))
    assert [t["title"] for t in r.json()] == ["Mine"]


async def test_only_creator_detaches_group_todo(client, db, group):
    r = await client.post("/api/v1/todos", json={"title": "Shared", "type": "group", "group_id": 1},
                          headers=bearer("alice"))
    todo_id = r.json()["id"]

    r = await client.put(f"/api/v1/todos/{todo_id}", json={"group_id": None, "type": "personal"},
                         headers=bearer("bob"))
    assert r.status_code == 403
    row = db.rows("Todos", id=todo_id)[0]
    assert (row["type"], row["group_id"]) == ("group", 1)


async def test_group_type_needs_group(client, db, group):
    r = await client.post("/api/v1/todos", json={"title": "Mine"}, headers=bearer("alice"))
    todo_id = r.json()["id"]

    r = await client.put(f"/api/v1/todos/{todo_id}", json={"type": "group", "group_id": None},
                         headers=bearer("alice"))
    assert r.status_code == 422

    r = await client.put(f"/api/v1/todos/{todo_id}", json={"type": "group"}, headers=bearer("alice"))
    assert r.status_code == 400
    assert db.rows("Todos", id=todo_id)[0]["type"] == "personal"
