import httpx
import pytest

from goaltracker.persistence.mode import PersistenceMode
from goaltracker.repositories.local import LocalGoalRepository
from goaltracker.repositories.remote import RemoteGoalRepository
from goaltracker.services.goal_store import GoalStore

USER_ID = 5


def remote_goal(**overrides):
    goal = {
        "id": 11,
        "user_id": USER_ID,
        "title": "Meditate",
        "goal_type": "daily",
        "target_value": "4",
        "total_progress": None,
        "status": "active",
        "metadata": '{"color": "teal"}',
        "created_at": "2025-01-05T08:00:00",
    }
    goal.update(overrides)
    return goal


@pytest.fixture
def repo(remote_db, local_store):
    return RemoteGoalRepository(remote_db, LocalGoalRepository(local_store))


@pytest.fixture
def store(repo, fake_remote):
    fake_remote.on("SELECT * FROM goaltracker.goals", {"data": [remote_goal()]})
    s = GoalStore(repo, USER_ID)
    s.load_goals()
    return s


def test_rows_are_normalized(store):
    assert store.mode is PersistenceMode.remote
    goal = store.get_goal_by_id(11)
    assert goal["metadata"] == {"color": "teal"}
    assert goal["target_value"] == 4
    assert goal["total_progress"] == 0


def test_list_failure_yields_empty_collection(repo, fake_remote):
    fake_remote.fail_all()
    s = GoalStore(repo, USER_ID)
    assert s.load_goals().success is True
    assert s.goals == []
    assert s.loaded is True


def test_create_goal_sends_owner_and_json_metadata(store, fake_remote):
    fake_remote.on("INSERT INTO goaltracker.goals", lambda p: {"data": [remote_goal(id=12, title=p["params"][1])]})
    r = store.create_goal({"title": "Walk", "goal_type": "daily", "metadata": {"a": 1}})
    assert r.success, r.error
    assert r.value["id"] == 12
    assert "fallback" not in r.extra

    params = fake_remote.queries[-1]["params"]
    assert params[0] == USER_ID
    assert params[-1] == '{"a": 1}'


def test_create_goal_falls_back_to_local_and_merges(store, repo, fake_remote):
    fake_remote.on("INSERT INTO goaltracker.goals", httpx.Response(500))
    r = store.create_goal({"title": "Offline goal", "goal_type": "weekly"})
    assert r.success is True
    assert r.extra["fallback"] is True
    assert repo.fallback.has_goal(USER_ID, r.value["id"])

    # The locally held goal shows up in the next remote listing
    store.load_goals()
    titles = [g["title"] for g in store.goals]
    assert titles[0] == "Offline goal"
    assert "Meditate" in titles


def test_log_progress_is_one_statement(store, fake_remote):
    fake_remote.on("WITH log AS", {"data": [remote_goal(total_progress=3)]})
    r = store.log_progress(11, 3, "morning")
    assert r.success, r.error

    statement = next(q for q in fake_remote.queries if "WITH log AS" in q["query"])
    assert statement["params"] == [11, 3, "morning", USER_ID]
    assert "UPDATE goaltracker.goals" in statement["query"]
    assert "user_id = $4" in statement["query"]


def test_log_progress_outage_reports_remote_error(store, fake_remote):
    fake_remote.on("WITH log AS", httpx.Response(503, json={"error": "service unavailable"}))
    r = store.log_progress(11, 1)
    # Goal 11 lives remotely, so the outage is not turned into a missing goal
    assert r.success is False
    assert r.error != "Goal not found"
    assert store.get_goal_by_id(11)["total_progress"] == 0


def test_log_progress_on_locally_held_goal(store, fake_remote):
    fake_remote.on("INSERT INTO goaltracker.goals", httpx.Response(500))
    local_goal = store.create_goal({"title": "Offline", "goal_type": "daily"}).value
    # Remote update touches no row, so the fallback copy is used
    fake_remote.on("WITH log AS", {"data": []})
    r = store.log_progress(local_goal["id"], 2)
    assert r.success, r.error
    assert store.get_goal_by_id(local_goal["id"])["total_progress"] == 2


def test_update_goal_is_owner_scoped(store, fake_remote):
    fake_remote.on("UPDATE goaltracker.goals", {"data": [remote_goal(title="Meditate 10m")]})
    r = store.update_goal(11, {"title": "Meditate 10m"})
    assert r.success, r.error
    assert store.get_goal_by_id(11)["title"] == "Meditate 10m"

    q = fake_remote.queries[-1]
    assert "WHERE id = $1 AND user_id = $2" in q["query"]
    assert "title = $3" in q["query"]
    assert q["params"] == [11, USER_ID, "Meditate 10m"]


def test_update_goal_remote_failure_is_reported(store, fake_remote):
    fake_remote.on("UPDATE goaltracker.goals", httpx.Response(500))
    r = store.update_goal(11, {"title": "x"})
    assert r.success is False
    assert store.get_goal_by_id(11)["title"] == "Meditate"


def test_update_goal_touching_no_row_is_not_found(store, fake_remote):
    fake_remote.on("UPDATE goaltracker.goals", {"data": []})
    r = store.update_goal(11, {"title": "Renamed"})
    assert r.success is False
    assert r.error == "Goal not found"
    assert store.get_goal_by_id(11)["title"] == "Meditate"


def test_micro_goal_insert_fallback_is_listed(store, fake_remote):
    fake_remote.on("INSERT INTO goaltracker.micro_goals", httpx.Response(500))
    fake_remote.on("SELECT * FROM goaltracker.micro_goals", {"data": [{"id": 3, "parent_goal_id": 11, "title": "a"}]})
    created = store.create_micro_goal(11, {"title": "Offline step", "order_index": 1})
    assert created.success
    assert created.extra["fallback"] is True

    listed = store.list_micro_goals(11).value
    assert [m["title"] for m in listed] == ["a", "Offline step"]

    # Remote touches no row, so the local copy is toggled and removed
    fake_remote.on("UPDATE goaltracker.micro_goals", {"data": []})
    fake_remote.on("DELETE FROM goaltracker.micro_goals", {"data": []})
    assert store.toggle_micro_goal(11, created.value["id"]).value["completed"] is True
    assert store.delete_micro_goal(11, created.value["id"]).success


def test_micro_goal_queries_are_owner_scoped(store, fake_remote):
    fake_remote.on("SELECT * FROM goaltracker.micro_goals", {"data": [{"id": 3, "parent_goal_id": 11, "title": "a"}]})
    r = store.list_micro_goals(11)
    assert r.success
    q = fake_remote.queries[-1]
    assert "parent_goal_id IN (SELECT id FROM goaltracker.goals WHERE user_id = $2)" in q["query"]
    assert q["params"] == [11, USER_ID]

    fake_remote.on("DELETE FROM goaltracker.micro_goals", {"data": []})
    assert store.delete_micro_goal(11, 3).error == "Micro-goal not found"


def test_partner_insert_fallback(store, fake_remote):
    fake_remote.on("INSERT INTO goaltracker.accountability_partners", httpx.Response(500))
    r = store.add_partner({"partner_name": "Alex", "partner_email": "a@example.com", "shared_goals": [11]})
    assert r.success
    assert r.extra["fallback"] is True
    assert r.value["shared_goals"] == [11]

    listed = store.list_partners()
    assert listed.success
    assert [p["partner_name"] for p in listed.value] == ["Alex"]


def test_reflection_insert_fallback_is_listed(store, fake_remote):
    fake_remote.on("INSERT INTO goaltracker.reflections", httpx.Response(500))
    fake_remote.on("FROM goaltracker.reflections", {"data": [
        {"id": 1, "prompt": "p", "response": "older", "created_at": "2025-01-01T08:00:00"},
    ]})
    r = store.save_reflection("How did it go?", "kept offline")
    assert r.success
    assert r.extra["fallback"] is True

    history = store.list_reflections(limit=5).value
    assert [x["response"] for x in history] == ["kept offline", "older"]
    assert len(store.list_reflections(limit=1).value) == 1


def test_reflections_query_uses_limit(store, fake_remote):
    fake_remote.on("FROM goaltracker.reflections", {"data": [{"id": 1, "prompt": "p", "response": "r"}]})
    assert store.list_reflections(limit=4).value[0]["response"] == "r"
    assert fake_remote.queries[-1]["params"] == [USER_ID, 4]
