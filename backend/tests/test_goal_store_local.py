import pytest

from goaltracker.core.config import Settings
from goaltracker.persistence.mode import PersistenceMode
from goaltracker.repositories.local import LocalGoalRepository
from goaltracker.schemas.goal import GoalRead
from goaltracker.services.app_state import AppState
from goaltracker.services.goal_store import GoalStore

USER_ID = 1718035200000


@pytest.fixture
def repo(local_store):
    return LocalGoalRepository(local_store)


@pytest.fixture
def store(repo):
    s = GoalStore(repo, USER_ID)
    s.load_goals()
    return s


def test_first_load_seeds_examples_once(store, repo):
    assert store.mode is PersistenceMode.local
    assert [g["id"] for g in store.goals] == [1, 2]
    assert all(g["total_progress"] == 0 for g in store.goals)

    store.goals = []
    store.load_goals()
    assert len(store.goals) == 2


def test_create_goal_prepends_and_persists(store, repo):
    r = store.create_goal({"title": "  Journal  ", "goal_type": "daily", "target_value": 2})
    assert r.success, r.error
    goal = r.value
    assert goal["title"] == "Journal"
    assert goal["status"] == "active"
    assert goal["total_progress"] == 0
    assert store.goals[0] is goal

    # A fresh store over the same storage sees the goal: fallback data survives a restart
    again = GoalStore(LocalGoalRepository(repo.store), USER_ID)
    again.load_goals()
    assert again.goals[0]["title"] == "Journal"


@pytest.mark.parametrize(
    "fields",
    [
        {"title": "", "goal_type": "daily"},
        {"title": "x", "goal_type": "monthly"},
        {"title": "x", "goal_type": "daily", "target_value": 0},
        {"title": "x", "goal_type": "daily", "start_date": "2025-02-01", "end_date": "2025-01-01"},
    ],
)
def test_create_goal_rejects_invalid_input(store, fields):
    r = store.create_goal(fields)
    assert r.success is False
    assert r.error
    assert len(store.goals) == 2


def test_log_progress_accumulates(store):
    assert store.log_progress(2, 1).success
    r = store.log_progress("2", 2, "gym")
    assert r.success, r.error
    goal = store.get_goal_by_id(2)
    assert goal["total_progress"] == 3
    assert goal["last_progress_date"]

    logs = store.progress_logs(2).value
    assert [e["value"] for e in logs] == [2, 1]
    assert logs[0]["notes"] == "gym"
    assert store.streaks[2]["current"] == 1


def test_log_progress_for_unknown_goal_changes_nothing(store, repo):
    before = [dict(g) for g in store.goals]
    r = store.log_progress(999, 1)
    assert r.success is False
    assert r.error == "Goal not found"
    assert store.goals == before
    assert repo.list_progress(USER_ID).value == []


@pytest.mark.parametrize("value", [0, -1, "abc", None])
def test_log_progress_rejects_bad_values(store, value):
    r = store.log_progress(1, value)
    assert r.success is False
    assert store.get_goal_by_id(1)["total_progress"] == 0


def test_failed_total_write_leaves_total_stale(store, repo, monkeypatch):
    goals_key = repo.store.key("goals", USER_ID)
    real_write = repo.store.write

    def write(key, value):
        if key == goals_key:
            return False
        return real_write(key, value)

    monkeypatch.setattr(repo.store, "write", write)
    r = store.log_progress(1, 1)

    assert r.success is False
    assert "could not be updated" in r.error
    # The entry exists; the aggregate is stale, never doubled
    assert len(repo.list_progress(USER_ID, 1).value) == 1
    assert store.get_goal_by_id(1)["total_progress"] == 0


def test_goal_ids_are_normalized(store):
    assert store.get_goal_by_id(" 1 ")["id"] == 1
    assert store.get_goal_by_id(1.0)["id"] == 1
    assert store.get_goal_by_id("1.5") is None
    assert store.get_goal_by_id("abc") is None
    assert store.get_goal_by_id(True) is None


def test_goals_by_type_only_active(store):
    assert [g["id"] for g in store.get_goals_by_type("daily")] == [1]
    store.complete_goal(1)
    assert store.get_goals_by_type("daily") == []
    assert [g["id"] for g in store.get_goals_by_type("weekly")] == [2]


def test_update_goal(store):
    r = store.update_goal("1", {"title": "Read 40 minutes", "target_value": 4})
    assert r.success, r.error
    assert store.get_goal_by_id(1)["title"] == "Read 40 minutes"
    assert store.get_goal_by_id(1)["target_value"] == 4

    assert store.update_goal(1, {"total_progress": 99}).success is False
    assert store.update_goal("nope", {"title": "x"}).success is False

    # Nothing to change returns the goal as is
    assert store.update_goal(1, {}).value["title"] == "Read 40 minutes"


def test_complete_goal_signals_celebration(store):
    r = store.complete_goal(2)
    assert r.success
    assert r.extra["celebration"] is True
    assert r.value["status"] == "completed"
    assert r.value["completed_at"]


def test_micro_goals(store):
    created = store.create_micro_goals(1, [{"title": "Pick a book"}, {"title": "Read chapter one"}])
    assert created.success, created.error
    first, second = created.value
    assert (first["order_index"], second["order_index"]) == (0, 1)

    listed = store.list_micro_goals(1).value
    assert [m["title"] for m in listed] == ["Pick a book", "Read chapter one"]

    toggled = store.toggle_micro_goal(1, first["id"]).value
    assert toggled["completed"] is True
    untoggled = store.toggle_micro_goal(1, first["id"]).value
    assert untoggled["completed"] is False
    assert untoggled["completed_at"] is None

    assert store.delete_micro_goal(1, second["id"]).success
    assert store.delete_micro_goal(1, second["id"]).error == "Micro-goal not found"
    assert store.list_micro_goals(999).error == "Goal not found"


def test_micro_goals_are_private_to_their_owner(store, repo):
    # Both users start from the seeded goals 1 and 2
    other = GoalStore(repo, USER_ID + 1)
    other.load_goals()
    assert store.create_micro_goal(1, {"title": "My private step"}).success

    assert other.list_micro_goals(1).value == []
    assert [m["title"] for m in store.list_micro_goals(1).value] == ["My private step"]


def test_partners_validate_shared_goals(store):
    r = store.add_partner({"partner_name": "Alex", "partner_email": "alex@example.com", "shared_goals": ["1", 2]})
    assert r.success, r.error
    assert r.value["shared_goals"] == [1, 2]

    bad = store.add_partner({"partner_name": "Bo", "partner_email": "bo@example.com", "shared_goals": [77]})
    assert bad.success is False
    assert [p["partner_name"] for p in store.list_partners().value] == ["Alex"]


def test_reflections_newest_first_with_limit(store):
    for i in range(12):
        assert store.save_reflection("How did it go?", f"answer {i}").success
    assert store.save_reflection("", "x").success is False

    history = store.list_reflections().value
    assert len(history) == 10
    assert history[0]["response"] == "answer 11"
    assert len(store.list_reflections(limit=3).value) == 3


def test_example_scenario_daily_goal_reaches_completion(store):
    goal = store.create_goal(
        {"title": "Read 30 min", "goal_type": "daily", "target_value": 1, "start_date": "2024-01-01"}
    ).value
    fetched = store.get_goal_by_id(goal["id"])
    assert fetched["status"] == "active"
    assert fetched["total_progress"] == 0

    assert store.log_progress(goal["id"], 1).success
    read = GoalRead.model_validate(store.get_goal_by_id(goal["id"]))
    assert read.total_progress == 1
    assert read.percentage == 100
    assert read.is_completed is True


def test_reload_does_not_double_count(store):
    store.log_progress(2, 2)
    for _ in range(3):
        store.load_goals()
    assert store.get_goal_by_id(2)["total_progress"] == 2


def test_zero_target_reads_as_zero_percent():
    goal = GoalRead.model_validate({"id": 1, "title": "x", "goal_type": "daily", "target_value": 0, "total_progress": 5})
    assert goal.percentage == 0
    assert goal.is_completed is False


def test_failed_remote_initialization_keeps_everything_local(tmp_path, fake_remote):
    fake_remote.fail_all()
    settings = Settings(
        _env_file=None,
        database_url=f"sqlite+pysqlite:///{tmp_path / 'local.db'}",
        remote_api_token="token",
        remote_api_base="http://remote.test",
    )

    state = AppState(settings, remote_transport=fake_remote.transport)
    state.startup()
    assert state.mode is PersistenceMode.local
    user = state.session.login("sam@example.com", "pw").value
    store = state.goal_store()
    goal = store.create_goal({"title": "Offline", "goal_type": "weekly", "target_value": 2}).value
    assert store.log_progress(goal["id"], 1).success
    assert store.update_goal(goal["id"], {"description": "kept locally"}).success
    assert store.create_micro_goal(goal["id"], {"title": "step"}).success
    assert store.save_reflection("How?", "Fine").success
    state.shutdown()

    # Second "session" over the same storage recovers the same goals
    again = AppState(settings, remote_transport=fake_remote.transport)
    again.startup()
    assert again.session.user["id"] == user["id"]
    recovered = again.goal_store()
    titles = [g["title"] for g in recovered.goals]
    assert titles[0] == "Offline"
    assert recovered.get_goal_by_id(goal["id"])["total_progress"] == 1
    assert recovered.get_goal_by_id(goal["id"])["description"] == "kept locally"
    again.shutdown()
