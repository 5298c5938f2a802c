"""Goal repository backed by the local key-value store.

Writes here are the fallback path: they never report failure to the store,
except for progress logging where a stale aggregate has to be surfaced.
"""
import logging

from goaltracker.core.constants import (
    ENTITY_GOALS,
    ENTITY_MICRO_GOALS,
    ENTITY_PARTNERS,
    ENTITY_PROGRESS,
    ENTITY_REFLECTIONS,
)
from goaltracker.core.ids import same_id
from goaltracker.core.result import Result
from goaltracker.core.time_utils import now_iso, timestamp_id, today_iso
from goaltracker.persistence.local import LocalStore
from goaltracker.persistence.mode import PersistenceMode
from goaltracker.repositories.base import GoalRepository, normalize_goal, normalize_partner

logger = logging.getLogger(__name__)


def sample_goals(user_id) -> list[dict]:
    """Two example goals written the first time a user opens the app without the remote db."""
    created = now_iso()
    return [
        {
            "id": 1,
            "user_id": user_id,
            "title": "Read for 30 minutes daily",
            "description": "Build a consistent reading habit to expand knowledge",
            "goal_type": "daily",
            "target_value": 1,
            "total_progress": 0,
            "start_date": today_iso(),
            "status": "active",
            "metadata": {},
            "created_at": created,
        },
        {
            "id": 2,
            "user_id": user_id,
            "title": "Exercise 3 times per week",
            "description": "Maintain physical fitness and health",
            "goal_type": "weekly",
            "target_value": 3,
            "total_progress": 0,
            "start_date": today_iso(),
            "status": "active",
            "metadata": {},
            "created_at": created,
        },
    ]


def next_id(records: list[dict]) -> int:
    """Timestamp id, bumped past existing ids so a batch created in one millisecond stays unique."""
    highest = 0
    for r in records:
        try:
            highest = max(highest, int(r.get("id") or 0))
        except (TypeError, ValueError):
            continue
    return max(timestamp_id(), highest + 1)


class LocalGoalRepository(GoalRepository):
    mode = PersistenceMode.local

    def __init__(self, store: LocalStore):
        self.store = store

    # -- goals ---------------------------------------------------------------

    def _goals_key(self, user_id) -> str:
        return self.store.key(ENTITY_GOALS, user_id)

    def _read_goals(self, user_id) -> list[dict]:
        return [normalize_goal(g) for g in self.store.read_list(self._goals_key(user_id)) if isinstance(g, dict)]

    def stored_goals(self, user_id) -> list[dict]:
        """Goals already written for the user, without seeding examples."""
        return self._read_goals(user_id)

    def has_goal(self, user_id, goal_id) -> bool:
        return any(same_id(g.get("id"), goal_id) for g in self._read_goals(user_id))

    def list_goals(self, user_id) -> Result:
        key = self._goals_key(user_id)
        if not self.store.exists(key):
            seeded = sample_goals(user_id)
            self.store.write(key, seeded)
            logger.info("Seeded example goals for user %s", user_id)
            return Result.ok(seeded)
        return Result.ok(self._read_goals(user_id))

    def create_goal(self, user_id, fields: dict) -> Result:
        goals = self._read_goals(user_id)
        goal = {
            **fields,
            "id": next_id(goals),
            "user_id": user_id,
            "total_progress": 0,
            "status": "active",
            "created_at": now_iso(),
            "completed_at": None,
        }
        self.store.write(self._goals_key(user_id), [goal] + goals)
        return Result.ok(goal)

    def update_goal(self, user_id, goal_id: int, changes: dict) -> Result:
        goals = self._read_goals(user_id)
        updated = None
        for i, goal in enumerate(goals):
            if same_id(goal.get("id"), goal_id):
                updated = {**goal, **changes}
                goals[i] = updated
                break
        if updated is not None:
            self.store.write(self._goals_key(user_id), goals)
        return Result.ok(updated)

    def log_progress(self, user_id, goal_id: int, value: int, notes: str, logged_date: str | None = None) -> Result:
        goals = self._read_goals(user_id)
        index = next((i for i, g in enumerate(goals) if same_id(g.get("id"), goal_id)), None)
        if index is None:
            return Result.fail("Goal not found")

        # The entry goes in first; a failed aggregate write leaves the total stale, never doubled
        progress_key = self.store.key(ENTITY_PROGRESS, user_id)
        logs = self.store.read_list(progress_key)
        entry = {
            "id": next_id(logs),
            "goal_id": goal_id,
            "value": value,
            "notes": notes,
            "logged_date": logged_date or today_iso(),
            "created_at": now_iso(),
        }
        if not self.store.write(progress_key, logs + [entry]):
            return Result.fail("Failed to record progress")

        goal = goals[index]
        goals[index] = {
            **goal,
            "total_progress": goal["total_progress"] + value,
            "last_progress_date": entry["logged_date"],
        }
        if not self.store.write(self._goals_key(user_id), goals):
            logger.warning("Progress entry saved but total for goal %s was not updated", goal_id)
            return Result.fail("Progress recorded but goal total could not be updated")
        return Result.ok(goals[index], entry=entry)

    def list_progress(self, user_id, goal_id: int | None = None) -> Result:
        logs = [e for e in self.store.read_list(self.store.key(ENTITY_PROGRESS, user_id)) if isinstance(e, dict)]
        if goal_id is not None:
            logs = [e for e in logs if same_id(e.get("goal_id"), goal_id)]
        return Result.ok(list(reversed(logs)))

    # -- micro-goals ---------------------------------------------------------

    def _micro_key(self, user_id, goal_id) -> str:
        # Seeded goals share ids across users, so the owner is part of the key
        return self.store.key(ENTITY_MICRO_GOALS, f"{user_id}_{goal_id}")

    def list_micro_goals(self, user_id, goal_id: int) -> Result:
        items = [m for m in self.store.read_list(self._micro_key(user_id, goal_id)) if isinstance(m, dict)]
        items.sort(key=lambda m: (m.get("order_index") or 0, m.get("created_at") or ""))
        return Result.ok(items)

    def create_micro_goal(self, user_id, goal_id: int, fields: dict) -> Result:
        items = self.store.read_list(self._micro_key(user_id, goal_id))
        micro_goal = {
            "description": None,
            "target_date": None,
            "order_index": 0,
            **fields,
            "id": next_id(items),
            "parent_goal_id": goal_id,
            "completed": False,
            "created_at": now_iso(),
            "completed_at": None,
        }
        self.store.write(self._micro_key(user_id, goal_id), items + [micro_goal])
        return Result.ok(micro_goal)

    def update_micro_goal(self, user_id, goal_id: int, micro_goal_id: int, changes: dict) -> Result:
        items = self.store.read_list(self._micro_key(user_id, goal_id))
        updated = None
        for i, m in enumerate(items):
            if isinstance(m, dict) and same_id(m.get("id"), micro_goal_id):
                updated = {**m, **changes}
                items[i] = updated
                break
        if updated is None:
            return Result.fail("Micro-goal not found")
        self.store.write(self._micro_key(user_id, goal_id), items)
        return Result.ok(updated)

    def delete_micro_goal(self, user_id, goal_id: int, micro_goal_id: int) -> Result:
        items = self.store.read_list(self._micro_key(user_id, goal_id))
        kept = [m for m in items if not (isinstance(m, dict) and same_id(m.get("id"), micro_goal_id))]
        if len(kept) == len(items):
            return Result.fail("Micro-goal not found")
        self.store.write(self._micro_key(user_id, goal_id), kept)
        return Result.ok({"id": micro_goal_id})

    # -- partners & reflections ----------------------------------------------

    def add_partner(self, user_id, fields: dict) -> Result:
        key = self.store.key(ENTITY_PARTNERS, user_id)
        partners = self.store.read_list(key)
        partner = {
            **fields,
            "id": next_id(partners),
            "user_id": user_id,
            "status": "active",
            "created_at": now_iso(),
        }
        self.store.write(key, [partner] + partners)
        return Result.ok(normalize_partner(partner))

    def list_partners(self, user_id) -> Result:
        partners = self.store.read_list(self.store.key(ENTITY_PARTNERS, user_id))
        return Result.ok(
            [normalize_partner(p) for p in partners if isinstance(p, dict) and p.get("status", "active") == "active"]
        )

    def save_reflection(self, user_id, prompt: str, response: str) -> Result:
        key = self.store.key(ENTITY_REFLECTIONS, user_id)
        reflections = self.store.read_list(key)
        reflection = {
            "id": next_id(reflections),
            "user_id": user_id,
            "prompt": prompt,
            "response": response,
            "created_at": now_iso(),
        }
        self.store.write(key, [reflection] + reflections)
        return Result.ok(reflection)

    def list_reflections(self, user_id, limit: int) -> Result:
        reflections = self.store.read_list(self.store.key(ENTITY_REFLECTIONS, user_id))
        return Result.ok([r for r in reflections if isinstance(r, dict)][:limit])
