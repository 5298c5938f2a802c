import json
import logging
from abc import ABC, abstractmethod

from goaltracker.core.result import Result
from goaltracker.persistence.mode import PersistenceMode

logger = logging.getLogger(__name__)


def parse_json_field(value, fallback):
    """Decode a JSON text column, falling back when it is empty, malformed or the wrong shape."""
    if isinstance(value, (dict, list)):
        return value
    if not value:
        return fallback
    try:
        parsed = json.loads(value)
    except (TypeError, ValueError) as e:
        logger.warning("JSON parse error: %s", e)
        return fallback
    return parsed if isinstance(parsed, type(fallback)) else fallback


def _as_int(value, default=0):
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


def normalize_goal(row: dict) -> dict:
    goal = dict(row)
    goal["metadata"] = parse_json_field(goal.get("metadata"), {})
    goal["target_value"] = _as_int(goal.get("target_value"), 1)
    goal["total_progress"] = _as_int(goal.get("total_progress"), 0)
    goal.setdefault("status", "active")
    return goal


def normalize_partner(row: dict) -> dict:
    partner = dict(row)
    partner["shared_goals"] = parse_json_field(partner.get("shared_goals"), [])
    partner["privacy_settings"] = parse_json_field(partner.get("privacy_settings"), {})
    partner.setdefault("status", "active")
    return partner


class GoalRepository(ABC):
    """Storage strategy behind the goal store. Every method is scoped to one owner."""

    mode: PersistenceMode

    @abstractmethod
    def list_goals(self, user_id) -> Result: ...

    @abstractmethod
    def create_goal(self, user_id, fields: dict) -> Result: ...

    @abstractmethod
    def update_goal(self, user_id, goal_id: int, changes: dict) -> Result: ...

    @abstractmethod
    def log_progress(self, user_id, goal_id: int, value: int, notes: str) -> Result: ...

    @abstractmethod
    def list_progress(self, user_id, goal_id: int | None = None) -> Result: ...

    @abstractmethod
    def list_micro_goals(self, user_id, goal_id: int) -> Result: ...

    @abstractmethod
    def create_micro_goal(self, user_id, goal_id: int, fields: dict) -> Result: ...

    @abstractmethod
    def update_micro_goal(self, user_id, goal_id: int, micro_goal_id: int, changes: dict) -> Result: ...

    @abstractmethod
    def delete_micro_goal(self, user_id, goal_id: int, micro_goal_id: int) -> Result: ...

    @abstractmethod
    def add_partner(self, user_id, fields: dict) -> Result: ...

    @abstractmethod
    def list_partners(self, user_id) -> Result: ...

    @abstractmethod
    def save_reflection(self, user_id, prompt: str, response: str) -> Result: ...

    @abstractmethod
    def list_reflections(self, user_id, limit: int) -> Result: ...
