"""In-memory goal collection for the logged-in user.

Every mutation is written through the repository chosen at session start
and then applied to `goals` (newest first). Operations return `Result`
values; bad input, missing goals and backend failures never raise.
"""
import logging

from pydantic import ValidationError

from goaltracker.core.constants import REFLECTION_HISTORY_LIMIT
from goaltracker.core.ids import parse_goal_id, same_id
from goaltracker.core.result import Result, validation_message
from goaltracker.core.time_utils import now_iso
from goaltracker.repositories.base import GoalRepository
from goaltracker.schemas.goal import (
    GoalCreate,
    GoalStatus,
    GoalUpdate,
    MicroGoalCreate,
    MicroGoalUpdate,
    ProgressCreate,
)
from goaltracker.schemas.social import PartnerCreate, ReflectionCreate
from goaltracker.services.streaks import compute_streaks

logger = logging.getLogger(__name__)


class GoalStore:
    def __init__(self, repository: GoalRepository, user_id):
        self.repository = repository
        self.user_id = user_id
        self.goals: list[dict] = []
        self.streaks: dict = {}
        self.loaded = False

    @property
    def mode(self):
        return self.repository.mode

    # -- reads ---------------------------------------------------------------

    def load_goals(self) -> Result:
        result = self.repository.list_goals(self.user_id)
        if result.success:
            self.goals = list(result.value or [])
        else:
            logger.error("Failed to load goals: %s", result.error)
            self.goals = []
        self.loaded = True
        self.refresh_streaks()
        return Result.ok(self.goals)

    def get_goal_by_id(self, goal_id) -> dict | None:
        normalized = parse_goal_id(goal_id)
        if normalized is None:
            return None
        return next((g for g in self.goals if same_id(g.get("id"), normalized)), None)

    def get_goals_by_type(self, goal_type) -> list[dict]:
        value = getattr(goal_type, "value", goal_type)
        return [g for g in self.goals if g.get("goal_type") == value and g.get("status") == GoalStatus.active.value]

    def progress_logs(self, goal_id=None) -> Result:
        normalized = None
        if goal_id is not None:
            normalized = parse_goal_id(goal_id)
            if normalized is None or self.get_goal_by_id(normalized) is None:
                return Result.fail("Goal not found")
        return self.repository.list_progress(self.user_id, normalized)

    def refresh_streaks(self) -> dict:
        logs = self.repository.list_progress(self.user_id)
        if not logs.success:
            logger.warning("Could not load progress history for streaks: %s", logs.error)
        history = logs.value if logs.success and logs.value else []
        self.streaks = compute_streaks(self.goals, history)
        return self.streaks

    # -- goal mutations ------------------------------------------------------

    def create_goal(self, fields) -> Result:
        try:
            data = GoalCreate.model_validate(fields).model_dump(mode="json")
        except ValidationError as e:
            return Result.fail(validation_message(e))

        result = self.repository.create_goal(self.user_id, data)
        if not result.success:
            logger.error("Error creating goal: %s", result.error)
            return Result.fail(result.error or "Failed to create goal")
        self.goals.insert(0, result.value)
        self.streaks[parse_goal_id(result.value.get("id"))] = {"current": 0, "last_entry": None}
        return Result.ok(result.value, **result.extra)

    def update_goal(self, goal_id, fields) -> Result:
        normalized = parse_goal_id(goal_id)
        if normalized is None:
            return Result.fail("Invalid goal id")
        try:
            changes = GoalUpdate.model_validate(fields).model_dump(mode="json", exclude_unset=True)
        except ValidationError as e:
            return Result.fail(validation_message(e))
        if not changes:
            return Result.ok(self.get_goal_by_id(normalized))

        result = self.repository.update_goal(self.user_id, normalized, changes)
        if not result.success:
            logger.error("Error updating goal %s: %s", normalized, result.error)
            return Result.fail(result.error or "Failed to update goal")

        for i, goal in enumerate(self.goals):
            if same_id(goal.get("id"), normalized):
                self.goals[i] = result.value if result.value is not None else {**goal, **changes}
                return Result.ok(self.goals[i])
        return Result.ok(result.value)

    def log_progress(self, goal_id, value, notes: str = "") -> Result:
        normalized = parse_goal_id(goal_id)
        if normalized is None or self.get_goal_by_id(normalized) is None:
            return Result.fail("Goal not found")
        try:
            entry = ProgressCreate(value=value, notes=notes or "")
        except ValidationError as e:
            return Result.fail(validation_message(e))

        result = self.repository.log_progress(self.user_id, normalized, entry.value, entry.notes)
        # Reload in both cases: a half-applied write shows up as a stale total, not a wrong one
        self.load_goals()
        if not result.success:
            logger.error("Error logging progress for goal %s: %s", normalized, result.error)
            return Result.fail(result.error or "Failed to log progress")
        return Result.ok(self.get_goal_by_id(normalized), **result.extra)

    def complete_goal(self, goal_id) -> Result:
        result = self.update_goal(goal_id, {"status": GoalStatus.completed.value, "completed_at": now_iso()})
        if not result.success:
            return result
        return Result.ok(result.value, celebration=True)

    # -- micro-goals ---------------------------------------------------------

    def _owned(self, goal_id) -> int | None:
        normalized = parse_goal_id(goal_id)
        if normalized is None or self.get_goal_by_id(normalized) is None:
            return None
        return normalized

    def list_micro_goals(self, goal_id) -> Result:
        owned = self._owned(goal_id)
        if owned is None:
            return Result.fail("Goal not found")
        return self.repository.list_micro_goals(self.user_id, owned)

    def create_micro_goal(self, goal_id, fields) -> Result:
        owned = self._owned(goal_id)
        if owned is None:
            return Result.fail("Goal not found")
        try:
            data = MicroGoalCreate.model_validate(fields).model_dump(mode="json")
        except ValidationError as e:
            return Result.fail(validation_message(e))
        return self.repository.create_micro_goal(self.user_id, owned, data)

    def create_micro_goals(self, goal_id, items: list) -> Result:
        """Create a generated batch; stops at the first item that fails."""
        created = []
        for index, fields in enumerate(items):
            fields = {"order_index": index, **fields}
            result = self.create_micro_goal(goal_id, fields)
            if not result.success:
                return Result.fail(result.error)
            created.append(result.value)
        return Result.ok(created)

    def update_micro_goal(self, goal_id, micro_goal_id, fields) -> Result:
        owned = self._owned(goal_id)
        micro_id = parse_goal_id(micro_goal_id)
        if owned is None or micro_id is None:
            return Result.fail("Micro-goal not found")
        try:
            changes = MicroGoalUpdate.model_validate(fields).model_dump(mode="json", exclude_unset=True)
        except ValidationError as e:
            return Result.fail(validation_message(e))
        if "completed" in changes:
            changes["completed_at"] = now_iso() if changes["completed"] else None
        if not changes:
            return Result.fail("No changes given")
        return self.repository.update_micro_goal(self.user_id, owned, micro_id, changes)

    def toggle_micro_goal(self, goal_id, micro_goal_id) -> Result:
        listing = self.list_micro_goals(goal_id)
        if not listing.success:
            return listing
        current = next((m for m in listing.value if same_id(m.get("id"), micro_goal_id)), None)
        if current is None:
            return Result.fail("Micro-goal not found")
        return self.update_micro_goal(goal_id, micro_goal_id, {"completed": not current.get("completed")})

    def delete_micro_goal(self, goal_id, micro_goal_id) -> Result:
        owned = self._owned(goal_id)
        micro_id = parse_goal_id(micro_goal_id)
        if owned is None or micro_id is None:
            return Result.fail("Micro-goal not found")
        return self.repository.delete_micro_goal(self.user_id, owned, micro_id)

    # -- partners & reflections ----------------------------------------------

    def add_partner(self, fields) -> Result:
        try:
            data = PartnerCreate.model_validate(fields).model_dump(mode="json")
        except ValidationError as e:
            return Result.fail(validation_message(e))
        unknown = [g for g in data["shared_goals"] if self.get_goal_by_id(g) is None]
        if unknown:
            return Result.fail(f"Unknown goals: {', '.join(str(g) for g in unknown)}")
        data["shared_goals"] = [parse_goal_id(g) for g in data["shared_goals"]]
        return self.repository.add_partner(self.user_id, data)

    def list_partners(self) -> Result:
        return self.repository.list_partners(self.user_id)

    def save_reflection(self, prompt, response) -> Result:
        try:
            data = ReflectionCreate(prompt=prompt, response=response)
        except ValidationError as e:
            return Result.fail(validation_message(e))
        return self.repository.save_reflection(self.user_id, data.prompt, data.response)

    def list_reflections(self, limit: int = REFLECTION_HISTORY_LIMIT) -> Result:
        return self.repository.list_reflections(self.user_id, limit)
