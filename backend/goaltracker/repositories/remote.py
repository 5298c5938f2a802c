"""Goal repository backed by the remote Postgres-over-HTTP endpoint.

Inserts that fail remotely are written to the local repository instead so
the user's action is not lost, and those locally held records are merged
back into remote listings. Reads and updates report remote failures.
"""
import json
import logging

from goaltracker.core.constants import GOAL_UPDATABLE_FIELDS, MICRO_GOAL_UPDATABLE_FIELDS
from goaltracker.core.result import Result
from goaltracker.persistence.mode import PersistenceMode
from goaltracker.persistence.remote import RemoteDatabase
from goaltracker.repositories.base import GoalRepository, normalize_goal, normalize_partner
from goaltracker.repositories.local import LocalGoalRepository

logger = logging.getLogger(__name__)


def _set_clause(changes: dict, start: int, allowed: tuple) -> tuple[str, list]:
    # Column names are interpolated, so only whitelisted keys get through
    columns = [c for c in changes if c in allowed]
    clause = ", ".join(f"{col} = ${i}" for i, col in enumerate(columns, start=start))
    return clause, [changes[c] for c in columns]


class RemoteGoalRepository(GoalRepository):
    mode = PersistenceMode.remote

    def __init__(self, db: RemoteDatabase, fallback: LocalGoalRepository):
        self.db = db
        self.fallback = fallback

    def _fallback(self, operation: str, error: str | None, call):
        logger.warning("Database %s failed (%s), using local storage fallback", operation, error)
        result = call()
        result.extra["fallback"] = True
        return result

    # -- goals ---------------------------------------------------------------

    def list_goals(self, user_id) -> Result:
        r = self.db.execute(
            f"SELECT * FROM {self.db.table('goals')} WHERE user_id = $1 ORDER BY created_at DESC",
            [user_id],
        )
        if not r.success:
            return Result.fail(r.error or "Failed to load goals")
        goals = [normalize_goal(row) for row in r.data if isinstance(row, dict)]
        # Goals saved locally while the remote db was unreachable
        pending = self.fallback.stored_goals(user_id)
        if pending:
            goals = sorted(goals + pending, key=lambda g: str(g.get("created_at") or ""), reverse=True)
        return Result.ok(goals)

    def create_goal(self, user_id, fields: dict) -> Result:
        r = self.db.execute(
            f"""INSERT INTO {self.db.table('goals')} (
                user_id, title, description, goal_type, target_value, start_date, end_date,
                habit_stack_trigger, reminder_time, metadata
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
            RETURNING *""",
            [
                user_id,
                fields["title"],
                fields.get("description"),
                fields["goal_type"],
                fields["target_value"],
                fields["start_date"],
                fields.get("end_date"),
                fields.get("habit_stack_trigger"),
                fields.get("reminder_time"),
                json.dumps(fields.get("metadata") or {}),
            ],
        )
        if r.success and r.first:
            return Result.ok(normalize_goal(r.first))
        return self._fallback("goal insert", r.error, lambda: self.fallback.create_goal(user_id, fields))

    def update_goal(self, user_id, goal_id: int, changes: dict) -> Result:
        values = dict(changes)
        if "metadata" in values:
            values["metadata"] = json.dumps(values["metadata"] or {})
        clause, params = _set_clause(values, start=3, allowed=GOAL_UPDATABLE_FIELDS)
        if not params:
            return Result.fail("No updatable fields given")
        r = self.db.execute(
            f"""UPDATE {self.db.table('goals')}
            SET {clause}, updated_at = CURRENT_TIMESTAMP
            WHERE id = $1 AND user_id = $2
            RETURNING *""",
            [goal_id, user_id, *params],
        )
        if not r.success:
            return Result.fail(r.error or "Failed to update goal")
        if r.first:
            return Result.ok(normalize_goal(r.first))
        if self.fallback.has_goal(user_id, goal_id):
            return self.fallback.update_goal(user_id, goal_id, changes)
        return Result.fail("Goal not found")

    def log_progress(self, user_id, goal_id: int, value: int, notes: str) -> Result:
        # One statement: the entry and the running total commit together or not at all
        goals = self.db.table("goals")
        r = self.db.execute(
            f"""WITH log AS (
                INSERT INTO {self.db.table('progress_logs')} (goal_id, value, notes)
                SELECT id, $2, $3 FROM {goals} WHERE id = $1 AND user_id = $4
                RETURNING goal_id, value
            )
            UPDATE {goals}
            SET total_progress = COALESCE(total_progress, 0) + (SELECT value FROM log),
                updated_at = CURRENT_TIMESTAMP
            WHERE id = (SELECT goal_id FROM log)
            RETURNING *""",
            [goal_id, value, notes, user_id],
        )
        if r.success and r.first:
            return Result.ok(normalize_goal(r.first))
        if self.fallback.has_goal(user_id, goal_id):
            return self.fallback.log_progress(user_id, goal_id, value, notes)
        if not r.success:
            return Result.fail(r.error or "Failed to log progress")
        return Result.fail("Goal not found")

    def list_progress(self, user_id, goal_id: int | None = None) -> Result:
        query = (
            f"SELECT pl.* FROM {self.db.table('progress_logs')} pl "
            f"JOIN {self.db.table('goals')} g ON pl.goal_id = g.id "
            "WHERE g.user_id = $1"
        )
        params = [user_id]
        if goal_id is not None:
            query += " AND pl.goal_id = $2"
            params.append(goal_id)
        r = self.db.execute(query + " ORDER BY pl.created_at DESC", params)
        if not r.success:
            return Result.fail(r.error or "Failed to load progress")
        entries = [row for row in r.data if isinstance(row, dict)]
        return Result.ok(entries + (self.fallback.list_progress(user_id, goal_id).value or []))

    # -- micro-goals ---------------------------------------------------------

    def _owned_goal(self) -> str:
        return f"(SELECT id FROM {self.db.table('goals')} WHERE user_id = $2)"

    def list_micro_goals(self, user_id, goal_id: int) -> Result:
        if self.fallback.has_goal(user_id, goal_id):
            return self.fallback.list_micro_goals(user_id, goal_id)
        r = self.db.execute(
            f"""SELECT * FROM {self.db.table('micro_goals')}
            WHERE parent_goal_id = $1 AND parent_goal_id IN {self._owned_goal()}
            ORDER BY order_index ASC, created_at ASC""",
            [goal_id, user_id],
        )
        if not r.success:
            return Result.fail(r.error or "Failed to load micro-goals")
        rows = [row for row in r.data if isinstance(row, dict)]
        # Micro-goals saved locally after a failed insert
        pending = self.fallback.list_micro_goals(user_id, goal_id).value or []
        if pending:
            rows = sorted(rows + pending, key=lambda m: (m.get("order_index") or 0, str(m.get("created_at") or "")))
        return Result.ok(rows)

    def create_micro_goal(self, user_id, goal_id: int, fields: dict) -> Result:
        if self.fallback.has_goal(user_id, goal_id):
            return self.fallback.create_micro_goal(user_id, goal_id, fields)
        r = self.db.execute(
            f"""INSERT INTO {self.db.table('micro_goals')} (parent_goal_id, title, description, target_date, order_index)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *""",
            [
                goal_id,
                fields["title"],
                fields.get("description"),
                fields.get("target_date"),
                fields.get("order_index") or 0,
            ],
        )
        if r.success and r.first:
            return Result.ok(r.first)
        return self._fallback(
            "micro-goal insert", r.error, lambda: self.fallback.create_micro_goal(user_id, goal_id, fields)
        )

    def update_micro_goal(self, user_id, goal_id: int, micro_goal_id: int, changes: dict) -> Result:
        if self.fallback.has_goal(user_id, goal_id):
            return self.fallback.update_micro_goal(user_id, goal_id, micro_goal_id, changes)
        clause, params = _set_clause(changes, start=4, allowed=MICRO_GOAL_UPDATABLE_FIELDS)
        if not params:
            return Result.fail("No updatable fields given")
        r = self.db.execute(
            f"""UPDATE {self.db.table('micro_goals')}
            SET {clause}
            WHERE id = $1 AND parent_goal_id = $3 AND parent_goal_id IN {self._owned_goal()}
            RETURNING *""",
            [micro_goal_id, user_id, goal_id, *params],
        )
        if not r.success:
            return Result.fail(r.error or "Failed to update micro-goal")
        if not r.first:
            return self.fallback.update_micro_goal(user_id, goal_id, micro_goal_id, changes)
        return Result.ok(r.first)

    def delete_micro_goal(self, user_id, goal_id: int, micro_goal_id: int) -> Result:
        if self.fallback.has_goal(user_id, goal_id):
            return self.fallback.delete_micro_goal(user_id, goal_id, micro_goal_id)
        r = self.db.execute(
            f"""DELETE FROM {self.db.table('micro_goals')}
            WHERE id = $1 AND parent_goal_id = $3 AND parent_goal_id IN {self._owned_goal()}
            RETURNING id""",
            [micro_goal_id, user_id, goal_id],
        )
        if not r.success:
            return Result.fail(r.error or "Failed to delete micro-goal")
        if not r.first:
            return self.fallback.delete_micro_goal(user_id, goal_id, micro_goal_id)
        return Result.ok({"id": micro_goal_id})

    # -- partners & reflections ----------------------------------------------

    def add_partner(self, user_id, fields: dict) -> Result:
        r = self.db.execute(
            f"""INSERT INTO {self.db.table('accountability_partners')}
                (user_id, partner_name, partner_email, shared_goals, privacy_settings)
            VALUES ($1, $2, $3, $4, $5)
            RETURNING *""",
            [
                user_id,
                fields["partner_name"],
                fields["partner_email"],
                json.dumps(fields.get("shared_goals") or []),
                json.dumps(fields.get("privacy_settings") or {}),
            ],
        )
        if r.success and r.first:
            return Result.ok(normalize_partner(r.first))
        return self._fallback("partner insert", r.error, lambda: self.fallback.add_partner(user_id, fields))

    def list_partners(self, user_id) -> Result:
        r = self.db.execute(
            f"""SELECT * FROM {self.db.table('accountability_partners')}
            WHERE user_id = $1 AND status = 'active'
            ORDER BY created_at DESC""",
            [user_id],
        )
        if not r.success:
            return Result.fail(r.error or "Failed to load partners")
        partners = [normalize_partner(row) for row in r.data if isinstance(row, dict)]
        pending = self.fallback.list_partners(user_id).value or []
        if pending:
            partners = sorted(partners + pending, key=lambda p: str(p.get("created_at") or ""), reverse=True)
        return Result.ok(partners)

    def save_reflection(self, user_id, prompt: str, response: str) -> Result:
        r = self.db.execute(
            f"""INSERT INTO {self.db.table('reflections')} (user_id, prompt, response)
            VALUES ($1, $2, $3)
            RETURNING *""",
            [user_id, prompt, response],
        )
        if r.success and r.first:
            return Result.ok(r.first)
        return self._fallback(
            "reflection insert", r.error, lambda: self.fallback.save_reflection(user_id, prompt, response)
        )

    def list_reflections(self, user_id, limit: int) -> Result:
        r = self.db.execute(
            f"""SELECT * FROM {self.db.table('reflections')}
            WHERE user_id = $1
            ORDER BY created_at DESC
            LIMIT $2""",
            [user_id, limit],
        )
        if not r.success:
            return Result.fail(r.error or "Failed to load reflections")
        reflections = [row for row in r.data if isinstance(row, dict)]
        pending = self.fallback.list_reflections(user_id, limit).value or []
        if pending:
            reflections = sorted(reflections + pending, key=lambda x: str(x.get("created_at") or ""), reverse=True)
        return Result.ok(reflections[:limit])
