"""Streaks derived from progress-log history.

A streak is the number of consecutive days with at least one progress entry,
counted back from today. A day without entries yet (today) does not break it;
counting then starts from yesterday.
"""
from collections import defaultdict
from datetime import date, timedelta

from goaltracker.core.constants import STREAK_WINDOW_DAYS
from goaltracker.core.ids import parse_goal_id
from goaltracker.core.time_utils import parse_day


def current_streak(days, today: date, window: int = STREAK_WINDOW_DAYS) -> int:
    logged = set(days)
    streak = 0
    for offset in range(window):
        day = today - timedelta(days=offset)
        if day in logged:
            streak += 1
        elif offset == 0:
            continue
        else:
            break
    return streak


def compute_streaks(goals: list[dict], logs: list[dict], today: date | None = None) -> dict:
    """Map goal id -> {"current": int, "last_entry": 'YYYY-MM-DD' | None}."""
    today = today or date.today()
    days_by_goal = defaultdict(set)
    for entry in logs:
        goal_id = parse_goal_id(entry.get("goal_id"))
        day = parse_day(entry.get("logged_date") or entry.get("created_at"))
        if goal_id is not None and day is not None:
            days_by_goal[goal_id].add(day)

    streaks = {}
    for goal in goals:
        goal_id = parse_goal_id(goal.get("id"))
        if goal_id is None:
            continue
        days = days_by_goal.get(goal_id, set())
        streaks[goal_id] = {
            "current": current_streak(days, today),
            "last_entry": max(days).isoformat() if days else None,
        }
    return streaks
