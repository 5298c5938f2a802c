from datetime import date

import pytest

from goaltracker.core.ids import parse_goal_id, same_id
from goaltracker.core.progress import is_completed, progress_percentage
from goaltracker.services.streaks import compute_streaks, current_streak

TODAY = date(2025, 3, 10)


@pytest.mark.parametrize(
    "value,expected",
    [(12, 12), ("12", 12), (" 12 ", 12), (12.0, 12), ("1718035200000", 1718035200000),
     (0, None), (-3, None), ("abc", None), ("1.5", None), (1.5, None), (None, None), (True, None), ([], None)],
)
def test_parse_goal_id(value, expected):
    assert parse_goal_id(value) == expected


def test_same_id():
    assert same_id("7", 7)
    assert not same_id(None, None)
    assert not same_id("x", "x")


@pytest.mark.parametrize(
    "total,target,expected",
    [(0, 1, 0), (1, 3, 33), (2, 3, 67), (1, 2, 50), (1, 8, 13), (5, 4, 125), (3, 0, 0), (3, -1, 0)],
)
def test_progress_percentage(total, target, expected):
    assert progress_percentage(total, target) == expected


def test_is_completed():
    assert is_completed(3, 3)
    assert is_completed(4, 3)
    assert not is_completed(2, 3)
    assert not is_completed(5, 0)


def test_current_streak_counts_back_from_today():
    days = {date(2025, 3, 10), date(2025, 3, 9), date(2025, 3, 8), date(2025, 3, 6)}
    assert current_streak(days, TODAY) == 3


def test_current_streak_when_today_not_logged_yet():
    days = {date(2025, 3, 9), date(2025, 3, 8)}
    assert current_streak(days, TODAY) == 2
    assert current_streak({date(2025, 3, 8)}, TODAY) == 0
    assert current_streak(set(), TODAY) == 0


def test_compute_streaks():
    goals = [{"id": 1}, {"id": "2"}, {"id": "bad"}]
    logs = [
        {"goal_id": 1, "logged_date": "2025-03-10"},
        {"goal_id": "1", "logged_date": "2025-03-09"},
        {"goal_id": 2, "created_at": "2025-03-01T10:00:00"},
        {"goal_id": 99, "logged_date": "2025-03-10"},
        {"goal_id": 1, "logged_date": "garbage"},
    ]
    streaks = compute_streaks(goals, logs, today=TODAY)
    assert streaks == {
        1: {"current": 2, "last_entry": "2025-03-10"},
        2: {"current": 0, "last_entry": "2025-03-01"},
    }
