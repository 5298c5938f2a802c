from datetime import date, timedelta
import random

from goaltracker.core.config import settings
from goaltracker.core.constants import ENTITY_GOALS, ENTITY_PROGRESS
from goaltracker.db import Base, SessionLocal, engine
from goaltracker.persistence.local import LocalStore
from goaltracker.repositories.local import LocalGoalRepository

DEMO_USER_ID = 1

DEMO_GOALS = [
    {"title": "Read for 30 minutes daily", "goal_type": "daily", "target_value": 30,
     "description": "Build a consistent reading habit"},
    {"title": "Exercise 3 times per week", "goal_type": "weekly", "target_value": 36,
     "description": "Maintain physical fitness"},
    {"title": "Learn a new language", "goal_type": "yearly", "target_value": 100,
     "description": "Reach conversational Spanish"},
]


def clear_demo_user(store: LocalStore, user_id=DEMO_USER_ID) -> None:
    """Drop the demo user's goals and progress so we can reseed cleanly."""
    store.remove(store.key(ENTITY_GOALS, user_id))
    store.remove(store.key(ENTITY_PROGRESS, user_id))


def seed_demo_goals(repo: LocalGoalRepository, user_id=DEMO_USER_ID, days: int = 21) -> None:
    """Create the demo goals and a few weeks of progress, skipping random days."""
    # Writing an empty list first stops list_goals from adding the sample goals
    repo.store.write(repo.store.key(ENTITY_GOALS, user_id), [])
    today = date.today()
    logged = 0
    for fields in DEMO_GOALS:
        goal = repo.create_goal(user_id, {**fields, "start_date": (today - timedelta(days=days)).isoformat()}).value
        for offset in range(days, -1, -1):
            if random.random() < 0.3:
                continue
            day = (today - timedelta(days=offset)).isoformat()
            r = repo.log_progress(user_id, goal["id"], random.randint(1, 3), "seed", logged_date=day)
            if r.success:
                logged += 1

    print(f"Seeded {len(DEMO_GOALS)} demo goals with {logged} progress entries")


def main():
    Base.metadata.create_all(bind=engine)
    store = LocalStore(SessionLocal, prefix=settings.storage_prefix)
    clear_demo_user(store)
    seed_demo_goals(LocalGoalRepository(store))


if __name__ == "__main__":
    main()
