#!/usr/bin/env python3
"""
Seed a demo account with goals and progress through the Goal Tracker API.

Per goal, progress is logged once per call; the API stamps each entry with
today's date, so run it on several days to build up streaks.

Usage examples:
  - Against a local backend:
      python scripts/seed_goals_api.py --base-url http://localhost:8000
  - With a specific account:
      python scripts/seed_goals_api.py --base-url http://localhost:8000 --email demo@example.com --password demo
"""

import argparse
import sys

import httpx


GOALS = [
    {"title": "Morning Meditation", "goal_type": "daily", "target_value": 30,
     "habit_stack_trigger": "After I brush my teeth", "reminder_time": "07:00"},
    {"title": "Exercise 3 times per week", "goal_type": "weekly", "target_value": 12},
    {"title": "Read 24 books", "goal_type": "yearly", "target_value": 24},
]


def call(client: httpx.Client, method: str, path: str, payload: dict | None = None) -> dict | list | None:
    r = client.request(method, path, json=payload)
    if r.status_code >= 300:
        raise RuntimeError(f"{method} {path} -> HTTP {r.status_code}: {r.text}")
    return r.json() if r.content else None


def seed(client: httpx.Client, email: str, password: str, name: str) -> None:
    try:
        call(client, "POST", "/auth/login", {"email": email, "password": password})
    except RuntimeError:
        call(client, "POST", "/auth/register", {"name": name, "email": email, "password": password})

    existing = {g["title"] for g in call(client, "GET", "/goals")}
    for fields in GOALS:
        if fields["title"] in existing:
            continue
        goal = call(client, "POST", "/goals", fields)
        call(client, "POST", f"/goals/{goal['id']}/progress", {"value": 1, "notes": "seed"})
        if goal["goal_type"] == "yearly":
            call(client, "POST", f"/goals/{goal['id']}/micro-goals/generate")


def main() -> None:
    ap = argparse.ArgumentParser(description="Seed demo goals through the API")
    ap.add_argument("--base-url", required=True, help="API base URL (e.g., http://localhost:8000)")
    ap.add_argument("--email", default="demo@example.com")
    ap.add_argument("--password", default="demo")
    ap.add_argument("--name", default="Demo")
    args = ap.parse_args()

    with httpx.Client(base_url=args.base_url.rstrip("/"), timeout=15) as client:
        try:
            seed(client, args.email, args.password, args.name)
        except (RuntimeError, httpx.HTTPError) as exc:
            print(f"Seed failed: {exc}", file=sys.stderr)
            sys.exit(1)

    print("Seed complete.")


if __name__ == "__main__":
    main()
