"""Shared application constants.

Centralizes values used by the goal store, the suggestion rules and the
sharing helpers so we can document and adjust them in one place.
"""

# Local storage entity names, used as <prefix>_<entity>_<ownerId>
ENTITY_USER = "user"
ENTITY_GOALS = "goals"
ENTITY_PROGRESS = "progress"
ENTITY_MICRO_GOALS = "microgoals"
ENTITY_PARTNERS = "partners"
ENTITY_REFLECTIONS = "reflections"
ENTITY_ACCOUNTS = "accounts"

# Columns a client may change through update_goal (everything else is owned by the store)
GOAL_UPDATABLE_FIELDS = (
    "title",
    "description",
    "goal_type",
    "target_value",
    "start_date",
    "end_date",
    "status",
    "habit_stack_trigger",
    "reminder_time",
    "metadata",
    "completed_at",
)

USER_UPDATABLE_FIELDS = ("name", "email", "onboarding_completed")

MICRO_GOAL_UPDATABLE_FIELDS = ("title", "description", "target_date", "completed", "order_index", "completed_at")

# Default page size for reflection history
REFLECTION_HISTORY_LIMIT = 10

# How far back the streak walk looks (days)
STREAK_WINDOW_DAYS = 30

# Exactly this many items come back from the suggestion helpers
SUGGESTION_COUNT = 3
