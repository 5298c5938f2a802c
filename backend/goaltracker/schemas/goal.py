from datetime import date
from enum import Enum
from typing import Any, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator, model_validator

from goaltracker.core.progress import is_completed, progress_percentage
from goaltracker.core.time_utils import hhmm_to_time, time_to_hhmm


class GoalType(str, Enum):
    daily = "daily"
    weekly = "weekly"
    yearly = "yearly"


class GoalStatus(str, Enum):
    active = "active"
    completed = "completed"
    archived = "archived"


def _normalize_reminder(v):
    # 'HH:MM' / '7:30 PM' -> 'HH:MM'
    if v is None:
        return None
    return time_to_hhmm(hhmm_to_time(v))


class GoalCreate(BaseModel):
    """Fields a client supplies when creating a goal."""

    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    goal_type: GoalType
    target_value: int = Field(1, ge=1)
    start_date: date = Field(default_factory=date.today)
    end_date: Optional[date] = None
    habit_stack_trigger: Optional[str] = None
    reminder_time: Optional[str] = None  # 'HH:MM'
    metadata: dict[str, Any] = Field(default_factory=dict)

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)

    @field_validator("reminder_time")
    @classmethod
    def _reminder_format(cls, v):
        return _normalize_reminder(v or None)

    @model_validator(mode="after")
    def _end_after_start(self):
        if self.end_date is not None and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class GoalUpdate(BaseModel):
    """Partial update; only the fields present are written."""

    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    goal_type: Optional[GoalType] = None
    target_value: Optional[int] = Field(None, ge=1)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    status: Optional[GoalStatus] = None
    habit_stack_trigger: Optional[str] = None
    reminder_time: Optional[str] = None
    metadata: Optional[dict[str, Any]] = None
    completed_at: Optional[str] = None

    # Unknown keys would otherwise end up in the SET clause
    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)

    @field_validator("reminder_time")
    @classmethod
    def _reminder_format(cls, v):
        return _normalize_reminder(v or None)


class ProgressCreate(BaseModel):
    value: int = Field(..., ge=1)
    notes: str = ""


class ProgressLogRead(BaseModel):
    id: Union[int, str]
    goal_id: Union[int, str]
    value: int
    notes: Optional[str] = None
    logged_date: Optional[str] = None
    created_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")


class GoalRead(BaseModel):
    """Goal as returned to the frontend, with derived progress fields."""

    id: Union[int, str]
    user_id: Union[int, str, None] = None
    title: str
    description: Optional[str] = None
    goal_type: str
    target_value: int = 1
    total_progress: int = 0
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    status: str = "active"
    habit_stack_trigger: Optional[str] = None
    reminder_time: Optional[str] = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[str] = None
    completed_at: Optional[str] = None
    last_progress_date: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @computed_field
    @property
    def percentage(self) -> int:
        return progress_percentage(self.total_progress, self.target_value)

    @computed_field
    @property
    def is_completed(self) -> bool:
        return is_completed(self.total_progress, self.target_value)


class StreakRead(BaseModel):
    current: int
    last_entry: Optional[str] = None


class MicroGoalCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=500)
    description: Optional[str] = None
    target_date: Optional[date] = None
    order_index: int = Field(0, ge=0)

    model_config = ConfigDict(extra="ignore", str_strip_whitespace=True)


class MicroGoalUpdate(BaseModel):
    title: Optional[str] = Field(None, min_length=1, max_length=500)
    description: Optional[str] = None
    target_date: Optional[date] = None
    completed: Optional[bool] = None
    order_index: Optional[int] = Field(None, ge=0)

    model_config = ConfigDict(extra="forbid", str_strip_whitespace=True)


class MicroGoalRead(BaseModel):
    id: Union[int, str]
    parent_goal_id: Union[int, str]
    title: str
    description: Optional[str] = None
    target_date: Optional[str] = None
    completed: bool = False
    order_index: int = 0
    created_at: Optional[str] = None
    completed_at: Optional[str] = None

    model_config = ConfigDict(extra="ignore")
