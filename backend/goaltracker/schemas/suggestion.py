from typing import Optional

from pydantic import BaseModel, Field

from goaltracker.schemas.goal import GoalType


class SuggestionContext(BaseModel):
    time_of_day: Optional[str] = None  # morning | afternoon | evening
    season: Optional[str] = None  # spring | summer | fall | winter
    day_of_week: Optional[str] = None


class GoalSuggestion(BaseModel):
    title: str = Field(..., min_length=1)
    description: str
    goal_type: GoalType
    reasoning: str


class MicroGoalSuggestion(BaseModel):
    title: str
    description: str
    target_date: str
    order_index: int


class ReflectionPromptItem(BaseModel):
    question: str
    purpose: str


class HabitStackRequest(BaseModel):
    title: str = ""
    existing_habits: list[str] = Field(default_factory=list)
