from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from goaltracker.api.deps import get_state, get_store
from goaltracker.schemas.goal import GoalType
from goaltracker.schemas.suggestion import (
    GoalSuggestion,
    HabitStackRequest,
    MicroGoalSuggestion,
    ReflectionPromptItem,
    SuggestionContext,
)
from goaltracker.services.app_state import AppState
from goaltracker.services.goal_store import GoalStore
from goaltracker.services.suggestions import build_context


router = APIRouter(prefix="/suggestions", tags=["suggestions"])


@router.get("/context", response_model=SuggestionContext)
def current_context():
    return build_context()


@router.post("/goals", response_model=list[GoalSuggestion])
def contextual_goals(
    context: Optional[SuggestionContext] = None,
    store: GoalStore = Depends(get_store),
    state: AppState = Depends(get_state),
):
    # Missing context fields are filled from the server clock
    ctx = {**build_context(), **(context.model_dump(exclude_none=True) if context else {})}
    return state.suggestions.contextual(ctx, store.goals)


@router.get("/history", response_model=list[GoalSuggestion])
def history_goals(
    preferred_type: Optional[GoalType] = Query(None),
    store: GoalStore = Depends(get_store),
    state: AppState = Depends(get_state),
):
    return state.suggestions.history(store.goals, preferred_type.value if preferred_type else None)


@router.post("/habit-stacks", response_model=list[str])
def habit_stacks(payload: HabitStackRequest, state: AppState = Depends(get_state)):
    return state.suggestions.habit_stacking(payload.title, payload.existing_habits)


@router.get("/goals/{goal_id}/micro-goals", response_model=list[MicroGoalSuggestion])
def micro_goal_plan(
    goal_id: str,
    store: GoalStore = Depends(get_store),
    state: AppState = Depends(get_state),
):
    goal = store.get_goal_by_id(goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return state.suggestions.micro_goals(goal)


@router.get("/reflection-prompts", response_model=list[ReflectionPromptItem])
def reflection_prompts(
    goal_id: Optional[str] = Query(None),
    store: GoalStore = Depends(get_store),
    state: AppState = Depends(get_state),
):
    goal = store.get_goal_by_id(goal_id) if goal_id is not None else None
    return state.suggestions.reflections(goal)
