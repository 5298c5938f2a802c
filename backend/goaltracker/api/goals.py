from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from goaltracker.api.deps import get_state, get_store, unwrap
from goaltracker.schemas.goal import (
    GoalCreate,
    GoalRead,
    GoalType,
    GoalUpdate,
    MicroGoalCreate,
    MicroGoalRead,
    MicroGoalUpdate,
    ProgressCreate,
    ProgressLogRead,
    StreakRead,
)
from goaltracker.services.app_state import AppState
from goaltracker.services.goal_store import GoalStore


router = APIRouter(prefix="/goals", tags=["goals"])


def _goal_or_404(store: GoalStore, goal_id: str) -> dict:
    goal = store.get_goal_by_id(goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    return goal


@router.get("", response_model=list[GoalRead])
def list_goals(
    goal_type: Optional[GoalType] = Query(None),
    store: GoalStore = Depends(get_store),
):
    # With a type filter only active goals of that type come back
    if goal_type is not None:
        return store.get_goals_by_type(goal_type)
    return store.goals


@router.post("", response_model=GoalRead, status_code=201)
def create_goal(payload: GoalCreate, store: GoalStore = Depends(get_store)):
    return unwrap(store.create_goal(payload.model_dump(mode="json")))


@router.post("/reload", response_model=list[GoalRead])
def reload_goals(store: GoalStore = Depends(get_store)):
    return unwrap(store.load_goals())


@router.get("/streaks", response_model=dict[int, StreakRead])
def list_streaks(store: GoalStore = Depends(get_store)):
    return store.streaks


@router.get("/{goal_id}", response_model=GoalRead)
def get_goal(goal_id: str, store: GoalStore = Depends(get_store)):
    return _goal_or_404(store, goal_id)


@router.patch("/{goal_id}", response_model=GoalRead)
def update_goal(goal_id: str, payload: GoalUpdate, store: GoalStore = Depends(get_store)):
    _goal_or_404(store, goal_id)
    return unwrap(store.update_goal(goal_id, payload.model_dump(mode="json", exclude_unset=True)))


@router.post("/{goal_id}/progress", response_model=GoalRead)
def log_progress(goal_id: str, payload: ProgressCreate, store: GoalStore = Depends(get_store)):
    _goal_or_404(store, goal_id)
    return unwrap(store.log_progress(goal_id, payload.value, payload.notes))


@router.post("/{goal_id}/complete")
def complete_goal(goal_id: str, store: GoalStore = Depends(get_store)):
    _goal_or_404(store, goal_id)
    result = store.complete_goal(goal_id)
    goal = unwrap(result)
    return {"goal": GoalRead.model_validate(goal).model_dump(), "celebration": result.extra.get("celebration", False)}


@router.get("/{goal_id}/logs", response_model=list[ProgressLogRead])
def list_logs(goal_id: str, store: GoalStore = Depends(get_store)):
    return unwrap(store.progress_logs(goal_id))


# -- micro-goals ---------------------------------------------------------------


@router.get("/{goal_id}/micro-goals", response_model=list[MicroGoalRead])
def list_micro_goals(goal_id: str, store: GoalStore = Depends(get_store)):
    return unwrap(store.list_micro_goals(goal_id))


@router.post("/{goal_id}/micro-goals", response_model=MicroGoalRead, status_code=201)
def create_micro_goal(goal_id: str, payload: MicroGoalCreate, store: GoalStore = Depends(get_store)):
    return unwrap(store.create_micro_goal(goal_id, payload.model_dump(mode="json")))


@router.post("/{goal_id}/micro-goals/generate", response_model=list[MicroGoalRead], status_code=201)
def generate_micro_goals(
    goal_id: str,
    store: GoalStore = Depends(get_store),
    state: AppState = Depends(get_state),
):
    goal = _goal_or_404(store, goal_id)
    plan = state.suggestions.micro_goals(goal)
    return unwrap(store.create_micro_goals(goal_id, plan))


@router.patch("/{goal_id}/micro-goals/{micro_goal_id}", response_model=MicroGoalRead)
def update_micro_goal(
    goal_id: str,
    micro_goal_id: str,
    payload: MicroGoalUpdate,
    store: GoalStore = Depends(get_store),
):
    return unwrap(store.update_micro_goal(goal_id, micro_goal_id, payload.model_dump(mode="json", exclude_unset=True)))


@router.post("/{goal_id}/micro-goals/{micro_goal_id}/toggle", response_model=MicroGoalRead)
def toggle_micro_goal(goal_id: str, micro_goal_id: str, store: GoalStore = Depends(get_store)):
    return unwrap(store.toggle_micro_goal(goal_id, micro_goal_id))


@router.delete("/{goal_id}/micro-goals/{micro_goal_id}", status_code=204)
def delete_micro_goal(goal_id: str, micro_goal_id: str, store: GoalStore = Depends(get_store)):
    unwrap(store.delete_micro_goal(goal_id, micro_goal_id))
