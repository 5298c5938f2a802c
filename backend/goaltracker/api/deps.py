from fastapi import Depends, HTTPException, Request

from goaltracker.core.result import Result
from goaltracker.services.app_state import AppState
from goaltracker.services.goal_store import GoalStore


def get_state(request: Request) -> AppState:
    return request.app.state.goaltracker


def get_store(state: AppState = Depends(get_state)) -> GoalStore:
    store = state.goal_store()
    if store is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return store


def unwrap(result: Result, status_code: int = 400):
    """Value of a successful result; failures become HTTP errors ('... not found' -> 404)."""
    if result.success:
        return result.value
    error = result.error or "Request failed"
    if "not found" in error.lower():
        status_code = 404
    raise HTTPException(status_code=status_code, detail=error)
