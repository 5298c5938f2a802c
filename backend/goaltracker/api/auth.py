from fastapi import APIRouter, Depends, HTTPException

from goaltracker.api.deps import get_state, unwrap
from goaltracker.schemas.user import LoginRequest, RegisterRequest, UserRead
from goaltracker.services.app_state import AppState


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=UserRead, status_code=201)
def register(payload: RegisterRequest, state: AppState = Depends(get_state)):
    return unwrap(state.session.register(payload.name, payload.email, payload.password))


@router.post("/login", response_model=UserRead)
def login(payload: LoginRequest, state: AppState = Depends(get_state)):
    return unwrap(state.session.login(payload.email, payload.password), status_code=401)


@router.post("/logout", status_code=204)
def logout(state: AppState = Depends(get_state)):
    state.session.logout()


@router.get("/me", response_model=UserRead)
def me(state: AppState = Depends(get_state)):
    if state.session.user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return state.session.user


@router.patch("/me", response_model=UserRead)
def update_me(payload: dict, state: AppState = Depends(get_state)):
    # Raw dict so the session's own validation reports unknown fields
    if state.session.user is None:
        raise HTTPException(status_code=401, detail="User not authenticated")
    return unwrap(state.session.update_user(payload), status_code=422)
