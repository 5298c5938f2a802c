from fastapi import APIRouter, Depends, HTTPException, Query

from goaltracker.api.deps import get_state, get_store, unwrap
from goaltracker.core.constants import REFLECTION_HISTORY_LIMIT
from goaltracker.schemas.social import (
    InviteRead,
    InviteRequest,
    PartnerCreate,
    PartnerRead,
    ReflectionCreate,
    ReflectionRead,
    ShareRead,
    ShareRequest,
)
from goaltracker.services import sharing
from goaltracker.services.app_state import AppState
from goaltracker.services.goal_store import GoalStore


router = APIRouter(tags=["social"])


@router.get("/partners", response_model=list[PartnerRead])
def list_partners(store: GoalStore = Depends(get_store)):
    return unwrap(store.list_partners())


@router.post("/partners", response_model=PartnerRead, status_code=201)
def add_partner(payload: PartnerCreate, store: GoalStore = Depends(get_store)):
    return unwrap(store.add_partner(payload.model_dump(mode="json")), status_code=422)


@router.get("/reflections", response_model=list[ReflectionRead])
def list_reflections(
    limit: int = Query(REFLECTION_HISTORY_LIMIT, ge=1, le=100),
    store: GoalStore = Depends(get_store),
):
    return unwrap(store.list_reflections(limit))


@router.post("/reflections", response_model=ReflectionRead, status_code=201)
def save_reflection(payload: ReflectionCreate, store: GoalStore = Depends(get_store)):
    return unwrap(store.save_reflection(payload.prompt, payload.response))


@router.post("/share/goals/{goal_id}", response_model=ShareRead)
def share_goal(
    goal_id: str,
    payload: ShareRequest,
    store: GoalStore = Depends(get_store),
    state: AppState = Depends(get_state),
):
    goal = store.get_goal_by_id(goal_id)
    if not goal:
        raise HTTPException(status_code=404, detail="Goal not found")
    percentage = sharing.goal_percentage(goal)
    text = sharing.share_text(goal, percentage)
    try:
        url = sharing.share_url(payload.platform, payload.url or state.settings.public_base_url, text, payload.hashtags)
    except ValueError as e:
        raise HTTPException(status_code=422, detail=str(e))
    return ShareRead(platform=payload.platform, text=text, share_url=url, percentage=percentage)


@router.post("/share/invite", response_model=InviteRead)
def create_invite(
    payload: InviteRequest,
    store: GoalStore = Depends(get_store),
    state: AppState = Depends(get_state),
):
    unknown = [g for g in payload.goal_ids if store.get_goal_by_id(g) is None]
    if unknown:
        raise HTTPException(status_code=422, detail=f"Unknown goals: {', '.join(str(g) for g in unknown)}")
    user = state.session.user
    link = sharing.invite_link(state.settings.public_base_url, user, payload.goal_ids, payload.privacy)
    subject, body = sharing.invite_email(user["name"], link)
    return InviteRead(link=link, email_subject=subject, email_body=body)


@router.get("/share/invite/{token}")
def read_invite(token: str):
    try:
        return sharing.decode_invite(token)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
