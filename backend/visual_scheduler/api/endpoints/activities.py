# backend/visual_scheduler/api/endpoints/activities.py

from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from visual_scheduler.api.deps import get_current_user_id
from visual_scheduler.crud import activities as activities_crud
from visual_scheduler.schemas.activity import ActivityCreate, ActivityRead, TimerActivityCreate

router = APIRouter(prefix="/activities", tags=["Activities"])


@router.get("/", response_model=List[ActivityRead])
async def read_recent_activities(
    limit: Optional[int] = Query(None, ge=1, le=100),
    user_id: str = Depends(get_current_user_id),
):
    return await activities_crud.get_recent_activities(user_id, limit=limit)


@router.post("/", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
async def create_activity(
    payload: ActivityCreate,
    user_id: str = Depends(get_current_user_id),
):
    return await activities_crud.add_activity(user_id, payload)


@router.post("/timer", response_model=ActivityRead, status_code=status.HTTP_201_CREATED)
async def create_timer_activity(
    payload: TimerActivityCreate,
    user_id: str = Depends(get_current_user_id),
):
    return await activities_crud.add_timer_activity(user_id, payload.duration, payload.action)
