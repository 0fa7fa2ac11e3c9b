# backend/visual_scheduler/api/endpoints/schedules.py
from fastapi import APIRouter, HTTPException, Depends, status
from typing import List

from visual_scheduler.api.deps import get_current_identity, get_current_user_id
from visual_scheduler.crud import schedules as schedule_crud
from visual_scheduler.schemas.schedule import (
    CanEditRead,
    DashboardCard,
    RoutineTemplate,
    ScheduleCreate,
    ScheduleRead,
    ScheduleStats,
    ScheduleUpdate,
    StepCreate,
    StepMove,
    StepUpdate,
)
from visual_scheduler.services import steps as step_ops
from visual_scheduler.services.aggregator import ScheduleAggregator, build_schedule_sources
from visual_scheduler.services.identity import Identity
from visual_scheduler.services.permissions import can_edit_schedule, can_view_schedule
from visual_scheduler.services.templates import PREDEFINED_ROUTINES, dashboard_cards, schedule_stats

router = APIRouter(prefix="/schedules", tags=["Schedules"])


async def _visible_schedules(user_id: str) -> ScheduleAggregator:
    """
    본인 / caregiver 그룹 / 연결된 teacher 스케줄을 한 번 조회해서 병합
    """
    aggregator = ScheduleAggregator(await build_schedule_sources(user_id))
    await aggregator.refresh()
    if aggregator.error:
        raise HTTPException(status_code=502, detail=aggregator.error)
    return aggregator


async def _get_visible_schedule(identity: Identity, schedule_id: str) -> ScheduleRead:
    schedule = await schedule_crud.get_schedule(schedule_id)
    if schedule is None or not can_view_schedule(identity, schedule):
        raise HTTPException(status_code=404, detail="Schedule not found")
    return schedule


async def _save_steps(identity: Identity, schedule_id: str, steps) -> ScheduleRead:
    return await schedule_crud.update_schedule_checked(
        identity, schedule_id, ScheduleUpdate(steps=steps)
    )


# --- 목록 ---

@router.get("/", response_model=List[ScheduleRead])
async def read_schedules(user_id: str = Depends(get_current_user_id)):
    return (await _visible_schedules(user_id)).schedules

@router.get("/published", response_model=List[ScheduleRead])
async def read_published_schedules(user_id: str = Depends(get_current_user_id)):
    return (await _visible_schedules(user_id)).published()

@router.get("/drafts", response_model=List[ScheduleRead])
async def read_draft_schedules(user_id: str = Depends(get_current_user_id)):
    return (await _visible_schedules(user_id)).drafts()

@router.get("/stats", response_model=ScheduleStats)
async def read_schedule_stats(user_id: str = Depends(get_current_user_id)):
    return schedule_stats((await _visible_schedules(user_id)).schedules)

@router.get("/templates", response_model=List[RoutineTemplate])
async def read_templates():
    return PREDEFINED_ROUTINES

@router.get("/dashboard", response_model=List[DashboardCard])
async def read_dashboard(user_id: str = Depends(get_current_user_id)):
    return dashboard_cards((await _visible_schedules(user_id)).schedules, user_id)


# CREATE
@router.post("/", response_model=ScheduleRead, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    schedule: ScheduleCreate,
    identity: Identity = Depends(get_current_identity),
):
    return await schedule_crud.create_schedule(identity, schedule)

# READ ONE
@router.get("/{schedule_id}", response_model=ScheduleRead)
async def read_schedule(schedule_id: str, identity: Identity = Depends(get_current_identity)):
    return await _get_visible_schedule(identity, schedule_id)

@router.get("/{schedule_id}/can-edit", response_model=CanEditRead)
async def read_can_edit(schedule_id: str, identity: Identity = Depends(get_current_identity)):
    schedule = await _get_visible_schedule(identity, schedule_id)
    return CanEditRead(schedule_id=schedule.id, can_edit=can_edit_schedule(identity, schedule))

# UPDATE
@router.put("/{schedule_id}", response_model=ScheduleRead)
async def update_schedule(
    schedule_id: str,
    schedule: ScheduleUpdate,
    identity: Identity = Depends(get_current_identity),
):
    return await schedule_crud.update_schedule_checked(identity, schedule_id, schedule)

# DELETE
@router.delete("/{schedule_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_schedule(schedule_id: str, identity: Identity = Depends(get_current_identity)):
    await schedule_crud.delete_schedule_checked(identity, schedule_id)
    return None


# --- Steps ---

@router.post("/{schedule_id}/steps", response_model=ScheduleRead, status_code=status.HTTP_201_CREATED)
async def add_step(
    schedule_id: str,
    step: StepCreate,
    identity: Identity = Depends(get_current_identity),
):
    existing = await schedule_crud.get_editable_schedule(identity, schedule_id)
    try:
        steps = step_ops.add_step(existing.steps, step)
    except ValueError as e:
        raise HTTPException(status_code=409, detail=str(e))
    return await _save_steps(identity, schedule_id, steps)

@router.put("/{schedule_id}/steps/{step_id}", response_model=ScheduleRead)
async def update_step(
    schedule_id: str,
    step_id: str,
    step: StepUpdate,
    identity: Identity = Depends(get_current_identity),
):
    existing = await schedule_crud.get_editable_schedule(identity, schedule_id)
    try:
        steps = step_ops.update_step(existing.steps, step_id, step)
    except KeyError:
        raise HTTPException(status_code=404, detail="Step not found")
    return await _save_steps(identity, schedule_id, steps)

@router.delete("/{schedule_id}/steps/{step_id}", response_model=ScheduleRead)
async def delete_step(
    schedule_id: str,
    step_id: str,
    identity: Identity = Depends(get_current_identity),
):
    existing = await schedule_crud.get_editable_schedule(identity, schedule_id)
    try:
        steps = step_ops.remove_step(existing.steps, step_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="Step not found")
    return await _save_steps(identity, schedule_id, steps)

@router.post("/{schedule_id}/steps/{step_id}/move", response_model=ScheduleRead)
async def move_step(
    schedule_id: str,
    step_id: str,
    move: StepMove,
    identity: Identity = Depends(get_current_identity),
):
    existing = await schedule_crud.get_editable_schedule(identity, schedule_id)
    try:
        steps = step_ops.move_step(existing.steps, step_id, move.position)
    except KeyError:
        raise HTTPException(status_code=404, detail="Step not found")
    return await _save_steps(identity, schedule_id, steps)
