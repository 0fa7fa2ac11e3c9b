# backend/visual_scheduler/crud/schedules.py
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException

from visual_scheduler.db.mongo import get_db
from visual_scheduler.models.user import Role
from visual_scheduler.schemas.schedule import ScheduleCreate, ScheduleUpdate, ScheduleRead, Step
from visual_scheduler.services.identity import Identity
from visual_scheduler.services.permissions import can_edit_schedule, can_view_schedule


def get_schedules_collection():
    return get_db()["schedules"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_timestamp(value: Any) -> datetime:
    """
    저장된 시간 값을 timezone-aware UTC datetime으로 통일합니다.
    - datetime: naive면 UTC로 간주
    - 숫자: epoch milliseconds (모바일 클라이언트의 Date.now())
    - 없음/알 수 없는 값: 현재 시각 (정렬이 항상 가능하도록)
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    return _utcnow()


def _safe_object_id(schedule_id) -> ObjectId:
    """
    네트워크 호출 전에 id 형식을 검증합니다.
    None / 문자열이 아닌 값 / 공백 / ObjectId 형식이 아닌 값은 400.
    """
    if not isinstance(schedule_id, str) or not schedule_id.strip():
        raise HTTPException(status_code=400, detail="Invalid schedule_id")
    try:
        return ObjectId(schedule_id.strip())
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid schedule_id")


def serialize_schedule(schedule) -> ScheduleRead:
    """
    Mongo document(dict) -> ScheduleRead
    """
    return ScheduleRead(
        id=str(schedule["_id"]),
        user_id=schedule.get("user_id", ""),
        name=schedule.get("name", ""),
        steps=[Step(**s) for s in schedule.get("steps") or []],
        is_published=bool(schedule.get("is_published", False)),
        routine_type=schedule.get("routine_type"),
        creator_role=schedule.get("creator_role") or Role.USER.value,
        caregiver_id=schedule.get("caregiver_id"),
        created_at=normalize_timestamp(schedule.get("created_at")),
        updated_at=normalize_timestamp(schedule.get("updated_at")),
    )


def _dump_steps(steps: List[Step]) -> List[Dict[str, Any]]:
    return [s.model_dump() for s in steps]


# CREATE
async def create_schedule(identity: Optional[Identity], schedule_data: ScheduleCreate) -> ScheduleRead:
    """
    작성자 정보(user_id / creator_role / caregiver_id)를 identity에서 찍어서 저장합니다.
    step_number 순서는 건드리지 않습니다. (스키마에서 1..N 검증)
    """
    if identity is None:
        raise HTTPException(status_code=401, detail="User must be logged in")

    if identity.role == Role.CAREGIVER:
        caregiver_id = identity.user_id
    else:
        caregiver_id = identity.caregiver_id

    now = _utcnow()
    new_schedule = {
        "user_id": identity.user_id,
        "name": schedule_data.name,
        "steps": _dump_steps(schedule_data.steps),
        "is_published": schedule_data.is_published,
        "routine_type": schedule_data.routine_type,
        "creator_role": identity.role.value,
        "caregiver_id": caregiver_id,
        "created_at": now,
        "updated_at": now,
    }
    schedules_collection = get_schedules_collection()
    result = await schedules_collection.insert_one(new_schedule)
    saved = await schedules_collection.find_one({"_id": result.inserted_id})
    if not saved:
        raise HTTPException(status_code=500, detail="Failed to create schedule")
    return serialize_schedule(saved)


# READ (쿼리)
async def find_schedules(query: Dict[str, Any]) -> List[ScheduleRead]:
    cursor = get_schedules_collection().find(query).sort("updated_at", -1)
    return [serialize_schedule(doc) async for doc in cursor]


# READ ONE
async def get_schedule(schedule_id: str) -> Optional[ScheduleRead]:
    oid = _safe_object_id(schedule_id)
    doc = await get_schedules_collection().find_one({"_id": oid})
    return serialize_schedule(doc) if doc else None


# UPDATE
async def update_schedule(schedule_id: str, schedule_data: ScheduleUpdate) -> Optional[ScheduleRead]:
    """
    보낸 필드만 merge하고 updated_at을 갱신합니다.
    권한 확인은 하지 않습니다. (update_schedule_checked 사용)
    """
    oid = _safe_object_id(schedule_id)
    schedules_collection = get_schedules_collection()

    update_fields = schedule_data.changed_fields()
    if "steps" in update_fields:
        update_fields["steps"] = _dump_steps(schedule_data.steps)
    update_fields["updated_at"] = _utcnow()

    result = await schedules_collection.update_one({"_id": oid}, {"$set": update_fields})
    if result.matched_count == 0:
        return None

    updated = await schedules_collection.find_one({"_id": oid})
    return serialize_schedule(updated) if updated else None


# DELETE
async def delete_schedule(schedule_id: str) -> bool:
    oid = _safe_object_id(schedule_id)
    result = await get_schedules_collection().delete_one({"_id": oid})
    return result.deleted_count == 1


# --- 권한 확인 포함 버전 (API에서 사용) ---

async def get_editable_schedule(identity: Identity, schedule_id: str) -> ScheduleRead:
    """
    - 없거나 보이지 않는 스케줄: 404
    - 보이지만 수정 권한 없음: 403
    """
    existing = await get_schedule(schedule_id)
    if existing is None or not can_view_schedule(identity, existing):
        raise HTTPException(status_code=404, detail="Schedule not found")
    if not can_edit_schedule(identity, existing):
        raise HTTPException(status_code=403, detail="Forbidden")
    return existing


async def update_schedule_checked(
    identity: Identity,
    schedule_id: str,
    schedule_data: ScheduleUpdate,
) -> ScheduleRead:
    existing = await get_editable_schedule(identity, schedule_id)

    publishing = schedule_data.is_published
    if publishing is None:
        publishing = existing.is_published
    steps = schedule_data.steps if schedule_data.steps is not None else existing.steps
    if publishing and not steps:
        raise HTTPException(status_code=400, detail="A published schedule needs at least one step")

    updated = await update_schedule(schedule_id, schedule_data)
    if updated is None:
        # 확인 직후 다른 요청이 삭제한 경우
        raise HTTPException(status_code=404, detail="Schedule not found")
    return updated


async def delete_schedule_checked(identity: Identity, schedule_id: str) -> None:
    await get_editable_schedule(identity, schedule_id)
    if not await delete_schedule(schedule_id):
        raise HTTPException(status_code=404, detail="Schedule not found")
