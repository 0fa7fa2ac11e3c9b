# backend/visual_scheduler/crud/activities.py

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from visual_scheduler.core.config import settings
from visual_scheduler.crud.schedules import normalize_timestamp
from visual_scheduler.db.mongo import get_db
from visual_scheduler.schemas.activity import ActivityCreate, ActivityRead


def get_activities_collection():
    """
    recentActivities 컬렉션 (append-only 로그)
    """
    return get_db()["recentActivities"]


def serialize_activity(doc) -> ActivityRead:
    return ActivityRead(
        id=str(doc["_id"]),
        user_id=doc["user_id"],
        type=doc.get("type", ""),
        title=doc.get("title", ""),
        icon=doc.get("icon", ""),
        payload=doc.get("payload") or {},
        timestamp=normalize_timestamp(doc.get("timestamp")),
    )


def format_mm_ss(seconds: int) -> str:
    minutes, secs = divmod(int(seconds), 60)
    return f"{minutes}:{secs:02d}"


# CREATE
async def add_activity(user_id: str, data: ActivityCreate) -> ActivityRead:
    col = get_activities_collection()
    doc: Dict[str, Any] = {
        "user_id": user_id,
        "type": data.type,
        "title": data.title,
        "icon": data.icon,
        "payload": data.payload,
        "timestamp": datetime.now(timezone.utc),
    }
    result = await col.insert_one(doc)
    doc["_id"] = result.inserted_id
    return serialize_activity(doc)


async def add_timer_activity(user_id: str, duration: int, action: str = "started") -> ActivityRead:
    """
    타이머 시작/추가/완료 기록. 예: "Timer started (2:05)"
    """
    return await add_activity(user_id, ActivityCreate(
        type="timer",
        title=f"Timer {action} ({format_mm_ss(duration)})",
        icon="✅" if action == "completed" else "⏰",
        payload={"duration": duration, "action": action},
    ))


# READ (최근 N개)
async def get_recent_activities(user_id: str, limit: Optional[int] = None) -> List[ActivityRead]:
    col = get_activities_collection()
    safe_limit = max(1, min(limit or settings.RECENT_ACTIVITY_LIMIT, 100))
    cursor = col.find({"user_id": user_id}).sort("timestamp", -1).limit(safe_limit)
    docs = await cursor.to_list(length=safe_limit)
    return [serialize_activity(d) for d in docs]
