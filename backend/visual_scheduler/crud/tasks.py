# backend/visual_scheduler/crud/tasks.py
from bson import ObjectId
from bson.errors import InvalidId
from datetime import datetime, timezone
from typing import Optional

from fastapi import HTTPException

from visual_scheduler.crud.schedules import normalize_timestamp
from visual_scheduler.db.mongo import get_db
from visual_scheduler.schemas.task import TaskCreate, TaskUpdate, TaskRead

def get_tasks_collection():
    return get_db()["tasks"]

def _safe_object_id(task_id) -> ObjectId:
    if not isinstance(task_id, str) or not task_id.strip():
        raise HTTPException(status_code=400, detail="Invalid task_id")
    try:
        return ObjectId(task_id.strip())
    except (InvalidId, TypeError):
        raise HTTPException(status_code=400, detail="Invalid task_id")

def serialize_task(task) -> TaskRead:
    return TaskRead(
        id=str(task["_id"]),
        user_id=task["user_id"],
        title=task.get("title", ""),
        done=bool(task.get("done", False)),
        created_at=normalize_timestamp(task.get("created_at")),
    )

# CREATE
async def create_task(user_id: str, task_data: TaskCreate) -> TaskRead:
    tasks_collection = get_tasks_collection()
    new_task = {
        "user_id": user_id,
        **task_data.model_dump(),
        "created_at": datetime.now(timezone.utc),
    }
    result = await tasks_collection.insert_one(new_task)
    saved = await tasks_collection.find_one({"_id": result.inserted_id})
    return serialize_task(saved)

# READ ALL
async def get_tasks(user_id: str):
    tasks_collection = get_tasks_collection()
    cursor = tasks_collection.find({"user_id": user_id}).sort("created_at", 1)
    return [serialize_task(doc) async for doc in cursor]

# READ ONE (본인 것만)
async def get_task(user_id: str, task_id: str) -> Optional[TaskRead]:
    tasks_collection = get_tasks_collection()
    doc = await tasks_collection.find_one({"_id": _safe_object_id(task_id), "user_id": user_id})
    return serialize_task(doc) if doc else None

# UPDATE
async def update_task(user_id: str, task_id: str, task_data: TaskUpdate) -> Optional[TaskRead]:
    tasks_collection = get_tasks_collection()
    oid = _safe_object_id(task_id)
    update_fields = {k: v for k, v in task_data.model_dump().items() if v is not None}
    if not update_fields:
        return await get_task(user_id, task_id)
    result = await tasks_collection.update_one(
        {"_id": oid, "user_id": user_id},
        {"$set": update_fields}
    )
    if result.matched_count == 0:
        return None
    updated = await tasks_collection.find_one({"_id": oid})
    return serialize_task(updated)

# DELETE
async def delete_task(user_id: str, task_id: str) -> bool:
    tasks_collection = get_tasks_collection()
    result = await tasks_collection.delete_one({"_id": _safe_object_id(task_id), "user_id": user_id})
    return result.deleted_count == 1
