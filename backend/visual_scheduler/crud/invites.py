# backend/visual_scheduler/crud/invites.py

import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional

from fastapi import HTTPException

from visual_scheduler.core.config import settings
from visual_scheduler.db.mongo import get_db
from visual_scheduler.models.invite import InviteInDB
from visual_scheduler.schemas.invite import InviteRead


def get_invites_collection():
    return get_db()["invites"]


def _now() -> datetime:
    return datetime.now(timezone.utc)


def _clean_code(code) -> str:
    if not isinstance(code, str) or not code.strip():
        raise HTTPException(status_code=400, detail="Invalid invite code")
    return code.strip()


def serialize_invite(invite: InviteInDB) -> InviteRead:
    created = invite.created_at
    if created.tzinfo is None:
        created = created.replace(tzinfo=timezone.utc)
    return InviteRead(
        code=invite.code,
        caregiver_id=invite.caregiver_id,
        created_at=created,
        used=invite.used,
        used_by=invite.used_by,
        expires_at=created + timedelta(hours=settings.INVITE_TTL_HOURS),
    )


def _new_code() -> str:
    # 짧은 코드: UUID4의 첫 블록 (8자리 hex)
    return uuid.uuid4().hex[:8]


# CREATE
async def create_invite(caregiver_id: str) -> InviteInDB:
    col = get_invites_collection()
    doc = {
        "_id": _new_code(),
        "caregiver_id": caregiver_id,
        "created_at": _now(),
        "used": False,
    }
    await col.insert_one(doc)
    return InviteInDB(**doc)


# READ ONE
async def get_invite(code: str) -> Optional[InviteInDB]:
    code = _clean_code(code)
    doc = await get_invites_collection().find_one({"_id": code})
    return InviteInDB(**doc) if doc else None


async def get_valid_invite(code: str) -> InviteInDB:
    """
    존재하고, 사용되지 않았고, 만료되지 않은 초대만 반환합니다.
    """
    invite = await get_invite(code)
    if invite is None:
        raise HTTPException(status_code=400, detail="This invite code does not exist")
    if invite.used:
        raise HTTPException(status_code=400, detail="This invite code has already been used")
    if invite.is_expired(settings.INVITE_TTL_HOURS):
        raise HTTPException(status_code=400, detail="This invite code has expired")
    return invite


# UPDATE (1회용 소비)
async def redeem_invite(code: str, used_by: str) -> InviteInDB:
    """
    used=False 인 경우에만 used=True로 바꿉니다.
    동시에 두 명이 같은 코드를 쓰면 한 명만 성공합니다.
    """
    code = _clean_code(code)
    col = get_invites_collection()
    result = await col.update_one(
        {"_id": code, "used": False},
        {"$set": {"used": True, "used_by": used_by, "used_at": _now()}},
    )
    if result.matched_count == 0:
        raise HTTPException(status_code=400, detail="This invite code has already been used")

    doc = await col.find_one({"_id": code})
    return InviteInDB(**doc)
