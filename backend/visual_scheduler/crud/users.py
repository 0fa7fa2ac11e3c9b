# backend/visual_scheduler/crud/users.py

from datetime import datetime, timezone
from typing import Optional, Dict, Any, Union

from bson import ObjectId
from bson.errors import InvalidId
from fastapi import HTTPException

from visual_scheduler.crud import invites as invites_crud
from visual_scheduler.db.mongo import get_db
from visual_scheduler.models.user import Role, UserInDB


def get_users_collection():
    """
    Motor DB 핸들에서 users 컬렉션을 가져옵니다.
    connect_to_mongo() 이후에 db가 세팅되어 있어야 합니다.
    """
    return get_db()["users"]


def _strip_or_none(v):
    if v is None:
        return None
    if not isinstance(v, str):
        return v
    s = v.strip()
    return s or None


def _safe_object_id(user_id: Union[str, ObjectId]) -> Optional[ObjectId]:
    """
    str/ObjectId 입력을 안전하게 ObjectId로 변환합니다.
    """
    if isinstance(user_id, ObjectId):
        return user_id

    # ✅ 공백 방지 안전망
    if isinstance(user_id, str):
        user_id = user_id.strip()

    try:
        return ObjectId(user_id)
    except (InvalidId, TypeError):
        return None


def _id_filter(user_id: Union[str, ObjectId]) -> Dict[str, Any]:
    """
    users 컬렉션의 _id 타입이 ObjectId / string 혼재된 상황을 모두 커버하는 필터.
    - Google 로그인으로 만들어진 유저: ObjectId
    - 외부 인증 uid로 만들어진 유저: string
    """
    if isinstance(user_id, str):
        user_id = user_id.strip()

    oid = _safe_object_id(user_id)

    # user_id가 문자열이고 ObjectId 변환도 가능하면(24 hex), 둘 다 조회/업데이트
    if isinstance(user_id, str) and oid is not None:
        return {"$or": [{"_id": oid}, {"_id": user_id}]}

    if oid is not None:
        return {"_id": oid}

    return {"_id": user_id}


def _now() -> datetime:
    return datetime.now(timezone.utc)


# ---------- READ ----------

async def get_user_by_id(user_id: Union[str, ObjectId]) -> Optional[UserInDB]:
    user = await get_users_collection().find_one(_id_filter(user_id))
    return UserInDB(**user) if user else None


async def get_user_by_google_id(google_id: str) -> Optional[UserInDB]:
    google_id = _strip_or_none(google_id) or google_id

    user = await get_users_collection().find_one({"google_id": google_id})
    return UserInDB(**user) if user else None


# ---------- CREATE / LOGIN ----------

async def upsert_google_user(*, email: str, google_id: str) -> UserInDB:
    """
    Google 로그인 성공 시 호출.
    - 기존 유저: last_login_at 갱신
    - 신규 유저: role 없는 상태로 생성 (이후 /users/register 로 역할 결정)
    """
    email = _strip_or_none(email) or email
    google_id = _strip_or_none(google_id) or google_id
    col = get_users_collection()
    now = _now()

    user = await col.find_one({"email": email})
    if user:
        await col.update_one({"_id": user["_id"]}, {"$set": {"last_login_at": now}})
        user["last_login_at"] = now
        return UserInDB(**user)

    user_data = {
        "email": email,
        "google_id": google_id,
        "created_at": now,
        "last_login_at": now,
        "childs": [],
        "teachers": [],
    }
    result = await col.insert_one(user_data)
    user_data["_id"] = result.inserted_id
    return UserInDB(**user_data)


# ---------- REGISTER (프로필 + 초대 코드 연결) ----------

async def register_user(
    user_id: str,
    *,
    name: str,
    role: Role,
    invite_code: Optional[str] = None,
) -> UserInDB:
    """
    principal의 프로필을 만들고 역할을 확정합니다.
    - child는 초대 코드 필수, teacher는 선택
    - 초대 코드를 사용하면 caregiver_id가 세팅되고
      caregiver 문서의 childs/teachers 목록에 추가됩니다.
    - 역할은 한 번 정해지면 바뀌지 않습니다.
    """
    existing = await get_user_by_id(user_id)
    if existing is not None and existing.role is not None:
        raise HTTPException(status_code=409, detail="User is already registered")

    invite_code = _strip_or_none(invite_code)
    if role == Role.CHILD and not invite_code:
        raise HTTPException(status_code=400, detail="Invite code is required for child accounts")
    if role == Role.CAREGIVER and invite_code:
        raise HTTPException(status_code=400, detail="Caregivers cannot redeem invite codes")

    caregiver_id = None
    if invite_code:
        invite = await invites_crud.get_valid_invite(invite_code)
        caregiver = await get_user_by_id(invite.caregiver_id)
        if caregiver is None or caregiver.role != Role.CAREGIVER:
            raise HTTPException(status_code=400, detail="Invite owner is not a caregiver")
        await invites_crud.redeem_invite(invite_code, used_by=user_id)
        caregiver_id = caregiver.id

    profile = {
        "name": name,
        "role": role.value,
        "caregiver_id": caregiver_id,
    }

    col = get_users_collection()
    if existing is not None:
        await col.update_one(_id_filter(user_id), {"$set": profile})
    else:
        await col.insert_one({
            "_id": user_id,
            **profile,
            "childs": [],
            "teachers": [],
            "created_at": _now(),
            "last_login_at": _now(),
        })

    if caregiver_id is not None:
        await link_to_caregiver(caregiver_id, user_id, role)

    return await get_user_by_id(user_id)


async def link_to_caregiver(caregiver_id: str, member_id: str, role: Role) -> Optional[UserInDB]:
    """
    caregiver 문서의 childs / teachers 목록에 member를 추가합니다. (중복 없음)
    """
    field = "childs" if role == Role.CHILD else "teachers"
    result = await get_users_collection().update_one(
        _id_filter(caregiver_id),
        {"$addToSet": {field: member_id}}
    )
    if result.matched_count == 0:
        return None

    return await get_user_by_id(caregiver_id)
