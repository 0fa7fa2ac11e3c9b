# 파일 위치: backend/visual_scheduler/models/user.py
from enum import Enum
from pydantic import BaseModel, Field, ConfigDict, field_validator
from datetime import datetime, timezone
from typing import Optional, List


class Role(str, Enum):
    """
    사용자 역할. 가입 시 결정되며 이후 변경되지 않습니다.
    USER는 프로필이 없거나 역할을 알 수 없는 principal에게 부여되는
    최소 권한 역할입니다.
    """
    CAREGIVER = "caregiver"
    TEACHER = "teacher"
    CHILD = "child"
    USER = "user"


# 가입 시 선택 가능한 역할 (USER는 제외)
REGISTERABLE_ROLES = (Role.CAREGIVER, Role.TEACHER, Role.CHILD)


class UserInDB(BaseModel):
    """
    MongoDB의 'users' 컬렉션에 저장되는 완전한 형태의 User 모델입니다.
    """
    # MongoDB의 고유 ID인 "_id"를 "id" 필드로 사용하기 위한 설정입니다.
    id: str = Field(..., alias="_id")

    email: Optional[str] = None
    name: Optional[str] = None
    google_id: Optional[str] = None

    # 가입(register) 전에는 role이 없을 수 있습니다.
    role: Optional[Role] = None

    # child/teacher가 연결된 caregiver
    caregiver_id: Optional[str] = None
    # caregiver에 연결된 child/teacher 목록
    childs: List[str] = Field(default_factory=list)
    teachers: List[str] = Field(default_factory=list)

    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    last_login_at: Optional[datetime] = None

    model_config = ConfigDict(
        populate_by_name=True,       # 'id'라는 이름으로 값을 넣어도 '_id' 필드에 할당 허용
        from_attributes=True,
        arbitrary_types_allowed=True
    )

    @field_validator("id", mode="before")
    @classmethod
    def coerce_object_id(cls, v):
        # ObjectId / string _id 혼재
        return str(v) if v is not None else v

    @field_validator("role", mode="before")
    @classmethod
    def unknown_role_to_none(cls, v):
        # 알 수 없는 role 문자열은 "역할 없음"으로 취급 (최소 권한 폴백)
        if v is None or isinstance(v, Role):
            return v
        try:
            return Role(v)
        except ValueError:
            return None
