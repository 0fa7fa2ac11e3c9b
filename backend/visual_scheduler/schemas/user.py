# backend/visual_scheduler/schemas/user.py

from datetime import datetime
from typing import Optional, List

from pydantic import BaseModel, ConfigDict, Field, field_validator

from visual_scheduler.models.user import Role, REGISTERABLE_ROLES


# -------------------------
# 공백 방지 공통 유틸
# -------------------------
def _strip_and_reject_blank(v: str, field_name: str) -> str:
    """
    문자열 양쪽 공백 제거 후,
    빈 문자열이면 ValidationError 유발을 위해 ValueError 발생.
    """
    if v is None:
        return v
    if not isinstance(v, str):
        return v
    stripped = v.strip()
    if stripped == "":
        raise ValueError(f"{field_name} must not be blank")
    return stripped


def _strip_to_none(v):
    if v is None:
        return None
    if not isinstance(v, str):
        return v
    s = v.strip()
    return s or None


# ---------- 요청 스키마 ----------

class RegisterRequest(BaseModel):
    """
    [요청] POST /users/register
    로그인된 principal의 프로필(이름/역할)을 만들고,
    초대 코드가 있으면 caregiver와 연결합니다.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    role: Role
    invite_code: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _strip_and_reject_blank(v, "name")

    @field_validator("role")
    @classmethod
    def validate_role(cls, v: Role) -> Role:
        if v not in REGISTERABLE_ROLES:
            raise ValueError("role must be caregiver, teacher or child")
        return v

    @field_validator("invite_code", mode="before")
    @classmethod
    def validate_invite_code(cls, v):
        return _strip_to_none(v)


class TokenBody(BaseModel):
    token: str

    @field_validator("token")
    @classmethod
    def validate_token(cls, v: str) -> str:
        return _strip_and_reject_blank(v, "token")


# ---------- 응답 스키마 ----------

class UserRead(BaseModel):
    id: str
    email: Optional[str] = None
    name: Optional[str] = None
    role: Optional[Role] = None
    caregiver_id: Optional[str] = None
    childs: List[str] = Field(default_factory=list)
    teachers: List[str] = Field(default_factory=list)
    created_at: datetime
    last_login_at: Optional[datetime] = None

    model_config = {
        "from_attributes": True
    }


class IdentityRead(BaseModel):
    """
    [응답] GET /users/me/identity
    """
    user_id: str
    role: Role
    caregiver_id: Optional[str] = None
    teachers: List[str] = Field(default_factory=list)
    childs: List[str] = Field(default_factory=list)
    has_profile: bool


class TokenResponse(BaseModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"
