# backend/visual_scheduler/services/identity.py

from typing import List, Optional

from pydantic import BaseModel, Field

from visual_scheduler.crud import users as users_crud
from visual_scheduler.models.user import Role, UserInDB


class Identity(BaseModel):
    """
    인증된 principal의 역할과 caregiver 연결 정보.
    스케줄 조회/권한/생성 로직은 모두 이 값을 명시적으로 전달받습니다.
    """
    user_id: str
    role: Role = Role.USER
    caregiver_id: Optional[str] = None
    teachers: List[str] = Field(default_factory=list)
    childs: List[str] = Field(default_factory=list)
    # users 문서가 있고 role까지 정해진 경우에만 True
    has_profile: bool = False

    @property
    def effective_caregiver_id(self) -> str:
        """
        이 principal이 속한 caregiver 그룹의 id.
        caregiver는 자기 자신, child/teacher는 연결된 caregiver.
        연결이 없으면 자기 자신.
        """
        if self.role == Role.CAREGIVER:
            return self.user_id
        return self.caregiver_id or self.user_id

    @classmethod
    def default_for(cls, principal_id: str) -> "Identity":
        """
        프로필이 없는 principal의 폴백: 최소 권한(USER), 연결 없음
        """
        return cls(user_id=principal_id)

    @classmethod
    def from_user(cls, user: UserInDB) -> "Identity":
        if user.role is None:
            return cls.default_for(user.id)
        return cls(
            user_id=user.id,
            role=user.role,
            caregiver_id=user.caregiver_id,
            teachers=list(user.teachers) if user.role == Role.CAREGIVER else [],
            childs=list(user.childs) if user.role == Role.CAREGIVER else [],
            has_profile=True,
        )


async def resolve_identity(principal_id: str) -> Optional[Identity]:
    """
    users 문서를 읽어 Identity를 만듭니다.
    - 문서가 없으면 None ("no profile")
    - DB 에러는 그대로 올라갑니다.
    """
    user = await users_crud.get_user_by_id(principal_id)
    if user is None:
        return None
    return Identity.from_user(user)


async def resolve_identity_or_default(principal_id: str) -> Identity:
    identity = await resolve_identity(principal_id)
    if identity is None:
        return Identity.default_for(principal_id)
    return identity
