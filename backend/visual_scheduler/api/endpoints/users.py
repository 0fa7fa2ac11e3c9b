# backend/visual_scheduler/api/endpoints/users.py

from fastapi import APIRouter, Depends, HTTPException, status

from visual_scheduler.api.deps import get_current_user_id, get_current_identity
from visual_scheduler.crud import users as users_crud
from visual_scheduler.schemas.user import IdentityRead, RegisterRequest, UserRead
from visual_scheduler.services.identity import Identity

router = APIRouter(prefix="/users", tags=["Users"])


def _to_user_read(user) -> UserRead:
    data = user.model_dump(by_alias=False)
    data["id"] = str(user.id)
    return UserRead(**data)


@router.get("/me", response_model=UserRead)
async def read_my_profile(
    user_id: str = Depends(get_current_user_id),
):
    user = await users_crud.get_user_by_id(user_id)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")

    return _to_user_read(user)


@router.get("/me/identity", response_model=IdentityRead)
async def read_my_identity(
    identity: Identity = Depends(get_current_identity),
):
    return IdentityRead(**identity.model_dump())


@router.post("/register", response_model=UserRead, status_code=status.HTTP_201_CREATED)
async def register(
    payload: RegisterRequest,
    user_id: str = Depends(get_current_user_id),
):
    """
    로그인된 principal의 역할을 확정합니다.
    child는 caregiver 초대 코드가 필요합니다.
    """
    user = await users_crud.register_user(
        user_id,
        name=payload.name,
        role=payload.role,
        invite_code=payload.invite_code,
    )
    return _to_user_read(user)
