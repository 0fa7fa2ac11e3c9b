# backend/visual_scheduler/api/endpoints/invites.py

from fastapi import APIRouter, Depends, HTTPException, status

from visual_scheduler.api.deps import get_current_identity
from visual_scheduler.crud import invites as invites_crud
from visual_scheduler.models.user import Role
from visual_scheduler.schemas.invite import InviteRead
from visual_scheduler.services.identity import Identity

router = APIRouter(prefix="/invites", tags=["Invites"])


@router.post("/", response_model=InviteRead, status_code=status.HTTP_201_CREATED)
async def create_invite(identity: Identity = Depends(get_current_identity)):
    """
    caregiver만 초대 코드를 만들 수 있습니다.
    """
    if identity.role != Role.CAREGIVER:
        raise HTTPException(status_code=403, detail="Only caregivers can create invites")

    invite = await invites_crud.create_invite(identity.user_id)
    return invites_crud.serialize_invite(invite)


@router.get("/{code}", response_model=InviteRead)
async def read_invite(code: str, identity: Identity = Depends(get_current_identity)):
    invite = await invites_crud.get_invite(code)
    # 다른 caregiver의 초대는 존재 여부도 노출하지 않음
    if invite is None or invite.caregiver_id != identity.user_id:
        raise HTTPException(status_code=404, detail="Invite not found")
    return invites_crud.serialize_invite(invite)
