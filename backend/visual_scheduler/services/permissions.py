# backend/visual_scheduler/services/permissions.py

from visual_scheduler.models.user import Role
from visual_scheduler.schemas.schedule import ScheduleRead
from visual_scheduler.services.identity import Identity, resolve_identity_or_default


def can_edit_schedule(identity: Identity, schedule: ScheduleRead) -> bool:
    """
    principal이 스케줄을 수정/삭제할 수 있는지 판단합니다.
    규칙은 위에서부터 평가하고 처음 맞는 규칙이 결과가 됩니다.

    1. 작성자 본인 -> 허용
    2. caregiver -> 허용 (그룹 전체에 대한 관리 권한)
    3. teacher + caregiver가 만든 스케줄 -> 거부
    4. 그 외 -> 거부 (child, 역할 없는 user 포함)
    """
    if schedule.user_id == identity.user_id:
        return True

    role = identity.role
    if role == Role.CAREGIVER:
        return True
    if role == Role.TEACHER:
        # 규칙 3 (caregiver 작성) 과 규칙 4 (그 외) 모두 거부
        return False
    if role == Role.CHILD:
        return False
    if role == Role.USER:
        return False

    raise ValueError(f"Unhandled role: {role!r}")


def can_view_schedule(identity: Identity, schedule: ScheduleRead) -> bool:
    """
    집계 쿼리(본인 / caregiver 그룹 / 연결된 teacher)로 보이는 스케줄인지 판단합니다.
    """
    if schedule.user_id == identity.user_id:
        return True

    group_id = identity.effective_caregiver_id
    if group_id != identity.user_id and schedule.caregiver_id == group_id:
        return True

    if identity.role == Role.CAREGIVER and schedule.user_id in identity.teachers:
        return True

    return False


async def can_principal_edit(principal_id: str, schedule: ScheduleRead) -> bool:
    identity = await resolve_identity_or_default(principal_id)
    return can_edit_schedule(identity, schedule)
