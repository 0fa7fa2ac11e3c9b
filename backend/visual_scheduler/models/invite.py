# 파일 위치: backend/visual_scheduler/models/invite.py
from pydantic import BaseModel, Field, ConfigDict
from datetime import datetime, timedelta, timezone
from typing import Optional


class InviteInDB(BaseModel):
    """
    MongoDB의 'invites' 컬렉션에 저장되는 초대 코드입니다.
    코드 문자열 자체가 _id(primary key)입니다.
    """
    code: str = Field(..., alias="_id")
    caregiver_id: str
    created_at: datetime
    used: bool = False
    used_by: Optional[str] = None
    used_at: Optional[datetime] = None

    model_config = ConfigDict(populate_by_name=True)

    def is_expired(self, ttl_hours: int, now: Optional[datetime] = None) -> bool:
        now = now or datetime.now(timezone.utc)
        created = self.created_at
        if created.tzinfo is None:
            created = created.replace(tzinfo=timezone.utc)
        return now - created > timedelta(hours=ttl_hours)
