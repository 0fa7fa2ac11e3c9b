from datetime import datetime
from typing import Optional

from pydantic import BaseModel


class InviteRead(BaseModel):
    """
    [응답] POST /invites, GET /invites/{code}
    """
    code: str
    caregiver_id: str
    created_at: datetime
    used: bool
    expires_at: datetime
    used_by: Optional[str] = None
