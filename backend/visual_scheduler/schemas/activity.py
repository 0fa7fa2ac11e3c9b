# backend/visual_scheduler/schemas/activity.py

from datetime import datetime
from typing import Any, Dict, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ActivityCreate(BaseModel):
    """
    [요청] POST /activities
    user_id와 timestamp는 서버가 채웁니다.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    type: str
    title: str
    icon: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("type", "title")
    @classmethod
    def reject_blank(cls, v: str) -> str:
        if v == "":
            raise ValueError("must not be blank")
        return v


class TimerActivityCreate(BaseModel):
    """
    [요청] POST /activities/timer
    duration은 초 단위
    """
    duration: int = Field(..., ge=0)
    action: Literal["started", "added", "completed"] = "started"


class ActivityRead(BaseModel):
    id: str
    user_id: str
    type: str
    title: str
    icon: str = ""
    payload: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime
