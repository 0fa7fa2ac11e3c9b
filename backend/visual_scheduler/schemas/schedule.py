# backend/visual_scheduler/schemas/schedule.py

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


# 분:초 (예: "02:00", "10:30")
DURATION_PATTERN = r"^\d{1,3}:[0-5]\d$"

# PUT에서 null을 보내면 값을 지우는 필드
CLEARABLE_SCHEDULE_FIELDS = {"routine_type"}
CLEARABLE_STEP_FIELDS = {"color_tag", "voice_prompt", "audio_note"}


def _reject_blank(v, field_name: str):
    if v is None or not isinstance(v, str):
        return v
    stripped = v.strip()
    if stripped == "":
        raise ValueError(f"{field_name} must not be blank")
    return stripped


def _coerce_step_id(v):
    # 숫자 id는 문자열로 저장. 소수점 있는 값은 다른 id와 겹칠 수 있어 거부
    if isinstance(v, bool):
        return v
    if isinstance(v, float):
        if not v.is_integer():
            raise ValueError(f"step id must be a whole number or a string (got {v})")
        return str(int(v))
    if isinstance(v, int):
        return str(v)
    return v


def check_step_numbers(steps: List["Step"]) -> None:
    """
    step_number가 배열 순서대로 1..N 연속인지, step id가 서로 다른지 확인합니다.
    """
    seen = set()
    for step in steps:
        if step.id in seen:
            raise ValueError(f"duplicate step id: {step.id}")
        seen.add(step.id)

    for index, step in enumerate(steps, start=1):
        if step.step_number != index:
            raise ValueError(
                f"step_number must be contiguous 1..{len(steps)} in list order "
                f"(got {step.step_number} at position {index})"
            )


# --- Step (Schedule 문서에 포함되는 하위 문서) ---

class Step(BaseModel):
    """
    루틴의 한 단계. 별도 컬렉션이 아니라 schedule.steps 배열 안에 저장됩니다.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    # 클라이언트가 정하는 id (타임스탬프 기반 등). 숫자로 와도 문자열로 저장.
    id: str
    name: str
    icon: str = ""
    duration: str = Field("00:00", pattern=DURATION_PATTERN)
    step_number: int = Field(..., ge=1)
    notes: str = ""
    color_tag: Optional[str] = None
    voice_prompt: Optional[str] = None
    audio_note: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _reject_blank(_coerce_step_id(v), "id")

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _reject_blank(v, "name")


# --- API 요청(Request) 스키마 ---

class ScheduleCreate(BaseModel):
    """
    [요청] POST /schedules
    user_id / creator_role / caregiver_id 는 인증된 identity에서 채워지므로
    클라이언트가 보낼 필요가 없습니다.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str
    steps: List[Step] = Field(default_factory=list)
    is_published: bool = False
    routine_type: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _reject_blank(v, "name")

    @model_validator(mode="after")
    def validate_steps(self):
        check_step_numbers(self.steps)
        if self.is_published and not self.steps:
            raise ValueError("a published schedule needs at least one step")
        return self


class ScheduleUpdate(BaseModel):
    """
    [요청] PUT /schedules/{schedule_id}
    보낸 필드만 기존 문서에 merge 됩니다.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    steps: Optional[List[Step]] = None
    is_published: Optional[bool] = None
    routine_type: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _reject_blank(v, "name")

    @model_validator(mode="after")
    def validate_steps(self):
        if self.steps is not None:
            check_step_numbers(self.steps)
            if self.is_published and not self.steps:
                raise ValueError("a published schedule needs at least one step")
        return self

    def changed_fields(self) -> dict:
        """
        클라이언트가 실제로 보낸 필드만 DB 저장용 dict로 반환.
        None은 비울 수 있는 필드(routine_type)에서만 유지합니다.
        """
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k in CLEARABLE_SCHEDULE_FIELDS}


class StepCreate(BaseModel):
    """
    [요청] POST /schedules/{schedule_id}/steps
    step_number는 서버가 마지막 번호 + 1로 부여합니다.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    id: Optional[str] = None
    name: str
    icon: str = ""
    duration: str = Field("00:00", pattern=DURATION_PATTERN)
    notes: str = ""
    color_tag: Optional[str] = None
    voice_prompt: Optional[str] = None
    audio_note: Optional[str] = None

    @field_validator("id", mode="before")
    @classmethod
    def coerce_id(cls, v):
        return _coerce_step_id(v)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        return _reject_blank(v, "name")


class StepUpdate(BaseModel):
    """
    [요청] PUT /schedules/{schedule_id}/steps/{step_id}
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = None
    icon: Optional[str] = None
    duration: Optional[str] = Field(None, pattern=DURATION_PATTERN)
    notes: Optional[str] = None
    color_tag: Optional[str] = None
    voice_prompt: Optional[str] = None
    audio_note: Optional[str] = None

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        return _reject_blank(v, "name")

    def changed_fields(self) -> dict:
        data = self.model_dump(exclude_unset=True)
        return {k: v for k, v in data.items() if v is not None or k in CLEARABLE_STEP_FIELDS}


class StepMove(BaseModel):
    """
    [요청] POST /schedules/{schedule_id}/steps/{step_id}/move
    position은 1부터 시작하는 새 위치
    """
    position: int = Field(..., ge=1)


# --- API 응답(Response) 스키마 ---

class ScheduleRead(BaseModel):
    """
    [응답] 조회/생성/수정 성공 시 반환되는 스케줄.
    created_at / updated_at 은 항상 timezone-aware UTC 입니다.
    """
    id: str
    user_id: str
    name: str
    steps: List[Step] = Field(default_factory=list)
    is_published: bool = False
    routine_type: Optional[str] = None
    creator_role: str = "user"
    caregiver_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime

    model_config = {
        "from_attributes": True
    }


class CanEditRead(BaseModel):
    schedule_id: str
    can_edit: bool


class ScheduleStats(BaseModel):
    """
    [응답] GET /schedules/stats (진행 현황 화면)
    """
    published_count: int
    draft_count: int
    total_steps: int


class RoutineTemplate(BaseModel):
    title: str
    routine_type: str
    icon: str
    color: str
    steps: List[Step]


class DashboardCard(BaseModel):
    """
    [응답] GET /schedules/dashboard
    저장된 스케줄 카드 또는 아직 저장되지 않은 기본 루틴(template) 카드
    """
    id: str
    title: str
    icon: str
    color: str
    step_count: int
    is_template: bool = False
    is_draft: bool = False
    is_own: bool = False
    creator_role: Optional[str] = None
    schedule: Optional[ScheduleRead] = None
    template: Optional[RoutineTemplate] = None
