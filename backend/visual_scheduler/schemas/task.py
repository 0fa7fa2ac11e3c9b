# 파일 위치: backend/visual_scheduler/schemas/task.py

from pydantic import BaseModel
from datetime import datetime
from typing import Optional

# --- API 요청(Request) 스키마 ---
class TaskCreate(BaseModel):
    """
    [요청] POST /tasks
    아이 모드에서 사용하는 간단한 할 일입니다.
    user_id는 인증 토큰에서 가져오므로 클라이언트가 보낼 필요가 없습니다.
    """
    title: str
    done: bool = False

class TaskUpdate(BaseModel):
    """
    [요청] PUT /tasks/{task_id}
    모든 필드는 선택 사항(Optional)입니다.
    """
    title: Optional[str] = None
    done: Optional[bool] = None

# --- API 응답(Response) 스키마 ---
class TaskRead(BaseModel):
    id: str
    user_id: str
    title: str
    done: bool
    created_at: datetime
