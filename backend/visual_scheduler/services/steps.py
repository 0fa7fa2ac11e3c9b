# backend/visual_scheduler/services/steps.py
"""
스케줄 안의 step 목록 편집.

모든 함수는 새 리스트를 반환하고, 결과의 step_number는 항상
배열 순서대로 1..N 입니다.
"""

import time
from typing import List

from visual_scheduler.schemas.schedule import Step, StepCreate, StepUpdate


def renumber_steps(steps: List[Step]) -> List[Step]:
    return [
        step.model_copy(update={"step_number": index})
        for index, step in enumerate(steps, start=1)
    ]


def _index_of(steps: List[Step], step_id: str) -> int:
    for index, step in enumerate(steps):
        if step.id == step_id:
            return index
    raise KeyError(step_id)


def _new_step_id(steps: List[Step]) -> str:
    # 클라이언트처럼 타임스탬프(ms) 기반, 같은 ms에 여러 개면 +1
    candidate = int(time.time() * 1000)
    taken = {s.id for s in steps}
    while str(candidate) in taken:
        candidate += 1
    return str(candidate)


def add_step(steps: List[Step], data: StepCreate) -> List[Step]:
    step_id = data.id or _new_step_id(steps)
    if any(s.id == step_id for s in steps):
        raise ValueError(f"Step id already exists: {step_id}")

    new_step = Step(
        id=step_id,
        step_number=len(steps) + 1,
        **data.model_dump(exclude={"id"}),
    )
    return renumber_steps([*steps, new_step])


def update_step(steps: List[Step], step_id: str, data: StepUpdate) -> List[Step]:
    index = _index_of(steps, step_id)
    changes = data.changed_fields()
    updated = list(steps)
    updated[index] = Step(**{**steps[index].model_dump(), **changes})
    return updated


def remove_step(steps: List[Step], step_id: str) -> List[Step]:
    """
    step을 지우고 뒤의 step들을 앞으로 당겨 번호를 다시 매깁니다.
    """
    index = _index_of(steps, step_id)
    return renumber_steps(steps[:index] + steps[index + 1:])


def move_step(steps: List[Step], step_id: str, position: int) -> List[Step]:
    """
    position: 1부터 시작. 범위를 넘으면 맨 뒤로 보냅니다.
    """
    index = _index_of(steps, step_id)
    remaining = steps[:index] + steps[index + 1:]
    target = min(max(position, 1), len(steps)) - 1
    remaining.insert(target, steps[index])
    return renumber_steps(remaining)
