# backend/visual_scheduler/services/aggregator.py
"""
여러 live query 결과를 하나의 스케줄 목록으로 합칩니다.

- 각 source(본인 / caregiver 그룹 / 연결된 teacher)는 별도 task로 돌면서
  스냅샷을 queue에 넣고, 하나의 consumer task만 병합 상태를 수정합니다.
- 같은 id는 목록에 한 번만 나오며, 가장 최근에 받은 버전이 이깁니다.
- source의 최신 스냅샷에서 빠진 id는 그 source의 기여에서 제거됩니다.
- 목록은 항상 updated_at 내림차순입니다.
"""

import asyncio
import itertools
from typing import Callable, Dict, List, Optional, Tuple

from visual_scheduler.schemas.schedule import ScheduleRead
from visual_scheduler.services.identity import Identity, resolve_identity_or_default
from visual_scheduler.services.live_query import MongoScheduleQuery

Listener = Callable[[List[ScheduleRead]], None]
ErrorListener = Callable[[str, str], None]


def own_schedules_source(principal_id: str) -> MongoScheduleQuery:
    return MongoScheduleQuery(f"own:{principal_id}", {"user_id": principal_id})


def sources_for_identity(identity: Identity) -> List[MongoScheduleQuery]:
    """
    1. 항상: user_id == 본인
    2. caregiver 그룹이 본인과 다르면: caregiver_id == 그룹 id
    3. caregiver면: 연결된 teacher마다 user_id == teacher
    """
    sources = [own_schedules_source(identity.user_id)]

    group_id = identity.effective_caregiver_id
    if group_id != identity.user_id:
        sources.append(MongoScheduleQuery(f"caregiver:{group_id}", {"caregiver_id": group_id}))

    for teacher_id in identity.teachers:
        if teacher_id == identity.user_id:
            continue
        sources.append(MongoScheduleQuery(f"teacher:{teacher_id}", {"user_id": teacher_id}))

    return sources


async def build_schedule_sources(principal_id: Optional[str]) -> List[MongoScheduleQuery]:
    """
    principal이 없으면 source 없음 (빈 목록).
    identity 조회가 실패하면 본인 스케줄 query 하나로 동작합니다.
    """
    if not principal_id:
        return []

    try:
        identity = await resolve_identity_or_default(principal_id)
    except Exception as e:
        print(f"⚠️ Identity lookup failed for {principal_id}, using own schedules only: {e}")
        return [own_schedules_source(principal_id)]

    return sources_for_identity(identity)


class ScheduleAggregator:

    def __init__(self, sources):
        self._sources = list(sources)
        # source key -> {schedule id -> (sequence, schedule)}
        self._snapshots: Dict[str, Dict[str, Tuple[int, ScheduleRead]]] = {}
        self._sequence = itertools.count(1)
        self._schedules: List[ScheduleRead] = []
        self._errors: Dict[str, str] = {}
        self._listeners: List[Listener] = []
        self._error_listeners: List[ErrorListener] = []
        self._queue: Optional[asyncio.Queue] = None
        self._tasks: List[asyncio.Task] = []

    # ---------- 조회 ----------

    @property
    def schedules(self) -> List[ScheduleRead]:
        return list(self._schedules)

    @property
    def error(self) -> Optional[str]:
        """
        가장 최근 source 에러 메시지 (없으면 None)
        """
        if not self._errors:
            return None
        return list(self._errors.values())[-1]

    @property
    def loading(self) -> bool:
        # 모든 source가 첫 스냅샷(또는 에러)을 보내기 전까지 True
        reported = set(self._snapshots) | set(self._errors)
        return any(s.key not in reported for s in self._sources)

    def by_type(self, is_published: bool) -> List[ScheduleRead]:
        return [s for s in self._schedules if s.is_published == is_published]

    def published(self) -> List[ScheduleRead]:
        return self.by_type(True)

    def drafts(self) -> List[ScheduleRead]:
        return self.by_type(False)

    # ---------- 구독 ----------

    def subscribe(self, listener: Listener, on_error: Optional[ErrorListener] = None) -> Callable[[], None]:
        """
        listener(schedules): 병합 목록이 바뀔 때마다 호출
        on_error(source_key, message): source 구독이 실패했을 때 호출
        """
        self._listeners.append(listener)
        if on_error is not None:
            self._error_listeners.append(on_error)

        def unsubscribe():
            if listener in self._listeners:
                self._listeners.remove(listener)
            if on_error is not None and on_error in self._error_listeners:
                self._error_listeners.remove(on_error)

        return unsubscribe

    # ---------- 병합 ----------

    def apply_snapshot(self, source_key: str, rows: List[ScheduleRead]) -> List[ScheduleRead]:
        """
        source의 스냅샷을 반영하고 정렬된 목록을 다시 계산해 listener에게 알립니다.
        한 번의 호출 안에서 끝나므로 중간 상태가 밖으로 나가지 않습니다.
        """
        seq = next(self._sequence)
        self._snapshots[source_key] = {row.id: (seq, row) for row in rows}
        self._errors.pop(source_key, None)
        self._recompute()
        return self.schedules

    def apply_error(self, source_key: str, message: str) -> None:
        # 해당 source의 기여는 마지막 스냅샷 그대로 유지
        self._errors[source_key] = message
        print(f"⚠️ Schedule subscription '{source_key}' failed: {message}")
        for on_error in list(self._error_listeners):
            self._notify(on_error, source_key, message)

    def _recompute(self) -> None:
        merged: Dict[str, Tuple[int, ScheduleRead]] = {}
        for entries in self._snapshots.values():
            for schedule_id, entry in entries.items():
                current = merged.get(schedule_id)
                if current is None or entry[0] > current[0]:
                    merged[schedule_id] = entry

        self._schedules = sorted(
            (schedule for _, schedule in merged.values()),
            key=lambda s: s.updated_at,
            reverse=True,
        )
        for listener in list(self._listeners):
            self._notify(listener, self.schedules)

    @staticmethod
    def _notify(callback, *args) -> None:
        # listener 하나가 실패해도 consumer task와 다른 listener는 계속 동작
        try:
            callback(*args)
        except Exception as e:
            print(f"⚠️ Schedule listener {callback!r} failed: {e}")

    # ---------- 1회 조회 ----------

    async def refresh(self) -> List[ScheduleRead]:
        """
        모든 source를 한 번씩 조회해서 병합합니다. (구독 없음)
        실패한 source는 error에 기록됩니다.
        """
        for source in self._sources:
            try:
                rows = await source.fetch()
            except Exception as e:
                self.apply_error(source.key, str(e))
                continue
            self.apply_snapshot(source.key, rows)
        return self.schedules

    # ---------- live 구독 ----------

    async def start(self) -> None:
        if self._tasks:
            return
        self._queue = asyncio.Queue()
        self._tasks = [asyncio.create_task(self._pump(source)) for source in self._sources]
        self._tasks.append(asyncio.create_task(self._consume()))

    async def close(self) -> None:
        """
        모든 구독을 해제합니다. 화면(연결)이 닫힐 때 반드시 호출해야 합니다.
        """
        tasks, self._tasks = self._tasks, []
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        self._listeners.clear()
        self._error_listeners.clear()

    async def _pump(self, source) -> None:
        try:
            async for rows in source.snapshots():
                await self._queue.put(("snapshot", source.key, rows))
        except asyncio.CancelledError:
            raise
        except Exception as e:
            await self._queue.put(("error", source.key, str(e)))

    async def _consume(self) -> None:
        while True:
            kind, source_key, payload = await self._queue.get()
            if kind == "snapshot":
                self.apply_snapshot(source_key, payload)
            else:
                self.apply_error(source_key, payload)
