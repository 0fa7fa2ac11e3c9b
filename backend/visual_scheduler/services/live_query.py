# backend/visual_scheduler/services/live_query.py

import asyncio
from typing import Any, AsyncIterator, Dict, List, Optional

from visual_scheduler.core.config import settings
from visual_scheduler.crud.schedules import find_schedules, get_schedules_collection
from visual_scheduler.schemas.schedule import ScheduleRead


def change_pipeline(query: Dict[str, Any]) -> List[Dict[str, Any]]:
    """
    서버 쪽 $match: 다른 그룹의 insert는 stream에 싣지 않습니다.
    update / replace / delete는 필터 밖으로 나간 문서도 잡아야 해서 통과시키고
    is_relevant_change에서 한 번 더 거릅니다.
    """
    inserted_here = {f"fullDocument.{field}": value for field, value in query.items()}
    return [{
        "$match": {
            "$or": [
                {"operationType": "insert", **inserted_here},
                {"operationType": {"$in": ["update", "replace", "delete"]}},
            ]
        }
    }]


def is_relevant_change(change: Dict[str, Any], query: Dict[str, Any], known_ids) -> bool:
    """
    이 query의 결과가 바뀔 수 있는 이벤트인지.
    - 현재 결과에 있는 문서의 변경/삭제
    - 변경 후 문서가 필터에 맞는 경우 (새로 들어온 문서)
    """
    doc_id = (change.get("documentKey") or {}).get("_id")
    if doc_id is not None and str(doc_id) in known_ids:
        return True

    full = change.get("fullDocument")
    if not full:
        return False
    return all(full.get(field) == value for field, value in query.items())


class MongoScheduleQuery:
    """
    schedules 컬렉션에 대한 live query.
    필터 결과 전체(updated_at 내림차순)를 처음 한 번, 그리고 결과가 바뀔 때마다 내보냅니다.

    - change_stream: 이 query와 관련된 변경 이벤트마다 재조회 (replica set 필요)
    - poll: LIVE_QUERY_POLL_SECONDS 마다 재조회, 결과가 달라졌을 때만 내보냄
    """

    def __init__(
        self,
        key: str,
        query: Dict[str, Any],
        mode: Optional[str] = None,
        poll_seconds: Optional[float] = None,
    ):
        self.key = key
        self.query = query
        self.mode = mode or settings.LIVE_QUERY_MODE
        self.poll_seconds = poll_seconds if poll_seconds is not None else settings.LIVE_QUERY_POLL_SECONDS

    def __repr__(self):
        return f"MongoScheduleQuery({self.key!r}, {self.query!r})"

    async def fetch(self) -> List[ScheduleRead]:
        return await find_schedules(self.query)

    async def snapshots(self) -> AsyncIterator[List[ScheduleRead]]:
        if self.mode == "poll":
            async for rows in self._poll():
                yield rows
            return

        # 첫 조회 전에 stream을 열어야 그 사이의 변경을 놓치지 않습니다.
        watch = get_schedules_collection().watch(
            pipeline=change_pipeline(self.query),
            full_document="updateLookup",
        )
        async with watch as stream:
            rows = await self.fetch()
            known_ids = {r.id for r in rows}
            yield rows
            async for change in stream:
                if not is_relevant_change(change, self.query, known_ids):
                    continue
                rows = await self.fetch()
                known_ids = {r.id for r in rows}
                yield rows

    async def _poll(self) -> AsyncIterator[List[ScheduleRead]]:
        rows = await self.fetch()
        last = [r.model_dump_json() for r in rows]
        yield rows

        while True:
            await asyncio.sleep(self.poll_seconds)
            rows = await self.fetch()
            current = [r.model_dump_json() for r in rows]
            if current != last:
                last = current
                yield rows
