# backend/visual_scheduler/api/endpoints/live.py

import asyncio

from fastapi import APIRouter, Query, WebSocket, WebSocketDisconnect, status
from fastapi.encoders import jsonable_encoder

from visual_scheduler.core.security import decode_principal_id
from visual_scheduler.services.aggregator import ScheduleAggregator, build_schedule_sources

router = APIRouter(prefix="/schedules", tags=["Schedules (live)"])


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    # 클라이언트 메시지는 사용하지 않고, 연결 종료만 감지
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        return


@router.websocket("/live")
async def live_schedules(websocket: WebSocket, token: str = Query(...)):
    """
    [실시간] 보이는 스케줄 전체 목록을 병합 결과가 바뀔 때마다 전송합니다.
    - {"schedules": [...]}            : 병합 목록 (updated_at 내림차순)
    - {"error": "...", "source": "..."} : 특정 구독 실패 (나머지 목록은 유지)
    연결이 끊기면 모든 구독을 해제합니다.
    """
    user_id = decode_principal_id(token)
    if user_id is None:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    outbox: asyncio.Queue = asyncio.Queue()
    aggregator = ScheduleAggregator(await build_schedule_sources(user_id))
    unsubscribe = aggregator.subscribe(
        lambda schedules: outbox.put_nowait({"schedules": jsonable_encoder(schedules)}),
        on_error=lambda source, message: outbox.put_nowait({"error": message, "source": source}),
    )
    await aggregator.start()

    disconnected = asyncio.create_task(_wait_for_disconnect(websocket))
    try:
        while True:
            next_message = asyncio.create_task(outbox.get())
            done, _ = await asyncio.wait(
                {disconnected, next_message},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if disconnected in done:
                next_message.cancel()
                break
            await websocket.send_json(next_message.result())
    except WebSocketDisconnect:
        pass
    finally:
        unsubscribe()
        disconnected.cancel()
        await aggregator.close()
