# backend/visual_scheduler/api/endpoints/health.py

from fastapi import APIRouter

from visual_scheduler.db.mongo import get_db

router = APIRouter(tags=["Health"])


@router.get("/health")
async def health_check():
    """
    [운영] 헬스 체크
    - 서버 생존 여부 + Mongo 연결 여부 확인
    """
    mongo_ok = False
    mongo_error = None

    try:
        await get_db().command("ping")
        mongo_ok = True
    except Exception as e:
        mongo_error = str(e)

    return {
        "status": "ok" if mongo_ok else "degraded",
        "mongo": mongo_ok,
        "mongo_error": mongo_error,
    }
