# main.py
from contextlib import asynccontextmanager
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from visual_scheduler.api.endpoints import activities, auth, health, invites, live, schedules, tasks, users
from visual_scheduler.core.config import settings
from visual_scheduler.db.mongo import connect_to_mongo, close_mongo_connection
from dotenv import load_dotenv

load_dotenv()

if not settings.is_production:
    print(f"⚠️ Running in {settings.ENVIRONMENT} mode.")


# [수명 주기 관리] DB 연결 및 해제
@asynccontextmanager
async def lifespan(app: FastAPI):
    await connect_to_mongo()
    yield
    await close_mongo_connection()

app = FastAPI(title="Visual Scheduler Backend", lifespan=lifespan)

# CORS: 모바일 앱(Expo) 개발 서버 접근 허용
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def read_root():
    return {"message": "Backend is running!"}

app.include_router(health.router)
app.include_router(auth.router)
app.include_router(users.router)
app.include_router(invites.router)
# live(websocket)를 먼저 등록해서 /schedules/{schedule_id} 보다 우선
app.include_router(live.router)
app.include_router(schedules.router)
app.include_router(activities.router)
app.include_router(tasks.router)
