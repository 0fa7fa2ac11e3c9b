# backend/visual_scheduler/db/mongo.py
from motor.motor_asyncio import AsyncIOMotorClient
from visual_scheduler.core.config import settings

client: AsyncIOMotorClient | None = None
db = None

async def connect_to_mongo():
    global client, db
    client = AsyncIOMotorClient(settings.MONGO_URI)
    db = client[settings.MONGO_DB_NAME]
    print("MongoDB Connected!")

async def close_mongo_connection():
    global client
    if client:
        client.close()
        print("MongoDB Connection Closed!")

def get_db():
    """
    connect_to_mongo() 이후 세팅된 DB 핸들을 반환합니다.
    테스트에서는 mongo.db를 직접 교체해서 사용합니다.
    """
    if db is None:
        raise RuntimeError("MongoDB is not connected")
    return db
