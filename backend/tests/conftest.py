import pytest
from fastapi.testclient import TestClient
from mongomock_motor import AsyncMongoMockClient

from visual_scheduler.core.security import create_access_token
from visual_scheduler.db import mongo
from visual_scheduler.schemas.schedule import Step


@pytest.fixture
def db(monkeypatch):
    database = AsyncMongoMockClient()["visual_scheduler_test"]
    monkeypatch.setattr(mongo, "db", database)
    return database


@pytest.fixture
def client(db):
    from visual_scheduler.main import app
    # lifespan(실제 Mongo 연결)은 실행하지 않음
    return TestClient(app)


def auth_headers(user_id: str) -> dict:
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


def make_steps(*names):
    return [
        Step(id=str(n), name=name, icon="⭐", duration="02:00", step_number=n)
        for n, name in enumerate(names, start=1)
    ]


@pytest.fixture
async def family(db):
    """
    caregiver cg-1 에 teacher-1, child-1 이 연결된 가족 + 관계없는 caregiver cg-2
    """
    await db["users"].insert_many([
        {"_id": "cg-1", "name": "Carol", "role": "caregiver", "childs": ["child-1"], "teachers": ["teacher-1"]},
        {"_id": "teacher-1", "name": "Tom", "role": "teacher", "caregiver_id": "cg-1", "childs": [], "teachers": []},
        {"_id": "child-1", "name": "Kim", "role": "child", "caregiver_id": "cg-1", "childs": [], "teachers": []},
        {"_id": "cg-2", "name": "Dana", "role": "caregiver", "childs": [], "teachers": []},
    ])
    return db
