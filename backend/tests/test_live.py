import pytest
from starlette.websockets import WebSocketDisconnect

from visual_scheduler.core.config import settings
from visual_scheduler.core.security import create_access_token
from visual_scheduler.services.live_query import change_pipeline, is_relevant_change

from conftest import auth_headers


@pytest.fixture
def poll_mode(monkeypatch):
    # mongomock은 change stream을 지원하지 않으므로 poll 모드로 테스트
    monkeypatch.setattr(settings, "LIVE_QUERY_MODE", "poll")
    monkeypatch.setattr(settings, "LIVE_QUERY_POLL_SECONDS", 0.05)


def test_live_rejects_invalid_token(client, poll_mode):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/schedules/live?token=garbage") as ws:
            ws.receive_json()


def test_live_pushes_merged_list_on_change(client, poll_mode):
    token = create_access_token("cg-1")

    with client.websocket_connect(f"/schedules/live?token={token}") as ws:
        assert ws.receive_json() == {"schedules": []}

        created = client.post("/schedules/", json={"name": "Morning"}, headers=auth_headers("cg-1")).json()

        message = ws.receive_json()
        assert [s["id"] for s in message["schedules"]] == [created["id"]]
        assert message["schedules"][0]["name"] == "Morning"


def test_change_filter_skips_other_groups():
    query = {"caregiver_id": "cg-1"}
    known = {"s1"}

    assert is_relevant_change({"operationType": "delete", "documentKey": {"_id": "s1"}}, query, known)
    assert not is_relevant_change({"operationType": "delete", "documentKey": {"_id": "s9"}}, query, known)
    # 필터에 새로 들어온 문서
    assert is_relevant_change(
        {"operationType": "update", "documentKey": {"_id": "s2"}, "fullDocument": {"caregiver_id": "cg-1"}},
        query,
        known,
    )
    assert not is_relevant_change(
        {"operationType": "update", "documentKey": {"_id": "s3"}, "fullDocument": {"caregiver_id": "cg-2"}},
        query,
        known,
    )


def test_change_pipeline_matches_inserts_by_query():
    [stage] = change_pipeline({"user_id": "teacher-1"})
    inserts, others = stage["$match"]["$or"]
    assert inserts == {"operationType": "insert", "fullDocument.user_id": "teacher-1"}
    assert others == {"operationType": {"$in": ["update", "replace", "delete"]}}
