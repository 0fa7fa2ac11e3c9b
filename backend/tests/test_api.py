import pytest

from visual_scheduler.core.config import settings

from conftest import auth_headers

CAREGIVER = auth_headers("cg-1")
TEACHER = auth_headers("teacher-1")
CHILD = auth_headers("child-1")

STEPS = [
    {"id": 1, "name": "Wake up", "icon": "☀️", "duration": "02:00", "step_number": 1},
    {"id": 2, "name": "Brush teeth", "icon": "🦷", "duration": "03:00", "step_number": 2,
     "voice_prompt": "Time to brush your teeth", "color_tag": "blue"},
]


@pytest.fixture
def linked_family(client):
    """
    caregiver 가입 -> 초대 코드 2개 발급 -> teacher / child 가 코드로 가입
    """
    r = client.post("/users/register", json={"name": "Carol", "role": "caregiver"}, headers=CAREGIVER)
    assert r.status_code == 201, r.text

    for headers, name, role in ((TEACHER, "Tom", "teacher"), (CHILD, "Kim", "child")):
        invite = client.post("/invites/", headers=CAREGIVER)
        assert invite.status_code == 201, invite.text
        r = client.post(
            "/users/register",
            json={"name": name, "role": role, "invite_code": invite.json()["code"]},
            headers=headers,
        )
        assert r.status_code == 201, r.text
    return client


def test_requests_without_token_are_rejected(client):
    assert client.get("/schedules/").status_code == 401
    assert client.post("/schedules/", json={"name": "x"}).status_code == 401
    assert client.get("/schedules/", headers={"Authorization": "Bearer garbage"}).status_code == 401


def test_registration_links_family(linked_family):
    me = linked_family.get("/users/me", headers=CAREGIVER).json()
    assert me["role"] == "caregiver"
    assert me["teachers"] == ["teacher-1"]
    assert me["childs"] == ["child-1"]

    identity = linked_family.get("/users/me/identity", headers=TEACHER).json()
    assert identity == {
        "user_id": "teacher-1",
        "role": "teacher",
        "caregiver_id": "cg-1",
        "teachers": [],
        "childs": [],
        "has_profile": True,
    }


def test_child_registration_requires_invite(client):
    r = client.post("/users/register", json={"name": "Kim", "role": "child"}, headers=CHILD)
    assert r.status_code == 400


def test_invite_is_single_use(client):
    client.post("/users/register", json={"name": "Carol", "role": "caregiver"}, headers=CAREGIVER)
    code = client.post("/invites/", headers=CAREGIVER).json()["code"]

    first = client.post("/users/register", json={"name": "Kim", "role": "child", "invite_code": code}, headers=CHILD)
    second = client.post(
        "/users/register",
        json={"name": "Lee", "role": "child", "invite_code": code},
        headers=auth_headers("child-2"),
    )
    assert first.status_code == 201
    assert second.status_code == 400
    assert client.get(f"/invites/{code}", headers=CAREGIVER).json()["used"] is True


def test_expired_invite_is_rejected(client, monkeypatch):
    client.post("/users/register", json={"name": "Carol", "role": "caregiver"}, headers=CAREGIVER)
    code = client.post("/invites/", headers=CAREGIVER).json()["code"]
    # TTL 0 시간 -> 발급 직후부터 만료
    monkeypatch.setattr(settings, "INVITE_TTL_HOURS", 0)

    r = client.post("/users/register", json={"name": "Kim", "role": "child", "invite_code": code}, headers=CHILD)
    assert r.status_code == 400
    assert "expired" in r.json()["detail"]


def test_only_caregivers_create_invites(linked_family):
    assert linked_family.post("/invites/", headers=TEACHER).status_code == 403


def test_cannot_register_twice(linked_family):
    r = linked_family.post("/users/register", json={"name": "Carol", "role": "teacher"}, headers=CAREGIVER)
    assert r.status_code == 409


def test_caregiver_teacher_end_to_end(linked_family):
    client = linked_family

    # 1. caregiver가 draft 생성
    r = client.post(
        "/schedules/",
        json={"name": "Morning", "steps": STEPS, "is_published": False, "routine_type": "Morning Routine"},
        headers=CAREGIVER,
    )
    assert r.status_code == 201, r.text
    schedule = r.json()
    schedule_id = schedule["id"]
    assert schedule["is_published"] is False
    assert schedule["creator_role"] == "caregiver"
    assert [s["id"] for s in schedule["steps"]] == ["1", "2"]
    assert [s["id"] for s in client.get("/schedules/drafts", headers=CAREGIVER).json()] == [schedule_id]

    # 2. publish
    r = client.put(f"/schedules/{schedule_id}", json={"is_published": True}, headers=CAREGIVER)
    assert r.status_code == 200
    assert r.json()["is_published"] is True
    assert schedule_id in [s["id"] for s in client.get("/schedules/published", headers=CAREGIVER).json()]

    # 3. teacher는 볼 수 있지만 수정할 수 없음
    assert schedule_id in [s["id"] for s in client.get("/schedules/", headers=TEACHER).json()]
    assert client.get(f"/schedules/{schedule_id}/can-edit", headers=TEACHER).json()["can_edit"] is False
    assert client.get(f"/schedules/{schedule_id}/can-edit", headers=CAREGIVER).json()["can_edit"] is True
    assert client.put(f"/schedules/{schedule_id}", json={"name": "Hijack"}, headers=TEACHER).status_code == 403
    assert client.delete(f"/schedules/{schedule_id}", headers=CHILD).status_code == 403

    # 4. caregiver가 삭제 -> 둘 다 not found
    assert client.delete(f"/schedules/{schedule_id}", headers=CAREGIVER).status_code == 204
    assert client.get(f"/schedules/{schedule_id}", headers=CAREGIVER).status_code == 404
    assert client.get(f"/schedules/{schedule_id}", headers=TEACHER).status_code == 404


def test_caregiver_sees_and_edits_teacher_schedules(linked_family):
    client = linked_family
    created = client.post("/schedules/", json={"name": "Class", "steps": STEPS}, headers=TEACHER).json()
    assert created["caregiver_id"] == "cg-1"

    listed = client.get("/schedules/", headers=CAREGIVER).json()
    assert [s["id"] for s in listed] == [created["id"]]

    r = client.put(f"/schedules/{created['id']}", json={"name": "Class 2"}, headers=CAREGIVER)
    assert r.status_code == 200
    assert r.json()["name"] == "Class 2"


def test_outsider_cannot_see_family_schedules(linked_family):
    client = linked_family
    client.post("/users/register", json={"name": "Dana", "role": "caregiver"}, headers=auth_headers("cg-2"))
    created = client.post("/schedules/", json={"name": "Morning"}, headers=CAREGIVER).json()

    outsider = auth_headers("cg-2")
    assert client.get("/schedules/", headers=outsider).json() == []
    assert client.get(f"/schedules/{created['id']}", headers=outsider).status_code == 404
    assert client.delete(f"/schedules/{created['id']}", headers=outsider).status_code == 404


def test_list_is_sorted_by_updated_at(linked_family):
    client = linked_family
    first = client.post("/schedules/", json={"name": "First"}, headers=CAREGIVER).json()
    second = client.post("/schedules/", json={"name": "Second"}, headers=TEACHER).json()
    client.put(f"/schedules/{first['id']}", json={"name": "First (edited)"}, headers=CAREGIVER)

    names = [s["name"] for s in client.get("/schedules/", headers=CAREGIVER).json()]
    assert names == ["First (edited)", "Second"]
    assert second["id"] in [s["id"] for s in client.get("/schedules/", headers=TEACHER).json()]


def test_invalid_schedule_id_is_bad_request(linked_family):
    assert linked_family.get("/schedules/not-an-id", headers=CAREGIVER).status_code == 400
    assert linked_family.delete("/schedules/not-an-id", headers=CAREGIVER).status_code == 400


def test_step_endpoints_keep_numbering(linked_family):
    client = linked_family
    schedule = client.post("/schedules/", json={"name": "Morning", "steps": STEPS}, headers=CAREGIVER).json()
    sid = schedule["id"]

    r = client.post(f"/schedules/{sid}/steps", json={"id": "3", "name": "Get dressed", "duration": "05:00"}, headers=CAREGIVER)
    assert r.status_code == 201
    assert [s["step_number"] for s in r.json()["steps"]] == [1, 2, 3]

    r = client.delete(f"/schedules/{sid}/steps/1", headers=CAREGIVER)
    assert [(s["id"], s["step_number"]) for s in r.json()["steps"]] == [("2", 1), ("3", 2)]

    r = client.post(f"/schedules/{sid}/steps/3/move", json={"position": 1}, headers=CAREGIVER)
    assert [(s["id"], s["step_number"]) for s in r.json()["steps"]] == [("3", 1), ("2", 2)]

    r = client.put(f"/schedules/{sid}/steps/2", json={"notes": "use the blue brush"}, headers=CAREGIVER)
    assert r.json()["steps"][1]["notes"] == "use the blue brush"

    assert client.delete(f"/schedules/{sid}/steps/missing", headers=CAREGIVER).status_code == 404
    assert client.post(f"/schedules/{sid}/steps", json={"name": "x"}, headers=TEACHER).status_code == 403


def test_non_contiguous_steps_are_rejected(linked_family):
    bad = [dict(STEPS[0]), dict(STEPS[1], step_number=5)]
    r = linked_family.post("/schedules/", json={"name": "Morning", "steps": bad}, headers=CAREGIVER)
    assert r.status_code == 422


def test_dashboard_hides_templates_with_saved_equivalent(linked_family):
    client = linked_family
    client.post(
        "/schedules/",
        json={"name": "Our mornings", "steps": STEPS, "is_published": True, "routine_type": "Morning Routine"},
        headers=CAREGIVER,
    )

    cards = client.get("/schedules/dashboard", headers=CAREGIVER).json()
    titles = [c["title"] for c in cards]
    assert titles == ["Our mornings", "Afternoon Routine", "Evening Routine", "Bedtime"]
    assert cards[0]["icon"] == "☀️"
    assert cards[0]["is_own"] is True
    assert all(c["is_template"] for c in cards[1:])

    stats = client.get("/schedules/stats", headers=CAREGIVER).json()
    assert stats == {"published_count": 1, "draft_count": 0, "total_steps": 2}

    templates = client.get("/schedules/templates").json()
    assert [t["title"] for t in templates] == ["Morning Routine", "Afternoon Routine", "Evening Routine", "Bedtime"]


def test_recent_activities(client):
    user = auth_headers("cg-1")
    r = client.post("/activities/timer", json={"duration": 125, "action": "completed"}, headers=user)
    assert r.status_code == 201
    assert r.json()["title"] == "Timer completed (2:05)"
    assert r.json()["icon"] == "✅"

    client.post("/activities/", json={"type": "routine", "title": "Morning Routine finished", "icon": "✅"}, headers=user)

    listed = client.get("/activities/", headers=user).json()
    assert sorted(a["type"] for a in listed) == ["routine", "timer"]
    assert client.get("/activities/", headers=auth_headers("someone-else")).json() == []


def test_tasks_are_private_to_owner(client):
    owner = auth_headers("child-1")
    task = client.post("/tasks/", json={"title": "Feed the cat"}, headers=owner).json()
    assert task["done"] is False

    r = client.put(f"/tasks/{task['id']}", json={"done": True}, headers=owner)
    assert r.json()["done"] is True

    assert client.get(f"/tasks/{task['id']}", headers=auth_headers("child-2")).status_code == 404
    assert client.delete(f"/tasks/{task['id']}", headers=owner).status_code == 204
    assert client.get("/tasks/", headers=owner).json() == []


def test_duplicate_or_fractional_step_ids_are_rejected(linked_family):
    client = linked_family
    duplicated = [dict(STEPS[0], id="1"), dict(STEPS[1], id="1")]
    r = client.post("/schedules/", json={"name": "Morning", "steps": duplicated}, headers=CAREGIVER)
    assert r.status_code == 422

    fractional = [dict(STEPS[0], id=1.2), dict(STEPS[1], id=1.9)]
    r = client.post("/schedules/", json={"name": "Morning", "steps": fractional}, headers=CAREGIVER)
    assert r.status_code == 422

    created = client.post("/schedules/", json={"name": "Morning", "steps": STEPS}, headers=CAREGIVER).json()
    r = client.put(f"/schedules/{created['id']}", json={"steps": duplicated}, headers=CAREGIVER)
    assert r.status_code == 422
    assert [s["id"] for s in client.get(f"/schedules/{created['id']}", headers=CAREGIVER).json()["steps"]] == ["1", "2"]


def test_optional_fields_can_be_cleared_with_null(linked_family):
    client = linked_family
    created = client.post(
        "/schedules/",
        json={"name": "Morning", "steps": STEPS, "routine_type": "Morning Routine"},
        headers=CAREGIVER,
    ).json()
    sid = created["id"]

    r = client.put(f"/schedules/{sid}", json={"routine_type": None}, headers=CAREGIVER)
    assert r.status_code == 200
    assert r.json()["routine_type"] is None
    assert r.json()["name"] == "Morning"

    r = client.put(f"/schedules/{sid}/steps/2", json={"voice_prompt": None}, headers=CAREGIVER)
    assert r.json()["steps"][1]["voice_prompt"] is None
    assert r.json()["steps"][1]["color_tag"] == "blue"
