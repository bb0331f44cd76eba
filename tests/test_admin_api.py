import asyncio
from datetime import UTC, datetime, timedelta

import pytest
from httpx import ASGITransport, AsyncClient

from lurnex.app.integrations.zoom import get_meeting_provider
from lurnex.app.main import app
from lurnex.app.models.batch import BatchAssignment
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.ledger import HoursLedgerEntry
from tests.factories import (
    GatedMeetingProvider,
    auth_headers,
    login,
    make_admin,
    make_batch,
    make_session,
    make_student,
    make_trainer,
)


def _admin(db):
    return auth_headers(make_admin(db))


def test_create_student_with_initial_hours(client, db):
    headers = _admin(db)

    resp = client.post(
        "/admin/students/",
        json={"name": "Arjun", "email": "arjun@example.com", "hours_balance": 12},
        headers=headers,
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["hours_balance"] == 12.0
    assert data["status"] == "pending"
    history = client.get(f"/admin/students/{data['id']}/hours-history", headers=headers).json()
    assert [(entry["delta"], entry["note"]) for entry in history] == [(12.0, "Initial hours")]


def test_add_hours_records_ledger_entry(client, db):
    headers = _admin(db)
    student = make_student(db, "topup@example.com", hours="2")

    resp = client.patch(
        f"/admin/students/{student.id}/add-hours",
        json={"hours": 5.5, "date": "2030-01-05T00:00:00Z", "notes": "Package B"},
        headers=headers,
    )

    assert resp.status_code == 200
    assert resp.json()["hours_balance"] == 7.5
    entry = db.query(HoursLedgerEntry).one()
    assert entry.note == "Package B"
    assert float(entry.delta) == 5.5


def test_add_hours_rejects_non_positive(client, db):
    headers = _admin(db)
    student = make_student(db, "topup@example.com", hours="2")

    resp = client.patch(
        f"/admin/students/{student.id}/add-hours",
        json={"hours": 0, "date": "2030-01-05T00:00:00Z"},
        headers=headers,
    )

    assert resp.status_code == 422


def test_balance_edit_becomes_ledger_correction(client, db):
    headers = _admin(db)
    student = make_student(db, "fix@example.com", hours="10")

    resp = client.patch(f"/admin/students/{student.id}", json={"hours_balance": 7.25, "grade": "12"}, headers=headers)

    assert resp.status_code == 200
    assert resp.json()["hours_balance"] == 7.25
    assert resp.json()["grade"] == "12"
    assert float(db.query(HoursLedgerEntry).one().delta) == -2.75


def test_transfer_between_batch_and_one_on_one(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)
    batch = make_batch(db, "Batch A", trainer)
    student = make_student(db, "move@example.com")

    resp = client.patch(f"/admin/students/{student.id}/transfer", json={"batch_id": batch.id}, headers=headers)
    assert resp.json()["batch_id"] == batch.id
    assert resp.json()["is_one_on_one"] is False

    resp = client.patch(f"/admin/students/{student.id}/transfer", json={"is_one_on_one": True}, headers=headers)
    assert resp.json()["batch_id"] is None
    assert resp.json()["is_one_on_one"] is True

    resp = client.patch(
        f"/admin/students/{student.id}/transfer", json={"batch_id": batch.id, "is_one_on_one": True}, headers=headers
    )
    assert resp.status_code == 400


def test_password_reset_and_history(client, db):
    headers = _admin(db)
    student = make_student(db, "reset@example.com")

    for index in range(6):
        resp = client.patch(
            f"/admin/students/{student.id}/password",
            json={"new_password": f"newpass{index}", "is_temporary": index % 2 == 0},
            headers=headers,
        )
        assert resp.status_code == 200

    assert login(client, "reset@example.com", "newpass5").status_code == 200
    history = client.get(f"/admin/students/{student.id}/password-history", headers=headers).json()
    assert history["student"]["id"] == student.id
    assert len(history["history"]) == 5
    assert all(item["password_hash_preview"].endswith("...") for item in history["history"])


def test_unknown_student_is_404(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)

    assert client.get("/admin/students/999", headers=headers).status_code == 404
    assert client.get(f"/admin/students/{trainer.id}", headers=headers).status_code == 404


def test_trainer_crud(client, db):
    headers = _admin(db)

    resp = client.post(
        "/admin/trainers/",
        json={"name": "Meera", "email": "meera@example.com", "password": "teachpass", "subject": "Physics"},
        headers=headers,
    )
    assert resp.status_code == 201
    trainer_id = resp.json()["id"]
    assert resp.json()["hours_taught"] == 0.0
    assert login(client, "meera@example.com", "teachpass").status_code == 200

    resp = client.put(f"/admin/trainers/{trainer_id}", json={"subject": "Chemistry"}, headers=headers)
    assert resp.json()["subject"] == "Chemistry"

    dup = client.post("/admin/trainers/", json={"name": "M2", "email": "meera@example.com"}, headers=headers)
    assert dup.status_code == 409
    assert [item["id"] for item in client.get("/admin/trainers/", headers=headers).json()] == [trainer_id]


def test_delete_trainer_removes_their_classes(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)
    keeper = make_trainer(db, "keeper@example.com")
    batch = make_batch(db, "Batch B", trainer)
    start = datetime(2030, 1, 7, 10, 0, tzinfo=UTC)
    make_session(db, trainer, start, start + timedelta(hours=1), batch=batch)
    kept = make_session(db, keeper, start, start + timedelta(hours=1), batch=batch)

    resp = client.delete(f"/admin/trainers/{trainer.id}", headers=headers)

    assert resp.status_code == 200
    assert [row.id for row in db.query(ClassSession.id)] == [kept.id]
    assert db.query(BatchAssignment).count() == 0
    assert client.delete(f"/admin/trainers/{trainer.id}", headers=headers).status_code == 404


def test_batch_create_update_and_duplicate(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)
    payload = {"name": "Batch C", "assignments": [{"subject": "Maths", "trainer_id": trainer.id, "timing": "Mon 7 PM"}]}

    resp = client.post("/admin/batches/", json=payload, headers=headers)
    assert resp.status_code == 201
    batch_id = resp.json()["id"]
    assert resp.json()["course"] == "General"

    assert client.post("/admin/batches/", json=payload, headers=headers).status_code == 409
    missing_trainer = {"name": "Batch D", "assignments": [{"subject": "Maths", "trainer_id": 999, "timing": "x"}]}
    assert client.post("/admin/batches/", json=missing_trainer, headers=headers).status_code == 404
    assert client.post("/admin/batches/", json={"name": "Empty", "assignments": []}, headers=headers).status_code == 422

    student = make_student(db, "member@example.com", batch_id=batch_id)
    resp = client.patch(f"/admin/batches/{batch_id}", json={"name": "Batch C2", "is_active": False}, headers=headers)
    assert resp.status_code == 200
    assert resp.json()["name"] == "Batch C2"
    assert resp.json()["is_active"] is False
    assert resp.json()["student_ids"] == [student.id]


def test_schedule_single_class_via_api(client, db, provider):
    headers = _admin(db)
    trainer = make_trainer(db)
    student = make_student(db, "learner@example.com")

    resp = client.post(
        "/admin/classes/",
        json={
            "title": "Geometry",
            "trainer_id": trainer.id,
            "start_time": "2030-01-07T10:00:00Z",
            "end_time": "2030-01-07T11:00:00Z",
            "student_ids": [student.id],
        },
        headers=headers,
    )

    assert resp.status_code == 201
    data = resp.json()
    assert data["status"] == "scheduled"
    assert data["student_ids"] == [student.id]
    assert data["join_url"] == "https://zoom.test/j/0"
    assert len(provider.calls) == 1


def test_schedule_bulk_via_api(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)
    batch = make_batch(db, "Batch E", trainer)
    make_student(db, "e1@example.com", batch_id=batch.id)

    resp = client.post(
        "/admin/classes/bulk",
        json={
            "title": "Algebra",
            "trainer_id": trainer.id,
            "start_time": "2030-01-07T10:00:00Z",
            "end_time": "2030-01-07T11:00:00Z",
            "batch_id": batch.id,
            "recurrence": {"enabled": True, "frequency": "weekly", "weekdays": [1], "end_type": "count", "count": 3},
        },
        headers=headers,
    )

    assert resp.status_code == 201
    assert resp.json()["count"] == 3
    assert [item["batch_id"] for item in resp.json()["classes"]] == [batch.id] * 3
    assert len(client.get("/admin/classes/", headers=headers).json()) == 3


def test_schedule_bulk_empty_recurrence_is_400(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")

    resp = client.post(
        "/admin/classes/bulk",
        json={
            "title": "Algebra",
            "trainer_id": trainer.id,
            "start_time": "2030-01-07T10:00:00Z",
            "end_time": "2030-01-07T11:00:00Z",
            "student_ids": [student.id],
            "recurrence": {"enabled": True, "frequency": "daily", "end_type": "date", "until": "2030-01-01T00:00:00Z"},
        },
        headers=headers,
    )

    assert resp.status_code == 400


def test_schedule_bulk_partial_failure_body(client, db, provider):
    headers = _admin(db)
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    provider.fail_at = {1}

    resp = client.post(
        "/admin/classes/bulk",
        json={
            "title": "Algebra",
            "trainer_id": trainer.id,
            "start_time": "2030-01-07T10:00:00Z",
            "end_time": "2030-01-07T11:00:00Z",
            "student_ids": [student.id],
            "recurrence": {"enabled": True, "frequency": "daily", "end_type": "count", "count": 3},
        },
        headers=headers,
    )

    assert resp.status_code == 500
    body = resp.json()
    assert body["failed_index"] == 1
    assert len(body["created_ids"]) == 1
    assert db.query(ClassSession).count() == 1


def test_schedule_provider_failure_is_502(client, db, provider):
    headers = _admin(db)
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    provider.fail_at = {0}

    resp = client.post(
        "/admin/classes/",
        json={
            "title": "Algebra",
            "trainer_id": trainer.id,
            "start_time": "2030-01-07T10:00:00Z",
            "end_time": "2030-01-07T11:00:00Z",
            "student_ids": [student.id],
        },
        headers=headers,
    )

    assert resp.status_code == 502
    assert db.query(ClassSession).count() == 0


def test_recording_and_live_classes(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)
    now = datetime.now(UTC)
    live = make_session(db, trainer, now - timedelta(minutes=10), now + timedelta(minutes=50))
    make_session(db, trainer, now + timedelta(days=1), now + timedelta(days=1, hours=1))

    resp = client.patch(
        f"/admin/classes/{live.id}/recording", json={"recording_url": "https://rec.test/1"}, headers=headers
    )
    assert resp.json()["recording_url"] == "https://rec.test/1"
    assert [item["id"] for item in client.get("/admin/classes/live", headers=headers).json()] == [live.id]
    assert client.get("/admin/stats", headers=headers).json()["live_classes"] == 1
    assert client.patch(
        "/admin/classes/999/recording", json={"recording_url": "x"}, headers=headers
    ).status_code == 404


@pytest.mark.asyncio
async def test_bulk_scheduling_leaves_server_responsive(db):
    headers = _admin(db)
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    provider = GatedMeetingProvider()
    app.dependency_overrides[get_meeting_provider] = lambda: provider
    payload = {
        "title": "Algebra",
        "trainer_id": trainer.id,
        "start_time": "2030-01-07T10:00:00Z",
        "end_time": "2030-01-07T11:00:00Z",
        "student_ids": [student.id],
        "recurrence": {"enabled": True, "frequency": "daily", "end_type": "count", "count": 2},
    }
    try:
        async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as http:
            bulk = asyncio.create_task(http.post("/admin/classes/bulk", json=payload, headers=headers))
            assert await asyncio.to_thread(provider.entered.wait, 5)
            health = await http.get("/health")
            provider.release.set()
            bulk_response = await bulk
    finally:
        app.dependency_overrides.pop(get_meeting_provider, None)

    assert health.status_code == 200
    assert bulk_response.status_code == 201
    assert provider.released_in_time == [True, True]


def test_balance_edit_may_go_negative(client, db):
    headers = _admin(db)
    student = make_student(db, "owing@example.com", hours="1")

    resp = client.patch(f"/admin/students/{student.id}", json={"hours_balance": -2.5}, headers=headers)

    assert resp.status_code == 200
    assert resp.json()["hours_balance"] == -2.5
    assert float(db.query(HoursLedgerEntry).one().delta) == -3.5


def test_trainer_teaching_history(client, db):
    headers = _admin(db)
    trainer = make_trainer(db)
    student = make_student(db, "taught@example.com", hours="4")
    start = datetime.now(UTC) - timedelta(hours=3)
    session_obj = make_session(db, trainer, start, start + timedelta(minutes=90), student_ids=[student.id])
    client.patch(f"/mis/class/{session_obj.id}/complete", json={}, headers=headers)

    resp = client.get(f"/admin/trainers/{trainer.id}/teaching-history", headers=headers)

    assert resp.status_code == 200
    assert [(entry["delta"], entry["session_id"]) for entry in resp.json()] == [(1.5, session_obj.id)]
    assert client.get(f"/admin/trainers/{student.id}/teaching-history", headers=headers).status_code == 404
