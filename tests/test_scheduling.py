from datetime import UTC, datetime, timedelta, timezone

import pytest

from lurnex.app.core.errors import (
    ExternalServiceError,
    InvalidRecurrence,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.ledger import HoursLedgerEntry, TeachingLedgerEntry
from lurnex.app.models.links import BatchSessionLink, Enrollment
from lurnex.app.services import ledger, roster, scheduling
from lurnex.app.services.recurrence import RecurrenceRule
from tests.factories import FakeMeetingProvider, make_batch, make_session, make_student, make_trainer

START = datetime(2030, 1, 7, 10, 0, tzinfo=UTC)
END = START + timedelta(hours=1)


def test_schedule_single_for_explicit_students(db):
    trainer = make_trainer(db)
    first = make_student(db, "a@example.com")
    second = make_student(db, "b@example.com")
    provider = FakeMeetingProvider()

    session_obj = scheduling.schedule_single(
        db, provider, "  Physics ", trainer.id, START, END, student_ids=[second.id, first.id]
    )

    assert session_obj.title == "Physics"
    assert session_obj.join_url == "https://zoom.test/j/0"
    assert sorted(session_obj.student_ids) == [first.id, second.id]
    assert provider.calls == [("Physics", START, 60)]
    assert roster.enrolled_session_ids(db, first.id) == [session_obj.id]


def test_schedule_single_without_binding_uses_paid_students(db):
    trainer = make_trainer(db)
    paid = make_student(db, "paid@example.com")
    make_student(db, "pending@example.com", status="pending")

    session_obj = scheduling.schedule_single(db, FakeMeetingProvider(), "Chemistry", trainer.id, START, END)

    assert session_obj.student_ids == [paid.id]
    assert [student.id for student in roster.resolve(db, session_obj)] == [paid.id]


def test_schedule_single_without_paid_students_still_creates_class(db):
    trainer = make_trainer(db)
    make_student(db, "waiting@example.com", status="pending")

    session_obj = scheduling.schedule_single(db, FakeMeetingProvider(), "Chemistry", trainer.id, START, END)

    assert session_obj.status == "scheduled"
    assert session_obj.student_ids == []
    assert db.query(ClassSession).count() == 1
    assert db.query(Enrollment).count() == 0


@pytest.mark.parametrize(
    "title, start, end",
    [
        ("", START, END),
        ("Maths", None, END),
        ("Maths", START, START),
        ("Maths", END, START),
    ],
)
def test_invalid_requests_create_nothing(db, title, start, end):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    provider = FakeMeetingProvider()

    with pytest.raises(ValidationError):
        scheduling.schedule_single(db, provider, title, trainer.id, start, end, student_ids=[student.id])
    assert provider.calls == []
    assert db.query(ClassSession).count() == 0


def test_unknown_trainer_and_students_are_rejected(db):
    trainer = make_trainer(db)
    other_trainer = make_trainer(db, "t2@example.com")
    student = make_student(db, "s@example.com")
    provider = FakeMeetingProvider()

    with pytest.raises(NotFoundError):
        scheduling.schedule_single(db, provider, "Maths", student.id, START, END, student_ids=[student.id])
    with pytest.raises(NotFoundError) as missing:
        scheduling.schedule_single(db, provider, "Maths", trainer.id, START, END, student_ids=[student.id, 999])
    assert missing.value.extra["missing_ids"] == [999]
    with pytest.raises(ValidationError):
        scheduling.schedule_single(db, provider, "Maths", trainer.id, START, END, student_ids=[other_trainer.id])
    assert provider.calls == []


def test_fractional_minutes_are_rejected(db):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")

    with pytest.raises(ValidationError):
        scheduling.schedule_single(
            db, FakeMeetingProvider(), "Maths", trainer.id, START, START + timedelta(seconds=90), student_ids=[student.id]
        )


def test_provider_failure_on_single_creates_nothing(db):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")

    with pytest.raises(ExternalServiceError):
        scheduling.schedule_single(
            db, FakeMeetingProvider(fail_at=[0]), "Maths", trainer.id, START, END, student_ids=[student.id]
        )
    assert db.query(ClassSession).count() == 0


def test_bulk_schedule_for_batch_fans_out(db):
    trainer = make_trainer(db)
    batch = make_batch(db, "Weekend", trainer)
    members = [make_student(db, f"m{index}@example.com", batch_id=batch.id) for index in range(2)]
    rule = RecurrenceRule(enabled=True, frequency="weekly", count=4)

    created = scheduling.schedule_bulk(db, FakeMeetingProvider(), "Biology", trainer.id, START, END, rule, batch_id=batch.id)

    assert len(created) == 4
    assert [session_obj.start_time.replace(tzinfo=UTC) for session_obj in created] == [
        START + timedelta(weeks=week) for week in range(4)
    ]
    ids = sorted(session_obj.id for session_obj in created)
    assert all(session_obj.student_ids == [] for session_obj in created)
    assert sorted(link.session_id for link in db.query(BatchSessionLink).all()) == ids
    for member in members:
        assert sorted(roster.enrolled_session_ids(db, member.id)) == ids


def test_bulk_partial_failure_keeps_created_sessions(db):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    rule = RecurrenceRule(enabled=True, frequency="daily", count=5)

    with pytest.raises(PartialFailureError) as failure:
        scheduling.schedule_bulk(
            db, FakeMeetingProvider(fail_at=[2]), "History", trainer.id, START, END, rule, student_ids=[student.id]
        )

    created_ids = [row.id for row in db.query(ClassSession.id).order_by(ClassSession.id)]
    assert len(created_ids) == 2
    assert failure.value.created_ids == created_ids
    assert failure.value.failed_index == 2
    assert sorted(roster.enrolled_session_ids(db, student.id)) == created_ids


def test_bulk_first_occurrence_failure_is_external_error(db):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    rule = RecurrenceRule(enabled=True, frequency="daily", count=3)

    with pytest.raises(ExternalServiceError):
        scheduling.schedule_bulk(
            db, FakeMeetingProvider(fail_at=[0]), "History", trainer.id, START, END, rule, student_ids=[student.id]
        )
    assert db.query(ClassSession).count() == 0


def test_bulk_requires_a_binding(db):
    trainer = make_trainer(db)
    rule = RecurrenceRule(enabled=True, frequency="daily", count=3)

    with pytest.raises(ValidationError):
        scheduling.schedule_bulk(db, FakeMeetingProvider(), "History", trainer.id, START, END, rule)


def test_bulk_empty_expansion_is_invalid(db):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    rule = RecurrenceRule(enabled=True, frequency="daily", until=START - timedelta(days=2))
    provider = FakeMeetingProvider()

    with pytest.raises(InvalidRecurrence):
        scheduling.schedule_bulk(db, provider, "History", trainer.id, START, END, rule, student_ids=[student.id])
    assert provider.calls == []


def test_bulk_weekdays_follow_the_callers_offset(db):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com")
    ist = timezone(timedelta(hours=5, minutes=30))
    # Monday 02:00 in IST is Sunday in UTC
    local_start = datetime(2030, 1, 7, 2, 0, tzinfo=ist)
    rule = RecurrenceRule(enabled=True, frequency="weekly", weekdays=frozenset({1}), count=2)

    created = scheduling.schedule_bulk(
        db, FakeMeetingProvider(), "Early", trainer.id, local_start, local_start + timedelta(hours=1), rule,
        student_ids=[student.id],
    )

    assert len(created) == 2
    assert created[0].start_time.replace(tzinfo=UTC) == datetime(2030, 1, 6, 20, 30, tzinfo=UTC)


def test_attach_recording(db):
    trainer = make_trainer(db)
    session_obj = make_session(db, trainer, START, END)

    updated = scheduling.attach_recording(db, session_obj.id, "https://recordings.test/1")

    assert updated.recording_url == "https://recordings.test/1"
    with pytest.raises(NotFoundError):
        scheduling.attach_recording(db, 999, "https://recordings.test/2")


def test_remove_trainer_sessions_clears_references(db):
    trainer = make_trainer(db)
    student = make_student(db, "s@example.com", hours="5")
    session_obj = make_session(db, trainer, START, END, student_ids=[student.id])
    roster.attach_sessions(db, [session_obj.id], None, [student])
    ledger.apply_adjustment(db, student.id, -1, "Completed class", session_id=session_obj.id)
    ledger.apply_teaching_adjustment(db, trainer.id, 1, "Taught class", session_id=session_obj.id)

    removed = scheduling.remove_trainer_sessions(db, trainer.id)
    db.commit()

    assert removed == [session_obj.id]
    assert db.query(ClassSession).count() == 0
    assert db.query(Enrollment).count() == 0
    assert db.query(HoursLedgerEntry).one().session_id is None
    assert db.query(TeachingLedgerEntry).one().session_id is None
