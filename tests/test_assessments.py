from datetime import UTC, datetime

from lurnex.app.models.assessment import Assessment, Submission
from tests.factories import auth_headers, make_student, make_trainer

QUESTION = {"question_text": "2 + 2?", "options": ["3", "4"], "correct_answer": "4"}


def _assessment(db, title, questions=1, duration=30):
    assessment = Assessment(title=title, duration_minutes=duration, questions=[QUESTION] * questions)
    db.add(assessment)
    db.commit()
    db.refresh(assessment)
    return assessment


def _submit(db, assessment, student, score, submitted_at):
    submission = Submission(assessment_id=assessment.id, student_id=student.id, score=score, submitted_at=submitted_at)
    db.add(submission)
    db.commit()
    return submission


def test_available_excludes_own_submissions(client, db):
    student = make_student(db, "quiz@example.com")
    classmate = make_student(db, "classmate@example.com")
    algebra = _assessment(db, "Algebra basics", questions=3, duration=45)
    geometry = _assessment(db, "Geometry", questions=2)
    _submit(db, algebra, student, "92%", datetime(2030, 1, 5, 9, 0, tzinfo=UTC))
    _submit(db, geometry, classmate, "70%", datetime(2030, 1, 6, 9, 0, tzinfo=UTC))

    resp = client.get("/assessments/available", headers=auth_headers(student))

    assert resp.status_code == 200
    assert resp.json() == [{"id": geometry.id, "title": "Geometry", "questions": 2, "duration": 30}]


def test_completed_lists_scores_newest_first(client, db):
    student = make_student(db, "scored@example.com")
    first = _assessment(db, "Week 1")
    second = _assessment(db, "Week 2")
    _submit(db, first, student, "85/100", datetime(2030, 1, 5, 9, 0, tzinfo=UTC))
    latest = _submit(db, second, student, "90/100", datetime(2030, 1, 12, 9, 0, tzinfo=UTC))

    resp = client.get("/assessments/completed", headers=auth_headers(student))

    assert resp.status_code == 200
    body = resp.json()
    assert [item["title"] for item in body] == ["Week 2", "Week 1"]
    assert body[0] == {"id": latest.id, "title": "Week 2", "score": "90/100", "date": "2030-01-12"}


def test_assessments_are_student_only(client, db):
    trainer = make_trainer(db)

    assert client.get("/assessments/available").status_code == 401
    assert client.get("/assessments/completed", headers=auth_headers(trainer)).status_code == 403
