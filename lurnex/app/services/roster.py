"""Roster resolution and the batch/student session indexes.

A session is bound to students either through an explicit roster or through a
batch. Batch rosters are resolved live: settling a batch session applies to
whoever is in the batch at settlement time, not at scheduling time.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from sqlalchemy import and_, or_, select
from sqlalchemy.orm import Session

from lurnex.app.core.errors import NotFoundError, ValidationError
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.links import BatchSessionLink, Enrollment, SessionRosterLink
from lurnex.app.models.user import User

logger = logging.getLogger(__name__)


def resolve(db: Session, session: ClassSession) -> List[User]:
    """Return the students a session currently applies to, ordered by id."""
    student_ids = session.student_ids
    if student_ids:
        return (
            db.query(User)
            .filter(User.id.in_(student_ids), User.role == "student")
            .order_by(User.id.asc())
            .all()
        )
    if session.batch_id is not None:
        return batch_members(db, session.batch_id)
    return []


def batch_members(db: Session, batch_id: int) -> List[User]:
    return (
        db.query(User)
        .filter(User.batch_id == batch_id, User.role == "student")
        .order_by(User.id.asc())
        .all()
    )


def load_students(db: Session, student_ids: Sequence[int]) -> List[User]:
    """Resolve explicit student ids; every id must be an existing student account."""
    wanted = list(dict.fromkeys(student_ids))
    found = {user.id: user for user in db.query(User).filter(User.id.in_(wanted)).all()}
    missing = [sid for sid in wanted if sid not in found]
    if missing:
        raise NotFoundError("Students not found", missing_ids=missing)
    not_students = [sid for sid in wanted if found[sid].role != "student"]
    if not_students:
        raise ValidationError("Only student accounts can be assigned to a class", invalid_ids=not_students)
    return [found[sid] for sid in wanted]


def paid_students(db: Session) -> List[User]:
    return (
        db.query(User)
        .filter(User.role == "student", User.status == "paid")
        .order_by(User.id.asc())
        .all()
    )


def eligible_students(
    db: Session,
    batch_id: Optional[int] = None,
    students: Optional[Sequence[User]] = None,
) -> List[User]:
    """The creation-time student set used to fan new sessions out."""
    if students:
        return list(students)
    if batch_id is not None:
        return batch_members(db, batch_id)
    return []


def attach_sessions(
    db: Session,
    session_ids: Iterable[int],
    batch_id: Optional[int],
    students: Sequence[User],
) -> None:
    """Append sessions to the batch index and every student's enrolled set.

    Existing pairs are left alone, so repeating the call is harmless.
    """
    ids = list(dict.fromkeys(session_ids))
    if not ids:
        return

    if batch_id is not None:
        linked = {
            row.session_id
            for row in db.query(BatchSessionLink.session_id).filter(
                BatchSessionLink.batch_id == batch_id,
                BatchSessionLink.session_id.in_(ids),
            )
        }
        for session_id in ids:
            if session_id not in linked:
                db.add(BatchSessionLink(batch_id=batch_id, session_id=session_id))

    student_ids = [student.id for student in students]
    if student_ids:
        enrolled = {
            (row.student_id, row.session_id)
            for row in db.query(Enrollment.student_id, Enrollment.session_id).filter(
                Enrollment.student_id.in_(student_ids),
                Enrollment.session_id.in_(ids),
            )
        }
        for session_id in ids:
            for student_id in student_ids:
                if (student_id, session_id) not in enrolled:
                    db.add(Enrollment(student_id=student_id, session_id=session_id))

    db.commit()
    logger.info(
        "Attached %s session(s) to batch %s and %s student(s)",
        len(ids),
        batch_id,
        len(student_ids),
    )


def enrolled_session_ids(db: Session, student_id: int) -> List[int]:
    return [row.session_id for row in db.query(Enrollment.session_id).filter(Enrollment.student_id == student_id)]


def sessions_for_student(db: Session, student_id: int, batch_id: Optional[int] = None):
    """Query of every session a student is enrolled in or rostered on.

    With ``batch_id``, sessions bound to that batch without an explicit roster
    are included too, matching live batch resolution.
    """
    enrolled = select(Enrollment.session_id).where(Enrollment.student_id == student_id)
    rostered = select(SessionRosterLink.session_id).where(SessionRosterLink.student_id == student_id)
    conditions = [ClassSession.id.in_(enrolled), ClassSession.id.in_(rostered)]
    if batch_id is not None:
        conditions.append(and_(ClassSession.batch_id == batch_id, ~ClassSession.roster_links.any()))
    return db.query(ClassSession).filter(or_(*conditions))
