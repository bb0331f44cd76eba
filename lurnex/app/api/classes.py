"""Class views for students and trainers."""

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from lurnex.app.core.time import utc_now
from lurnex.app.db.session import get_db
from lurnex.app.dependencies.auth import get_current_student, get_current_trainer
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.links import Enrollment, SessionRosterLink
from lurnex.app.models.user import User
from lurnex.app.schemas.class_session import StudentClassRead, TrainerClassRead
from lurnex.app.services import roster

router = APIRouter(prefix="/classes", tags=["classes"])


def _student_view(session_obj: ClassSession, include_join_url: bool = True) -> StudentClassRead:
    return StudentClassRead(
        id=session_obj.id,
        title=session_obj.title,
        trainer=session_obj.trainer.name if session_obj.trainer else "Unknown",
        start_time=session_obj.start_time,
        end_time=session_obj.end_time,
        join_url=session_obj.join_url if include_join_url else None,
        recording_url=session_obj.recording_url,
        status=session_obj.status,
    )


@router.get("/live", response_model=list[StudentClassRead])
async def live_classes(db: Session = Depends(get_db), current_student: User = Depends(get_current_student)):
    now = utc_now()
    sessions = (
        roster.sessions_for_student(db, current_student.id, current_student.batch_id)
        .filter(
            ClassSession.status != "cancelled",
            ClassSession.start_time <= now,
            ClassSession.end_time >= now,
        )
        .order_by(ClassSession.start_time.asc())
        .all()
    )
    return [_student_view(session_obj) for session_obj in sessions]


@router.get("/upcoming", response_model=list[StudentClassRead])
async def upcoming_classes(db: Session = Depends(get_db), current_student: User = Depends(get_current_student)):
    now = utc_now()
    sessions = (
        roster.sessions_for_student(db, current_student.id, current_student.batch_id)
        .filter(ClassSession.status != "cancelled", ClassSession.start_time > now)
        .order_by(ClassSession.start_time.asc())
        .all()
    )
    return [_student_view(session_obj) for session_obj in sessions]


@router.get("/past", response_model=list[StudentClassRead])
async def past_classes(db: Session = Depends(get_db), current_student: User = Depends(get_current_student)):
    sessions = (
        roster.sessions_for_student(db, current_student.id, current_student.batch_id)
        .filter(ClassSession.end_time < utc_now())
        .order_by(ClassSession.start_time.desc())
        .all()
    )
    return [_student_view(session_obj, include_join_url=False) for session_obj in sessions]


@router.get("/trainer", response_model=list[TrainerClassRead])
async def trainer_classes(db: Session = Depends(get_db), current_trainer: User = Depends(get_current_trainer)):
    sessions = (
        db.query(ClassSession)
        .filter(ClassSession.trainer_id == current_trainer.id, ClassSession.status != "cancelled")
        .order_by(ClassSession.start_time.asc(), ClassSession.id.asc())
        .all()
    )
    ids = [session_obj.id for session_obj in sessions]
    enrolled = dict(
        db.query(Enrollment.session_id, func.count(Enrollment.id))
        .filter(Enrollment.session_id.in_(ids))
        .group_by(Enrollment.session_id)
        .all()
    ) if ids else {}
    rostered = dict(
        db.query(SessionRosterLink.session_id, func.count(SessionRosterLink.id))
        .filter(SessionRosterLink.session_id.in_(ids))
        .group_by(SessionRosterLink.session_id)
        .all()
    ) if ids else {}
    return [
        TrainerClassRead(
            id=session_obj.id,
            title=session_obj.title,
            start_time=session_obj.start_time,
            end_time=session_obj.end_time,
            join_url=session_obj.join_url,
            status=session_obj.status,
            students_enrolled=max(enrolled.get(session_obj.id, 0), rostered.get(session_obj.id, 0)),
        )
        for session_obj in sessions
    ]
