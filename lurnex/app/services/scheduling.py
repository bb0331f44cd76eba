"""Class scheduling: single and recurring session creation, recordings, trainer cascade."""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from sqlalchemy import update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from lurnex.app.core.errors import (
    ExternalServiceError,
    InvalidRecurrence,
    NotFoundError,
    PartialFailureError,
    ValidationError,
)
from lurnex.app.core.settings import get_settings
from lurnex.app.core.time import ensure_utc
from lurnex.app.models.batch import Batch
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.ledger import HoursLedgerEntry, TeachingLedgerEntry
from lurnex.app.models.links import BatchSessionLink, Enrollment, SessionRosterLink
from lurnex.app.models.user import User
from lurnex.app.services import roster
from lurnex.app.services.recurrence import RecurrenceRule, expand

logger = logging.getLogger(__name__)


@dataclass
class ScheduleTarget:
    """Validated scheduling request: who teaches, who attends, when."""

    title: str
    trainer: User
    start_time: datetime
    end_time: datetime
    batch: Optional[Batch] = None
    students: List[User] = field(default_factory=list)
    # Explicit roster ids stored on each session; empty for batch-bound sessions
    roster_ids: List[int] = field(default_factory=list)


def get_class_session(db: Session, session_id: int) -> ClassSession:
    session_obj = db.query(ClassSession).filter(ClassSession.id == session_id).first()
    if not session_obj:
        raise NotFoundError("Class not found")
    return session_obj


def duration_minutes(start_time: datetime, end_time: datetime) -> Optional[int]:
    """Whole minutes between start and end, or None when not a positive integer."""
    minutes = (end_time - start_time).total_seconds() / 60
    if minutes <= 0 or minutes != int(minutes):
        return None
    return int(minutes)


def validate_request(
    db: Session,
    title: Optional[str],
    trainer_id: Optional[int],
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    batch_id: Optional[int] = None,
    student_ids: Optional[Sequence[int]] = None,
    allow_unbound: bool = False,
) -> ScheduleTarget:
    """Check a scheduling request before anything is persisted."""
    if not title or not title.strip() or trainer_id is None or start_time is None or end_time is None:
        raise ValidationError("Please provide title, start time, end time, and trainer")
    start = ensure_utc(start_time)
    end = ensure_utc(end_time)
    if end <= start:
        raise ValidationError("End time must be after start time")

    if batch_id is not None and student_ids:
        raise ValidationError("Assign the class to a batch or to a list of students, not both")
    if batch_id is None and not student_ids and not allow_unbound:
        raise ValidationError("A batch or at least one student is required")

    trainer = db.query(User).filter(User.id == trainer_id).first()
    if not trainer or trainer.role != "trainer":
        raise NotFoundError("Trainer not found")

    batch = None
    if batch_id is not None:
        batch = db.query(Batch).filter(Batch.id == batch_id).first()
        if not batch:
            raise NotFoundError("Batch not found")

    students = roster.load_students(db, student_ids) if student_ids else []
    return ScheduleTarget(
        title=title.strip(),
        trainer=trainer,
        start_time=start,
        end_time=end,
        batch=batch,
        students=students,
        roster_ids=[student.id for student in students],
    )


def _persist_occurrence(
    db: Session,
    target: ScheduleTarget,
    start_time: datetime,
    end_time: datetime,
    join_url: str,
) -> ClassSession:
    session_obj = ClassSession(
        title=target.title,
        trainer_id=target.trainer.id,
        start_time=start_time,
        end_time=end_time,
        join_url=join_url,
        batch_id=target.batch.id if target.batch else None,
        status="scheduled",
    )
    for student_id in target.roster_ids:
        session_obj.roster_links.append(SessionRosterLink(student_id=student_id))
    db.add(session_obj)
    db.commit()
    db.refresh(session_obj)
    return session_obj


def _fan_out(db: Session, target: ScheduleTarget, created: List[ClassSession]) -> None:
    batch_id = target.batch.id if target.batch else None
    students = roster.eligible_students(db, batch_id=batch_id, students=target.students)
    roster.attach_sessions(db, [session_obj.id for session_obj in created], batch_id, students)


def _create_occurrences(
    db: Session,
    target: ScheduleTarget,
    occurrences,
    provider,
) -> List[ClassSession]:
    created: List[ClassSession] = []
    for index, (start_time, end_time) in enumerate(occurrences):
        minutes = duration_minutes(start_time, end_time)
        if minutes is None:
            logger.warning("Dropping occurrence %s of %r: invalid duration", index, target.title)
            continue
        try:
            join_url = provider.create_meeting(target.title, start_time, minutes)
        except ExternalServiceError as exc:
            if not created:
                raise
            logger.error(
                "Meeting link failed for occurrence %s of %r after %s class(es) were created",
                index,
                target.title,
                len(created),
            )
            created_ids = [session_obj.id for session_obj in created]
            try:
                _fan_out(db, target, created)
            except SQLAlchemyError:
                db.rollback()
                logger.exception("Roster propagation failed for partially scheduled classes %s", created_ids)
            raise PartialFailureError(
                f"Failed to create meeting link for occurrence {index}: {exc.detail}",
                created_ids=created_ids,
                failed_index=index,
            ) from exc
        created.append(_persist_occurrence(db, target, start_time, end_time, join_url))

    if created:
        try:
            _fan_out(db, target, created)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.exception("Roster propagation failed for classes %s", [s.id for s in created])
            raise PartialFailureError(
                "Classes were created but could not be added to the batch and student schedules",
                created_ids=[session_obj.id for session_obj in created],
            ) from exc
    return created


def schedule_single(
    db: Session,
    provider,
    title: Optional[str],
    trainer_id: Optional[int],
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    batch_id: Optional[int] = None,
    student_ids: Optional[Sequence[int]] = None,
) -> ClassSession:
    """Schedule one class.

    Without a batch or student list this falls back to enrolling every student
    whose status is ``paid`` right now; those students become the class roster,
    which may be empty when nobody has paid yet.
    """
    target = validate_request(
        db, title, trainer_id, start_time, end_time, batch_id, student_ids, allow_unbound=True
    )
    if target.batch is None and not target.students:
        target.students = roster.paid_students(db)
        target.roster_ids = [student.id for student in target.students]

    if duration_minutes(target.start_time, target.end_time) is None:
        raise ValidationError("Class duration must be a whole number of minutes")

    created = _create_occurrences(db, target, [(target.start_time, target.end_time)], provider)
    session_obj = created[0]
    logger.info("Scheduled class %s (%r) for trainer %s", session_obj.id, session_obj.title, target.trainer.id)
    return session_obj


def schedule_bulk(
    db: Session,
    provider,
    title: Optional[str],
    trainer_id: Optional[int],
    start_time: Optional[datetime],
    end_time: Optional[datetime],
    rule: Optional[RecurrenceRule],
    batch_id: Optional[int] = None,
    student_ids: Optional[Sequence[int]] = None,
) -> List[ClassSession]:
    """Expand a recurrence rule and schedule every resulting occurrence.

    Sessions are persisted one at a time as their meeting links arrive; a link
    failure after the first session raises ``PartialFailureError`` carrying the
    ids already created. Nothing is rolled back.
    """
    target = validate_request(db, title, trainer_id, start_time, end_time, batch_id, student_ids)
    # Expand in the caller's offset so weekdays and month days are local ones
    base_start = start_time if start_time.tzinfo is not None else target.start_time
    base_end = base_start + (target.end_time - target.start_time)
    occurrences = [
        (ensure_utc(occ_start), ensure_utc(occ_end))
        for occ_start, occ_end in expand(
            base_start, base_end, rule, max_iterations=get_settings().recurrence_max_iterations
        )
    ]
    if not occurrences:
        raise InvalidRecurrence("Recurrence settings produced no classes; check the end date")

    created = _create_occurrences(db, target, occurrences, provider)
    logger.info(
        "Bulk scheduled %s of %s occurrence(s) of %r for trainer %s",
        len(created),
        len(occurrences),
        target.title,
        target.trainer.id,
    )
    return created


def attach_recording(db: Session, session_id: int, recording_url: str) -> ClassSession:
    session_obj = get_class_session(db, session_id)
    session_obj.recording_url = recording_url
    db.commit()
    db.refresh(session_obj)
    return session_obj


def remove_trainer_sessions(db: Session, trainer_id: int) -> List[int]:
    """Bulk-remove every class a trainer owns along with its index rows.

    Ledger entries that referenced those classes stay, with the reference cleared.
    Does not commit.
    """
    session_ids = [row.id for row in db.query(ClassSession.id).filter(ClassSession.trainer_id == trainer_id)]
    if not session_ids:
        return []

    for model in (BatchSessionLink, Enrollment, SessionRosterLink):
        db.query(model).filter(model.session_id.in_(session_ids)).delete(synchronize_session=False)
    for model in (HoursLedgerEntry, TeachingLedgerEntry):
        db.execute(
            update(model)
            .where(model.session_id.in_(session_ids))
            .values(session_id=None)
            .execution_options(synchronize_session=False)
        )
    db.query(ClassSession).filter(ClassSession.id.in_(session_ids)).delete(synchronize_session=False)
    logger.info("Removed %s class(es) of trainer %s", len(session_ids), trainer_id)
    return session_ids
