"""Settlement of scheduled classes: completion (hours consumed) and cancellation.

A class leaves ``scheduled`` exactly once, into ``completed`` or ``cancelled``.
For 24 hours after that transition only its remark (completion) or reason and
cancelling party (cancellation) may still change; hours are never re-applied.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from lurnex.app.core.errors import (
    AlreadyTerminal,
    EditWindowExpired,
    InvalidDuration,
    RosterEmpty,
    TooEarly,
    ValidationError,
)
from lurnex.app.core.settings import get_settings
from lurnex.app.core.time import ensure_utc, utc_now
from lurnex.app.models.class_session import CANCELLING_PARTIES, ClassSession
from lurnex.app.services import ledger, roster
from lurnex.app.services.scheduling import get_class_session

logger = logging.getLogger(__name__)


@dataclass
class SettlementResult:
    session: ClassSession
    # False when the call only edited metadata inside the edit window
    transitioned: bool
    hours: Optional[Decimal] = None
    student_ids: List[int] = field(default_factory=list)


def duration_hours(start_time: datetime, end_time: datetime) -> Decimal:
    seconds = Decimal(str((ensure_utc(end_time) - ensure_utc(start_time)).total_seconds()))
    return (seconds / Decimal(3600)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def within_edit_window(entered_at: Optional[datetime], now: datetime) -> bool:
    if entered_at is None:
        return False
    window = timedelta(hours=get_settings().edit_window_hours)
    return now - ensure_utc(entered_at) <= window


def _claim_transition(db: Session, session_id: int, **values) -> None:
    # Conditional on the row still being scheduled, so only one settlement wins
    result = db.execute(
        update(ClassSession)
        .where(ClassSession.id == session_id, ClassSession.status == "scheduled")
        .values(**values)
        .execution_options(synchronize_session=False)
    )
    if result.rowcount != 1:
        raise AlreadyTerminal("Class was settled by another request.")


def complete_session(
    db: Session,
    session_id: int,
    remark: Optional[str] = None,
    now: Optional[datetime] = None,
) -> SettlementResult:
    now = ensure_utc(now) or utc_now()
    session_obj = get_class_session(db, session_id)

    if session_obj.status == "completed":
        if not within_edit_window(session_obj.completed_at, now):
            raise EditWindowExpired("Completion details can only be edited within 24 hours.")
        if remark is not None:
            session_obj.remark = remark
        db.commit()
        db.refresh(session_obj)
        return SettlementResult(session=session_obj, transitioned=False)

    if session_obj.status == "cancelled":
        raise AlreadyTerminal("A cancelled class cannot be marked as completed.")

    if now < ensure_utc(session_obj.start_time):
        raise TooEarly()

    hours = duration_hours(session_obj.start_time, session_obj.end_time)
    if hours <= 0:
        raise InvalidDuration()

    students = roster.resolve(db, session_obj)
    if not students:
        raise RosterEmpty()

    try:
        for student in students:
            ledger.apply_adjustment(
                db,
                student.id,
                -hours,
                note=f'Completed class: "{session_obj.title}" (Class ID: {session_obj.id})',
                effective_date=now,
                session_id=session_obj.id,
                commit=False,
            )
        ledger.apply_teaching_adjustment(
            db,
            session_obj.trainer_id,
            hours,
            note=f'Taught class: "{session_obj.title}" (Class ID: {session_obj.id})',
            session_id=session_obj.id,
            effective_date=now,
            commit=False,
        )
        _claim_transition(db, session_obj.id, status="completed", completed_at=now, remark=remark or "")
        db.commit()
    except Exception:
        db.rollback()
        raise

    db.refresh(session_obj)
    student_ids = [student.id for student in students]
    logger.info(
        "Class %s completed: %s hour(s) processed for %s student(s) and trainer %s",
        session_obj.id,
        hours,
        len(student_ids),
        session_obj.trainer_id,
    )
    return SettlementResult(session=session_obj, transitioned=True, hours=hours, student_ids=student_ids)


def cancel_session(
    db: Session,
    session_id: int,
    cancelled_by: Optional[str],
    reason: Optional[str],
    dispatcher=None,
    now: Optional[datetime] = None,
) -> SettlementResult:
    if not cancelled_by or not reason or not reason.strip():
        raise ValidationError("Cancellation party (cancelled_by) and reason are required.")
    if cancelled_by not in CANCELLING_PARTIES:
        raise ValidationError(f"cancelled_by must be one of: {', '.join(CANCELLING_PARTIES)}")

    now = ensure_utc(now) or utc_now()
    session_obj = get_class_session(db, session_id)

    if session_obj.status == "cancelled":
        if not within_edit_window(session_obj.cancelled_at, now):
            raise EditWindowExpired("Cancellation details can only be edited within 24 hours.")
        session_obj.cancellation_reason = reason
        session_obj.cancelled_by = cancelled_by
        db.commit()
        db.refresh(session_obj)
        return SettlementResult(session=session_obj, transitioned=False)

    if session_obj.status == "completed":
        raise AlreadyTerminal("A completed class cannot be cancelled.")

    try:
        _claim_transition(
            db,
            session_obj.id,
            status="cancelled",
            cancelled_at=now,
            cancellation_reason=reason,
            cancelled_by=cancelled_by,
        )
        db.commit()
    except Exception:
        db.rollback()
        raise
    db.refresh(session_obj)
    logger.info("Class %s cancelled by %s", session_obj.id, cancelled_by)

    students = roster.resolve(db, session_obj)
    if dispatcher is not None:
        try:
            dispatcher.notify_cancellation(students, session_obj.trainer, session_obj, reason, cancelled_by)
        except Exception:
            logger.exception("Failed to send cancellation notice for class %s", session_obj.id)

    return SettlementResult(
        session=session_obj,
        transitioned=True,
        student_ids=[student.id for student in students],
    )
