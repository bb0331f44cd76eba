"""MIS endpoints: class settlement and reporting for admins."""

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from lurnex.app.core.security import get_current_admin
from lurnex.app.db.session import get_db
from lurnex.app.integrations.notifications import get_notification_dispatcher
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.user import User
from lurnex.app.schemas.class_session import CancelRequest, ClassSessionRead, CompleteRequest, SettlementResponse
from lurnex.app.schemas.dashboard import HistoryStudent, MisStats, TrainerHistoryItem
from lurnex.app.services import roster, settlement

router = APIRouter(prefix="/mis", tags=["mis"])


@router.patch("/class/{class_id}/complete", response_model=SettlementResponse)
async def complete_class(
    class_id: int,
    request: CompleteRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    result = settlement.complete_session(db, class_id, remark=request.remark)
    if result.transitioned:
        message = (
            f"Class completed. {result.hours} hour(s) deducted from "
            f"{len(result.student_ids)} student(s) and added to the trainer."
        )
    else:
        message = "Completion remark updated."
    return SettlementResponse(
        message=message,
        hours=float(result.hours) if result.hours is not None else None,
        student_ids=result.student_ids,
        session=ClassSessionRead.model_validate(result.session),
    )


@router.patch("/class/{class_id}/cancel", response_model=SettlementResponse)
def cancel_class(
    class_id: int,
    request: CancelRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    dispatcher=Depends(get_notification_dispatcher),
):
    result = settlement.cancel_session(
        db,
        class_id,
        cancelled_by=request.cancelled_by,
        reason=request.reason,
        dispatcher=dispatcher,
    )
    message = "Class cancelled." if result.transitioned else "Cancellation details updated."
    return SettlementResponse(
        message=message,
        student_ids=result.student_ids,
        session=ClassSessionRead.model_validate(result.session),
    )


@router.get("/stats", response_model=MisStats)
async def mis_stats(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    active_students = db.query(User).filter(User.role == "student", User.status == "paid", User.is_active.is_(True))
    hours_remaining = (
        db.query(func.coalesce(func.sum(User.hours_balance), 0)).filter(User.role == "student").scalar()
    )
    hours_taught = db.query(func.coalesce(func.sum(User.hours_taught), 0)).filter(User.role == "trainer").scalar()
    status_counts = dict(
        db.query(ClassSession.status, func.count(ClassSession.id)).group_by(ClassSession.status).all()
    )
    return MisStats(
        total_active_students=active_students.count(),
        total_hours_remaining=float(hours_remaining or 0),
        total_trainers=db.query(User).filter(User.role == "trainer").count(),
        total_hours_taught=float(hours_taught or 0),
        classes_completed=status_counts.get("completed", 0),
        classes_scheduled=status_counts.get("scheduled", 0),
        classes_cancelled=status_counts.get("cancelled", 0),
    )


@router.get("/trainer-history", response_model=list[TrainerHistoryItem])
async def trainer_history(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    sessions = (
        db.query(ClassSession)
        .filter(ClassSession.status == "completed")
        .order_by(ClassSession.start_time.desc())
        .all()
    )
    history = []
    for session_obj in sessions:
        students = roster.resolve(db, session_obj)
        history.append(
            TrainerHistoryItem(
                id=session_obj.id,
                title=session_obj.title,
                date=session_obj.start_time.date(),
                trainer_name=session_obj.trainer.name if session_obj.trainer else "Unknown",
                duration=float(settlement.duration_hours(session_obj.start_time, session_obj.end_time)),
                students=[
                    HistoryStudent(
                        id=student.id,
                        name=student.name,
                        email=student.email,
                        hours_remaining=float(student.hours_balance or 0),
                    )
                    for student in students
                ],
            )
        )
    return history
