"""Admin class scheduling endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lurnex.app.core.security import get_current_admin
from lurnex.app.core.time import utc_now
from lurnex.app.db.session import get_db
from lurnex.app.integrations.zoom import get_meeting_provider
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.user import User
from lurnex.app.schemas.class_session import (
    ClassBulkCreate,
    ClassBulkResponse,
    ClassScheduleCreate,
    ClassSessionRead,
    RecordingUpdate,
)
from lurnex.app.services import scheduling
from lurnex.app.services.recurrence import RecurrenceRule

router = APIRouter(prefix="/admin/classes", tags=["admin"])


@router.post("/", response_model=ClassSessionRead, status_code=status.HTTP_201_CREATED)
def schedule_class(
    class_in: ClassScheduleCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    provider=Depends(get_meeting_provider),
):
    return scheduling.schedule_single(
        db,
        provider,
        title=class_in.title,
        trainer_id=class_in.trainer_id,
        start_time=class_in.start_time,
        end_time=class_in.end_time,
        batch_id=class_in.batch_id,
        student_ids=class_in.student_ids,
    )


@router.post("/bulk", response_model=ClassBulkResponse, status_code=status.HTTP_201_CREATED)
def schedule_bulk(
    class_in: ClassBulkCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    provider=Depends(get_meeting_provider),
):
    rule = RecurrenceRule.from_payload(class_in.recurrence, class_in.start_time)
    created = scheduling.schedule_bulk(
        db,
        provider,
        title=class_in.title,
        trainer_id=class_in.trainer_id,
        start_time=class_in.start_time,
        end_time=class_in.end_time,
        rule=rule,
        batch_id=class_in.batch_id,
        student_ids=class_in.student_ids,
    )
    return ClassBulkResponse(count=len(created), classes=created)


@router.get("/", response_model=list[ClassSessionRead])
async def list_classes(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return db.query(ClassSession).order_by(ClassSession.start_time.desc()).all()


@router.get("/live", response_model=list[ClassSessionRead])
async def live_classes(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    now = utc_now()
    return (
        db.query(ClassSession)
        .filter(
            ClassSession.status == "scheduled",
            ClassSession.start_time <= now,
            ClassSession.end_time >= now,
        )
        .order_by(ClassSession.start_time.asc())
        .all()
    )


@router.patch("/{class_id}/recording", response_model=ClassSessionRead)
async def attach_recording(
    class_id: int,
    recording_in: RecordingUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return scheduling.attach_recording(db, class_id, recording_in.recording_url)
