"""Admin batch endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lurnex.app.core.security import get_current_admin
from lurnex.app.db.session import get_db
from lurnex.app.models.batch import Batch
from lurnex.app.models.user import User
from lurnex.app.schemas.batch import BatchCreate, BatchDetail, BatchRead, BatchUpdate
from lurnex.app.services import batches, roster

router = APIRouter(prefix="/admin/batches", tags=["admin"])


def _detail(db: Session, batch: Batch) -> BatchDetail:
    detail = BatchDetail.model_validate(batch)
    detail.student_ids = [student.id for student in roster.batch_members(db, batch.id)]
    detail.session_ids = sorted(link.session_id for link in batch.session_links)
    return detail


@router.get("/", response_model=list[BatchRead])
async def list_batches(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return db.query(Batch).order_by(Batch.created_at.desc()).all()


@router.post("/", response_model=BatchRead, status_code=status.HTTP_201_CREATED)
async def create_batch(
    batch_in: BatchCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    return batches.create_batch(
        db,
        name=batch_in.name,
        assignments=batch_in.assignments,
        course=batch_in.course,
        is_active=batch_in.is_active,
    )


@router.get("/{batch_id}", response_model=BatchDetail)
async def get_batch(batch_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return _detail(db, batches.get_batch(db, batch_id))


@router.patch("/{batch_id}", response_model=BatchDetail)
async def update_batch(
    batch_id: int,
    batch_in: BatchUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    batch = batches.get_batch(db, batch_id)
    changes = batch_in.model_dump(exclude_unset=True)
    if batch_in.assignments is not None:
        changes["assignments"] = batch_in.assignments
    batch = batches.update_batch(db, batch, **changes)
    return _detail(db, batch)
