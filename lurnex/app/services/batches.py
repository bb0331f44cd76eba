"""Batch creation and updates."""

import logging
from typing import Optional, Sequence

from sqlalchemy.orm import Session

from lurnex.app.core.errors import ConflictError, NotFoundError, ValidationError
from lurnex.app.models.batch import Batch, BatchAssignment
from lurnex.app.models.user import User

logger = logging.getLogger(__name__)


def get_batch(db: Session, batch_id: int) -> Batch:
    batch = db.query(Batch).filter(Batch.id == batch_id).first()
    if not batch:
        raise NotFoundError("Batch not found")
    return batch


def _ensure_name_available(db: Session, name: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(Batch).filter(Batch.name == name)
    if exclude_id is not None:
        query = query.filter(Batch.id != exclude_id)
    if query.first():
        raise ConflictError("A batch with this name already exists.")


def _build_assignments(db: Session, assignments: Sequence) -> list[BatchAssignment]:
    if not assignments:
        raise ValidationError("At least one subject with a trainer and timing is required")
    trainer_ids = {item.trainer_id for item in assignments}
    trainers = {
        user.id for user in db.query(User).filter(User.id.in_(trainer_ids), User.role == "trainer").all()
    }
    missing = sorted(trainer_ids - trainers)
    if missing:
        raise NotFoundError("Trainer not found", missing_ids=missing)
    return [
        BatchAssignment(subject=item.subject, trainer_id=item.trainer_id, timing=item.timing)
        for item in assignments
    ]


def create_batch(db: Session, name: str, assignments: Sequence, course: str = "General", is_active: bool = True) -> Batch:
    name = name.strip()
    _ensure_name_available(db, name)
    batch = Batch(name=name, course=course or "General", is_active=is_active)
    batch.assignments = _build_assignments(db, assignments)
    db.add(batch)
    db.commit()
    db.refresh(batch)
    logger.info("Created batch %s (%r) with %s assignment(s)", batch.id, batch.name, len(batch.assignments))
    return batch


def update_batch(db: Session, batch: Batch, **changes) -> Batch:
    """Apply partial changes; a new assignment list replaces the old one."""
    name = changes.get("name")
    if name:
        name = name.strip()
        _ensure_name_available(db, name, exclude_id=batch.id)
        batch.name = name
    if changes.get("course"):
        batch.course = changes["course"]
    if changes.get("is_active") is not None:
        batch.is_active = changes["is_active"]
    if changes.get("assignments") is not None:
        batch.assignments = _build_assignments(db, changes["assignments"])
    db.commit()
    db.refresh(batch)
    return batch
