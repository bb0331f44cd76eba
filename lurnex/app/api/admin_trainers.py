"""Admin trainer management endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lurnex.app.core.security import get_current_admin
from lurnex.app.db.session import get_db
from lurnex.app.models.ledger import TeachingLedgerEntry
from lurnex.app.models.user import User
from lurnex.app.schemas.user import TeachingLedgerEntryRead, TrainerCreate, TrainerRead, TrainerUpdate
from lurnex.app.services import accounts

router = APIRouter(prefix="/admin/trainers", tags=["admin"])


@router.get("/", response_model=list[TrainerRead])
async def list_trainers(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return db.query(User).filter(User.role == "trainer").order_by(User.name.asc()).all()


@router.post("/", response_model=TrainerRead, status_code=status.HTTP_201_CREATED)
async def create_trainer(
    trainer_in: TrainerCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    trainer, _ = accounts.create_account(
        db,
        role="trainer",
        name=trainer_in.name,
        email=trainer_in.email,
        password=trainer_in.password,
        created_by_id=current_admin.id,
        mobile=trainer_in.mobile,
        subject=trainer_in.subject,
    )
    return trainer


@router.put("/{trainer_id}", response_model=TrainerRead)
async def update_trainer(
    trainer_id: int,
    trainer_in: TrainerUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    trainer = accounts.get_account(db, trainer_id, "trainer")
    data = trainer_in.model_dump(exclude_unset=True)
    password = data.pop("password", None)
    if data.get("email") and data["email"] != trainer.email:
        accounts.ensure_email_available(db, data["email"], exclude_id=trainer.id)

    for field, value in data.items():
        if value is not None:
            setattr(trainer, field, value)
    db.commit()
    db.refresh(trainer)

    if password:
        trainer = accounts.set_password(db, trainer, password, is_temporary=False, changed_by_id=current_admin.id)
    return trainer


@router.get("/{trainer_id}/teaching-history", response_model=list[TeachingLedgerEntryRead])
async def teaching_history(
    trainer_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    trainer = accounts.get_account(db, trainer_id, "trainer")
    return (
        db.query(TeachingLedgerEntry)
        .filter(TeachingLedgerEntry.user_id == trainer.id)
        .order_by(TeachingLedgerEntry.effective_date.desc(), TeachingLedgerEntry.id.desc())
        .all()
    )


@router.delete("/{trainer_id}")
async def delete_trainer(
    trainer_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    trainer = accounts.get_account(db, trainer_id, "trainer")
    accounts.delete_trainer(db, trainer)
    return {"message": "Trainer and their classes have been removed", "id": trainer_id}
