"""Admin student management endpoints."""

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from lurnex.app.core.security import get_current_admin
from lurnex.app.db.session import get_db
from lurnex.app.integrations.notifications import get_notification_dispatcher
from lurnex.app.models.class_session import ClassSession
from lurnex.app.models.ledger import HoursLedgerEntry
from lurnex.app.models.user import User
from lurnex.app.schemas.class_session import ClassSessionRead
from lurnex.app.schemas.user import (
    AddHoursRequest,
    CredentialHistoryRead,
    CredentialHistoryResponse,
    HoursLedgerEntryRead,
    PasswordChange,
    PasswordChangeResponse,
    StudentCreate,
    StudentRead,
    StudentStatusUpdate,
    StudentTransfer,
    StudentUpdate,
)
from lurnex.app.services import accounts, roster

router = APIRouter(prefix="/admin/students", tags=["admin"])


def _get_student(db: Session, student_id: int) -> User:
    return accounts.get_account(db, student_id, "student")


@router.get("/", response_model=list[StudentRead])
async def list_students(db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return db.query(User).filter(User.role == "student").order_by(User.created_at.desc()).all()


@router.post("/", response_model=StudentRead, status_code=status.HTTP_201_CREATED)
async def create_student(
    student_in: StudentCreate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student, _ = accounts.create_account(
        db,
        role="student",
        name=student_in.name,
        email=student_in.email,
        created_by_id=current_admin.id,
        initial_hours=student_in.hours_balance,
        mobile=student_in.mobile,
        course=student_in.course,
        grade=student_in.grade,
        school=student_in.school,
    )
    return student


@router.get("/{student_id}", response_model=StudentRead)
async def get_student(student_id: int, db: Session = Depends(get_db), current_admin: User = Depends(get_current_admin)):
    return _get_student(db, student_id)


@router.patch("/{student_id}", response_model=StudentRead)
async def update_student(
    student_id: int,
    student_in: StudentUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    data = student_in.model_dump(exclude_unset=True)
    new_balance = data.pop("hours_balance", None)
    if data.get("email") and data["email"] != student.email:
        accounts.ensure_email_available(db, data["email"], exclude_id=student.id)

    for field, value in data.items():
        if value is not None:
            setattr(student, field, value)
    db.commit()
    db.refresh(student)

    if new_balance is not None:
        student = accounts.correct_balance(db, student, new_balance, changed_by_id=current_admin.id)
    return student


@router.patch("/{student_id}/add-hours", response_model=StudentRead)
async def add_hours(
    student_id: int,
    hours_in: AddHoursRequest,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    return accounts.add_hours(db, student, hours_in.hours, hours_in.date, hours_in.notes)


@router.patch("/{student_id}/transfer", response_model=StudentRead)
async def transfer_student(
    student_id: int,
    transfer: StudentTransfer,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    return accounts.transfer_student(db, student, transfer.batch_id, transfer.is_one_on_one)


@router.patch("/{student_id}/status", response_model=StudentRead)
def update_student_status(
    student_id: int,
    update: StudentStatusUpdate,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
    dispatcher=Depends(get_notification_dispatcher),
):
    student = _get_student(db, student_id)
    return accounts.update_student_status(
        db, student, update.status, dispatcher=dispatcher, changed_by_id=current_admin.id
    )


@router.patch("/{student_id}/password", response_model=PasswordChangeResponse)
async def change_password(
    student_id: int,
    password_in: PasswordChange,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    accounts.set_password(
        db,
        student,
        password_in.new_password,
        is_temporary=password_in.is_temporary,
        changed_by_id=current_admin.id,
    )
    return PasswordChangeResponse(
        message="Password updated successfully",
        student_id=student.id,
        new_password=password_in.new_password,
    )


@router.get("/{student_id}/password-history", response_model=CredentialHistoryResponse)
async def password_history(
    student_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    history = [
        CredentialHistoryRead(
            changed_at=entry.changed_at,
            is_temporary=entry.is_temporary,
            changed_by_id=entry.changed_by_id,
            password_hash_preview=f"{entry.password_hash[:20]}..." if entry.password_hash else None,
        )
        for entry in sorted(student.credential_history, key=lambda item: item.changed_at, reverse=True)
    ]
    return CredentialHistoryResponse(student=StudentRead.model_validate(student), history=history)


@router.get("/{student_id}/hours-history", response_model=list[HoursLedgerEntryRead])
async def hours_history(
    student_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    return (
        db.query(HoursLedgerEntry)
        .filter(HoursLedgerEntry.user_id == student.id)
        .order_by(HoursLedgerEntry.effective_date.desc(), HoursLedgerEntry.id.desc())
        .all()
    )


@router.get("/{student_id}/completed-classes", response_model=list[ClassSessionRead])
async def completed_classes(
    student_id: int,
    db: Session = Depends(get_db),
    current_admin: User = Depends(get_current_admin),
):
    student = _get_student(db, student_id)
    return (
        roster.sessions_for_student(db, student.id, student.batch_id)
        .filter(ClassSession.status == "completed")
        .order_by(ClassSession.start_time.desc())
        .all()
    )
