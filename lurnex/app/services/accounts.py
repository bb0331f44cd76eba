"""Account services: creation, login checks, approval, credentials, transfers."""

import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from lurnex.app.core.errors import (
    AuthenticationError,
    AuthorizationError,
    ConflictError,
    NotFoundError,
    ValidationError,
)
from lurnex.app.core.security import generate_temporary_password, get_password_hash, verify_password
from lurnex.app.models.batch import Batch, BatchAssignment
from lurnex.app.models.user import ROLES, STUDENT_STATUSES, User
from lurnex.app.services import ledger
from lurnex.app.services.scheduling import remove_trainer_sessions

logger = logging.getLogger(__name__)


def get_account(db: Session, user_id: int, role: str) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user or user.role != role:
        raise NotFoundError(f"{role.capitalize()} not found.")
    return user


def ensure_email_available(db: Session, email: str, exclude_id: Optional[int] = None) -> None:
    query = db.query(User).filter(User.email == email)
    if exclude_id is not None:
        query = query.filter(User.id != exclude_id)
    if query.first():
        raise ConflictError("A user with this email already exists.")


def create_account(
    db: Session,
    role: str,
    name: str,
    email: str,
    password: Optional[str] = None,
    created_by_id: Optional[int] = None,
    initial_hours: Decimal | float | None = None,
    **profile,
) -> Tuple[User, str]:
    """Create an account holding a temporary credential; returns (user, plain password)."""
    if role not in ROLES:
        raise ValidationError(f"Unknown role {role!r}")
    ensure_email_available(db, email)

    plain_password = password or generate_temporary_password()
    hashed_password = get_password_hash(plain_password)
    user = User(
        name=name,
        email=email,
        role=role,
        hashed_password=hashed_password,
        is_temporary_password=True,
        status="pending",
        **profile,
    )
    ledger.append_credential_history(user, hashed_password, changed_by_id=created_by_id, is_temporary=True)
    db.add(user)
    db.commit()
    db.refresh(user)

    if role == "student" and initial_hours:
        ledger.apply_adjustment(db, user.id, initial_hours, note="Initial hours", effective_date=user.created_at)
        db.refresh(user)

    logger.info("Created %s account %s", role, user.id)
    return user, plain_password


def authenticate(db: Session, email: str, password: str, role: Optional[str] = None) -> User:
    query = db.query(User).filter(User.email == email)
    if role is not None:
        query = query.filter(User.role == role)
    user = query.first()
    if not user or not verify_password(password, user.hashed_password):
        raise AuthenticationError("Invalid credentials")
    if not user.is_active:
        raise AuthorizationError("Your account is disabled. Please contact support.")
    if user.role == "student" and user.status != "paid":
        raise AuthorizationError("Account pending approval. Please contact support.")
    return user


def set_password(
    db: Session,
    user: User,
    new_password: str,
    is_temporary: bool,
    changed_by_id: Optional[int] = None,
) -> User:
    if not new_password:
        raise ValidationError("New password is required.")
    hashed_password = get_password_hash(new_password)
    user.hashed_password = hashed_password
    user.is_temporary_password = is_temporary
    ledger.append_credential_history(user, hashed_password, changed_by_id=changed_by_id, is_temporary=is_temporary)
    db.commit()
    db.refresh(user)
    return user


def update_student_status(
    db: Session,
    student: User,
    status: str,
    dispatcher=None,
    changed_by_id: Optional[int] = None,
) -> User:
    """Move a student between pending and paid.

    Approval (pending -> paid) issues a fresh temporary password and mails it.
    """
    if status not in STUDENT_STATUSES:
        raise ValidationError("Invalid status provided.")

    previous = student.status
    student.status = status
    temporary_password = None
    if previous == "pending" and status == "paid":
        temporary_password = generate_temporary_password()
        hashed_password = get_password_hash(temporary_password)
        student.hashed_password = hashed_password
        student.is_temporary_password = True
        ledger.append_credential_history(student, hashed_password, changed_by_id=changed_by_id, is_temporary=True)
        logger.info("Generated temporary password for student %s", student.id)
    db.commit()
    db.refresh(student)

    if temporary_password and dispatcher is not None:
        try:
            dispatcher.notify_credentials(student.email, temporary_password)
        except Exception:
            logger.exception("Failed to send login credentials to student %s", student.id)
    return student


def transfer_student(
    db: Session,
    student: User,
    batch_id: Optional[int] = None,
    is_one_on_one: Optional[bool] = None,
) -> User:
    """Move a student into a batch or onto one-on-one classes; the two are exclusive."""
    if batch_id is not None and is_one_on_one:
        raise ValidationError("A student is either in a batch or one-on-one, not both")
    if batch_id is None and not is_one_on_one:
        raise ValidationError("Provide a batch or choose one-on-one")

    if batch_id is not None:
        if not db.query(Batch).filter(Batch.id == batch_id).first():
            raise NotFoundError("Batch not found")
        student.batch_id = batch_id
        student.is_one_on_one = False
    else:
        student.batch_id = None
        student.is_one_on_one = True
    db.commit()
    db.refresh(student)
    return student


def add_hours(
    db: Session,
    student: User,
    hours: Decimal | float,
    effective_date: Optional[datetime],
    notes: Optional[str] = None,
) -> User:
    if hours is None or Decimal(str(hours)) <= 0 or effective_date is None:
        raise ValidationError("A valid, positive number of hours and a purchase date are required.")
    ledger.apply_adjustment(db, student.id, hours, notes or "Manual admin addition", effective_date)
    db.refresh(student)
    return student


def correct_balance(db: Session, student: User, new_balance: Decimal | float, changed_by_id: Optional[int] = None) -> User:
    """Set a balance by recording the difference as a ledger entry."""
    delta = ledger.to_hours(new_balance) - ledger.to_hours(student.hours_balance)
    if delta != 0:
        ledger.apply_adjustment(db, student.id, delta, f"Balance correction by admin {changed_by_id}")
        db.refresh(student)
    return student


def delete_trainer(db: Session, trainer: User) -> None:
    """Delete a trainer together with their classes and batch assignments."""
    trainer_id = trainer.id
    remove_trainer_sessions(db, trainer_id)
    db.query(BatchAssignment).filter(BatchAssignment.trainer_id == trainer_id).delete(synchronize_session=False)
    db.delete(trainer)
    db.commit()
    logger.info("Deleted trainer %s", trainer_id)
