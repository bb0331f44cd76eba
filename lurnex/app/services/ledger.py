"""Hours ledger operations.

Balances (``User.hours_balance`` / ``User.hours_taught``) are stored
denormalized next to append-only entry tables. Every adjustment is a single SQL
increment on the balance column plus one appended entry carrying the delta, so
two concurrent settlements on the same account cannot lose an update.
"""

import logging
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Optional

from sqlalchemy import update
from sqlalchemy.orm import Session

from lurnex.app.core.errors import NotFoundError, ValidationError
from lurnex.app.core.settings import get_settings
from lurnex.app.core.time import utc_now
from lurnex.app.models.credential_history import CredentialHistoryEntry
from lurnex.app.models.ledger import HoursLedgerEntry, TeachingLedgerEntry
from lurnex.app.models.user import User

logger = logging.getLogger(__name__)

CENT = Decimal("0.01")


def to_hours(value: Decimal | float | int | str) -> Decimal:
    """Normalize an hour amount to a 2dp Decimal."""
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def _increment(db: Session, user_id: int, role: str, column, amount: Decimal) -> None:
    result = db.execute(
        update(User)
        .where(User.id == user_id, User.role == role)
        .values({column: column + amount})
        .execution_options(synchronize_session=False)
    )
    if result.rowcount == 0:
        raise NotFoundError(f"{role.capitalize()} {user_id} not found")


def apply_adjustment(
    db: Session,
    user_id: int,
    delta: Decimal | float | int | str,
    note: str | None,
    effective_date: Optional[datetime] = None,
    session_id: Optional[int] = None,
    commit: bool = True,
) -> HoursLedgerEntry:
    """Add ``delta`` hours to a student's balance and record it. No clamping."""
    amount = to_hours(delta)
    if amount == 0:
        raise ValidationError("Hour adjustments must be non-zero")

    _increment(db, user_id, "student", User.hours_balance, amount)
    entry = HoursLedgerEntry(
        user_id=user_id,
        delta=amount,
        effective_date=effective_date or utc_now(),
        note=note,
        session_id=session_id,
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    return entry


def apply_teaching_adjustment(
    db: Session,
    user_id: int,
    delta: Decimal | float | int | str,
    note: str | None,
    session_id: Optional[int],
    effective_date: Optional[datetime] = None,
    commit: bool = True,
) -> TeachingLedgerEntry:
    """Add ``delta`` hours to a trainer's taught-hours accumulator and record it."""
    amount = to_hours(delta)
    if amount == 0:
        raise ValidationError("Hour adjustments must be non-zero")

    _increment(db, user_id, "trainer", User.hours_taught, amount)
    entry = TeachingLedgerEntry(
        user_id=user_id,
        delta=amount,
        effective_date=effective_date or utc_now(),
        note=note,
        session_id=session_id,
    )
    db.add(entry)
    if commit:
        db.commit()
        db.refresh(entry)
    return entry


def ledger_balance(db: Session, user_id: int) -> Decimal:
    entries = db.query(HoursLedgerEntry.delta).filter(HoursLedgerEntry.user_id == user_id).all()
    return sum((row.delta for row in entries), Decimal("0.00"))


def teaching_total(db: Session, user_id: int) -> Decimal:
    entries = db.query(TeachingLedgerEntry.delta).filter(TeachingLedgerEntry.user_id == user_id).all()
    return sum((row.delta for row in entries), Decimal("0.00"))


def append_credential_history(
    user: User,
    password_hash: str,
    changed_by_id: Optional[int] = None,
    is_temporary: bool = False,
) -> CredentialHistoryEntry:
    """Append a hash to the user's credential history, evicting the oldest past the limit.

    The caller owns the commit, so the history change lands with the password change.
    """
    limit = get_settings().credential_history_limit
    entry = CredentialHistoryEntry(
        password_hash=password_hash,
        changed_at=utc_now(),
        changed_by_id=changed_by_id,
        is_temporary=is_temporary,
    )
    user.credential_history.append(entry)
    excess = len(user.credential_history) - limit
    if excess > 0:
        del user.credential_history[:excess]
    return entry
