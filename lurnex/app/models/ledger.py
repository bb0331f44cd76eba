"""Append-only hour ledgers for students (balance) and trainers (hours taught)."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, Numeric, Text
from sqlalchemy.orm import relationship

from lurnex.app.core.time import utc_now
from lurnex.app.db.base_class import Base


class HoursLedgerEntry(Base):
    __tablename__ = "hours_ledger"
    __table_args__ = (
        CheckConstraint("delta <> 0", name="ck_hours_ledger_delta_nonzero"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    delta = Column(Numeric(10, 2), nullable=False)
    effective_date = Column(DateTime(timezone=True), nullable=False)
    note = Column(Text, nullable=True)
    session_id = Column(Integer, ForeignKey("class_sessions.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    user = relationship("User", back_populates="hours_ledger")


class TeachingLedgerEntry(Base):
    __tablename__ = "teaching_ledger"
    __table_args__ = (
        CheckConstraint("delta <> 0", name="ck_teaching_ledger_delta_nonzero"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    delta = Column(Numeric(10, 2), nullable=False)
    effective_date = Column(DateTime(timezone=True), nullable=False)
    note = Column(Text, nullable=True)
    session_id = Column(Integer, ForeignKey("class_sessions.id", ondelete="SET NULL"), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    user = relationship("User", back_populates="teaching_ledger")
