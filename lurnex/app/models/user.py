"""Account model shared by students, trainers and admins."""

from decimal import Decimal

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from lurnex.app.core.time import utc_now
from lurnex.app.db.base_class import Base

ROLES = ("student", "trainer", "admin")
STUDENT_STATUSES = ("pending", "paid")


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)
    name = Column(String, nullable=False)
    role = Column(String(20), nullable=False, default="student", index=True)
    hashed_password = Column(String, nullable=False)
    is_temporary_password = Column(Boolean, nullable=False, default=False)
    is_active = Column(Boolean, nullable=False, default=True)

    # Student approval gate; trainers and admins stay "pending" and are never gated on it
    status = Column(String(20), nullable=False, default="pending")
    mobile = Column(String(50), nullable=True)
    course = Column(String, nullable=True)
    grade = Column(String, nullable=True)
    school = Column(String, nullable=True)
    subject = Column(String, nullable=True)

    hours_balance = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    hours_taught = Column(Numeric(10, 2), nullable=False, default=Decimal("0.00"))
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="SET NULL"), nullable=True, index=True)
    is_one_on_one = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    batch = relationship("Batch", back_populates="students", foreign_keys=[batch_id])
    hours_ledger = relationship(
        "HoursLedgerEntry",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="HoursLedgerEntry.id",
    )
    teaching_ledger = relationship(
        "TeachingLedgerEntry",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="TeachingLedgerEntry.id",
    )
    credential_history = relationship(
        "CredentialHistoryEntry",
        back_populates="user",
        cascade="all, delete-orphan",
        order_by="CredentialHistoryEntry.id",
        foreign_keys="CredentialHistoryEntry.user_id",
    )
    enrollments = relationship("Enrollment", back_populates="student", cascade="all, delete-orphan")
    purchase_requests = relationship("PurchaseRequest", back_populates="user", cascade="all, delete-orphan")
