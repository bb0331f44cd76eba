"""Batch model: a named group of students sharing trainers and timings."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from lurnex.app.core.time import utc_now
from lurnex.app.db.base_class import Base


class Batch(Base):
    __tablename__ = "batches"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, unique=True, index=True, nullable=False)
    course = Column(String, nullable=False, default="General")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    assignments = relationship(
        "BatchAssignment",
        back_populates="batch",
        cascade="all, delete-orphan",
        order_by="BatchAssignment.id",
    )
    students = relationship("User", back_populates="batch", foreign_keys="User.batch_id")
    session_links = relationship("BatchSessionLink", back_populates="batch", cascade="all, delete-orphan")


class BatchAssignment(Base):
    __tablename__ = "batch_assignments"

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    subject = Column(String, nullable=False)
    trainer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    # Free text, e.g. "Mon, Wed, Fri 7:00 PM - 8:30 PM"
    timing = Column(String, nullable=False)

    batch = relationship("Batch", back_populates="assignments")
    trainer = relationship("User")
