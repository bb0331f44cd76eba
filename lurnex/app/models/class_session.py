"""Class session model: one scheduled live occurrence bound to a trainer and a roster."""

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.orm import relationship

from lurnex.app.core.time import utc_now
from lurnex.app.db.base_class import Base

SESSION_STATUSES = ("scheduled", "completed", "cancelled")
CANCELLING_PARTIES = ("student", "trainer", "admin")


class ClassSession(Base):
    __tablename__ = "class_sessions"
    __table_args__ = (
        CheckConstraint("end_time > start_time", name="ck_class_session_end_after_start"),
    )

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    trainer_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    start_time = Column(DateTime(timezone=True), nullable=False, index=True)
    end_time = Column(DateTime(timezone=True), nullable=False)
    join_url = Column(String, nullable=False)
    recording_url = Column(String, nullable=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="SET NULL"), nullable=True, index=True)

    status = Column(String(20), nullable=False, default="scheduled", index=True)
    remark = Column(Text, nullable=True)
    completed_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)
    cancellation_reason = Column(Text, nullable=True)
    cancelled_by = Column(String(20), nullable=True)

    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now)

    trainer = relationship("User", foreign_keys=[trainer_id])
    batch = relationship("Batch", foreign_keys=[batch_id])
    roster_links = relationship(
        "SessionRosterLink",
        back_populates="session",
        cascade="all, delete-orphan",
        order_by="SessionRosterLink.student_id",
    )
    batch_links = relationship("BatchSessionLink", back_populates="session", cascade="all, delete-orphan")
    enrollments = relationship("Enrollment", back_populates="session", cascade="all, delete-orphan")

    @property
    def student_ids(self) -> list[int]:
        return [link.student_id for link in self.roster_links]
