"""Id-pair link tables between batches, sessions and students.

Each pair is unique, so appending is a set operation.
"""

from sqlalchemy import Column, ForeignKey, Integer, UniqueConstraint
from sqlalchemy.orm import relationship

from lurnex.app.db.base_class import Base


class BatchSessionLink(Base):
    __tablename__ = "batch_sessions"

    id = Column(Integer, primary_key=True, index=True)
    batch_id = Column(Integer, ForeignKey("batches.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("batch_id", "session_id", name="uq_batch_session"),
    )

    batch = relationship("Batch", back_populates="session_links")
    session = relationship("ClassSession", back_populates="batch_links")


class SessionRosterLink(Base):
    __tablename__ = "session_roster"

    id = Column(Integer, primary_key=True, index=True)
    session_id = Column(Integer, ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("session_id", "student_id", name="uq_session_roster"),
    )

    session = relationship("ClassSession", back_populates="roster_links")
    student = relationship("User")


class Enrollment(Base):
    __tablename__ = "enrollments"

    id = Column(Integer, primary_key=True, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    session_id = Column(Integer, ForeignKey("class_sessions.id", ondelete="CASCADE"), nullable=False, index=True)

    __table_args__ = (
        UniqueConstraint("student_id", "session_id", name="uq_enrollment"),
    )

    student = relationship("User", back_populates="enrollments")
    session = relationship("ClassSession", back_populates="enrollments")
