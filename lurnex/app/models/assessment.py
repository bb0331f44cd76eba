"""Practice assessments and the scores students earned on them."""

from sqlalchemy import JSON, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from lurnex.app.core.time import utc_now
from lurnex.app.db.base_class import Base


class Assessment(Base):
    __tablename__ = "assessments"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(255), nullable=False)
    duration_minutes = Column(Integer, nullable=False)
    # [{"question_text": ..., "options": [...], "correct_answer": ...}, ...]
    questions = Column(JSON, nullable=False, default=list)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    submissions = relationship("Submission", back_populates="assessment", cascade="all, delete-orphan")


class Submission(Base):
    __tablename__ = "submissions"
    __table_args__ = (UniqueConstraint("assessment_id", "student_id", name="uq_submission_student"),)

    id = Column(Integer, primary_key=True, index=True)
    assessment_id = Column(Integer, ForeignKey("assessments.id", ondelete="CASCADE"), nullable=False, index=True)
    student_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    score = Column(String(50), nullable=False)
    submitted_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)

    assessment = relationship("Assessment", back_populates="submissions")
    student = relationship("User")
