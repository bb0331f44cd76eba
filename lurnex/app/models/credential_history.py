"""Credential history: the most recent password hashes per account."""

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from lurnex.app.core.time import utc_now
from lurnex.app.db.base_class import Base


class CredentialHistoryEntry(Base):
    __tablename__ = "credential_history"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    password_hash = Column(String, nullable=False)
    changed_at = Column(DateTime(timezone=True), nullable=False, default=utc_now)
    changed_by_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    is_temporary = Column(Boolean, nullable=False, default=False)

    user = relationship("User", back_populates="credential_history", foreign_keys=[user_id])
    changed_by = relationship("User", foreign_keys=[changed_by_id])
