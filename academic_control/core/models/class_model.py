"""Teacher-owned classes students join with a six-character code. Model named SchoolClass to avoid Python 'class' keyword."""
import uuid
from datetime import datetime

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, Text
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from academic_control.db.session import Base


class SchoolClass(Base):
    """A teachable unit owned by one teacher. Deactivate via is_active; history is kept."""

    __tablename__ = "classes"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name = Column(String(255), nullable=False)
    # Human mnemonic (e.g. MAT101); not unique
    code = Column(String(50), nullable=False)
    # Join token handed to students
    class_code = Column(String(6), nullable=True, unique=True, index=True)
    credits = Column(Integer, nullable=False, default=3)
    description = Column(Text, nullable=True)
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    teacher = relationship("Profile", foreign_keys=[teacher_id])
