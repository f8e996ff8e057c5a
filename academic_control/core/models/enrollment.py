import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from academic_control.db.session import Base


class Enrollment(Base):
    """Student membership in a class for one academic term."""

    __tablename__ = "enrollments"
    __table_args__ = (
        # One enrollment per student, class and term; final arbiter for concurrent joins
        UniqueConstraint("student_id", "class_id", "academic_year", "semester", name="uq_enrollment_student_class_term"),
        CheckConstraint("semester IN ('Spring', 'Fall')", name="ck_enrollment_semester"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=False, index=True)
    academic_year = Column(String(10), nullable=False)  # e.g. "2025"
    semester = Column(String(10), nullable=False)  # Spring | Fall
    enrolled_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)

    student = relationship("Profile", foreign_keys=[student_id])
    school_class = relationship("SchoolClass", foreign_keys=[class_id])
