import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, Float, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID

from academic_control.core.enums import GradeType
from academic_control.db.session import Base


class Grade(Base):
    """Weighted grade entry for one enrollment. Weight is a free relative-importance coefficient."""

    __tablename__ = "grades"
    __table_args__ = (
        CheckConstraint(
            "grade_type IN ('exam', 'quiz', 'assignment', 'project', 'midterm', 'final')",
            name="ck_grade_type",
        ),
        CheckConstraint("grade_value >= 0", name="ck_grade_value_non_negative"),
        CheckConstraint("max_value > 0", name="ck_grade_max_positive"),
        CheckConstraint("weight >= 0 AND weight <= 1", name="ck_grade_weight_range"),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    enrollment_id = Column(UUID(as_uuid=True), ForeignKey("enrollments.id", ondelete="CASCADE"), nullable=False, index=True)
    # Author; always the teacher owning the enrollment's class
    teacher_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    grade_type = Column(String(20), nullable=False, default=GradeType.ASSIGNMENT.value)
    grade_value = Column(Float, nullable=False)
    max_value = Column(Float, nullable=False)
    weight = Column(Float, nullable=False, default=1.0)
    description = Column(Text, nullable=True)
    graded_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
    created_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
