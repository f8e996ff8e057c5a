import uuid
from datetime import datetime

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, Text
from sqlalchemy.dialects.postgresql import UUID

from academic_control.db.session import Base


class Report(Base):
    """Metadata for a generated report; the file itself lives elsewhere (file_url)."""

    __tablename__ = "reports"
    __table_args__ = (
        CheckConstraint(
            "report_type IN ('student_grades', 'attendance_summary', 'class_performance')",
            name="ck_report_type",
        ),
    )

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    generated_by = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False, index=True)
    report_type = Column(String(30), nullable=False)
    student_id = Column(UUID(as_uuid=True), ForeignKey("profiles.id", ondelete="CASCADE"), nullable=True, index=True)
    class_id = Column(UUID(as_uuid=True), ForeignKey("classes.id", ondelete="CASCADE"), nullable=True)
    academic_year = Column(String(10), nullable=True)
    semester = Column(String(10), nullable=True)
    file_url = Column(Text, nullable=True)
    generated_at = Column(DateTime(timezone=True), default=datetime.utcnow, nullable=False)
