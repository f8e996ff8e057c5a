from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from academic_control.core.enums import ReportType, Semester


class ReportCreate(BaseModel):
    report_type: ReportType
    student_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    academic_year: Optional[str] = Field(None, pattern=r"^\d{4}$")
    semester: Optional[Semester] = None
    file_url: Optional[str] = None


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    generated_by: UUID
    report_type: ReportType
    student_id: Optional[UUID] = None
    class_id: Optional[UUID] = None
    academic_year: Optional[str] = None
    semester: Optional[Semester] = None
    file_url: Optional[str] = None
    generated_at: datetime
