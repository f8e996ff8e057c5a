from datetime import datetime
from typing import Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from academic_control.api.v1.attendance.schemas import AttendanceResponse
from academic_control.api.v1.classes.schemas import ClassResponse
from academic_control.api.v1.grades.schemas import GradeResponse
from academic_control.core.enums import EnrollmentState, Semester


class JoinClassRequest(BaseModel):
    class_code: str = Field(..., min_length=1, max_length=20, description="Six-character join code, any case")


class EnrollmentCreate(BaseModel):
    """Admin enrollment. Term defaults to the current one."""

    student_id: UUID
    class_id: UUID
    academic_year: Optional[str] = Field(None, pattern=r"^\d{4}$")
    semester: Optional[Semester] = None


class EnrollmentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_id: UUID
    class_id: UUID
    academic_year: str
    semester: Semester
    enrolled_at: datetime


class JoinClassResponse(BaseModel):
    enrollment: EnrollmentResponse
    class_name: str
    state: EnrollmentState = EnrollmentState.ENROLLED


class EnrollmentSummary(BaseModel):
    enrollment: EnrollmentResponse
    school_class: ClassResponse
    grades: List[GradeResponse]
    attendance: List[AttendanceResponse]
    average: float
    attendance_rate: float
    attendance_breakdown: Dict[str, int]


class EnrollmentOverviewItem(BaseModel):
    enrollment_id: UUID
    class_id: UUID
    class_name: str
    class_code: str
    academic_year: str
    semester: Semester
    average: float
    attendance_rate: float


class StudentOverview(BaseModel):
    student_id: UUID
    enrollments: List[EnrollmentOverviewItem]
    overall_average: float
    overall_attendance: float
