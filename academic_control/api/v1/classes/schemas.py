from datetime import datetime
from typing import List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from academic_control.core.enums import EnrollmentState


class ClassCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
    code: str = Field(..., min_length=1, max_length=50, description="Human mnemonic, e.g. MAT101")
    credits: int = Field(3, ge=0)
    description: Optional[str] = None
    # Admin only: the owning teacher. Teachers always own what they create.
    teacher_id: Optional[UUID] = None


class ClassUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1, max_length=255)
    code: Optional[str] = Field(None, min_length=1, max_length=50)
    credits: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None
    is_active: Optional[bool] = None


class ClassResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    code: str
    class_code: Optional[str] = None
    credits: int
    description: Optional[str] = None
    teacher_id: UUID
    is_active: bool
    created_at: datetime


class ClassLookupResponse(BaseModel):
    """Result of validating a join code before enrolling."""

    id: UUID
    name: str
    code: str
    credits: int
    description: Optional[str] = None
    teacher_id: UUID
    state: EnrollmentState = EnrollmentState.PENDING


class RosterEntry(BaseModel):
    enrollment_id: UUID
    student_id: UUID
    first_name: str
    last_name: str
    academic_year: str
    semester: str
    average: float
    attendance_rate: float


class ClassRosterResponse(BaseModel):
    class_id: UUID
    class_average: float
    class_attendance_rate: float
    students: List[RosterEntry]
