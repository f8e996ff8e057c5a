from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field

from academic_control.core.enums import GradeType


class GradeCreate(BaseModel):
    enrollment_id: UUID
    grade_type: GradeType = GradeType.ASSIGNMENT
    grade_value: float = Field(..., allow_inf_nan=False)
    max_value: float = Field(100.0, allow_inf_nan=False)
    weight: float = Field(1.0, allow_inf_nan=False)
    description: Optional[str] = None
    graded_at: Optional[datetime] = None


class GradeUpdate(BaseModel):
    grade_type: Optional[GradeType] = None
    grade_value: Optional[float] = Field(None, allow_inf_nan=False)
    max_value: Optional[float] = Field(None, allow_inf_nan=False)
    weight: Optional[float] = Field(None, allow_inf_nan=False)
    description: Optional[str] = None
    graded_at: Optional[datetime] = None


class GradeResponse(BaseModel):
    id: UUID
    enrollment_id: UUID
    teacher_id: UUID
    grade_type: GradeType
    grade_value: float
    max_value: float
    weight: float
    percentage: float
    description: Optional[str] = None
    graded_at: datetime
    created_at: datetime
