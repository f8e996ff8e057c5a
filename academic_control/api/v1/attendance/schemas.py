import datetime as dt
from typing import Optional
from uuid import UUID

from pydantic import BaseModel

from academic_control.core.enums import AttendanceStatus


class AttendanceCreate(BaseModel):
    """One record per enrollment per day."""

    enrollment_id: UUID
    date: dt.date
    status: AttendanceStatus = AttendanceStatus.PRESENT
    notes: Optional[str] = None


class AttendanceUpdate(BaseModel):
    date: Optional[dt.date] = None
    status: Optional[AttendanceStatus] = None
    notes: Optional[str] = None


class AttendanceResponse(BaseModel):
    id: UUID
    enrollment_id: UUID
    teacher_id: UUID
    date: dt.date
    status: AttendanceStatus
    notes: Optional[str] = None
    created_at: dt.datetime
