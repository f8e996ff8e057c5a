"""Attendance ledger. Writes belong to the teacher owning the enrollment's class."""

from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.policy import Action, PolicyEngine, Resource
from academic_control.auth.schemas import CurrentUser
from academic_control.core.exceptions import AlreadyExists, NotFound, ServiceError
from academic_control.core.models import Attendance, Enrollment
from academic_control.db.transaction import commit_or_raise

from .schemas import AttendanceCreate, AttendanceResponse, AttendanceUpdate


def attendance_to_response(a: Attendance) -> AttendanceResponse:
    return AttendanceResponse(
        id=a.id,
        enrollment_id=a.enrollment_id,
        teacher_id=a.teacher_id,
        date=a.date,
        status=a.status,
        notes=a.notes,
        created_at=a.created_at,
    )


def _duplicate_error(att_date: date) -> AlreadyExists:
    return AlreadyExists(f"Attendance already recorded for this enrollment on {att_date}")


async def _existing_for_day(
    db: AsyncSession,
    enrollment_id: UUID,
    att_date: date,
    exclude_id: Optional[UUID] = None,
) -> Optional[Attendance]:
    stmt = select(Attendance).where(
        Attendance.enrollment_id == enrollment_id,
        Attendance.date == att_date,
    )
    if exclude_id is not None:
        stmt = stmt.where(Attendance.id != exclude_id)
    result = await db.execute(stmt)
    return result.scalar_one_or_none()


async def _get_attendance_or_404(db: AsyncSession, attendance_id: UUID) -> Attendance:
    obj = await db.get(Attendance, attendance_id)
    if obj is None:
        raise NotFound("Attendance record not found")
    return obj


async def list_attendance(db: AsyncSession, actor: CurrentUser, enrollment_id: UUID) -> List[AttendanceResponse]:
    """Most recent day first."""
    enrollment = await db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment not found")
    engine = PolicyEngine(db)
    engine.check(actor, Resource.ATTENDANCE, Action.SELECT, await engine.enrollment_context(enrollment))

    result = await db.execute(
        select(Attendance).where(Attendance.enrollment_id == enrollment_id).order_by(Attendance.date.desc())
    )
    return [attendance_to_response(a) for a in result.scalars().all()]


async def create_attendance(db: AsyncSession, actor: CurrentUser, payload: AttendanceCreate) -> AttendanceResponse:
    if await db.get(Enrollment, payload.enrollment_id) is None:
        raise NotFound("Enrollment not found")

    obj = Attendance(
        enrollment_id=payload.enrollment_id,
        teacher_id=actor.id,
        date=payload.date,
        status=payload.status.value,
        notes=payload.notes,
    )
    await PolicyEngine(db).authorize(actor, Resource.ATTENDANCE, Action.INSERT, obj)

    if await _existing_for_day(db, payload.enrollment_id, payload.date):
        raise _duplicate_error(payload.date)
    db.add(obj)
    await commit_or_raise(db, _duplicate_error(payload.date))
    await db.refresh(obj)
    return attendance_to_response(obj)


async def update_attendance(
    db: AsyncSession,
    actor: CurrentUser,
    attendance_id: UUID,
    payload: AttendanceUpdate,
) -> AttendanceResponse:
    obj = await _get_attendance_or_404(db, attendance_id)
    await PolicyEngine(db).authorize(actor, Resource.ATTENDANCE, Action.UPDATE, obj)

    if payload.date is not None and payload.date != obj.date:
        if await _existing_for_day(db, obj.enrollment_id, payload.date, exclude_id=obj.id):
            raise _duplicate_error(payload.date)
        obj.date = payload.date
    if payload.status is not None:
        obj.status = payload.status.value
    if payload.notes is not None:
        obj.notes = payload.notes
    await commit_or_raise(db, _duplicate_error(obj.date))
    await db.refresh(obj)
    return attendance_to_response(obj)


async def delete_attendance(db: AsyncSession, actor: CurrentUser, attendance_id: UUID) -> None:
    obj = await _get_attendance_or_404(db, attendance_id)
    await PolicyEngine(db).authorize(actor, Resource.ATTENDANCE, Action.DELETE, obj)
    await db.delete(obj)
    await commit_or_raise(db, ServiceError("Could not delete attendance record"))
