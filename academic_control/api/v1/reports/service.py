"""Report metadata. Producing the report file itself happens outside this service."""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.policy import Action, PolicyEngine, Resource, readable_report_filter
from academic_control.auth.schemas import CurrentUser
from academic_control.core.enums import ReportType
from academic_control.core.exceptions import NotFound, ServiceError, ValidationFailed
from academic_control.core.models import Report, SchoolClass
from academic_control.db.transaction import commit_or_raise

from .schemas import ReportCreate


async def list_reports(
    db: AsyncSession,
    actor: CurrentUser,
    report_type: Optional[ReportType] = None,
) -> List[Report]:
    stmt = select(Report).where(readable_report_filter(actor))
    if report_type is not None:
        stmt = stmt.where(Report.report_type == report_type.value)
    stmt = stmt.order_by(Report.generated_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def create_report(db: AsyncSession, actor: CurrentUser, payload: ReportCreate) -> Report:
    obj = Report(
        generated_by=actor.id,
        report_type=payload.report_type.value,
        student_id=payload.student_id,
        class_id=payload.class_id,
        academic_year=payload.academic_year,
        semester=payload.semester.value if payload.semester else None,
        file_url=payload.file_url,
    )
    await PolicyEngine(db).authorize(actor, Resource.REPORT, Action.INSERT, obj)

    if payload.report_type == ReportType.CLASS_PERFORMANCE and payload.class_id is None:
        raise ValidationFailed("class_id is required for class_performance reports")
    if payload.report_type != ReportType.CLASS_PERFORMANCE and payload.student_id is None:
        raise ValidationFailed("student_id is required for student reports")
    if payload.class_id is not None and await db.get(SchoolClass, payload.class_id) is None:
        raise NotFound("Class not found")

    db.add(obj)
    await commit_or_raise(db, ValidationFailed("Report references unknown records"))
    await db.refresh(obj)
    return obj


async def delete_report(db: AsyncSession, actor: CurrentUser, report_id: UUID) -> None:
    obj = await db.get(Report, report_id)
    if obj is None:
        raise NotFound("Report not found")
    await PolicyEngine(db).authorize(actor, Resource.REPORT, Action.DELETE, obj)
    await db.delete(obj)
    await commit_or_raise(db, ServiceError("Could not delete report"))
