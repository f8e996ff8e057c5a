"""Enrollment ledger and the join-by-code workflow."""

import logging
from collections import defaultdict
from datetime import date
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.api.v1.attendance.service import attendance_to_response
from academic_control.api.v1.classes.service import class_to_response, find_active_class_by_code
from academic_control.api.v1.grades.service import grade_to_response
from academic_control.auth.models import Profile
from academic_control.auth.policy import Action, PolicyEngine, Resource, readable_enrollment_filter
from academic_control.auth.schemas import CurrentUser
from academic_control.core.academic_term import current_term
from academic_control.core.aggregation import (
    attendance_breakdown,
    attendance_rate,
    overall_mean,
    weighted_average,
)
from academic_control.core.enums import Role
from academic_control.core.exceptions import AlreadyEnrolled, Conflict, Forbidden, NotFound, ValidationFailed
from academic_control.core.models import Attendance, Enrollment, Grade, SchoolClass
from academic_control.db.transaction import commit_or_raise

from .schemas import (
    EnrollmentCreate,
    EnrollmentOverviewItem,
    EnrollmentResponse,
    EnrollmentSummary,
    JoinClassResponse,
    StudentOverview,
)

logger = logging.getLogger(__name__)


async def _existing_enrollment(
    db: AsyncSession,
    student_id: UUID,
    class_id: UUID,
    academic_year: str,
    semester: str,
) -> Optional[Enrollment]:
    result = await db.execute(
        select(Enrollment).where(
            Enrollment.student_id == student_id,
            Enrollment.class_id == class_id,
            Enrollment.academic_year == academic_year,
            Enrollment.semester == semester,
        )
    )
    return result.scalar_one_or_none()


async def _get_enrollment_or_404(db: AsyncSession, enrollment_id: UUID) -> Enrollment:
    obj = await db.get(Enrollment, enrollment_id)
    if obj is None:
        raise NotFound("Enrollment not found")
    return obj


async def join_class_by_code(
    db: AsyncSession,
    actor: CurrentUser,
    raw_code: str,
    today: Optional[date] = None,
) -> JoinClassResponse:
    """
    Enroll the calling student in the active class behind raw_code for the current term.

    Steps:
    1. Normalize the code (ValidationFailed on a malformed code).
    2. Resolve an active class (NotFound for unknown or inactive codes).
    3. Enrollment insert policy (Forbidden for non-students).
    4. Already enrolled this term -> AlreadyEnrolled.
    5. Insert. A unique violation at commit means a concurrent join won: AlreadyEnrolled.
    """
    school_class = await find_active_class_by_code(db, raw_code)
    term = current_term(today)

    enrollment = Enrollment(
        student_id=actor.id,
        class_id=school_class.id,
        academic_year=term.academic_year,
        semester=term.semester.value,
    )
    await PolicyEngine(db).authorize(actor, Resource.ENROLLMENT, Action.INSERT, enrollment)

    if await _existing_enrollment(db, actor.id, school_class.id, term.academic_year, term.semester.value):
        raise AlreadyEnrolled()

    db.add(enrollment)
    await commit_or_raise(db, AlreadyEnrolled())
    await db.refresh(enrollment)
    logger.info(
        "Student %s joined class %s for %s %s",
        actor.id,
        school_class.id,
        term.semester.value,
        term.academic_year,
    )
    return JoinClassResponse(
        enrollment=EnrollmentResponse.model_validate(enrollment),
        class_name=school_class.name,
    )


async def create_enrollment(db: AsyncSession, actor: CurrentUser, payload: EnrollmentCreate) -> Enrollment:
    """Admin enrollment with an explicit or current term. Students enroll through join_class_by_code."""
    if actor.role != Role.ADMIN:
        raise Forbidden()

    school_class = await db.get(SchoolClass, payload.class_id)
    if school_class is None:
        raise NotFound("Class not found")

    term = current_term()
    academic_year = payload.academic_year or term.academic_year
    semester = (payload.semester or term.semester).value
    enrollment = Enrollment(
        student_id=payload.student_id,
        class_id=payload.class_id,
        academic_year=academic_year,
        semester=semester,
    )
    await PolicyEngine(db).authorize(actor, Resource.ENROLLMENT, Action.INSERT, enrollment)

    student = await db.get(Profile, payload.student_id)
    if student is None or student.role != Role.STUDENT.value:
        raise ValidationFailed("student_id must reference a student")
    if await _existing_enrollment(db, payload.student_id, payload.class_id, academic_year, semester):
        raise AlreadyEnrolled("Student is already enrolled in this class for this term")

    db.add(enrollment)
    await commit_or_raise(db, AlreadyEnrolled("Student is already enrolled in this class for this term"))
    await db.refresh(enrollment)
    logger.info("Enrolled student %s in class %s by %s", payload.student_id, payload.class_id, actor.id)
    return enrollment


async def list_enrollments(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: Optional[UUID] = None,
    student_id: Optional[UUID] = None,
) -> List[Enrollment]:
    stmt = select(Enrollment).where(readable_enrollment_filter(actor))
    if class_id is not None:
        stmt = stmt.where(Enrollment.class_id == class_id)
    if student_id is not None:
        stmt = stmt.where(Enrollment.student_id == student_id)
    stmt = stmt.order_by(Enrollment.enrolled_at.desc())
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_enrollment(db: AsyncSession, actor: CurrentUser, enrollment_id: UUID) -> Enrollment:
    obj = await _get_enrollment_or_404(db, enrollment_id)
    await PolicyEngine(db).authorize(actor, Resource.ENROLLMENT, Action.SELECT, obj)
    return obj


async def delete_enrollment(db: AsyncSession, actor: CurrentUser, enrollment_id: UUID) -> None:
    """Student leaving, or owning teacher/admin removing. Grades and attendance go with it."""
    obj = await _get_enrollment_or_404(db, enrollment_id)
    await PolicyEngine(db).authorize(actor, Resource.ENROLLMENT, Action.DELETE, obj)
    student_id, class_id = obj.student_id, obj.class_id

    await db.execute(delete(Grade).where(Grade.enrollment_id == enrollment_id))
    await db.execute(delete(Attendance).where(Attendance.enrollment_id == enrollment_id))
    await db.delete(obj)
    await commit_or_raise(db, Conflict("Enrollment is still referenced by other records"))
    if student_id == actor.id:
        logger.info("Student %s left class %s", actor.id, class_id)
    else:
        logger.info("User %s removed student %s from class %s", actor.id, student_id, class_id)


async def enrollment_summary(db: AsyncSession, actor: CurrentUser, enrollment_id: UUID) -> EnrollmentSummary:
    obj = await _get_enrollment_or_404(db, enrollment_id)
    engine = PolicyEngine(db)
    ctx = await engine.enrollment_context(obj)
    engine.check(actor, Resource.GRADE, Action.SELECT, ctx)
    engine.check(actor, Resource.ATTENDANCE, Action.SELECT, ctx)

    school_class = await db.get(SchoolClass, obj.class_id)
    grades = list(
        (
            await db.execute(
                select(Grade).where(Grade.enrollment_id == enrollment_id).order_by(Grade.graded_at.desc())
            )
        ).scalars()
    )
    attendance = list(
        (
            await db.execute(
                select(Attendance).where(Attendance.enrollment_id == enrollment_id).order_by(Attendance.date.desc())
            )
        ).scalars()
    )
    return EnrollmentSummary(
        enrollment=EnrollmentResponse.model_validate(obj),
        school_class=class_to_response(actor, school_class),
        grades=[grade_to_response(g) for g in grades],
        attendance=[attendance_to_response(a) for a in attendance],
        average=weighted_average(grades),
        attendance_rate=attendance_rate(attendance),
        attendance_breakdown=attendance_breakdown(attendance),
    )


async def student_overview(
    db: AsyncSession,
    actor: CurrentUser,
    student_id: Optional[UUID] = None,
) -> StudentOverview:
    """Per-enrollment average and attendance for one student, plus plain means across them.

    Only enrollments the caller may read are included.
    """
    student_id = student_id or actor.id
    result = await db.execute(
        select(Enrollment, SchoolClass)
        .join(SchoolClass, SchoolClass.id == Enrollment.class_id)
        .where(Enrollment.student_id == student_id, readable_enrollment_filter(actor))
        .order_by(SchoolClass.code)
    )
    rows = result.all()
    enrollment_ids = [row.Enrollment.id for row in rows]

    grades_by_enrollment = defaultdict(list)
    attendance_by_enrollment = defaultdict(list)
    if enrollment_ids:
        for g in (await db.execute(select(Grade).where(Grade.enrollment_id.in_(enrollment_ids)))).scalars():
            grades_by_enrollment[g.enrollment_id].append(g)
        for a in (await db.execute(select(Attendance).where(Attendance.enrollment_id.in_(enrollment_ids)))).scalars():
            attendance_by_enrollment[a.enrollment_id].append(a)

    items = [
        EnrollmentOverviewItem(
            enrollment_id=row.Enrollment.id,
            class_id=row.SchoolClass.id,
            class_name=row.SchoolClass.name,
            class_code=row.SchoolClass.code,
            academic_year=row.Enrollment.academic_year,
            semester=row.Enrollment.semester,
            average=weighted_average(grades_by_enrollment[row.Enrollment.id]),
            attendance_rate=attendance_rate(attendance_by_enrollment[row.Enrollment.id]),
        )
        for row in rows
    ]
    return StudentOverview(
        student_id=student_id,
        enrollments=items,
        overall_average=overall_mean([i.average for i in items]),
        overall_attendance=overall_mean([i.attendance_rate for i in items]),
    )
