import logging
from collections import defaultdict
from typing import List, Optional
from uuid import UUID

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.models import Profile
from academic_control.auth.policy import (
    Action,
    PolicyContext,
    PolicyEngine,
    Resource,
    evaluate,
    readable_class_filter,
)
from academic_control.auth.schemas import CurrentUser
from academic_control.core.aggregation import attendance_rate, overall_mean, weighted_average
from academic_control.core.class_code import generate_class_code, normalize_class_code
from academic_control.core.config import settings
from academic_control.core.enums import Role
from academic_control.core.exceptions import Conflict, NotFound, StorageFailure, ValidationFailed
from academic_control.core.models import Attendance, Enrollment, Grade, Report, SchoolClass
from academic_control.db.transaction import commit_or_raise

from .schemas import ClassCreate, ClassLookupResponse, ClassResponse, ClassRosterResponse, ClassUpdate, RosterEntry

logger = logging.getLogger(__name__)


def class_to_response(actor: CurrentUser, obj: SchoolClass) -> ClassResponse:
    """Serialize a class. The join code is only shown to callers who may manage the class."""
    response = ClassResponse.model_validate(obj)
    ctx = PolicyContext(class_teacher_id=obj.teacher_id, class_is_active=obj.is_active)
    if not evaluate(actor, Resource.CLASS, Action.UPDATE, ctx):
        response.class_code = None
    return response


def _is_class_code_collision(exc: IntegrityError) -> bool:
    return "class_code" in str(exc.orig)


async def _class_code_taken(db: AsyncSession, code: str) -> bool:
    result = await db.execute(select(SchoolClass.id).where(SchoolClass.class_code == code))
    return result.scalar_one_or_none() is not None


async def commit_with_fresh_code(db: AsyncSession, obj: SchoolClass, max_attempts: int) -> int:
    """
    Assign random class codes to obj and commit until one sticks.

    The unique index on class_code is the arbiter: a collision at commit time is
    rolled back and retried with a new draw. Returns the attempt that succeeded.
    """
    for attempt in range(1, max_attempts + 1):
        candidate = generate_class_code()
        if await _class_code_taken(db, candidate):
            continue
        obj.class_code = candidate
        db.add(obj)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if not _is_class_code_collision(e):
                raise Conflict("Class violates a data constraint") from e
            logger.warning("Class code collision on commit (attempt %d)", attempt)
            continue
        except SQLAlchemyError as e:
            await db.rollback()
            logger.exception("Storage failure while saving class")
            raise StorageFailure() from e
        return attempt
    raise Conflict("Could not generate a unique class code")


async def _get_class_or_404(db: AsyncSession, class_id: UUID) -> SchoolClass:
    obj = await db.get(SchoolClass, class_id)
    if obj is None:
        raise NotFound("Class not found")
    return obj


async def list_classes(
    db: AsyncSession,
    actor: CurrentUser,
    mine: bool = False,
    active_only: bool = False,
) -> List[SchoolClass]:
    stmt = select(SchoolClass).where(readable_class_filter(actor))
    if mine:
        stmt = stmt.where(SchoolClass.teacher_id == actor.id)
    if active_only:
        stmt = stmt.where(SchoolClass.is_active.is_(True))
    stmt = stmt.order_by(SchoolClass.code, SchoolClass.name)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_class(db: AsyncSession, actor: CurrentUser, class_id: UUID) -> SchoolClass:
    obj = await _get_class_or_404(db, class_id)
    await PolicyEngine(db).authorize(actor, Resource.CLASS, Action.SELECT, obj)
    return obj


async def find_active_class_by_code(db: AsyncSession, raw_code: str) -> SchoolClass:
    """Active class for a join code. Inactive and unknown codes look the same to the caller."""
    code = normalize_class_code(raw_code)
    result = await db.execute(
        select(SchoolClass).where(
            SchoolClass.class_code == code,
            SchoolClass.is_active.is_(True),
        )
    )
    obj = result.scalar_one_or_none()
    if obj is None:
        raise NotFound("Invalid class code")
    return obj


async def lookup_class_by_code(db: AsyncSession, actor: CurrentUser, raw_code: str) -> ClassLookupResponse:
    obj = await find_active_class_by_code(db, raw_code)
    await PolicyEngine(db).authorize(actor, Resource.CLASS, Action.SELECT, obj)
    return ClassLookupResponse(
        id=obj.id,
        name=obj.name,
        code=obj.code,
        credits=obj.credits,
        description=obj.description,
        teacher_id=obj.teacher_id,
    )


async def create_class(db: AsyncSession, actor: CurrentUser, payload: ClassCreate) -> SchoolClass:
    if actor.role == Role.TEACHER:
        teacher_id = actor.id
    else:
        teacher_id = payload.teacher_id

    obj = SchoolClass(
        name=payload.name.strip(),
        code=payload.code.strip().upper(),
        credits=payload.credits,
        description=payload.description,
        teacher_id=teacher_id,
        is_active=True,
    )
    await PolicyEngine(db).authorize(actor, Resource.CLASS, Action.INSERT, obj)

    if teacher_id is None:
        raise ValidationFailed("teacher_id is required")
    teacher = await db.get(Profile, teacher_id)
    if teacher is None or teacher.role != Role.TEACHER.value:
        raise ValidationFailed("teacher_id must reference a teacher")

    attempts = await commit_with_fresh_code(db, obj, settings.class_code_max_attempts)
    await db.refresh(obj)
    logger.info("Created class %s (%s) for teacher %s after %d code attempt(s)", obj.id, obj.code, teacher_id, attempts)
    return obj


async def update_class(
    db: AsyncSession,
    actor: CurrentUser,
    class_id: UUID,
    payload: ClassUpdate,
) -> SchoolClass:
    obj = await _get_class_or_404(db, class_id)
    await PolicyEngine(db).authorize(actor, Resource.CLASS, Action.UPDATE, obj)

    if payload.name is not None:
        obj.name = payload.name.strip()
    if payload.code is not None:
        obj.code = payload.code.strip().upper()
    if payload.credits is not None:
        obj.credits = payload.credits
    if payload.description is not None:
        obj.description = payload.description
    if payload.is_active is not None:
        obj.is_active = payload.is_active
    await commit_or_raise(db, Conflict("Class could not be updated"))
    await db.refresh(obj)
    return obj


async def regenerate_class_code(db: AsyncSession, actor: CurrentUser, class_id: UUID) -> SchoolClass:
    """Issue a new join code. Existing enrollments are unaffected; the old code stops working."""
    obj = await _get_class_or_404(db, class_id)
    await PolicyEngine(db).authorize(actor, Resource.CLASS, Action.UPDATE, obj)
    await commit_with_fresh_code(db, obj, settings.class_code_max_attempts)
    await db.refresh(obj)
    logger.info("Regenerated join code for class %s", obj.id)
    return obj


async def delete_class(db: AsyncSession, actor: CurrentUser, class_id: UUID) -> None:
    """Delete a class with its enrollments, their grades and attendance, and its reports."""
    obj = await _get_class_or_404(db, class_id)
    await PolicyEngine(db).authorize(actor, Resource.CLASS, Action.DELETE, obj)

    enrollment_ids = select(Enrollment.id).where(Enrollment.class_id == class_id)
    await db.execute(delete(Grade).where(Grade.enrollment_id.in_(enrollment_ids)))
    await db.execute(delete(Attendance).where(Attendance.enrollment_id.in_(enrollment_ids)))
    await db.execute(delete(Enrollment).where(Enrollment.class_id == class_id))
    await db.execute(delete(Report).where(Report.class_id == class_id))
    await db.delete(obj)
    await commit_or_raise(db, Conflict("Class is still referenced by other records"))
    logger.info("Deleted class %s", class_id)


async def class_roster(db: AsyncSession, actor: CurrentUser, class_id: UUID) -> ClassRosterResponse:
    """Enrolled students with their average and attendance rate. Owning teacher or admin."""
    await _get_class_or_404(db, class_id)
    engine = PolicyEngine(db)
    # No student on the context: only the class-owner and admin rules can match
    engine.check(actor, Resource.ENROLLMENT, Action.SELECT, await engine.class_context(class_id))

    result = await db.execute(
        select(Enrollment, Profile)
        .join(Profile, Profile.id == Enrollment.student_id)
        .where(Enrollment.class_id == class_id)
        .order_by(Profile.last_name, Profile.first_name)
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

    students = [
        RosterEntry(
            enrollment_id=row.Enrollment.id,
            student_id=row.Profile.id,
            first_name=row.Profile.first_name,
            last_name=row.Profile.last_name,
            academic_year=row.Enrollment.academic_year,
            semester=row.Enrollment.semester,
            average=weighted_average(grades_by_enrollment[row.Enrollment.id]),
            attendance_rate=attendance_rate(attendance_by_enrollment[row.Enrollment.id]),
        )
        for row in rows
    ]
    return ClassRosterResponse(
        class_id=class_id,
        class_average=overall_mean([s.average for s in students]),
        class_attendance_rate=overall_mean([s.attendance_rate for s in students]),
        students=students,
    )
