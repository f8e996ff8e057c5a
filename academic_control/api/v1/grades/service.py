import math
from datetime import datetime
from typing import List
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.policy import Action, PolicyEngine, Resource
from academic_control.auth.schemas import CurrentUser
from academic_control.core.aggregation import grade_percentage
from academic_control.core.exceptions import NotFound, ServiceError, ValidationFailed
from academic_control.core.models import Enrollment, Grade
from academic_control.db.transaction import commit_or_raise

from .schemas import GradeCreate, GradeResponse, GradeUpdate


def grade_to_response(g: Grade) -> GradeResponse:
    return GradeResponse(
        id=g.id,
        enrollment_id=g.enrollment_id,
        teacher_id=g.teacher_id,
        grade_type=g.grade_type,
        grade_value=g.grade_value,
        max_value=g.max_value,
        weight=g.weight,
        percentage=grade_percentage(g),
        description=g.description,
        graded_at=g.graded_at,
        created_at=g.created_at,
    )


def _validate_values(grade_value: float, max_value: float, weight: float) -> None:
    # Range checks below are all False for NaN
    if not all(math.isfinite(v) for v in (grade_value, max_value, weight)):
        raise ValidationFailed("grade_value, max_value and weight must be finite numbers")
    if grade_value < 0:
        raise ValidationFailed("grade_value must be zero or greater")
    if max_value <= 0:
        raise ValidationFailed("max_value must be greater than zero")
    if weight < 0 or weight > 1:
        raise ValidationFailed("weight must be between 0 and 1")


async def _get_grade_or_404(db: AsyncSession, grade_id: UUID) -> Grade:
    obj = await db.get(Grade, grade_id)
    if obj is None:
        raise NotFound("Grade not found")
    return obj


async def list_grades(db: AsyncSession, actor: CurrentUser, enrollment_id: UUID) -> List[GradeResponse]:
    """Newest first."""
    enrollment = await db.get(Enrollment, enrollment_id)
    if enrollment is None:
        raise NotFound("Enrollment not found")
    engine = PolicyEngine(db)
    engine.check(actor, Resource.GRADE, Action.SELECT, await engine.enrollment_context(enrollment))

    result = await db.execute(
        select(Grade).where(Grade.enrollment_id == enrollment_id).order_by(Grade.graded_at.desc())
    )
    return [grade_to_response(g) for g in result.scalars().all()]


async def create_grade(db: AsyncSession, actor: CurrentUser, payload: GradeCreate) -> GradeResponse:
    if await db.get(Enrollment, payload.enrollment_id) is None:
        raise NotFound("Enrollment not found")

    obj = Grade(
        enrollment_id=payload.enrollment_id,
        teacher_id=actor.id,
        grade_type=payload.grade_type.value,
        grade_value=payload.grade_value,
        max_value=payload.max_value,
        weight=payload.weight,
        description=payload.description,
        graded_at=payload.graded_at or datetime.utcnow(),
    )
    await PolicyEngine(db).authorize(actor, Resource.GRADE, Action.INSERT, obj)
    _validate_values(obj.grade_value, obj.max_value, obj.weight)

    db.add(obj)
    await commit_or_raise(db, ValidationFailed("Grade violates value constraints"))
    await db.refresh(obj)
    return grade_to_response(obj)


async def update_grade(
    db: AsyncSession,
    actor: CurrentUser,
    grade_id: UUID,
    payload: GradeUpdate,
) -> GradeResponse:
    obj = await _get_grade_or_404(db, grade_id)
    await PolicyEngine(db).authorize(actor, Resource.GRADE, Action.UPDATE, obj)

    changes = payload.model_dump(exclude_unset=True, exclude_none=True)
    _validate_values(
        changes.get("grade_value", obj.grade_value),
        changes.get("max_value", obj.max_value),
        changes.get("weight", obj.weight),
    )
    for field, value in changes.items():
        if field == "grade_type":
            value = value.value
        setattr(obj, field, value)
    await commit_or_raise(db, ValidationFailed("Grade violates value constraints"))
    await db.refresh(obj)
    return grade_to_response(obj)


async def delete_grade(db: AsyncSession, actor: CurrentUser, grade_id: UUID) -> None:
    obj = await _get_grade_or_404(db, grade_id)
    await PolicyEngine(db).authorize(actor, Resource.GRADE, Action.DELETE, obj)
    await db.delete(obj)
    await commit_or_raise(db, ServiceError("Could not delete grade"))
