import logging
from datetime import datetime
from typing import List, Optional
from uuid import UUID

from fastapi import status
from sqlalchemy import delete, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.models import Account, Profile
from academic_control.auth.policy import Action, PolicyEngine, Resource, readable_profile_filter
from academic_control.auth.schemas import CurrentUser
from academic_control.auth.services import create_account_with_profile
from academic_control.core.enums import Role
from academic_control.core.exceptions import Conflict, NotFound, ServiceError
from academic_control.core.models import Attendance, Enrollment, Grade, Report, SchoolClass
from academic_control.db.transaction import commit_or_raise

from .schemas import ProfileCreate, ProfileUpdate

logger = logging.getLogger(__name__)


async def list_profiles(
    db: AsyncSession,
    actor: CurrentUser,
    role: Optional[Role] = None,
    search: Optional[str] = None,
) -> List[Profile]:
    """Profiles the caller may read, ordered by last name. search matches name or role, case-insensitive."""
    stmt = select(Profile).where(readable_profile_filter(actor))
    if role is not None:
        stmt = stmt.where(Profile.role == role.value)
    if search and search.strip():
        term = f"%{search.strip().lower()}%"
        full_name = func.lower(Profile.first_name + " " + Profile.last_name)
        stmt = stmt.where(or_(full_name.like(term), func.lower(Profile.role).like(term)))
    stmt = stmt.order_by(Profile.last_name, Profile.first_name)
    result = await db.execute(stmt)
    return list(result.scalars().all())


async def get_profile(db: AsyncSession, actor: CurrentUser, profile_id: UUID) -> Profile:
    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise NotFound("Profile not found")
    await PolicyEngine(db).authorize(actor, Resource.PROFILE, Action.SELECT, profile)
    return profile


async def create_profile(db: AsyncSession, actor: CurrentUser, payload: ProfileCreate) -> Profile:
    return await create_account_with_profile(
        db,
        actor,
        email=payload.email,
        password=payload.password,
        role=payload.role,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
        avatar_url=payload.avatar_url,
    )


async def update_profile(
    db: AsyncSession,
    actor: CurrentUser,
    profile_id: UUID,
    payload: ProfileUpdate,
) -> Profile:
    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise NotFound("Profile not found")
    await PolicyEngine(db).authorize(actor, Resource.PROFILE, Action.UPDATE, profile)

    for field, value in payload.model_dump(exclude_unset=True).items():
        if isinstance(value, str):
            value = value.strip()
        setattr(profile, field, value)
    profile.updated_at = datetime.utcnow()
    await commit_or_raise(db, ServiceError("Could not update profile", status.HTTP_400_BAD_REQUEST))
    await db.refresh(profile)
    return profile


async def delete_profile(db: AsyncSession, actor: CurrentUser, profile_id: UUID) -> None:
    """
    Admin-only. A teacher who still owns classes cannot be deleted; a student's
    enrollments, their ledgers and reports about them go with the profile.
    """
    profile = await db.get(Profile, profile_id)
    if profile is None:
        raise NotFound("Profile not found")
    await PolicyEngine(db).authorize(actor, Resource.PROFILE, Action.DELETE, profile)

    owned = await db.execute(select(SchoolClass.id).where(SchoolClass.teacher_id == profile_id).limit(1))
    if owned.scalar_one_or_none() is not None:
        raise Conflict("Cannot delete teacher: they still own classes")

    enrollment_ids = select(Enrollment.id).where(Enrollment.student_id == profile_id)
    await db.execute(delete(Grade).where(Grade.enrollment_id.in_(enrollment_ids)))
    await db.execute(delete(Attendance).where(Attendance.enrollment_id.in_(enrollment_ids)))
    await db.execute(delete(Enrollment).where(Enrollment.student_id == profile_id))
    await db.execute(
        delete(Report).where(or_(Report.student_id == profile_id, Report.generated_by == profile_id))
    )
    await db.execute(delete(Account).where(Account.id == profile_id))
    await db.delete(profile)
    await commit_or_raise(db, Conflict("Profile is still referenced by other records"))
    logger.info("Deleted profile %s", profile_id)
