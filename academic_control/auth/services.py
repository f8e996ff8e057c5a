import logging
from datetime import datetime, timezone
from typing import Optional
from uuid import uuid4

from fastapi import status
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.models import Account, Profile
from academic_control.auth.policy import Action, PolicyEngine, Resource
from academic_control.auth.schemas import CurrentUser, LoginRequest, RegisterRequest, TokenResponse
from academic_control.auth.security import create_access_token, hash_password, verify_password
from academic_control.core.enums import Role
from academic_control.core.exceptions import AlreadyExists, ServiceError
from academic_control.db.transaction import commit_or_raise

logger = logging.getLogger(__name__)


async def _email_taken(db: AsyncSession, email: str) -> bool:
    result = await db.execute(select(Account.id).where(func.lower(Account.email) == email.lower()))
    return result.scalar_one_or_none() is not None


async def create_account_with_profile(
    db: AsyncSession,
    actor: Optional[CurrentUser],
    *,
    email: str,
    password: str,
    role: Role,
    first_name: str,
    last_name: str,
    phone: Optional[str] = None,
    avatar_url: Optional[str] = None,
) -> Profile:
    """
    Create credentials and the profile they authenticate in one commit.

    actor is None for self-registration: the new identity then acts for itself,
    which the profile insert rules only allow for the student role.
    """
    profile = Profile(
        id=uuid4(),
        role=role.value,
        first_name=first_name.strip(),
        last_name=last_name.strip(),
        phone=phone,
        avatar_url=avatar_url,
    )
    acting = actor or CurrentUser(id=profile.id, role=role)
    await PolicyEngine(db).authorize(acting, Resource.PROFILE, Action.INSERT, profile)

    if await _email_taken(db, email):
        raise AlreadyExists("Email is already in use")

    db.add(profile)
    await db.flush()
    db.add(Account(id=profile.id, email=email.lower(), password_hash=hash_password(password)))
    await commit_or_raise(db, AlreadyExists("Email is already in use"))
    await db.refresh(profile)
    logger.info("Created %s profile %s", profile.role, profile.id)
    return profile


async def register_student(db: AsyncSession, payload: RegisterRequest) -> Profile:
    return await create_account_with_profile(
        db,
        None,
        email=payload.email,
        password=payload.password,
        role=Role.STUDENT,
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone,
    )


async def login_user(db: AsyncSession, payload: LoginRequest) -> TokenResponse:
    result = await db.execute(
        select(Account, Profile)
        .join(Profile, Profile.id == Account.id)
        .where(func.lower(Account.email) == payload.email.lower())
    )
    row = result.first()
    if row is None or not verify_password(payload.password, row.Account.password_hash):
        raise ServiceError("Invalid email or password", status.HTTP_401_UNAUTHORIZED)

    profile = row.Profile
    token = create_access_token(subject={"sub": str(profile.id)})
    return TokenResponse(
        access_token=token,
        role=profile.role,
        user_id=profile.id,
        issued_at=datetime.now(timezone.utc),
    )
