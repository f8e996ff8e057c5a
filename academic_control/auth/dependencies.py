from uuid import UUID

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.models import Profile
from academic_control.auth.schemas import CurrentUser
from academic_control.auth.security import decode_access_token
from academic_control.db.session import get_db


oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/login-oauth")


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> CurrentUser:
    """Resolve the authenticated identity and its role from the access token.

    The role comes from a plain primary-key read of the caller's own profile.
    That read is not policy-gated, so resolving the actor never re-enters the
    policy engine.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )

    try:
        payload = decode_access_token(token)
    except JWTError:
        raise credentials_exception

    user_id_str = payload.get("sub")
    if not user_id_str:
        raise credentials_exception
    try:
        user_id = UUID(user_id_str)
    except ValueError:
        raise credentials_exception

    profile = await db.get(Profile, user_id)
    if profile is None:
        raise credentials_exception

    return CurrentUser(id=profile.id, role=profile.role)
