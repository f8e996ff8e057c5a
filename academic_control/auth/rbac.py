from fastapi import Depends, HTTPException, status

from academic_control.auth.dependencies import get_current_user
from academic_control.auth.schemas import CurrentUser
from academic_control.core.enums import Role


def require_role(*roles: Role):
    """
    Dependency factory for endpoints only some roles may call at all.

    Example:
        Depends(require_role(Role.TEACHER, Role.ADMIN))
    """

    async def _checker(current_user: CurrentUser = Depends(get_current_user)) -> CurrentUser:
        if current_user.role not in roles:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return current_user

    return _checker
