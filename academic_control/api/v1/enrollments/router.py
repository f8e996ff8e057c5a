from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.dependencies import get_current_user
from academic_control.auth.rbac import require_role
from academic_control.auth.schemas import CurrentUser
from academic_control.core.enums import Role
from academic_control.core.exceptions import ServiceError
from academic_control.db.session import get_db

from . import service
from .schemas import (
    EnrollmentCreate,
    EnrollmentResponse,
    EnrollmentSummary,
    JoinClassRequest,
    JoinClassResponse,
    StudentOverview,
)

router = APIRouter(prefix="/api/v1/enrollments", tags=["enrollments"])


@router.post("/join", response_model=JoinClassResponse, status_code=status.HTTP_201_CREATED)
async def join_class(
    payload: JoinClassRequest,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> JoinClassResponse:
    """Join an active class by its code for the current term.

    400 malformed code, 404 unknown or inactive code, 409 already enrolled this term.
    """
    try:
        return await service.join_class_by_code(db, current_user, payload.class_code)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post(
    "",
    response_model=EnrollmentResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(Role.ADMIN))],
)
async def create_enrollment(
    payload: EnrollmentCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> EnrollmentResponse:
    try:
        return EnrollmentResponse.model_validate(await service.create_enrollment(db, current_user, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[EnrollmentResponse])
async def list_enrollments(
    class_id: Optional[UUID] = Query(None),
    student_id: Optional[UUID] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[EnrollmentResponse]:
    rows = await service.list_enrollments(db, current_user, class_id=class_id, student_id=student_id)
    return [EnrollmentResponse.model_validate(e) for e in rows]


@router.get("/overview", response_model=StudentOverview)
async def student_overview(
    student_id: Optional[UUID] = Query(None, description="Defaults to the caller"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> StudentOverview:
    return await service.student_overview(db, current_user, student_id)


@router.get("/{enrollment_id}", response_model=EnrollmentResponse)
async def get_enrollment(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> EnrollmentResponse:
    try:
        return EnrollmentResponse.model_validate(await service.get_enrollment(db, current_user, enrollment_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{enrollment_id}/summary", response_model=EnrollmentSummary)
async def get_enrollment_summary(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> EnrollmentSummary:
    try:
        return await service.enrollment_summary(db, current_user, enrollment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{enrollment_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_enrollment(
    enrollment_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    """Leave (own enrollment) or remove (owning teacher / admin)."""
    try:
        await service.delete_enrollment(db, current_user, enrollment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
