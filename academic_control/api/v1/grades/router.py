from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.dependencies import get_current_user
from academic_control.auth.schemas import CurrentUser
from academic_control.core.exceptions import ServiceError
from academic_control.db.session import get_db

from . import service
from .schemas import GradeCreate, GradeResponse, GradeUpdate

router = APIRouter(prefix="/api/v1/grades", tags=["grades"])


@router.get("", response_model=List[GradeResponse])
async def list_grades(
    enrollment_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[GradeResponse]:
    try:
        return await service.list_grades(db, current_user, enrollment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=GradeResponse, status_code=status.HTTP_201_CREATED)
async def create_grade(
    payload: GradeCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> GradeResponse:
    """Owning teacher only; teacher_id is always the caller."""
    try:
        return await service.create_grade(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{grade_id}", response_model=GradeResponse)
async def update_grade(
    grade_id: UUID,
    payload: GradeUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> GradeResponse:
    try:
        return await service.update_grade(db, current_user, grade_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{grade_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_grade(
    grade_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_grade(db, current_user, grade_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
