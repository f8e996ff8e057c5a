"""Attendance API router."""

from typing import List
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.dependencies import get_current_user
from academic_control.auth.schemas import CurrentUser
from academic_control.core.exceptions import ServiceError
from academic_control.db.session import get_db

from . import service
from .schemas import AttendanceCreate, AttendanceResponse, AttendanceUpdate

router = APIRouter(prefix="/api/v1/attendance", tags=["attendance"])


@router.get("", response_model=List[AttendanceResponse])
async def list_attendance(
    enrollment_id: UUID = Query(...),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[AttendanceResponse]:
    try:
        return await service.list_attendance(db, current_user, enrollment_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("", response_model=AttendanceResponse, status_code=status.HTTP_201_CREATED)
async def create_attendance(
    payload: AttendanceCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AttendanceResponse:
    try:
        return await service.create_attendance(db, current_user, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{attendance_id}", response_model=AttendanceResponse)
async def update_attendance(
    attendance_id: UUID,
    payload: AttendanceUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> AttendanceResponse:
    try:
        return await service.update_attendance(db, current_user, attendance_id, payload)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{attendance_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_attendance(
    attendance_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_attendance(db, current_user, attendance_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
