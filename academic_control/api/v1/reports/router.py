from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.dependencies import get_current_user
from academic_control.auth.schemas import CurrentUser
from academic_control.core.enums import ReportType
from academic_control.core.exceptions import ServiceError
from academic_control.db.session import get_db

from . import service
from .schemas import ReportCreate, ReportResponse

router = APIRouter(prefix="/api/v1/reports", tags=["reports"])


@router.get("", response_model=List[ReportResponse])
async def list_reports(
    report_type: Optional[ReportType] = Query(None),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ReportResponse]:
    rows = await service.list_reports(db, current_user, report_type=report_type)
    return [ReportResponse.model_validate(r) for r in rows]


@router.post("", response_model=ReportResponse, status_code=status.HTTP_201_CREATED)
async def create_report(
    payload: ReportCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ReportResponse:
    try:
        return ReportResponse.model_validate(await service.create_report(db, current_user, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{report_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_report(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_report(db, current_user, report_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
