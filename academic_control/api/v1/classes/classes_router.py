from typing import List
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
from .schemas import ClassCreate, ClassLookupResponse, ClassResponse, ClassRosterResponse, ClassUpdate

router = APIRouter(prefix="/api/v1/classes", tags=["classes"])


@router.post(
    "",
    response_model=ClassResponse,
    status_code=status.HTTP_201_CREATED,
    dependencies=[Depends(require_role(Role.TEACHER, Role.ADMIN))],
)
async def create_class(
    payload: ClassCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassResponse:
    try:
        return service.class_to_response(current_user, await service.create_class(db, current_user, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("", response_model=List[ClassResponse])
async def list_classes(
    mine: bool = Query(False, description="Only classes the caller owns"),
    active_only: bool = Query(False, description="Only is_active=true classes"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ClassResponse]:
    rows = await service.list_classes(db, current_user, mine=mine, active_only=active_only)
    return [service.class_to_response(current_user, c) for c in rows]


@router.get("/lookup", response_model=ClassLookupResponse)
async def lookup_class(
    code: str = Query(..., description="Six-character join code, any case"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassLookupResponse:
    """Validate a join code without enrolling."""
    try:
        return await service.lookup_class_by_code(db, current_user, code)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{class_id}", response_model=ClassResponse)
async def get_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassResponse:
    try:
        return service.class_to_response(current_user, await service.get_class(db, current_user, class_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{class_id}/roster", response_model=ClassRosterResponse)
async def get_class_roster(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassRosterResponse:
    try:
        return await service.class_roster(db, current_user, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.put("/{class_id}", response_model=ClassResponse)
async def update_class(
    class_id: UUID,
    payload: ClassUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassResponse:
    try:
        return service.class_to_response(current_user, await service.update_class(db, current_user, class_id, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.post("/{class_id}/regenerate-code", response_model=ClassResponse)
async def regenerate_class_code(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ClassResponse:
    try:
        return service.class_to_response(current_user, await service.regenerate_class_code(db, current_user, class_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{class_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_class(
    class_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_class(db, current_user, class_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
