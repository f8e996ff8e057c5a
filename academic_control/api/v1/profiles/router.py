from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from academic_control.auth.dependencies import get_current_user
from academic_control.auth.schemas import CurrentUser
from academic_control.core.enums import Role
from academic_control.core.exceptions import ServiceError
from academic_control.db.session import get_db

from . import service
from .schemas import ProfileCreate, ProfileResponse, ProfileUpdate

router = APIRouter(prefix="/api/v1/profiles", tags=["profiles"])


@router.get("", response_model=List[ProfileResponse])
async def list_profiles(
    role: Optional[Role] = Query(None, description="Only profiles with this role"),
    search: Optional[str] = Query(None, description="Match first/last name or role"),
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> List[ProfileResponse]:
    rows = await service.list_profiles(db, current_user, role=role, search=search)
    return [ProfileResponse.model_validate(p) for p in rows]


@router.post("", response_model=ProfileResponse, status_code=status.HTTP_201_CREATED)
async def create_profile(
    payload: ProfileCreate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ProfileResponse:
    try:
        return ProfileResponse.model_validate(await service.create_profile(db, current_user, payload))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.get("/{profile_id}", response_model=ProfileResponse)
async def get_profile(
    profile_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ProfileResponse:
    try:
        return ProfileResponse.model_validate(await service.get_profile(db, current_user, profile_id))
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.patch("/{profile_id}", response_model=ProfileResponse)
async def update_profile(
    profile_id: UUID,
    payload: ProfileUpdate,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> ProfileResponse:
    try:
        obj = await service.update_profile(db, current_user, profile_id, payload)
        return ProfileResponse.model_validate(obj)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)


@router.delete("/{profile_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_profile(
    profile_id: UUID,
    db: AsyncSession = Depends(get_db),
    current_user: CurrentUser = Depends(get_current_user),
) -> None:
    try:
        await service.delete_profile(db, current_user, profile_id)
    except ServiceError as e:
        raise HTTPException(status_code=e.status_code, detail=e.message)
