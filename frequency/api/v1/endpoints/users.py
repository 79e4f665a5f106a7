from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from frequency.core.database import get_db
from frequency.api.deps import get_current_user
from frequency.schemas.user import User, Profile, ProfileSummary, ProfileUpdate, LocationUpdate, UserLocation
from frequency.models.user import User as UserModel
from frequency.services.friendship import FriendshipService
from frequency.services.profile import ProfileService

router = APIRouter()


@router.get("/me", response_model=User)
async def get_current_user_profile(
    current_user: UserModel = Depends(get_current_user)
):
    """Get current user and profile"""
    return current_user


@router.put("/me", response_model=Profile)
async def update_current_user(
    profile_update: ProfileUpdate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update display name or avatar"""
    service = ProfileService(db)
    return await service.update_profile(current_user.id, profile_update)


@router.put("/me/location", response_model=Profile)
async def update_location(
    location: LocationUpdate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Share the current position"""
    service = ProfileService(db)
    return await service.update_location(current_user.id, location)


@router.delete("/me/location", response_model=Profile, status_code=status.HTTP_200_OK)
async def clear_location(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Stop sharing the current position"""
    service = ProfileService(db)
    return await service.clear_location(current_user.id)


@router.get("/search", response_model=List[ProfileSummary])
async def search_users(
    q: str = Query(..., min_length=1, description="Display name to search for"),
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Search people by display name"""
    service = FriendshipService(db)
    return await service.search_users(q, current_user.id)


@router.get("/locations", response_model=List[UserLocation])
async def get_user_locations(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Users who shared a location, for the map"""
    service = ProfileService(db)
    return await service.get_user_locations()
