from sqlalchemy.ext.asyncio import AsyncSession
from typing import List
import logging

from frequency.repositories.user import UserRepository
from frequency.schemas.user import LocationUpdate, Profile, ProfileUpdate, UserLocation
from frequency.schemas.realtime import ChangeEvent, Table
from frequency.core.realtime import connection_manager
from frequency.utils.exceptions import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class ProfileService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.user_repo = UserRepository(db)

    async def update_profile(self, user_id: str, data: ProfileUpdate) -> Profile:
        profile = await self._get(user_id)

        fields = data.model_dump(exclude_unset=True)
        if "display_name" in fields:
            display_name = (fields["display_name"] or "").strip()
            if not display_name:
                raise ValidationError("Display name must not be empty")
            fields["display_name"] = display_name

        profile = await self.user_repo.update_profile(profile, **fields)
        await connection_manager.publish_change(Table.PROFILES, ChangeEvent.UPDATE, user_id)
        return Profile.model_validate(profile)

    async def update_location(self, user_id: str, data: LocationUpdate) -> Profile:
        """Store the user's current position for the map"""
        profile = await self._get(user_id)
        profile = await self.user_repo.update_profile(
            profile,
            current_latitude=data.latitude,
            current_longitude=data.longitude
        )
        logger.info(f"Location updated for user {user_id}")

        await connection_manager.publish_change(Table.PROFILES, ChangeEvent.UPDATE, user_id)
        return Profile.model_validate(profile)

    async def clear_location(self, user_id: str) -> Profile:
        profile = await self._get(user_id)
        profile = await self.user_repo.update_profile(
            profile, current_latitude=None, current_longitude=None
        )
        await connection_manager.publish_change(Table.PROFILES, ChangeEvent.UPDATE, user_id)
        return Profile.model_validate(profile)

    async def get_user_locations(self) -> List[UserLocation]:
        profiles = await self.user_repo.get_located_profiles()
        return [UserLocation.model_validate(profile) for profile in profiles]

    async def _get(self, user_id: str):
        profile = await self.user_repo.get_profile(user_id)
        if not profile:
            raise NotFoundError("Profile not found")
        return profile
