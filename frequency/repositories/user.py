from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, and_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from frequency.models.user import User, Profile
from frequency.core.security import get_password_hash
from frequency.utils.exceptions import ConflictError


class UserRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create(
        self,
        password: Optional[str],
        email: Optional[str] = None,
        phone: Optional[str] = None,
        display_name: Optional[str] = None,
        oauth_provider: Optional[str] = None,
        oauth_provider_id: Optional[str] = None
    ) -> User:
        """Create a user together with its profile"""
        db_user = User(
            email=email,
            phone=phone,
            hashed_password=get_password_hash(password) if password else None,
            oauth_provider=oauth_provider,
            oauth_provider_id=oauth_provider_id,
            is_active=True
        )
        db_user.profile = Profile(display_name=display_name)
        self.db.add(db_user)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise ConflictError("User with this email or phone already exists")
        return await self.get_by_id(db_user.id)

    async def get_by_id(self, user_id: str) -> Optional[User]:
        """Get user by ID"""
        query = select(User).options(selectinload(User.profile)).filter(User.id == user_id)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_email(self, email: str) -> Optional[User]:
        query = select(User).options(selectinload(User.profile)).filter(User.email == email)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_phone(self, phone: str) -> Optional[User]:
        query = select(User).options(selectinload(User.profile)).filter(User.phone == phone)
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def get_by_oauth(self, provider: str, provider_id: str) -> Optional[User]:
        """Get user by OAuth provider info"""
        query = select(User).options(selectinload(User.profile)).filter(
            User.oauth_provider == provider,
            User.oauth_provider_id == provider_id
        )
        result = await self.db.execute(query)
        return result.scalar_one_or_none()

    async def link_oauth(self, user: User, provider: str, provider_id: str) -> User:
        user.oauth_provider = provider
        user.oauth_provider_id = provider_id
        await self.db.commit()
        return await self.get_by_id(user.id)

    async def get_profile(self, user_id: str) -> Optional[Profile]:
        result = await self.db.execute(select(Profile).where(Profile.id == user_id))
        return result.scalar_one_or_none()

    async def get_profiles_by_ids(self, user_ids: List[str]) -> List[Profile]:
        """Profiles for a set of ids; unknown ids are simply absent"""
        if not user_ids:
            return []
        stmt = select(Profile).where(Profile.id.in_(set(user_ids)))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def search_profiles(self, query: str, current_user_id: str, limit: int = 10) -> List[Profile]:
        """Search profiles by display name"""
        stmt = select(Profile).where(
            and_(
                Profile.id != current_user_id,  # Exclude current user
                Profile.display_name.ilike(f"%{query}%")
            )
        ).order_by(Profile.display_name).limit(limit)

        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def update_profile(self, profile: Profile, **fields) -> Profile:
        for field, value in fields.items():
            setattr(profile, field, value)
        await self.db.commit()
        await self.db.refresh(profile)
        return profile

    async def get_located_profiles(self) -> List[Profile]:
        """Profiles that have shared a current location"""
        stmt = select(Profile).where(
            and_(
                Profile.current_latitude.is_not(None),
                Profile.current_longitude.is_not(None)
            )
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()
