from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
from sqlalchemy.orm import selectinload
from typing import List, Optional

from frequency.models.catalog import Region, Artist, Track


class CatalogRepository:
    """Read-only queries over regions, artists and tracks"""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_regions(self) -> List[Region]:
        result = await self.db.execute(select(Region).order_by(Region.name))
        return result.scalars().all()

    async def get_region(self, region_id: int) -> Optional[Region]:
        result = await self.db.execute(select(Region).where(Region.id == region_id))
        return result.scalar_one_or_none()

    async def get_track(self, track_id: int) -> Optional[Track]:
        result = await self.db.execute(select(Track).where(Track.id == track_id))
        return result.scalar_one_or_none()

    async def get_region_tracks(self, region_id: int) -> List[Track]:
        """Tracks of a region, most played first"""
        # Unknown counts sort after every known one, not first as in a plain DESC
        stmt = select(Track).options(
            selectinload(Track.artist),
            selectinload(Track.genre)
        ).where(
            Track.region_id == region_id
        ).order_by(Track.play_count.desc().nulls_last(), Track.id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_region_artists(self, region_id: int) -> List[Artist]:
        """Artists of a region, most listened first"""
        # Nulls last, as for tracks
        stmt = select(Artist).where(
            Artist.region_id == region_id
        ).order_by(Artist.listener_count.desc().nulls_last(), Artist.id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_emerging_artists(self, limit: int = 10) -> List[Artist]:
        stmt = select(Artist).options(selectinload(Artist.region)).where(
            Artist.is_emerging.is_(True)
        ).order_by(Artist.listener_count.desc().nulls_last(), Artist.id).limit(limit)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_least_heard_emerging_artists(
        self,
        limit: int,
        exclude_region_id: Optional[int] = None
    ) -> List[Artist]:
        """Emerging artists with the fewest listeners first"""
        stmt = select(Artist).options(selectinload(Artist.region)).where(
            Artist.is_emerging.is_(True)
        )
        if exclude_region_id is not None:
            stmt = stmt.where(Artist.region_id != exclude_region_id)
        stmt = stmt.order_by(Artist.listener_count.asc().nulls_last(), Artist.id).limit(limit)
        result = await self.db.execute(stmt)
        return result.scalars().all()
