from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging
import random

from frequency.repositories.catalog import CatalogRepository
from frequency.schemas.catalog import Artist, ArtistWithRegion, NearestRegion, Region, Track
from frequency.services.geolocation import find_nearest_region
from frequency.core.config import settings
from frequency.core.redis import RedisClient, redis_client
from frequency.utils.exceptions import NotFoundError

logger = logging.getLogger(__name__)

REGIONS_CACHE_KEY = "catalog:regions"


class CatalogService:
    """Read-only catalog shaping: ordering, filtering and discovery picks"""

    def __init__(self, db: AsyncSession, cache: RedisClient = redis_client, rng: Optional[random.Random] = None):
        self.db = db
        self.repo = CatalogRepository(db)
        self.cache = cache
        self.rng = rng or random.Random()

    async def get_regions(self) -> List[Region]:
        """All regions ordered by name, served from the cache when warm"""
        cached = await self.cache.get_json(REGIONS_CACHE_KEY)
        if cached is not None:
            return [Region.model_validate(item) for item in cached]

        regions = [Region.model_validate(region) for region in await self.repo.get_regions()]
        await self.cache.set_json(
            REGIONS_CACHE_KEY,
            [region.model_dump() for region in regions],
            expire=settings.CATALOG_CACHE_SECONDS
        )
        return regions

    async def get_region_tracks(self, region_id: int) -> List[Track]:
        await self._ensure_region(region_id)
        tracks = await self.repo.get_region_tracks(region_id)
        return [Track.model_validate(track) for track in tracks]

    async def get_region_artists(self, region_id: int) -> List[Artist]:
        await self._ensure_region(region_id)
        artists = await self.repo.get_region_artists(region_id)
        return [Artist.model_validate(artist) for artist in artists]

    async def get_emerging_artists(self) -> List[ArtistWithRegion]:
        """Most listened emerging artists"""
        artists = await self.repo.get_emerging_artists(settings.EMERGING_ARTISTS_LIMIT)
        return [ArtistWithRegion.model_validate(artist) for artist in artists]

    async def recommend_emerging_artists(self, exclude_region_id: Optional[int] = None) -> List[ArtistWithRegion]:
        """
        Discovery picks: the least heard emerging artists, optionally from
        outside the region being viewed, shuffled and cut down so that each
        refresh surfaces a different handful.
        """
        pool = await self.repo.get_least_heard_emerging_artists(
            settings.RECOMMENDATION_POOL_SIZE, exclude_region_id
        )
        picks = [ArtistWithRegion.model_validate(artist) for artist in pool]
        self.rng.shuffle(picks)
        return picks[:settings.RECOMMENDATION_COUNT]

    async def find_nearest_region(self, latitude: float, longitude: float) -> Optional[NearestRegion]:
        regions = await self.get_regions()
        nearest = find_nearest_region(latitude, longitude, regions)
        if nearest:
            logger.debug(f"Nearest region to ({latitude}, {longitude}) is {nearest.id} at {nearest.distance} km")
        return nearest

    async def _ensure_region(self, region_id: int) -> None:
        if not await self.repo.get_region(region_id):
            raise NotFoundError("Region not found")
