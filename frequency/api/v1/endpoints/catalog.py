from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional

from frequency.core.database import get_db
from frequency.schemas.catalog import Artist, ArtistWithRegion, NearestRegion, Region, Track
from frequency.services.catalog import CatalogService

router = APIRouter()


@router.get("/regions", response_model=List[Region])
async def get_regions(db: AsyncSession = Depends(get_db)):
    """All catalog regions by name"""
    service = CatalogService(db)
    return await service.get_regions()


@router.get("/regions/nearest", response_model=Optional[NearestRegion])
async def get_nearest_region(
    lat: float = Query(..., ge=-90, le=90),
    lon: float = Query(..., ge=-180, le=180),
    db: AsyncSession = Depends(get_db)
):
    """Closest region to a position; null when no region has coordinates"""
    service = CatalogService(db)
    return await service.find_nearest_region(lat, lon)


@router.get("/regions/{region_id}/tracks", response_model=List[Track])
async def get_region_tracks(region_id: int, db: AsyncSession = Depends(get_db)):
    service = CatalogService(db)
    return await service.get_region_tracks(region_id)


@router.get("/regions/{region_id}/artists", response_model=List[Artist])
async def get_region_artists(region_id: int, db: AsyncSession = Depends(get_db)):
    service = CatalogService(db)
    return await service.get_region_artists(region_id)


@router.get("/artists/emerging", response_model=List[ArtistWithRegion])
async def get_emerging_artists(db: AsyncSession = Depends(get_db)):
    service = CatalogService(db)
    return await service.get_emerging_artists()


@router.get("/artists/recommendations", response_model=List[ArtistWithRegion])
async def get_artist_recommendations(
    exclude_region_id: Optional[int] = Query(None, description="Region currently being viewed"),
    db: AsyncSession = Depends(get_db)
):
    """A few least heard emerging artists, different on every call"""
    service = CatalogService(db)
    return await service.recommend_emerging_artists(exclude_region_id)
