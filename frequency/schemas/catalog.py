from typing import Optional
from pydantic import BaseModel, ConfigDict


class RegionSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    country: str


class Region(RegionSummary):
    description: Optional[str] = None
    latitude: Optional[float] = None
    longitude: Optional[float] = None


class NearestRegion(RegionSummary):
    description: Optional[str] = None
    distance: int


class GenreSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str


class ArtistSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    is_emerging: Optional[bool] = None


class Artist(ArtistSummary):
    bio: Optional[str] = None
    listener_count: Optional[int] = None
    image_url: Optional[str] = None
    region_id: Optional[int] = None


class ArtistWithRegion(Artist):
    region: Optional[RegionSummary] = None


class Track(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    title: str
    play_count: Optional[int] = None
    cultural_context: Optional[str] = None
    artist: Optional[ArtistSummary] = None
    genre: Optional[GenreSummary] = None
