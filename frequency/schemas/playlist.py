from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime
from typing import Optional

from frequency.schemas.catalog import RegionSummary, Track
from frequency.schemas.user import ProfileSummary


class PlaylistCreate(BaseModel):
    name: str = Field(..., max_length=200)
    description: Optional[str] = None
    region_id: Optional[int] = None
    is_public: bool = False


class PlaylistUpdate(BaseModel):
    name: Optional[str] = Field(None, max_length=200)
    description: Optional[str] = None
    is_public: Optional[bool] = None


class Playlist(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    name: str
    description: Optional[str] = None
    region_id: Optional[int] = None
    is_public: bool
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    region: Optional[RegionSummary] = None
    track_count: Optional[int] = None


class AddTrackRequest(BaseModel):
    track_id: int


class PlaylistTrack(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    playlist_id: int
    track_id: int
    position: int
    added_at: Optional[datetime] = None
    track: Optional[Track] = None


class ShareRequest(BaseModel):
    user_id: str


class PlaylistShare(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    playlist_id: int
    shared_with_user_id: str
    shared_at: Optional[datetime] = None
    shared_with_profile: Optional[ProfileSummary] = None
