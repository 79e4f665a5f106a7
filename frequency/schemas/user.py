from typing import Optional
from pydantic import BaseModel, ConfigDict, Field
from datetime import datetime


class ProfileSummary(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class Profile(ProfileSummary):
    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class ProfileUpdate(BaseModel):
    display_name: Optional[str] = None
    avatar_url: Optional[str] = None


class LocationUpdate(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class UserLocation(ProfileSummary):
    current_latitude: float
    current_longitude: float


class User(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: Optional[str] = None
    phone: Optional[str] = None
    is_active: bool = True
    created_at: Optional[datetime] = None
    profile: Optional[Profile] = None
