from pydantic import BaseModel, ConfigDict
from datetime import datetime
from typing import List, Optional
from enum import Enum

from frequency.schemas.user import ProfileSummary


class FriendshipStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"


class FriendRequestCreate(BaseModel):
    friend_id: str


class FriendEdge(BaseModel):
    """An edge as seen by one of its parties"""
    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: str
    friend_id: str
    status: FriendshipStatus
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    counterpart_id: str
    counterpart: Optional[ProfileSummary] = None


class FriendsList(BaseModel):
    accepted: List[FriendEdge]
    pending_incoming: List[FriendEdge]
