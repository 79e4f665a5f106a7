from pydantic import BaseModel
from datetime import datetime
from typing import Optional
from enum import Enum


class RealtimeMessageType(str, Enum):
    SUBSCRIBE = "subscribe"
    UNSUBSCRIBE = "unsubscribe"
    SUBSCRIBED = "subscribed"
    UNSUBSCRIBED = "unsubscribed"
    CHANGE = "change"
    ERROR = "error"
    PING = "ping"
    PONG = "pong"


class ChangeEvent(str, Enum):
    INSERT = "INSERT"
    UPDATE = "UPDATE"
    DELETE = "DELETE"


class Table(str, Enum):
    """Tables that publish change notifications"""
    FRIENDSHIPS = "friendships"
    PLAYLISTS = "playlists"
    PLAYLIST_TRACKS = "playlist_tracks"
    PLAYLIST_SHARES = "playlist_shares"
    PROFILES = "profiles"


class IncomingRealtimeMessage(BaseModel):
    type: RealtimeMessageType
    table: Optional[Table] = None


class ChangeNotification(BaseModel):
    type: RealtimeMessageType = RealtimeMessageType.CHANGE
    table: Table
    event: ChangeEvent
    record_id: str
    timestamp: datetime
