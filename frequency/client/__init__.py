from frequency.client.api import FrequencyClient
from frequency.client.identity import IdentityContext
from frequency.client.projections import FriendSearch, FriendsProjection, Notice, PlaylistsProjection
from frequency.client.realtime import RealtimeListener

__all__ = [
    "FrequencyClient", "IdentityContext", "FriendSearch", "FriendsProjection", "Notice",
    "PlaylistsProjection", "RealtimeListener",
]
