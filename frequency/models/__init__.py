from frequency.models.user import User, Profile
from frequency.models.friendship import Friendship
from frequency.models.playlist import Playlist, PlaylistTrack, PlaylistShare
from frequency.models.catalog import Region, Genre, Artist, Track

__all__ = [
    "User", "Profile", "Friendship", "Playlist", "PlaylistTrack", "PlaylistShare",
    "Region", "Genre", "Artist", "Track",
]
