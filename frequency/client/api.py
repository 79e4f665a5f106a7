from typing import Any, List, Optional
import logging

import httpx

from frequency.schemas.auth import Token
from frequency.schemas.catalog import Artist, ArtistWithRegion, NearestRegion, Region, Track
from frequency.schemas.friendship import FriendEdge, FriendsList
from frequency.schemas.playlist import Playlist, PlaylistShare, PlaylistTrack
from frequency.schemas.user import Profile, ProfileSummary, User, UserLocation
from frequency.utils.exceptions import StoreError, exception_for_status

logger = logging.getLogger(__name__)

API_PREFIX = "/api/v1"


class FrequencyClient:
    """Async client for the FREQUENCY API.

    Error responses are raised as the matching ``FrequencyException``
    subclass; transport failures become ``StoreError``.
    """

    def __init__(
        self,
        base_url: str,
        token: Optional[str] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout: float = 10.0
    ):
        self.token = token
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout)

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()

    async def aclose(self):
        await self._http.aclose()

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = kwargs.pop("headers", {})
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            response = await self._http.request(method, f"{API_PREFIX}{path}", headers=headers, **kwargs)
        except httpx.HTTPError as e:
            logger.error(f"{method} {path} failed: {e}")
            raise StoreError(f"Could not reach the server: {e}")

        if response.status_code >= 400:
            raise exception_for_status(response.status_code, self._error_detail(response))

        if response.status_code == 204 or not response.content:
            return None
        return response.json()

    @staticmethod
    def _error_detail(response: httpx.Response) -> Optional[str]:
        try:
            detail = response.json().get("detail")
        except ValueError:
            return None
        if isinstance(detail, str):
            return detail
        if isinstance(detail, list) and detail:
            # Request validation errors
            return "; ".join(str(item.get("msg", item)) for item in detail if isinstance(item, dict)) or None
        return None

    # Auth

    async def register(
        self,
        password: str,
        email: Optional[str] = None,
        phone: Optional[str] = None,
        display_name: Optional[str] = None
    ) -> Token:
        payload = {"password": password, "email": email, "phone": phone, "display_name": display_name}
        token = Token.model_validate(await self._request("POST", "/auth/register", json=payload))
        self.token = token.access_token
        return token

    async def login(self, password: str, email: Optional[str] = None, phone: Optional[str] = None) -> Token:
        payload = {"password": password, "email": email, "phone": phone}
        token = Token.model_validate(await self._request("POST", "/auth/login", json=payload))
        self.token = token.access_token
        return token

    async def refresh(self, refresh_token: str) -> Token:
        data = await self._request("POST", "/auth/refresh", json={"refresh_token": refresh_token})
        token = Token.model_validate(data)
        self.token = token.access_token
        return token

    def sign_out(self):
        self.token = None

    # Users

    async def me(self) -> User:
        return User.model_validate(await self._request("GET", "/users/me"))

    async def update_profile(self, display_name: Optional[str] = None, avatar_url: Optional[str] = None) -> Profile:
        payload = {}
        if display_name is not None:
            payload["display_name"] = display_name
        if avatar_url is not None:
            payload["avatar_url"] = avatar_url
        return Profile.model_validate(await self._request("PUT", "/users/me", json=payload))

    async def update_location(self, latitude: float, longitude: float) -> Profile:
        payload = {"latitude": latitude, "longitude": longitude}
        return Profile.model_validate(await self._request("PUT", "/users/me/location", json=payload))

    async def search_users(self, query: str) -> List[ProfileSummary]:
        data = await self._request("GET", "/users/search", params={"q": query})
        return [ProfileSummary.model_validate(item) for item in data]

    async def user_locations(self) -> List[UserLocation]:
        data = await self._request("GET", "/users/locations")
        return [UserLocation.model_validate(item) for item in data]

    # Friends

    async def list_friends(self) -> FriendsList:
        return FriendsList.model_validate(await self._request("GET", "/friends"))

    async def send_friend_request(self, friend_id: str) -> FriendEdge:
        data = await self._request("POST", "/friends/requests", json={"friend_id": friend_id})
        return FriendEdge.model_validate(data)

    async def accept_friend_request(self, edge_id: int) -> FriendEdge:
        return FriendEdge.model_validate(await self._request("PUT", f"/friends/requests/{edge_id}/accept"))

    async def reject_friend_request(self, edge_id: int) -> None:
        await self._request("DELETE", f"/friends/requests/{edge_id}")

    async def remove_friend(self, edge_id: int) -> None:
        await self._request("DELETE", f"/friends/{edge_id}")

    # Playlists

    async def list_playlists(self) -> List[Playlist]:
        return [Playlist.model_validate(item) for item in await self._request("GET", "/playlists")]

    async def list_shared_playlists(self) -> List[Playlist]:
        return [Playlist.model_validate(item) for item in await self._request("GET", "/playlists/shared")]

    async def create_playlist(
        self,
        name: str,
        description: Optional[str] = None,
        region_id: Optional[int] = None,
        is_public: bool = False
    ) -> Playlist:
        payload = {"name": name, "description": description, "region_id": region_id, "is_public": is_public}
        return Playlist.model_validate(await self._request("POST", "/playlists", json=payload))

    async def update_playlist(self, playlist_id: int, **fields) -> Playlist:
        return Playlist.model_validate(await self._request("PATCH", f"/playlists/{playlist_id}", json=fields))

    async def delete_playlist(self, playlist_id: int) -> None:
        await self._request("DELETE", f"/playlists/{playlist_id}")

    async def playlist_tracks(self, playlist_id: int) -> List[PlaylistTrack]:
        data = await self._request("GET", f"/playlists/{playlist_id}/tracks")
        return [PlaylistTrack.model_validate(item) for item in data]

    async def add_track(self, playlist_id: int, track_id: int) -> PlaylistTrack:
        data = await self._request("POST", f"/playlists/{playlist_id}/tracks", json={"track_id": track_id})
        return PlaylistTrack.model_validate(data)

    async def remove_track(self, playlist_id: int, track_id: int) -> None:
        await self._request("DELETE", f"/playlists/{playlist_id}/tracks/{track_id}")

    async def playlist_shares(self, playlist_id: int) -> List[PlaylistShare]:
        data = await self._request("GET", f"/playlists/{playlist_id}/shares")
        return [PlaylistShare.model_validate(item) for item in data]

    async def share_playlist(self, playlist_id: int, user_id: str) -> PlaylistShare:
        data = await self._request("POST", f"/playlists/{playlist_id}/shares", json={"user_id": user_id})
        return PlaylistShare.model_validate(data)

    async def unshare_playlist(self, playlist_id: int, user_id: str) -> None:
        await self._request("DELETE", f"/playlists/{playlist_id}/shares/{user_id}")

    # Catalog

    async def regions(self) -> List[Region]:
        return [Region.model_validate(item) for item in await self._request("GET", "/regions")]

    async def nearest_region(self, latitude: float, longitude: float) -> Optional[NearestRegion]:
        data = await self._request("GET", "/regions/nearest", params={"lat": latitude, "lon": longitude})
        return NearestRegion.model_validate(data) if data else None

    async def region_tracks(self, region_id: int) -> List[Track]:
        return [Track.model_validate(item) for item in await self._request("GET", f"/regions/{region_id}/tracks")]

    async def region_artists(self, region_id: int) -> List[Artist]:
        return [Artist.model_validate(item) for item in await self._request("GET", f"/regions/{region_id}/artists")]

    async def emerging_artists(self) -> List[ArtistWithRegion]:
        return [ArtistWithRegion.model_validate(item) for item in await self._request("GET", "/artists/emerging")]

    async def recommendations(self, exclude_region_id: Optional[int] = None) -> List[ArtistWithRegion]:
        params = {"exclude_region_id": exclude_region_id} if exclude_region_id is not None else None
        data = await self._request("GET", "/artists/recommendations", params=params)
        return [ArtistWithRegion.model_validate(item) for item in data]
