from dataclasses import dataclass
from typing import Callable, List, Optional
import asyncio
import logging

from frequency.client.api import FrequencyClient
from frequency.client.identity import IdentityContext
from frequency.schemas.friendship import FriendEdge
from frequency.schemas.playlist import Playlist
from frequency.schemas.realtime import ChangeNotification, Table
from frequency.schemas.user import ProfileSummary
from frequency.utils.exceptions import (
    AlreadySharedError,
    DuplicateEdgeError,
    DuplicateTrackError,
    FrequencyException
)

logger = logging.getLogger(__name__)


@dataclass
class Notice:
    """Short user-facing message about the outcome of a mutation"""
    title: str
    destructive: bool = False


NoticeHandler = Callable[[Notice], None]


def _log_notice(notice: Notice):
    logger.info(f"Notice: {notice.title}")


class FriendsProjection:
    """Local view of the signed-in user's friends and incoming requests.

    Both lists are re-fetched in full when the identity resolves and on every
    friendships change notification.
    """

    def __init__(
        self,
        client: FrequencyClient,
        identity: IdentityContext,
        notify: Optional[NoticeHandler] = None
    ):
        self.client = client
        self.identity = identity
        self.notify = notify or _log_notice
        self.accepted: List[FriendEdge] = []
        self.pending_incoming: List[FriendEdge] = []
        self.loading = False
        self._generation = 0
        self._unsubscribe = identity.subscribe(self._on_identity)

    def close(self):
        self._unsubscribe()

    async def _on_identity(self, user_id: Optional[str]):
        if user_id is None:
            self.reset()
        else:
            await self.refresh()

    def reset(self):
        self._generation += 1
        self.accepted = []
        self.pending_incoming = []
        self.loading = False

    async def refresh(self):
        if not self.identity.is_authenticated:
            self.reset()
            return

        self._generation += 1
        generation = self._generation
        self.loading = True
        try:
            friends = await self.client.list_friends()
        except FrequencyException as e:
            # Keep what we had
            logger.warning(f"Failed to load friends: {e.message}")
            return
        finally:
            if generation == self._generation:
                self.loading = False

        if generation != self._generation:
            return
        self.accepted = friends.accepted
        self.pending_incoming = friends.pending_incoming

    async def handle_change(self, notification: ChangeNotification):
        if notification.table == Table.FRIENDSHIPS:
            await self.refresh()

    async def send_request(self, friend_id: str) -> bool:
        if not self.identity.is_authenticated:
            self.notify(Notice("Please sign in to add friends", destructive=True))
            return False

        try:
            await self.client.send_friend_request(friend_id)
        except DuplicateEdgeError:
            self.notify(Notice("Friend request already sent", destructive=True))
            return False
        except FrequencyException as e:
            logger.warning(f"Friend request failed: {e.message}")
            self.notify(Notice("Failed to send request", destructive=True))
            return False

        self.notify(Notice("Friend request sent!"))
        return True

    async def accept_request(self, edge_id: int) -> bool:
        try:
            await self.client.accept_friend_request(edge_id)
        except FrequencyException as e:
            logger.warning(f"Accept failed: {e.message}")
            self.notify(Notice("Failed to accept request", destructive=True))
            return False

        self.notify(Notice("Friend request accepted!"))
        return True

    async def reject_request(self, edge_id: int) -> bool:
        try:
            await self.client.reject_friend_request(edge_id)
        except FrequencyException as e:
            logger.warning(f"Reject failed: {e.message}")
            self.notify(Notice("Failed to reject request", destructive=True))
            return False

        self.notify(Notice("Request declined"))
        return True

    async def remove_friend(self, edge_id: int) -> bool:
        try:
            await self.client.remove_friend(edge_id)
        except FrequencyException as e:
            logger.warning(f"Remove failed: {e.message}")
            self.notify(Notice("Failed to remove friend", destructive=True))
            return False

        self.notify(Notice("Friend removed"))
        return True


class FriendSearch:
    """Search results for adding friends"""

    def __init__(self, client: FrequencyClient, friends: FriendsProjection):
        self.client = client
        self.friends = friends
        self.results: List[ProfileSummary] = []

    async def search(self, query: str) -> List[ProfileSummary]:
        if not query.strip():
            self.results = []
            return self.results

        try:
            self.results = await self.client.search_users(query.strip())
        except FrequencyException as e:
            logger.warning(f"User search failed: {e.message}")
            self.results = []
        return self.results

    async def add(self, user_id: str) -> bool:
        sent = await self.friends.send_request(user_id)
        # Dropped from the results even when the request failed
        self.results = [profile for profile in self.results if profile.id != user_id]
        return sent


class PlaylistsProjection:
    """Owned and shared playlists of the signed-in user"""

    TABLES = (Table.PLAYLISTS, Table.PLAYLIST_TRACKS, Table.PLAYLIST_SHARES)

    def __init__(
        self,
        client: FrequencyClient,
        identity: IdentityContext,
        notify: Optional[NoticeHandler] = None
    ):
        self.client = client
        self.identity = identity
        self.notify = notify or _log_notice
        self.owned: List[Playlist] = []
        self.shared: List[Playlist] = []
        self.loading = False
        self._generation = 0
        self._unsubscribe = identity.subscribe(self._on_identity)

    def close(self):
        self._unsubscribe()

    async def _on_identity(self, user_id: Optional[str]):
        if user_id is None:
            self.reset()
        else:
            await self.refresh()

    def reset(self):
        self._generation += 1
        self.owned = []
        self.shared = []
        self.loading = False

    async def refresh(self):
        if not self.identity.is_authenticated:
            self.reset()
            return

        self._generation += 1
        generation = self._generation
        self.loading = True
        owned, shared = await asyncio.gather(
            self.client.list_playlists(),
            self.client.list_shared_playlists(),
            return_exceptions=True
        )
        if generation != self._generation:
            return
        self.loading = False

        if isinstance(owned, FrequencyException):
            logger.warning(f"Failed to load playlists: {owned.message}")
        elif isinstance(owned, BaseException):
            raise owned
        else:
            self.owned = owned

        if isinstance(shared, FrequencyException):
            logger.warning(f"Failed to load shared playlists: {shared.message}")
        elif isinstance(shared, BaseException):
            raise shared
        else:
            self.shared = shared

    async def handle_change(self, notification: ChangeNotification):
        if notification.table in self.TABLES:
            await self.refresh()

    async def create_playlist(
        self,
        name: str,
        description: Optional[str] = None,
        region_id: Optional[int] = None,
        is_public: bool = False
    ) -> Optional[Playlist]:
        if not self.identity.is_authenticated:
            return None

        try:
            playlist = await self.client.create_playlist(
                name, description=description or None, region_id=region_id, is_public=is_public
            )
        except FrequencyException as e:
            logger.warning(f"Create playlist failed: {e.message}")
            self.notify(Notice("Failed to create playlist", destructive=True))
            return None

        self.notify(Notice("Playlist created!"))
        await self.refresh()
        return playlist

    async def add_track(self, playlist_id: int, track_id: int) -> bool:
        try:
            await self.client.add_track(playlist_id, track_id)
        except DuplicateTrackError:
            self.notify(Notice("Track already in playlist", destructive=True))
            return False
        except FrequencyException as e:
            logger.warning(f"Add track failed: {e.message}")
            self.notify(Notice("Failed to add track", destructive=True))
            return False

        self.notify(Notice("Track added to playlist!"))
        await self.refresh()
        return True

    async def remove_track(self, playlist_id: int, track_id: int) -> bool:
        try:
            await self.client.remove_track(playlist_id, track_id)
        except FrequencyException as e:
            logger.warning(f"Remove track failed: {e.message}")
            self.notify(Notice("Failed to remove track", destructive=True))
            return False

        self.notify(Notice("Track removed"))
        await self.refresh()
        return True

    async def share_playlist(self, playlist_id: int, user_id: str) -> bool:
        try:
            await self.client.share_playlist(playlist_id, user_id)
        except AlreadySharedError:
            self.notify(Notice("Already shared with this user", destructive=True))
            return False
        except FrequencyException as e:
            logger.warning(f"Share failed: {e.message}")
            self.notify(Notice("Failed to share playlist", destructive=True))
            return False

        self.notify(Notice("Playlist shared!"))
        return True

    async def delete_playlist(self, playlist_id: int) -> bool:
        try:
            await self.client.delete_playlist(playlist_id)
        except FrequencyException as e:
            logger.warning(f"Delete playlist failed: {e.message}")
            self.notify(Notice("Failed to delete playlist", destructive=True))
            return False

        self.notify(Notice("Playlist deleted"))
        await self.refresh()
        return True
