from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List, Optional
import logging

from frequency.repositories.playlist import PlaylistRepository
from frequency.repositories.catalog import CatalogRepository
from frequency.repositories.user import UserRepository
from frequency.schemas.playlist import (
    Playlist, PlaylistCreate, PlaylistUpdate, PlaylistTrack, PlaylistShare
)
from frequency.schemas.user import ProfileSummary
from frequency.schemas.realtime import ChangeEvent, Table
from frequency.models.playlist import Playlist as PlaylistModel
from frequency.core.realtime import connection_manager
from frequency.utils.exceptions import DuplicateTrackError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


class PlaylistService:

    def __init__(self, db: AsyncSession):
        self.db = db
        self.repo = PlaylistRepository(db)
        self.catalog_repo = CatalogRepository(db)
        self.user_repo = UserRepository(db)

    async def create_playlist(self, user_id: str, data: PlaylistCreate) -> Playlist:
        """Create a playlist owned by the user"""
        name = (data.name or "").strip()
        if not name:
            raise ValidationError("Playlist name is required")

        if data.region_id is not None and not await self.catalog_repo.get_region(data.region_id):
            raise NotFoundError("Region not found")

        playlist = await self.repo.create_playlist(
            user_id=user_id,
            name=name,
            description=data.description or None,
            region_id=data.region_id,
            is_public=data.is_public
        )
        logger.info(f"Playlist created: {playlist.id} for user {user_id}")

        await self._publish(playlist, Table.PLAYLISTS, ChangeEvent.INSERT, playlist.id)
        return self._to_schema(playlist, track_count=0)

    async def update_playlist(self, playlist_id: int, user_id: str, data: PlaylistUpdate) -> Playlist:
        """Rename, redescribe or change the visibility of an owned playlist"""
        playlist = await self._get_owned(playlist_id, user_id)

        fields = data.model_dump(exclude_unset=True)
        if "name" in fields:
            name = (fields["name"] or "").strip()
            if not name:
                raise ValidationError("Playlist name is required")
            fields["name"] = name
        if "description" in fields:
            fields["description"] = fields["description"] or None
        if "is_public" in fields and fields["is_public"] is None:
            del fields["is_public"]

        if not fields:
            return self._to_schema(playlist)

        playlist = await self.repo.update_playlist(playlist, **fields)
        logger.info(f"Playlist updated: {playlist_id}")

        await self._publish(playlist, Table.PLAYLISTS, ChangeEvent.UPDATE, playlist.id)
        return self._to_schema(playlist)

    async def delete_playlist(self, playlist_id: int, user_id: str) -> None:
        playlist = await self._get_owned(playlist_id, user_id)
        grantee_ids = await self.repo.get_grantee_ids(playlist_id)

        await self.repo.delete_playlist(playlist)
        logger.info(f"Playlist deleted: {playlist_id}")

        await connection_manager.publish_change(
            Table.PLAYLISTS, ChangeEvent.DELETE, playlist_id,
            audience=[user_id, *grantee_ids]
        )

    async def get_owned_playlists(self, user_id: str) -> List[Playlist]:
        """Owned playlists, newest first, with track counts.

        Counts come from a second query over the membership rows, tallied
        locally per playlist.
        """
        playlists = await self.repo.get_user_playlists(user_id)
        if not playlists:
            return []

        membership_rows = await self.repo.get_membership_playlist_ids([p.id for p in playlists])
        count_map: Dict[int, int] = {}
        for playlist_id in membership_rows:
            count_map[playlist_id] = count_map.get(playlist_id, 0) + 1

        return [self._to_schema(p, track_count=count_map.get(p.id, 0)) for p in playlists]

    async def get_shared_playlists(self, user_id: str) -> List[Playlist]:
        """Playlists shared with the user, whoever owns them"""
        playlist_ids = await self.repo.get_shared_playlist_ids(user_id)
        if not playlist_ids:
            return []

        playlists = await self.repo.get_playlists_by_ids(playlist_ids)
        return [self._to_schema(p) for p in playlists]

    async def add_track(self, playlist_id: int, user_id: str, track_id: int) -> PlaylistTrack:
        """Append a track; positions are max + 1 and never reused"""
        playlist = await self._get_owned(playlist_id, user_id)

        if not await self.catalog_repo.get_track(track_id):
            raise NotFoundError("Track not found")

        if await self.repo.get_membership(playlist_id, track_id):
            raise DuplicateTrackError()

        last_position = await self.repo.get_max_position(playlist_id)
        position = (last_position if last_position is not None else -1) + 1

        membership = await self.repo.add_track(playlist_id, track_id, position)
        logger.info(f"Track {track_id} added to playlist {playlist_id} at position {position}")

        await self._publish(playlist, Table.PLAYLIST_TRACKS, ChangeEvent.INSERT, membership.id)
        return PlaylistTrack(
            id=membership.id,
            playlist_id=membership.playlist_id,
            track_id=membership.track_id,
            position=membership.position,
            added_at=membership.added_at
        )

    async def remove_track(self, playlist_id: int, user_id: str, track_id: int) -> None:
        """Remove a track; remaining positions keep their gaps"""
        playlist = await self._get_owned(playlist_id, user_id)

        membership = await self.repo.remove_track(playlist_id, track_id)
        if not membership:
            raise NotFoundError("Track is not in this playlist")

        logger.info(f"Track {track_id} removed from playlist {playlist_id}")
        await self._publish(playlist, Table.PLAYLIST_TRACKS, ChangeEvent.DELETE, membership.id)

    async def get_playlist_tracks(self, playlist_id: int, user_id: str) -> List[PlaylistTrack]:
        await self._get_visible(playlist_id, user_id)
        memberships = await self.repo.get_playlist_tracks(playlist_id)
        return [PlaylistTrack.model_validate(membership) for membership in memberships]

    async def share_playlist(self, playlist_id: int, user_id: str, grantee_id: str) -> PlaylistShare:
        """Grant another user read access"""
        playlist = await self._get_owned(playlist_id, user_id)

        if grantee_id == user_id:
            raise ValidationError("Cannot share a playlist with yourself")

        profile = await self.user_repo.get_profile(grantee_id)
        if not profile:
            raise NotFoundError("User not found")

        share = await self.repo.create_share(playlist_id, grantee_id)
        logger.info(f"Playlist {playlist_id} shared with {grantee_id}")

        await self._publish(playlist, Table.PLAYLIST_SHARES, ChangeEvent.INSERT, share.id, extra=[grantee_id])
        return PlaylistShare(
            id=share.id,
            playlist_id=share.playlist_id,
            shared_with_user_id=share.shared_with_user_id,
            shared_at=share.shared_at,
            shared_with_profile=ProfileSummary.model_validate(profile)
        )

    async def unshare_playlist(self, playlist_id: int, user_id: str, grantee_id: str) -> None:
        playlist = await self._get_owned(playlist_id, user_id)

        share = await self.repo.get_share(playlist_id, grantee_id)
        if not share:
            raise NotFoundError("Playlist is not shared with this user")

        await self.repo.delete_share(share)
        logger.info(f"Playlist {playlist_id} no longer shared with {grantee_id}")

        await self._publish(playlist, Table.PLAYLIST_SHARES, ChangeEvent.DELETE, share.id, extra=[grantee_id])

    async def get_playlist_shares(self, playlist_id: int, user_id: str) -> List[PlaylistShare]:
        """Grants of an owned playlist with the grantee profiles merged in"""
        await self._get_owned(playlist_id, user_id)

        shares = await self.repo.get_playlist_shares(playlist_id)
        profiles = await self.user_repo.get_profiles_by_ids([s.shared_with_user_id for s in shares])
        profile_map = {profile.id: profile for profile in profiles}

        results = []
        for share in shares:
            profile = profile_map.get(share.shared_with_user_id)
            results.append(PlaylistShare(
                id=share.id,
                playlist_id=share.playlist_id,
                shared_with_user_id=share.shared_with_user_id,
                shared_at=share.shared_at,
                shared_with_profile=ProfileSummary.model_validate(profile) if profile else None
            ))
        return results

    async def _get_owned(self, playlist_id: int, user_id: str) -> PlaylistModel:
        """Only the owner may change a playlist; others see it as missing"""
        playlist = await self.repo.get_owned_playlist(playlist_id, user_id)
        if not playlist:
            raise NotFoundError("Playlist not found")
        return playlist

    async def _get_visible(self, playlist_id: int, user_id: str) -> PlaylistModel:
        playlist = await self.repo.get_playlist(playlist_id)
        if not playlist:
            raise NotFoundError("Playlist not found")
        if playlist.user_id == user_id or playlist.is_public:
            return playlist
        if await self.repo.get_share(playlist_id, user_id):
            return playlist
        raise NotFoundError("Playlist not found")

    async def _publish(
        self,
        playlist: PlaylistModel,
        table: Table,
        event: ChangeEvent,
        record_id,
        extra: Optional[List[str]] = None
    ) -> None:
        """Notify the owner and everyone the playlist is shared with"""
        audience = {playlist.user_id, *(extra or [])}
        audience.update(await self.repo.get_grantee_ids(playlist.id))
        await connection_manager.publish_change(table, event, record_id, audience=audience)

    @staticmethod
    def _to_schema(playlist: PlaylistModel, track_count: Optional[int] = None) -> Playlist:
        result = Playlist.model_validate(playlist)
        result.track_count = track_count
        return result
