from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import and_, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
from typing import List, Optional
import logging

from frequency.models.playlist import Playlist, PlaylistTrack, PlaylistShare
from frequency.models.catalog import Track
from frequency.utils.exceptions import DuplicateTrackError, AlreadySharedError

logger = logging.getLogger(__name__)


class PlaylistRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    # Playlists

    async def create_playlist(
        self,
        user_id: str,
        name: str,
        description: Optional[str],
        region_id: Optional[int],
        is_public: bool
    ) -> Playlist:
        playlist = Playlist(
            user_id=user_id,
            name=name,
            description=description,
            region_id=region_id,
            is_public=is_public
        )
        self.db.add(playlist)
        await self.db.commit()
        return await self.get_playlist(playlist.id)

    async def get_playlist(self, playlist_id: int) -> Optional[Playlist]:
        """Get a playlist with its region loaded"""
        stmt = select(Playlist).options(selectinload(Playlist.region)).where(Playlist.id == playlist_id).execution_options(
            populate_existing=True
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_owned_playlist(self, playlist_id: int, user_id: str) -> Optional[Playlist]:
        """Get a playlist only when the user owns it"""
        stmt = select(Playlist).options(selectinload(Playlist.region)).where(
            and_(Playlist.id == playlist_id, Playlist.user_id == user_id)
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_playlists(self, user_id: str) -> List[Playlist]:
        """Playlists owned by the user, newest first"""
        stmt = select(Playlist).options(selectinload(Playlist.region)).where(
            Playlist.user_id == user_id
        ).order_by(Playlist.created_at.desc(), Playlist.id.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_playlists_by_ids(self, playlist_ids: List[int]) -> List[Playlist]:
        if not playlist_ids:
            return []
        stmt = select(Playlist).options(selectinload(Playlist.region)).where(
            Playlist.id.in_(playlist_ids)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def update_playlist(self, playlist: Playlist, **fields) -> Playlist:
        for field, value in fields.items():
            setattr(playlist, field, value)
        await self.db.commit()
        return await self.get_playlist(playlist.id)

    async def delete_playlist(self, playlist: Playlist) -> None:
        """Memberships and shares go with it through ON DELETE CASCADE"""
        await self.db.delete(playlist)
        await self.db.commit()

    # Memberships

    async def get_membership_playlist_ids(self, playlist_ids: List[int]) -> List[int]:
        """One playlist id per membership row"""
        if not playlist_ids:
            return []
        stmt = select(PlaylistTrack.playlist_id).where(PlaylistTrack.playlist_id.in_(playlist_ids))
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_membership(self, playlist_id: int, track_id: int) -> Optional[PlaylistTrack]:
        stmt = select(PlaylistTrack).where(
            and_(
                PlaylistTrack.playlist_id == playlist_id,
                PlaylistTrack.track_id == track_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_max_position(self, playlist_id: int) -> Optional[int]:
        """Highest position in the playlist, None when it is empty"""
        stmt = select(func.max(PlaylistTrack.position)).where(PlaylistTrack.playlist_id == playlist_id)
        result = await self.db.execute(stmt)
        return result.scalar()

    async def add_track(self, playlist_id: int, track_id: int, position: int) -> PlaylistTrack:
        membership = PlaylistTrack(
            playlist_id=playlist_id,
            track_id=track_id,
            position=position
        )
        self.db.add(membership)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Track {track_id} already in playlist {playlist_id}")
            raise DuplicateTrackError()
        await self.db.refresh(membership)
        return membership

    async def remove_track(self, playlist_id: int, track_id: int) -> Optional[PlaylistTrack]:
        membership = await self.get_membership(playlist_id, track_id)
        if membership:
            await self.db.delete(membership)
            await self.db.commit()
        return membership

    async def get_playlist_tracks(self, playlist_id: int) -> List[PlaylistTrack]:
        """Memberships ordered by position with track, artist and genre loaded"""
        stmt = select(PlaylistTrack).options(
            selectinload(PlaylistTrack.track).selectinload(Track.artist),
            selectinload(PlaylistTrack.track).selectinload(Track.genre)
        ).where(
            PlaylistTrack.playlist_id == playlist_id
        ).order_by(PlaylistTrack.position)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    # Shares

    async def create_share(self, playlist_id: int, user_id: str) -> PlaylistShare:
        share = PlaylistShare(playlist_id=playlist_id, shared_with_user_id=user_id)
        self.db.add(share)
        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            logger.info(f"Playlist {playlist_id} already shared with {user_id}")
            raise AlreadySharedError()
        await self.db.refresh(share)
        return share

    async def get_share(self, playlist_id: int, user_id: str) -> Optional[PlaylistShare]:
        stmt = select(PlaylistShare).where(
            and_(
                PlaylistShare.playlist_id == playlist_id,
                PlaylistShare.shared_with_user_id == user_id
            )
        )
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def delete_share(self, share: PlaylistShare) -> None:
        await self.db.delete(share)
        await self.db.commit()

    async def get_playlist_shares(self, playlist_id: int) -> List[PlaylistShare]:
        stmt = select(PlaylistShare).where(
            PlaylistShare.playlist_id == playlist_id
        ).order_by(PlaylistShare.shared_at, PlaylistShare.id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_grantee_ids(self, playlist_id: int) -> List[str]:
        stmt = select(PlaylistShare.shared_with_user_id).where(PlaylistShare.playlist_id == playlist_id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_shared_playlist_ids(self, user_id: str) -> List[int]:
        """Ids of playlists with a grant naming the user"""
        stmt = select(PlaylistShare.playlist_id).where(PlaylistShare.shared_with_user_id == user_id)
        result = await self.db.execute(stmt)
        return result.scalars().all()

