from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List

from frequency.core.database import get_db
from frequency.api.deps import get_current_user
from frequency.schemas.playlist import (
    Playlist, PlaylistCreate, PlaylistUpdate, PlaylistTrack, AddTrackRequest,
    PlaylistShare, ShareRequest
)
from frequency.models.user import User as UserModel
from frequency.services.playlist import PlaylistService

router = APIRouter()


@router.get("", response_model=List[Playlist])
async def get_playlists(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Playlists owned by the current user, with track counts"""
    service = PlaylistService(db)
    return await service.get_owned_playlists(current_user.id)


@router.post("", response_model=Playlist, status_code=status.HTTP_201_CREATED)
async def create_playlist(
    playlist_data: PlaylistCreate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PlaylistService(db)
    return await service.create_playlist(current_user.id, playlist_data)


@router.get("/shared", response_model=List[Playlist])
async def get_shared_playlists(
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Playlists other users shared with the current user"""
    service = PlaylistService(db)
    return await service.get_shared_playlists(current_user.id)


@router.patch("/{playlist_id}", response_model=Playlist)
async def update_playlist(
    playlist_id: int,
    playlist_data: PlaylistUpdate,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PlaylistService(db)
    return await service.update_playlist(playlist_id, current_user.id, playlist_data)


@router.delete("/{playlist_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_playlist(
    playlist_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PlaylistService(db)
    await service.delete_playlist(playlist_id, current_user.id)


@router.get("/{playlist_id}/tracks", response_model=List[PlaylistTrack])
async def get_playlist_tracks(
    playlist_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Tracks of a playlist in position order"""
    service = PlaylistService(db)
    return await service.get_playlist_tracks(playlist_id, current_user.id)


@router.post("/{playlist_id}/tracks", response_model=PlaylistTrack, status_code=status.HTTP_201_CREATED)
async def add_track(
    playlist_id: int,
    track_data: AddTrackRequest,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PlaylistService(db)
    return await service.add_track(playlist_id, current_user.id, track_data.track_id)


@router.delete("/{playlist_id}/tracks/{track_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_track(
    playlist_id: int,
    track_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PlaylistService(db)
    await service.remove_track(playlist_id, current_user.id, track_id)


@router.get("/{playlist_id}/shares", response_model=List[PlaylistShare])
async def get_playlist_shares(
    playlist_id: int,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Who the playlist is shared with"""
    service = PlaylistService(db)
    return await service.get_playlist_shares(playlist_id, current_user.id)


@router.post("/{playlist_id}/shares", response_model=PlaylistShare, status_code=status.HTTP_201_CREATED)
async def share_playlist(
    playlist_id: int,
    share_data: ShareRequest,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PlaylistService(db)
    return await service.share_playlist(playlist_id, current_user.id, share_data.user_id)


@router.delete("/{playlist_id}/shares/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
async def unshare_playlist(
    playlist_id: int,
    user_id: str,
    current_user: UserModel = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    service = PlaylistService(db)
    await service.unshare_playlist(playlist_id, current_user.id, user_id)
