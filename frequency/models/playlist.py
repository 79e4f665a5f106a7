from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, Boolean, UniqueConstraint, Index
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from frequency.core.database import Base


class Playlist(Base):
    __tablename__ = "playlists"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    region_id = Column(Integer, ForeignKey("regions.id", ondelete="SET NULL"), nullable=True)
    is_public = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    region = relationship("Region")
    tracks = relationship("PlaylistTrack", back_populates="playlist", passive_deletes=True)
    shares = relationship("PlaylistShare", back_populates="playlist", passive_deletes=True)


class PlaylistTrack(Base):
    __tablename__ = "playlist_tracks"

    id = Column(Integer, primary_key=True, index=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False)
    track_id = Column(Integer, ForeignKey("tracks.id", ondelete="CASCADE"), nullable=False)
    position = Column(Integer, nullable=False, default=0)
    added_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    playlist = relationship("Playlist", back_populates="tracks")
    track = relationship("Track")

    __table_args__ = (
        UniqueConstraint('playlist_id', 'track_id', name='unique_playlist_track'),
        Index('idx_playlist_position', 'playlist_id', 'position'),
    )


class PlaylistShare(Base):
    __tablename__ = "playlist_shares"

    id = Column(Integer, primary_key=True, index=True)
    playlist_id = Column(Integer, ForeignKey("playlists.id", ondelete="CASCADE"), nullable=False)
    shared_with_user_id = Column(String(36), ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    shared_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    playlist = relationship("Playlist", back_populates="shares")

    __table_args__ = (
        UniqueConstraint('playlist_id', 'shared_with_user_id', name='unique_playlist_share'),
    )
