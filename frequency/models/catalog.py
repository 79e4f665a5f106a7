from sqlalchemy import Column, Integer, String, Text, Float, Boolean, ForeignKey
from sqlalchemy.orm import relationship

from frequency.core.database import Base


class Region(Base):
    __tablename__ = "regions"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    country = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)


class Genre(Base):
    __tablename__ = "genres"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False, unique=True)


class Artist(Base):
    __tablename__ = "artists"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    bio = Column(Text, nullable=True)
    is_emerging = Column(Boolean, nullable=True, default=False)
    listener_count = Column(Integer, nullable=True)
    image_url = Column(String, nullable=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)

    region = relationship("Region")


class Track(Base):
    __tablename__ = "tracks"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    play_count = Column(Integer, nullable=True)
    cultural_context = Column(Text, nullable=True)
    artist_id = Column(Integer, ForeignKey("artists.id"), nullable=True, index=True)
    genre_id = Column(Integer, ForeignKey("genres.id"), nullable=True)
    region_id = Column(Integer, ForeignKey("regions.id"), nullable=True, index=True)

    artist = relationship("Artist")
    genre = relationship("Genre")
