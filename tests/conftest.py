import os
import tempfile

# Settings are read at import time
_db_dir = tempfile.mkdtemp(prefix="frequency-tests-")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret-key")
os.environ["SQLALCHEMY_DATABASE_URI"] = f"sqlite+aiosqlite:///{os.path.join(_db_dir, 'test.db')}"

import httpx
import pytest

from frequency import models  # noqa: F401 - registers the tables
from frequency.client.api import FrequencyClient
from frequency.core.database import AsyncSessionLocal, Base, engine
from frequency.core.realtime import connection_manager
from frequency.main import app
from frequency.models.catalog import Artist, Genre, Region, Track

PASSWORD = "secret123"


@pytest.fixture
async def database():
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def db_session(database):
    async with AsyncSessionLocal() as session:
        yield session


@pytest.fixture(autouse=True)
def reset_connections():
    yield
    connection_manager.active_connections.clear()
    connection_manager.table_subscribers.clear()
    connection_manager.user_tables.clear()


@pytest.fixture
async def make_client(database):
    """Factory for API clients talking to the app in-process"""
    clients = []

    def factory() -> FrequencyClient:
        client = FrequencyClient("http://test", transport=httpx.ASGITransport(app=app))
        clients.append(client)
        return client

    yield factory

    for client in clients:
        await client.aclose()


@pytest.fixture
def sign_up(make_client):
    """Register a user by display name; returns (client, user_id)"""

    async def factory(name: str):
        client = make_client()
        token = await client.register(PASSWORD, email=f"{name.lower()}@example.com", display_name=name)
        return client, token.user_id

    return factory


@pytest.fixture
async def catalog(db_session):
    """A small catalog: two regions, a few artists and tracks"""
    lagos = Region(name="Lagos", country="Nigeria", description="Afrobeats", latitude=6.5244, longitude=3.3792)
    havana = Region(name="Havana", country="Cuba", description="Son cubano", latitude=23.1136, longitude=-82.3666)
    atlantis = Region(name="Atlantis", country="Nowhere")
    db_session.add_all([lagos, havana, atlantis])
    await db_session.flush()

    afrobeat = Genre(name="Afrobeat")
    son = Genre(name="Son")
    db_session.add_all([afrobeat, son])
    await db_session.flush()

    artists = [
        Artist(name="Big Star", region_id=lagos.id, is_emerging=False, listener_count=900000),
        Artist(name="Rising A", region_id=lagos.id, is_emerging=True, listener_count=1200),
        Artist(name="Rising B", region_id=lagos.id, is_emerging=True, listener_count=300),
        Artist(name="Rising C", region_id=havana.id, is_emerging=True, listener_count=50),
        Artist(name="Rising D", region_id=havana.id, is_emerging=True, listener_count=7000),
        Artist(name="Rising E", region_id=havana.id, is_emerging=True, listener_count=None),
        Artist(name="Rising F", region_id=havana.id, is_emerging=True, listener_count=20),
        Artist(name="Rising G", region_id=lagos.id, is_emerging=True, listener_count=90),
    ]
    db_session.add_all(artists)
    await db_session.flush()

    tracks = [
        Track(title="Anthem", artist_id=artists[0].id, genre_id=afrobeat.id, region_id=lagos.id, play_count=500),
        Track(title="Hit", artist_id=artists[0].id, genre_id=afrobeat.id, region_id=lagos.id, play_count=9000),
        Track(title="Demo", artist_id=artists[1].id, genre_id=afrobeat.id, region_id=lagos.id, play_count=None),
        Track(title="Guajira", artist_id=artists[3].id, genre_id=son.id, region_id=havana.id, play_count=40),
    ]
    db_session.add_all(tracks)
    await db_session.commit()

    return {
        "regions": {"lagos": lagos.id, "havana": havana.id, "atlantis": atlantis.id},
        "artists": {artist.name: artist.id for artist in artists},
        "tracks": {track.title: track.id for track in tracks},
    }
