"""
Shared fixtures for the trackstats test suite.

The sample table is small enough to reason about by hand. Float values are
chosen to be exact in binary so SQLite and Python aggregates agree bit for bit.
"""

from __future__ import annotations

import pytest

from trackstats.core.db.models import TrackRecord
from trackstats.core.track_db import TrackDb


def _track(
    artist: str,
    track: str,
    album: str,
    album_type: str,
    danceability: float,
    energy: float,
    liveness: float,
    duration_min: float,
    channel: str,
    views: float,
    likes: int,
    comments: int,
    licensed: bool,
    official_video: bool,
    stream: int,
    most_played_on: str,
) -> TrackRecord:
    return TrackRecord(
        artist=artist,
        track=track,
        album=album,
        album_type=album_type,
        danceability=danceability,
        energy=energy,
        liveness=liveness,
        duration_min=duration_min,
        title=f"{artist} - {track}",
        channel=channel,
        views=views,
        likes=likes,
        comments=comments,
        licensed=licensed,
        official_video=official_video,
        stream=stream,
        most_played_on=most_played_on,
    )


SAMPLE_TRACKS: tuple[TrackRecord, ...] = (
    _track("Gorillaz", "Feel Good Inc.", "Demon Days", "album",
           0.75, 0.75, 0.5, 3.75, "Gorillaz", 1000.0, 100, 10, True, True, 1_200_000_000, "Spotify"),
    _track("Gorillaz", "Feel Good Inc.", "Demon Days", "album",
           0.75, 0.75, 0.5, 3.75, "GorillazVEVO", 500.0, 50, 5, False, True, 300_000_000, "Youtube"),
    _track("Gorillaz", "DARE", "Demon Days", "album",
           0.5, 0.875, 0.125, 4.0, "Gorillaz", 800.0, 80, 8, True, False, 400_000_000, "Youtube"),
    _track("Gorillaz", "Clint Eastwood", "Gorillaz", "album",
           0.5, 0.5, 0.25, 5.5, "Gorillaz", 800.0, 60, 6, True, True, 900_000_000, "Youtube"),
    _track("Gorillaz", "On Melancholy Hill", "Plastic Beach", "single",
           0.25, 0.25, 0.25, 3.5, "Gorillaz", 200.0, 20, 2, False, True, 100_000_000, "Spotify"),
    _track("Daft Punk", "One More Time", "Discovery", "album",
           0.625, 0.625, 0.0, 5.25, "DaftPunk", 2000.0, 300, 30, True, True, 1_500_000_000, "Spotify"),
    _track("Daft Punk", "Around the World", "Homework", "single",
           0.875, 0.5, 0.5, 0.0, "DaftPunk", 100.0, 10, 1, False, False, 50_000_000, "Youtube"),
    _track("Adele", "Hello", "25", "single",
           0.5, 0.375, 0.125, 4.75, "AdeleVEVO", 3000.0, 400, 40, True, True, 2_000_000_000, "Youtube"),
    _track("Gorillaz", "Humility", "The Now Now", "album",
           0.75, 0.5, 0.125, 3.0, "Gorillaz", 100.0, 5, 1, False, False, 80_000_000, "Spotify"),
)


@pytest.fixture
def sample_tracks() -> list[TrackRecord]:
    """The sample table in load order."""
    return list(SAMPLE_TRACKS)


@pytest.fixture
async def db() -> TrackDb:
    """Create an in-memory database for testing."""
    db = TrackDb(":memory:")
    await db.open()
    await db.ensure_schema()
    yield db
    await db.close()


@pytest.fixture
async def populated_db(db: TrackDb, sample_tracks: list[TrackRecord]) -> TrackDb:
    """In-memory database holding the sample table."""
    await db.insert_tracks(sample_tracks)
    return db


# Nulls in every grouping key, measure and sort column, plus an all-null row.
NULL_HEAVY_TRACKS: tuple[TrackRecord, ...] = (
    TrackRecord(),
    TrackRecord(track="Ghost", energy=0.5, most_played_on="Youtube"),
    TrackRecord(
        artist="Gorillaz", album="Demon Days", danceability=0.5, liveness=0.25,
        duration_min=3.0, likes=7, licensed=True, official_video=True, stream=5,
        most_played_on="Spotify",
    ),
    TrackRecord(
        artist="Gorillaz", track="DARE", album="Demon Days", album_type="album",
        energy=0.875, liveness=0.125, duration_min=0.0, views=800.0, comments=8,
        licensed=True, official_video=True, most_played_on="Youtube",
    ),
    TrackRecord(
        artist="Adele", track="Hello", album_type="single", danceability=0.75,
        energy=0.375, liveness=0.125, duration_min=4.75, views=300.0, likes=40,
        comments=4, licensed=False, stream=2_000_000_000, most_played_on="Spotify",
    ),
    TrackRecord(
        artist="Adele", track="Hello", album="25", liveness=0.5, stream=300,
        most_played_on="Youtube",
    ),
    TrackRecord(
        artist="Gorillaz", track="Ghost", album="Demon Days", energy=0.25, liveness=0.5,
        likes=3, stream=10, most_played_on="Youtube",
    ),
)


@pytest.fixture
def null_heavy_tracks() -> list[TrackRecord]:
    """A table where most cells are null."""
    return list(NULL_HEAVY_TRACKS)
