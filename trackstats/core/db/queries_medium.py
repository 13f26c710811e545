"""
Medium catalogue queries (Q6..Q10): grouped aggregates and the platform pivot.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return materialized dataclasses.
- These functions assume `conn.row_factory = aiosqlite.Row`.
"""

from __future__ import annotations

from typing import Final

import aiosqlite

from trackstats.core.db.models import (
    AlbumDanceability,
    AlbumTrackViews,
    PlatformStreams,
    TrackEnergy,
    TrackEngagement,
)

DEFAULT_TOP_ENERGY_LIMIT: Final[int] = 5

# Q.6 Calculate the average danceability of tracks in each album.
AVG_DANCEABILITY_SQL: Final[str] = """
SELECT
    album,
    AVG(danceability) AS avg_danceability
FROM spotify
GROUP BY 1
ORDER BY 2 DESC, 1;
"""

# Q.7 Find the top 5 tracks with the highest energy values.
TOP_ENERGY_SQL: Final[str] = """
SELECT
    track,
    MAX(energy) AS max_energy
FROM spotify
GROUP BY 1
ORDER BY 2 DESC, 1
LIMIT ?;
"""

# Q.8 List all tracks along with their views and likes where official_video = TRUE.
OFFICIAL_VIDEO_ENGAGEMENT_SQL: Final[str] = """
SELECT
    track,
    SUM(views) AS total_views,
    SUM(likes) AS total_likes
FROM spotify
WHERE official_video = TRUE
GROUP BY 1
ORDER BY 2 DESC, 1;
"""

# Q.9 For each album, calculate the total views of all associated tracks.
ALBUM_TRACK_VIEWS_SQL: Final[str] = """
SELECT
    album,
    track,
    SUM(views) AS total_views
FROM spotify
GROUP BY 1, 2
ORDER BY 3 DESC, 1, 2;
"""

# Q.10 Retrieve the track names that have been streamed on Spotify more than YouTube.
SPOTIFY_OVER_YOUTUBE_SQL: Final[str] = """
SELECT
    *
FROM
    (SELECT
        track,
        COALESCE(SUM(CASE WHEN most_played_on = 'Youtube' THEN stream END), 0) AS streamed_on_youtube,
        COALESCE(SUM(CASE WHEN most_played_on = 'Spotify' THEN stream END), 0) AS streamed_on_spotify
     FROM spotify
     GROUP BY 1
    ) AS t1
WHERE
    streamed_on_spotify > streamed_on_youtube
    AND
    streamed_on_youtube <> 0
ORDER BY track;
"""


def _float_or_none(value: object) -> float | None:
    return float(value) if value is not None else None


def _int_or_none(value: object) -> int | None:
    return int(value) if value is not None else None


async def avg_danceability_by_album(conn: aiosqlite.Connection) -> list[AlbumDanceability]:
    cursor = await conn.execute(AVG_DANCEABILITY_SQL)
    rows = await cursor.fetchall()
    return [
        AlbumDanceability(album=r["album"], avg_danceability=_float_or_none(r["avg_danceability"]))
        for r in rows
    ]


async def top_energy_tracks(
    conn: aiosqlite.Connection, *, limit: int = DEFAULT_TOP_ENERGY_LIMIT
) -> list[TrackEnergy]:
    cursor = await conn.execute(TOP_ENERGY_SQL, (int(limit),))
    rows = await cursor.fetchall()
    return [TrackEnergy(track=r["track"], max_energy=_float_or_none(r["max_energy"])) for r in rows]


async def official_video_engagement(conn: aiosqlite.Connection) -> list[TrackEngagement]:
    cursor = await conn.execute(OFFICIAL_VIDEO_ENGAGEMENT_SQL)
    rows = await cursor.fetchall()
    return [
        TrackEngagement(
            track=r["track"],
            total_views=_float_or_none(r["total_views"]),
            total_likes=_int_or_none(r["total_likes"]),
        )
        for r in rows
    ]


async def album_track_views(conn: aiosqlite.Connection) -> list[AlbumTrackViews]:
    cursor = await conn.execute(ALBUM_TRACK_VIEWS_SQL)
    rows = await cursor.fetchall()
    return [
        AlbumTrackViews(
            album=r["album"], track=r["track"], total_views=_float_or_none(r["total_views"])
        )
        for r in rows
    ]


async def spotify_over_youtube(conn: aiosqlite.Connection) -> list[PlatformStreams]:
    cursor = await conn.execute(SPOTIFY_OVER_YOUTUBE_SQL)
    rows = await cursor.fetchall()
    return [
        PlatformStreams(
            track=r["track"],
            streamed_on_youtube=int(r["streamed_on_youtube"]),
            streamed_on_spotify=int(r["streamed_on_spotify"]),
        )
        for r in rows
    ]
