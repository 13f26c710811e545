"""
Easy catalogue queries (Q1..Q5): filters, projections and simple aggregates.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return materialized dataclasses.
- These functions assume `conn.row_factory = aiosqlite.Row`.
- Thresholds are bound as parameters; nothing is interpolated into SQL.
- Secondary ORDER BY keys are added where the plain statement leaves ties
  to the engine, so results are reproducible.
"""

from __future__ import annotations

from typing import Final

import aiosqlite

from trackstats.core.db.models import (
    TRACK_COLUMNS,
    AlbumArtist,
    ArtistTrackCount,
    CommentTotal,
    TrackName,
    TrackRecord,
)

DEFAULT_STREAM_THRESHOLD: Final[int] = 1_000_000_000

# Q.1 Retrieve the names of all tracks that have more than 1 billion streams.
TRACKS_OVER_STREAMS_SQL: Final[str] = """
SELECT track FROM spotify
WHERE stream > ?
ORDER BY rowid;
"""

# Q.2 List all albums along with their respective artists.
ALBUMS_WITH_ARTISTS_SQL: Final[str] = """
SELECT
    DISTINCT album, artist
FROM spotify
ORDER BY 1, 2;
"""

# Q.3 Get the total number of comments for tracks where licensed = TRUE.
LICENSED_COMMENTS_SQL: Final[str] = """
SELECT SUM(comments) AS total_comments
FROM spotify
WHERE licensed = TRUE;
"""

# Q.4 Find all tracks that belong to the album type single.
SINGLES_SQL: Final[str] = f"""
SELECT {", ".join(TRACK_COLUMNS)} FROM spotify
WHERE album_type = 'single'
ORDER BY rowid;
"""

# Q.5 Count the total number of tracks by each artist.
TRACKS_PER_ARTIST_SQL: Final[str] = """
SELECT
    artist,
    COUNT(*) AS total_no_of_song
FROM spotify
GROUP BY artist
ORDER BY 2, 1;
"""


async def tracks_over_streams(
    conn: aiosqlite.Connection, *, threshold: int = DEFAULT_STREAM_THRESHOLD
) -> list[TrackName]:
    cursor = await conn.execute(TRACKS_OVER_STREAMS_SQL, (int(threshold),))
    rows = await cursor.fetchall()
    return [TrackName(track=r["track"]) for r in rows]


async def albums_with_artists(conn: aiosqlite.Connection) -> list[AlbumArtist]:
    cursor = await conn.execute(ALBUMS_WITH_ARTISTS_SQL)
    rows = await cursor.fetchall()
    return [AlbumArtist(album=r["album"], artist=r["artist"]) for r in rows]


async def licensed_comment_total(conn: aiosqlite.Connection) -> list[CommentTotal]:
    cursor = await conn.execute(LICENSED_COMMENTS_SQL)
    row = await cursor.fetchone()
    total = row["total_comments"] if row is not None else None
    return [CommentTotal(total_comments=int(total) if total is not None else None)]


async def singles(conn: aiosqlite.Connection) -> list[TrackRecord]:
    cursor = await conn.execute(SINGLES_SQL)
    rows = await cursor.fetchall()
    return [TrackRecord.from_mapping(r) for r in rows]


async def tracks_per_artist(conn: aiosqlite.Connection) -> list[ArtistTrackCount]:
    cursor = await conn.execute(TRACKS_PER_ARTIST_SQL)
    rows = await cursor.fetchall()
    return [
        ArtistTrackCount(artist=r["artist"], total_no_of_song=int(r["total_no_of_song"]))
        for r in rows
    ]
