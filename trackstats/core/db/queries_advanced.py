"""
Advanced catalogue queries (Q11..Q15): window functions, scalar subqueries,
CTEs and derived ratios.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return materialized dataclasses.
- These functions assume `conn.row_factory = aiosqlite.Row`.
- Window functions need SQLite >= 3.25.

Engine behavior worth knowing:
- `energy / liveness` is NULL in SQLite when liveness is 0, so those rows
  never pass the ratio filter.
- The running total orders by `views, rowid`: ties in views follow load order.
"""

from __future__ import annotations

from typing import Final

import aiosqlite

from trackstats.core.db.models import (
    AlbumEnergySpread,
    CumulativeLikes,
    EnergyLivenessRatio,
    RankedArtistTrack,
    TrackLiveness,
)

DEFAULT_MAX_RANK: Final[int] = 3
DEFAULT_ENERGY_LIVENESS_RATIO: Final[float] = 1.2

# Q.11 Find the top 3 most-viewed tracks for each artist using window functions.
TOP_VIEWED_PER_ARTIST_SQL: Final[str] = """
WITH ranked_artist
AS
(SELECT
    artist,
    track,
    SUM(views) AS total_views,
    DENSE_RANK() OVER (PARTITION BY artist ORDER BY SUM(views) DESC) AS d_rank
FROM spotify
GROUP BY 1, 2
)
SELECT * FROM ranked_artist
WHERE d_rank <= ?
ORDER BY artist, total_views DESC, track;
"""

# Q.12 Find tracks where the liveness score is above the average.
LIVENESS_ABOVE_AVERAGE_SQL: Final[str] = """
SELECT
    track,
    artist,
    liveness
FROM spotify
WHERE liveness > (SELECT AVG(liveness) FROM spotify)
ORDER BY rowid;
"""

# Q.13 Difference between the highest and lowest energy values per album.
ENERGY_SPREAD_SQL: Final[str] = """
WITH cte
AS
(SELECT
    album,
    MAX(energy) AS highest_energy,
    MIN(energy) AS lowest_energy
FROM spotify
GROUP BY 1
)
SELECT
    album,
    highest_energy - lowest_energy AS energy_diff
FROM cte
ORDER BY energy_diff DESC, album;
"""

# Q.14 Find tracks where the energy-to-liveness ratio is greater than 1.2.
ENERGY_LIVENESS_RATIO_SQL: Final[str] = """
SELECT
    artist,
    track,
    album,
    energy,
    liveness,
    (energy / liveness) AS energy_to_liveness_ratio
FROM spotify
WHERE (energy / liveness) > ?
ORDER BY rowid;
"""

# Q.15 Cumulative sum of likes for tracks ordered by the number of views.
CUMULATIVE_LIKES_SQL: Final[str] = """
SELECT
    artist,
    track,
    album,
    views,
    likes,
    SUM(likes) OVER (ORDER BY views, rowid ROWS BETWEEN UNBOUNDED PRECEDING AND CURRENT ROW)
        AS cumulative_likes
FROM spotify
ORDER BY views DESC, rowid DESC;
"""


async def top_viewed_per_artist(
    conn: aiosqlite.Connection, *, max_rank: int = DEFAULT_MAX_RANK
) -> list[RankedArtistTrack]:
    cursor = await conn.execute(TOP_VIEWED_PER_ARTIST_SQL, (int(max_rank),))
    rows = await cursor.fetchall()
    return [
        RankedArtistTrack(
            artist=r["artist"],
            track=r["track"],
            total_views=float(r["total_views"]) if r["total_views"] is not None else None,
            d_rank=int(r["d_rank"]),
        )
        for r in rows
    ]


async def liveness_above_average(conn: aiosqlite.Connection) -> list[TrackLiveness]:
    cursor = await conn.execute(LIVENESS_ABOVE_AVERAGE_SQL)
    rows = await cursor.fetchall()
    return [TrackLiveness(track=r["track"], artist=r["artist"], liveness=r["liveness"]) for r in rows]


async def energy_spread_by_album(conn: aiosqlite.Connection) -> list[AlbumEnergySpread]:
    cursor = await conn.execute(ENERGY_SPREAD_SQL)
    rows = await cursor.fetchall()
    return [
        AlbumEnergySpread(
            album=r["album"],
            energy_diff=float(r["energy_diff"]) if r["energy_diff"] is not None else None,
        )
        for r in rows
    ]


async def energy_liveness_above(
    conn: aiosqlite.Connection, *, ratio: float = DEFAULT_ENERGY_LIVENESS_RATIO
) -> list[EnergyLivenessRatio]:
    cursor = await conn.execute(ENERGY_LIVENESS_RATIO_SQL, (float(ratio),))
    rows = await cursor.fetchall()
    return [
        EnergyLivenessRatio(
            artist=r["artist"],
            track=r["track"],
            album=r["album"],
            energy=r["energy"],
            liveness=r["liveness"],
            energy_to_liveness_ratio=float(r["energy_to_liveness_ratio"]),
        )
        for r in rows
    ]


async def cumulative_likes_by_views(conn: aiosqlite.Connection) -> list[CumulativeLikes]:
    cursor = await conn.execute(CUMULATIVE_LIKES_SQL)
    rows = await cursor.fetchall()
    return [
        CumulativeLikes(
            artist=r["artist"],
            track=r["track"],
            album=r["album"],
            views=r["views"],
            likes=r["likes"],
            cumulative_likes=int(r["cumulative_likes"])
            if r["cumulative_likes"] is not None
            else None,
        )
        for r in rows
    ]
