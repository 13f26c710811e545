"""
Index management and execution-plan inspection for the probe statement.

The probe looks up one artist's tracks on one platform ordered by streams.
Without `artist_index` SQLite scans the whole table; with it the plan reads
"SEARCH spotify USING INDEX artist_index (artist=?)".

These functions assume `conn.row_factory = aiosqlite.Row`.
"""

from __future__ import annotations

import logging
import time
from typing import Final

import aiosqlite

from trackstats.core.db.models import PlanComparison, PlanReport, ViewsByStream
from trackstats.core.db.schema import ARTIST_INDEX_NAME, CREATE_ARTIST_INDEX_SQL

logger = logging.getLogger(__name__)

DEFAULT_PROBE_ARTIST: Final[str] = "Gorillaz"
DEFAULT_PROBE_PLATFORM: Final[str] = "Youtube"
DEFAULT_PROBE_LIMIT: Final[int] = 25

PROBE_SQL: Final[str] = """
SELECT
    artist,
    track,
    views
FROM spotify
WHERE artist = ?
    AND
    most_played_on = ?
ORDER BY stream DESC LIMIT ?
"""


async def has_artist_index(conn: aiosqlite.Connection) -> bool:
    cursor = await conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'index' AND name = ?;",
        (ARTIST_INDEX_NAME,),
    )
    return await cursor.fetchone() is not None


async def create_artist_index(conn: aiosqlite.Connection) -> bool:
    """Create `artist_index`. Returns False if it already existed."""
    if await has_artist_index(conn):
        return False
    await conn.execute(CREATE_ARTIST_INDEX_SQL)
    await conn.commit()
    logger.info("Created index %s", ARTIST_INDEX_NAME)
    return True


async def drop_artist_index(conn: aiosqlite.Connection) -> bool:
    """Drop `artist_index`. Returns False if it did not exist."""
    if not await has_artist_index(conn):
        return False
    await conn.execute(f"DROP INDEX IF EXISTS {ARTIST_INDEX_NAME};")
    await conn.commit()
    logger.info("Dropped index %s", ARTIST_INDEX_NAME)
    return True


async def probe_tracks(
    conn: aiosqlite.Connection,
    *,
    artist: str = DEFAULT_PROBE_ARTIST,
    platform: str = DEFAULT_PROBE_PLATFORM,
    limit: int = DEFAULT_PROBE_LIMIT,
) -> list[ViewsByStream]:
    cursor = await conn.execute(PROBE_SQL, (artist, platform, int(limit)))
    rows = await cursor.fetchall()
    return [ViewsByStream(artist=r["artist"], track=r["track"], views=r["views"]) for r in rows]


async def explain_probe(
    conn: aiosqlite.Connection,
    *,
    artist: str = DEFAULT_PROBE_ARTIST,
    platform: str = DEFAULT_PROBE_PLATFORM,
    limit: int = DEFAULT_PROBE_LIMIT,
) -> PlanReport:
    """
    Explain and time the probe statement.

    SQLite has no EXPLAIN ANALYZE; we combine EXPLAIN QUERY PLAN with a
    wall-clock timing of one execution.
    """
    params = (artist, platform, int(limit))
    cursor = await conn.execute(f"EXPLAIN QUERY PLAN {PROBE_SQL}", params)
    plan_rows = await cursor.fetchall()
    details = tuple(str(r["detail"]) for r in plan_rows)

    started = time.perf_counter()
    cursor = await conn.execute(PROBE_SQL, params)
    rows = await cursor.fetchall()
    elapsed_ms = (time.perf_counter() - started) * 1000.0

    report = PlanReport(
        statement=PROBE_SQL.strip(),
        details=details,
        uses_index=any(ARTIST_INDEX_NAME in d for d in details),
        elapsed_ms=elapsed_ms,
        row_count=len(rows),
    )
    logger.debug("Probe plan for %r/%r: %s (%.3f ms)", artist, platform, details, elapsed_ms)
    return report


async def compare_plans(
    conn: aiosqlite.Connection,
    *,
    artist: str = DEFAULT_PROBE_ARTIST,
    platform: str = DEFAULT_PROBE_PLATFORM,
    limit: int = DEFAULT_PROBE_LIMIT,
) -> PlanComparison:
    """Report the probe without `artist_index`, create the index, report again."""
    await drop_artist_index(conn)
    before = await explain_probe(conn, artist=artist, platform=platform, limit=limit)
    await create_artist_index(conn)
    after = await explain_probe(conn, artist=artist, platform=platform, limit=limit)
    return PlanComparison(before=before, after=after)
