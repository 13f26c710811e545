"""
Exploration (EDA) and cleanup queries for the `spotify` table.

Design:
- Functions are *pure DB helpers*: they take an open `aiosqlite.Connection`
  and return rows/materialized dataclasses.
- These functions assume `conn.row_factory = aiosqlite.Row`.
- The only mutation here is the zero-duration delete.
"""

from __future__ import annotations

import logging
from typing import Final

import aiosqlite

from trackstats.core.db.models import TRACK_COLUMNS, DatasetSummary, TrackRecord

logger = logging.getLogger(__name__)

SELECT_TRACKS_SQL: Final[str] = f"SELECT {', '.join(TRACK_COLUMNS)} FROM spotify"

INSERT_TRACK_SQL: Final[str] = (
    f"INSERT INTO spotify ({', '.join(TRACK_COLUMNS)}) "
    f"VALUES ({', '.join('?' for _ in TRACK_COLUMNS)});"
)

DELETE_ZERO_DURATION_SQL: Final[str] = """
DELETE FROM spotify
WHERE duration_min = 0
"""


def _row_to_record(row: aiosqlite.Row) -> TrackRecord:
    return TrackRecord.from_mapping(row)


async def _scalar(conn: aiosqlite.Connection, sql: str) -> object:
    cursor = await conn.execute(sql)
    row = await cursor.fetchone()
    return row[0] if row is not None else None


async def _distinct(conn: aiosqlite.Connection, column: str) -> tuple[str | None, ...]:
    # `column` is always one of the fixed names below, never user input.
    cursor = await conn.execute(f"SELECT DISTINCT {column} FROM spotify ORDER BY 1;")
    rows = await cursor.fetchall()
    return tuple(r[0] for r in rows)


# ---------------------------------------------------------------------------
# Loading / reading rows
# ---------------------------------------------------------------------------


async def insert_tracks(conn: aiosqlite.Connection, records: list[TrackRecord]) -> int:
    await conn.executemany(INSERT_TRACK_SQL, [r.as_params() for r in records])
    return len(records)


async def list_tracks(conn: aiosqlite.Connection) -> list[TrackRecord]:
    """All rows in table (load) order."""
    cursor = await conn.execute(f"{SELECT_TRACKS_SQL} ORDER BY rowid;")
    rows = await cursor.fetchall()
    return [_row_to_record(r) for r in rows]


# ---------------------------------------------------------------------------
# EDA
# ---------------------------------------------------------------------------


async def count_rows(conn: aiosqlite.Connection) -> int:
    return int(await _scalar(conn, "SELECT COUNT(*) FROM spotify;") or 0)


async def count_distinct_artists(conn: aiosqlite.Connection) -> int:
    return int(await _scalar(conn, "SELECT COUNT(DISTINCT artist) FROM spotify;") or 0)


async def list_album_types(conn: aiosqlite.Connection) -> tuple[str | None, ...]:
    return await _distinct(conn, "album_type")


async def list_channels(conn: aiosqlite.Connection) -> tuple[str | None, ...]:
    return await _distinct(conn, "channel")


async def list_platforms(conn: aiosqlite.Connection) -> tuple[str | None, ...]:
    return await _distinct(conn, "most_played_on")


async def max_duration(conn: aiosqlite.Connection) -> float | None:
    value = await _scalar(conn, "SELECT MAX(duration_min) FROM spotify;")
    return float(value) if value is not None else None


async def min_duration(conn: aiosqlite.Connection) -> float | None:
    value = await _scalar(conn, "SELECT MIN(duration_min) FROM spotify;")
    return float(value) if value is not None else None


async def list_zero_duration_tracks(conn: aiosqlite.Connection) -> list[TrackRecord]:
    cursor = await conn.execute(f"{SELECT_TRACKS_SQL} WHERE duration_min = 0 ORDER BY rowid;")
    rows = await cursor.fetchall()
    return [_row_to_record(r) for r in rows]


async def summarize(conn: aiosqlite.Connection) -> DatasetSummary:
    zero_rows = await _scalar(conn, "SELECT COUNT(*) FROM spotify WHERE duration_min = 0;")
    return DatasetSummary(
        total_rows=await count_rows(conn),
        distinct_artists=await count_distinct_artists(conn),
        album_types=await list_album_types(conn),
        max_duration_min=await max_duration(conn),
        min_duration_min=await min_duration(conn),
        zero_duration_rows=int(zero_rows or 0),
        channels=await list_channels(conn),
        platforms=await list_platforms(conn),
    )


# ---------------------------------------------------------------------------
# Cleanup
# ---------------------------------------------------------------------------


async def delete_zero_duration_tracks(conn: aiosqlite.Connection) -> int:
    """Delete rows whose duration is exactly zero. Returns count of deleted rows."""
    cursor = await conn.execute(DELETE_ZERO_DURATION_SQL)
    deleted = cursor.rowcount
    logger.debug("Deleted %d zero-duration rows", deleted)
    return deleted
