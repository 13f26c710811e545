"""
Database schema + migrations for trackstats.

- Connection management and the public `TrackDb` facade live in `track_db.py`
- Schema creation, schema versioning, and forward-only migrations live here

Design notes:
- We use SQLite `PRAGMA user_version` as the schema version.
- Migrations are forward-only (no downgrade support).
- The `spotify` table keeps the column names, order and type names of the
  published CREATE TABLE statement. SQLite maps the type names onto its
  affinities (VARCHAR -> TEXT, FLOAT -> REAL, BIGINT/BOOLEAN -> INTEGER/NUMERIC).
- `artist_index` is a performance hint and is never created by a migration;
  see `queries_plan`.
"""

from __future__ import annotations

import logging
from typing import Final

import aiosqlite

logger = logging.getLogger(__name__)

# Bump when you change the schema and add a migration in `migrate()`.
SCHEMA_VERSION: Final[int] = 1

TABLE_NAME: Final[str] = "spotify"
ARTIST_INDEX_NAME: Final[str] = "artist_index"

CREATE_TABLE_SQL: Final[str] = """CREATE TABLE spotify (
    artist VARCHAR(255),
    track VARCHAR(255),
    album VARCHAR(255),
    album_type VARCHAR(50),
    danceability FLOAT,
    energy FLOAT,
    loudness FLOAT,
    speechiness FLOAT,
    acousticness FLOAT,
    instrumentalness FLOAT,
    liveness FLOAT,
    valence FLOAT,
    tempo FLOAT,
    duration_min FLOAT,
    title VARCHAR(255),
    channel VARCHAR(255),
    views FLOAT,
    likes BIGINT,
    comments BIGINT,
    licensed BOOLEAN,
    official_video BOOLEAN,
    stream BIGINT,
    energy_liveness FLOAT,
    most_played_on VARCHAR(50)
);"""

DROP_TABLE_SQL: Final[str] = "DROP TABLE IF EXISTS spotify;"

CREATE_ARTIST_INDEX_SQL: Final[str] = "CREATE INDEX artist_index ON spotify (artist);"


async def ensure_schema(conn: aiosqlite.Connection) -> None:
    """
    Create or migrate schema to current version.

    This function assumes:
    - `conn` is an open aiosqlite connection
    - `conn.row_factory` is configured by the caller if desired
    """
    cursor = await conn.execute("PRAGMA user_version;")
    row = await cursor.fetchone()
    current = int(row[0]) if row is not None else 0

    if current > SCHEMA_VERSION:
        raise RuntimeError(
            f"Database schema version {current} is newer than supported {SCHEMA_VERSION}."
        )

    if current == SCHEMA_VERSION:
        return

    logger.debug("Migrating schema from v%d to v%d", current, SCHEMA_VERSION)
    await migrate(conn, from_version=current, to_version=SCHEMA_VERSION)
    await conn.execute(f"PRAGMA user_version = {SCHEMA_VERSION};")
    await conn.commit()


async def migrate(conn: aiosqlite.Connection, *, from_version: int, to_version: int) -> None:
    """
    Perform forward-only migrations.

    Keep migrations small. If you need a big refactor, create a new DB.
    """
    # v0 -> v1
    if from_version == 0 and to_version >= 1:
        # A DB created by the plain SQL script already has the table.
        if not await table_exists(conn):
            await conn.execute(CREATE_TABLE_SQL)
        await conn.commit()
        from_version = 1

    if from_version != to_version:
        raise RuntimeError(f"No migration path from {from_version} to {to_version}.")


async def table_exists(conn: aiosqlite.Connection, name: str = TABLE_NAME) -> bool:
    cursor = await conn.execute(
        "SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = ?;", (name,)
    )
    return await cursor.fetchone() is not None


async def reset_table(conn: aiosqlite.Connection) -> None:
    """
    Drop and recreate the `spotify` table (drops `artist_index` with it).

    Does not commit: callers run it inside their own savepoint so a failed
    reload leaves the previous rows in place.
    """
    await conn.execute(DROP_TABLE_SQL)
    await conn.execute(CREATE_TABLE_SQL)
    logger.debug("Recreated table %s", TABLE_NAME)
