"""
Storage facade for the `spotify` table.

Goals:
- SQLite + aiosqlite, async/await friendly.
- The table layout is fixed by the published CREATE TABLE statement; schema
  versioning only tracks whether that statement has been applied.

This module is intentionally independent of the web layer.

Note:
- Models/DTOs and normalization helpers live in `trackstats.core.db.models`
- Schema/migrations live in `trackstats.core.db.schema`
- Query functions live in `trackstats.core.db.queries_*` modules
- `TrackDb` remains the public facade used by the rest of the codebase
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import aiosqlite

# Import query modules for delegation
from trackstats.core.db import (
    queries_advanced,
    queries_easy,
    queries_explore,
    queries_medium,
    queries_plan,
)
from trackstats.core.db.models import (
    AlbumArtist,
    AlbumDanceability,
    AlbumEnergySpread,
    AlbumTrackViews,
    ArtistTrackCount,
    CommentTotal,
    CumulativeLikes,
    DatasetSummary,
    EnergyLivenessRatio,
    PlanComparison,
    PlanReport,
    PlatformStreams,
    RankedArtistTrack,
    TrackEnergy,
    TrackEngagement,
    TrackLiveness,
    TrackName,
    TrackRecord,
    ViewsByStream,
)
from trackstats.core.db.schema import ensure_schema as ensure_schema_sql
from trackstats.core.db.schema import reset_table

logger = logging.getLogger(__name__)


class TrackDb:
    """
    Async access layer for the track metrics DB.

    Usage:
        db = TrackDb("trackstats.sqlite3")
        await db.open()
        await db.ensure_schema()
        ... queries ...
        await db.close()

    Notes:
    - This class is designed to be injected into other components.
    - Connections are not pooled; we keep a single connection.
    """

    def __init__(self, db_path: str | Path) -> None:
        self._db_path = str(db_path)
        self._conn: aiosqlite.Connection | None = None

    @property
    def path(self) -> str:
        return self._db_path

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    @property
    def connection(self) -> aiosqlite.Connection:
        return self._require_conn()

    async def open(self) -> None:
        if self._conn is not None:
            return
        self._conn = await aiosqlite.connect(self._db_path)
        self._conn.row_factory = aiosqlite.Row

        await self._conn.execute("PRAGMA journal_mode = WAL;")
        await self._conn.execute("PRAGMA synchronous = NORMAL;")
        await self._conn.execute("PRAGMA temp_store = MEMORY;")

    async def close(self) -> None:
        if self._conn is None:
            return
        await self._conn.close()
        self._conn = None

    def _require_conn(self) -> aiosqlite.Connection:
        if self._conn is None:
            raise RuntimeError("TrackDb is not open. Call await db.open() first.")
        return self._conn

    async def ensure_schema(self) -> None:
        """Create or migrate schema to current version."""
        conn = self._require_conn()
        await ensure_schema_sql(conn)

    # ===========================================================================
    # Loading
    # ===========================================================================

    async def insert_tracks(self, records: Iterable[TrackRecord], *, batch_size: int = 1000) -> int:
        """Bulk insert records in table order. Returns count of inserted rows."""
        return await self._load_tracks(records, batch_size=batch_size, replace=False)

    async def replace_tracks(self, records: Iterable[TrackRecord], *, batch_size: int = 1000) -> int:
        """
        Drop and recreate the table, then insert records, as one unit.

        If any insert fails the previous table (rows and `artist_index`) is
        restored. Returns count of inserted rows.
        """
        return await self._load_tracks(records, batch_size=batch_size, replace=True)

    async def _load_tracks(
        self, records: Iterable[TrackRecord], *, batch_size: int, replace: bool
    ) -> int:
        conn = self._require_conn()
        # Use savepoint for transaction safety
        await conn.execute("SAVEPOINT load_tracks_sp;")
        try:
            if replace:
                await reset_table(conn)
            count = 0
            batch: list[TrackRecord] = []
            for record in records:
                batch.append(record)
                if len(batch) >= batch_size:
                    count += await queries_explore.insert_tracks(conn, batch)
                    batch = []
            if batch:
                count += await queries_explore.insert_tracks(conn, batch)
            await conn.execute("RELEASE SAVEPOINT load_tracks_sp;")
        except Exception:
            await conn.execute("ROLLBACK TO SAVEPOINT load_tracks_sp;")
            await conn.execute("RELEASE SAVEPOINT load_tracks_sp;")
            raise
        await conn.commit()
        logger.debug("Inserted %d rows (replace=%s)", count, replace)
        return count

    async def all_tracks(self) -> list[TrackRecord]:
        return await queries_explore.list_tracks(self._require_conn())

    # ===========================================================================
    # Exploration + cleanup (delegated to queries_explore)
    # ===========================================================================

    async def count_rows(self) -> int:
        return await queries_explore.count_rows(self._require_conn())

    async def count_distinct_artists(self) -> int:
        return await queries_explore.count_distinct_artists(self._require_conn())

    async def list_album_types(self) -> tuple[str | None, ...]:
        return await queries_explore.list_album_types(self._require_conn())

    async def list_channels(self) -> tuple[str | None, ...]:
        return await queries_explore.list_channels(self._require_conn())

    async def list_platforms(self) -> tuple[str | None, ...]:
        return await queries_explore.list_platforms(self._require_conn())

    async def max_duration(self) -> float | None:
        return await queries_explore.max_duration(self._require_conn())

    async def min_duration(self) -> float | None:
        return await queries_explore.min_duration(self._require_conn())

    async def list_zero_duration_tracks(self) -> list[TrackRecord]:
        return await queries_explore.list_zero_duration_tracks(self._require_conn())

    async def summarize(self) -> DatasetSummary:
        return await queries_explore.summarize(self._require_conn())

    async def delete_zero_duration_tracks(self) -> int:
        """Delete rows with duration_min = 0. Returns count of deleted rows."""
        conn = self._require_conn()
        deleted = await queries_explore.delete_zero_duration_tracks(conn)
        await conn.commit()
        return deleted

    # ===========================================================================
    # Easy catalogue (delegated to queries_easy)
    # ===========================================================================

    async def tracks_over_streams(
        self, *, threshold: int = queries_easy.DEFAULT_STREAM_THRESHOLD
    ) -> list[TrackName]:
        return await queries_easy.tracks_over_streams(self._require_conn(), threshold=threshold)

    async def albums_with_artists(self) -> list[AlbumArtist]:
        return await queries_easy.albums_with_artists(self._require_conn())

    async def licensed_comment_total(self) -> list[CommentTotal]:
        return await queries_easy.licensed_comment_total(self._require_conn())

    async def singles(self) -> list[TrackRecord]:
        return await queries_easy.singles(self._require_conn())

    async def tracks_per_artist(self) -> list[ArtistTrackCount]:
        return await queries_easy.tracks_per_artist(self._require_conn())

    # ===========================================================================
    # Medium catalogue (delegated to queries_medium)
    # ===========================================================================

    async def avg_danceability_by_album(self) -> list[AlbumDanceability]:
        return await queries_medium.avg_danceability_by_album(self._require_conn())

    async def top_energy_tracks(
        self, *, limit: int = queries_medium.DEFAULT_TOP_ENERGY_LIMIT
    ) -> list[TrackEnergy]:
        return await queries_medium.top_energy_tracks(self._require_conn(), limit=limit)

    async def official_video_engagement(self) -> list[TrackEngagement]:
        return await queries_medium.official_video_engagement(self._require_conn())

    async def album_track_views(self) -> list[AlbumTrackViews]:
        return await queries_medium.album_track_views(self._require_conn())

    async def spotify_over_youtube(self) -> list[PlatformStreams]:
        return await queries_medium.spotify_over_youtube(self._require_conn())

    # ===========================================================================
    # Advanced catalogue (delegated to queries_advanced)
    # ===========================================================================

    async def top_viewed_per_artist(
        self, *, max_rank: int = queries_advanced.DEFAULT_MAX_RANK
    ) -> list[RankedArtistTrack]:
        return await queries_advanced.top_viewed_per_artist(
            self._require_conn(), max_rank=max_rank
        )

    async def liveness_above_average(self) -> list[TrackLiveness]:
        return await queries_advanced.liveness_above_average(self._require_conn())

    async def energy_spread_by_album(self) -> list[AlbumEnergySpread]:
        return await queries_advanced.energy_spread_by_album(self._require_conn())

    async def energy_liveness_above(
        self, *, ratio: float = queries_advanced.DEFAULT_ENERGY_LIVENESS_RATIO
    ) -> list[EnergyLivenessRatio]:
        return await queries_advanced.energy_liveness_above(self._require_conn(), ratio=ratio)

    async def cumulative_likes_by_views(self) -> list[CumulativeLikes]:
        return await queries_advanced.cumulative_likes_by_views(self._require_conn())

    # ===========================================================================
    # Index + execution plan (delegated to queries_plan)
    # ===========================================================================

    async def has_artist_index(self) -> bool:
        return await queries_plan.has_artist_index(self._require_conn())

    async def create_artist_index(self) -> bool:
        return await queries_plan.create_artist_index(self._require_conn())

    async def drop_artist_index(self) -> bool:
        return await queries_plan.drop_artist_index(self._require_conn())

    async def probe_tracks(
        self,
        *,
        artist: str = queries_plan.DEFAULT_PROBE_ARTIST,
        platform: str = queries_plan.DEFAULT_PROBE_PLATFORM,
        limit: int = queries_plan.DEFAULT_PROBE_LIMIT,
    ) -> list[ViewsByStream]:
        return await queries_plan.probe_tracks(
            self._require_conn(), artist=artist, platform=platform, limit=limit
        )

    async def explain_probe(
        self,
        *,
        artist: str = queries_plan.DEFAULT_PROBE_ARTIST,
        platform: str = queries_plan.DEFAULT_PROBE_PLATFORM,
        limit: int = queries_plan.DEFAULT_PROBE_LIMIT,
    ) -> PlanReport:
        return await queries_plan.explain_probe(
            self._require_conn(), artist=artist, platform=platform, limit=limit
        )

    async def compare_plans(
        self,
        *,
        artist: str = queries_plan.DEFAULT_PROBE_ARTIST,
        platform: str = queries_plan.DEFAULT_PROBE_PLATFORM,
        limit: int = queries_plan.DEFAULT_PROBE_LIMIT,
    ) -> PlanComparison:
        return await queries_plan.compare_plans(
            self._require_conn(), artist=artist, platform=platform, limit=limit
        )
