"""
Tests for trackstats.core.track_db and the SQL query modules.

These tests verify:
- TrackDb lifecycle and schema versioning
- Bulk insert with savepoint rollback
- Exploration, cleanup and the catalogue in SQLite
- SQL and pure-function results agree for every catalogue query
- artist_index management and the execution-plan probe
"""

from __future__ import annotations

import sqlite3

import pytest

from trackstats.config import QuerySettings
from trackstats.core import analysis
from trackstats.core.catalogue import CATALOGUE
from trackstats.core.db.models import CommentTotal, PlatformStreams, TrackRecord
from trackstats.core.db.schema import CREATE_TABLE_SQL, SCHEMA_VERSION, table_exists
from trackstats.core.track_db import TrackDb

# =============================================================================
# Lifecycle + schema
# =============================================================================


class TestTrackDbSchema:
    """Tests for the connection lifecycle and schema."""

    async def test_open_close(self) -> None:
        """Test basic open/close lifecycle."""
        db = TrackDb(":memory:")
        assert not db.is_open

        await db.open()
        assert db.is_open

        await db.close()
        assert not db.is_open

    async def test_requires_open(self) -> None:
        db = TrackDb(":memory:")
        with pytest.raises(RuntimeError, match="not open"):
            await db.count_rows()

    async def test_ensure_schema_creates_table(self, db: TrackDb) -> None:
        assert await table_exists(db.connection)
        assert await db.count_rows() == 0

    async def test_table_matches_published_statement(self, db: TrackDb) -> None:
        cursor = await db.connection.execute(
            "SELECT sql FROM sqlite_master WHERE type = 'table' AND name = 'spotify';"
        )
        row = await cursor.fetchone()
        assert row["sql"] == CREATE_TABLE_SQL.rstrip(";")

    async def test_schema_version_is_recorded(self, db: TrackDb) -> None:
        cursor = await db.connection.execute("PRAGMA user_version;")
        row = await cursor.fetchone()
        assert row[0] == SCHEMA_VERSION

    async def test_ensure_schema_is_idempotent(self, populated_db: TrackDb) -> None:
        await populated_db.ensure_schema()
        assert await populated_db.count_rows() == 9

    async def test_newer_schema_is_rejected(self, db: TrackDb) -> None:
        await db.connection.execute(f"PRAGMA user_version = {SCHEMA_VERSION + 1};")
        with pytest.raises(RuntimeError, match="newer than supported"):
            await db.ensure_schema()

    async def test_existing_unversioned_table_is_adopted(self) -> None:
        db = TrackDb(":memory:")
        await db.open()
        try:
            conn = db.connection
            await conn.execute(CREATE_TABLE_SQL)
            await conn.execute("INSERT INTO spotify (artist, track) VALUES ('Adele', 'Hello');")
            await conn.commit()

            await db.ensure_schema()
            assert await db.count_rows() == 1
        finally:
            await db.close()

    async def test_replace_drops_rows_and_index(self, populated_db: TrackDb) -> None:
        await populated_db.create_artist_index()
        inserted = await populated_db.replace_tracks([TrackRecord(artist="Adele", track="Hello")])

        assert inserted == 1
        assert await populated_db.count_rows() == 1
        assert not await populated_db.has_artist_index()


# =============================================================================
# Loading
# =============================================================================


class TestTrackDbInsert:
    """Tests for bulk loading."""

    async def test_insert_preserves_load_order(
        self, db: TrackDb, sample_tracks: list[TrackRecord]
    ) -> None:
        inserted = await db.insert_tracks(sample_tracks, batch_size=4)

        assert inserted == len(sample_tracks)
        assert await db.all_tracks() == sample_tracks

    async def test_insert_rolls_back_on_error(self, db: TrackDb) -> None:
        records = [
            TrackRecord(artist="Adele", track="Hello"),
            TrackRecord(artist=["not", "bindable"], track="Broken"),  # type: ignore[arg-type]
        ]
        with pytest.raises(sqlite3.Error):
            await db.insert_tracks(records, batch_size=1)

        assert await db.count_rows() == 0

    async def test_duplicates_are_allowed(self, db: TrackDb) -> None:
        record = TrackRecord(artist="Adele", track="Hello")
        await db.insert_tracks([record, record])
        assert await db.count_rows() == 2

    async def test_failed_replace_keeps_previous_table(
        self, populated_db: TrackDb, sample_tracks: list[TrackRecord]
    ) -> None:
        await populated_db.create_artist_index()
        records = [
            TrackRecord(artist="Adele", track="Hello"),
            TrackRecord(artist="Adele", track="Too Big", stream=2**70),
        ]
        with pytest.raises(OverflowError):
            await populated_db.replace_tracks(records, batch_size=1)

        assert await populated_db.all_tracks() == sample_tracks
        assert await populated_db.has_artist_index()


# =============================================================================
# Exploration + cleanup
# =============================================================================


class TestTrackDbExplore:
    """Tests for exploration queries and cleanup."""

    async def test_summarize_matches_pure_summary(
        self, populated_db: TrackDb, sample_tracks: list[TrackRecord]
    ) -> None:
        assert await populated_db.summarize() == analysis.summarize(sample_tracks)

    async def test_zero_duration_listing(self, populated_db: TrackDb) -> None:
        rows = await populated_db.list_zero_duration_tracks()
        assert [r.track for r in rows] == ["Around the World"]

    async def test_delete_zero_duration_tracks(self, populated_db: TrackDb) -> None:
        removed = await populated_db.delete_zero_duration_tracks()

        assert removed == 1
        assert await populated_db.count_rows() == 8
        assert await populated_db.list_zero_duration_tracks() == []
        assert await populated_db.min_duration() == 3.0

    async def test_cleanup_is_idempotent(self, populated_db: TrackDb) -> None:
        await populated_db.delete_zero_duration_tracks()
        assert await populated_db.delete_zero_duration_tracks() == 0

    async def test_empty_table_aggregates(self, db: TrackDb) -> None:
        assert await db.max_duration() is None
        assert await db.count_distinct_artists() == 0
        assert await db.list_platforms() == ()


# =============================================================================
# Catalogue in SQLite
# =============================================================================


class TestTrackDbCatalogue:
    """Tests for the catalogue statements."""

    async def test_tracks_over_streams(self, populated_db: TrackDb) -> None:
        rows = await populated_db.tracks_over_streams()
        assert [r.track for r in rows] == ["Feel Good Inc.", "One More Time", "Hello"]

    async def test_licensed_comment_total(self, populated_db: TrackDb) -> None:
        assert await populated_db.licensed_comment_total() == [CommentTotal(94)]

    async def test_licensed_comment_total_empty_table(self, db: TrackDb) -> None:
        assert await db.licensed_comment_total() == [CommentTotal(None)]

    async def test_singles_returns_full_rows(self, populated_db: TrackDb) -> None:
        rows = await populated_db.singles()
        assert [r.track for r in rows] == ["On Melancholy Hill", "Around the World", "Hello"]
        assert rows[-1].stream == 2_000_000_000
        assert rows[-1].licensed is True

    async def test_spotify_over_youtube(self, populated_db: TrackDb) -> None:
        assert await populated_db.spotify_over_youtube() == [
            PlatformStreams("Feel Good Inc.", 300_000_000, 1_200_000_000)
        ]

    async def test_top_viewed_per_artist_limits_ranks(self, populated_db: TrackDb) -> None:
        rows = await populated_db.top_viewed_per_artist(max_rank=2)
        gorillaz = [(r.track, r.d_rank) for r in rows if r.artist == "Gorillaz"]
        assert gorillaz == [("Feel Good Inc.", 1), ("Clint Eastwood", 2), ("DARE", 2)]

    async def test_energy_liveness_above_excludes_zero_liveness(
        self, populated_db: TrackDb
    ) -> None:
        rows = await populated_db.energy_liveness_above(ratio=0.0)
        assert "One More Time" not in {r.track for r in rows}

    async def test_cumulative_likes_total(
        self, populated_db: TrackDb, sample_tracks: list[TrackRecord]
    ) -> None:
        rows = await populated_db.cumulative_likes_by_views()
        assert rows[0].track == "Hello"
        assert rows[0].cumulative_likes == sum(r.likes for r in sample_tracks)
        assert [r.track for r in rows[-2:]] == ["Humility", "Around the World"]

    @pytest.mark.parametrize("key", sorted(CATALOGUE))
    async def test_sql_matches_pure_function(
        self, populated_db: TrackDb, sample_tracks: list[TrackRecord], key: str
    ) -> None:
        spec = CATALOGUE[key]
        settings = QuerySettings()

        from_sql = await spec.run_sql(populated_db.connection, settings)
        from_records = spec.run_local(sample_tracks, settings)

        assert from_sql == from_records
        for row in from_sql:
            assert isinstance(row, spec.row_type)

    @pytest.mark.parametrize("key", sorted(CATALOGUE))
    async def test_sql_matches_pure_function_after_cleanup(
        self, populated_db: TrackDb, key: str
    ) -> None:
        await populated_db.delete_zero_duration_tracks()
        spec = CATALOGUE[key]
        settings = QuerySettings(stream_threshold=500_000_000, max_rank=1)

        from_sql = await spec.run_sql(populated_db.connection, settings)
        from_records = spec.run_local(await populated_db.all_tracks(), settings)

        assert from_sql == from_records

    @pytest.mark.parametrize("key", sorted(CATALOGUE))
    async def test_sql_matches_pure_function_with_nulls(
        self, db: TrackDb, null_heavy_tracks: list[TrackRecord], key: str
    ) -> None:
        await db.insert_tracks(null_heavy_tracks)
        spec = CATALOGUE[key]
        settings = QuerySettings()

        from_sql = await spec.run_sql(db.connection, settings)
        from_records = spec.run_local(null_heavy_tracks, settings)

        assert from_sql == from_records

    async def test_summary_with_nulls(
        self, db: TrackDb, null_heavy_tracks: list[TrackRecord]
    ) -> None:
        await db.insert_tracks(null_heavy_tracks)
        summary = await db.summarize()

        assert summary == analysis.summarize(null_heavy_tracks)
        assert summary.distinct_artists == 2
        assert summary.album_types == (None, "album", "single")


# =============================================================================
# Index + plan
# =============================================================================


class TestTrackDbPlan:
    """Tests for artist_index and the probe statement."""

    async def test_index_lifecycle(self, populated_db: TrackDb) -> None:
        assert not await populated_db.has_artist_index()

        assert await populated_db.create_artist_index() is True
        assert await populated_db.create_artist_index() is False
        assert await populated_db.has_artist_index()

        assert await populated_db.drop_artist_index() is True
        assert await populated_db.drop_artist_index() is False
        assert not await populated_db.has_artist_index()

    async def test_plan_query_matches_pure_function(
        self, populated_db: TrackDb, sample_tracks: list[TrackRecord]
    ) -> None:
        assert await populated_db.probe_tracks() == analysis.probe_tracks(sample_tracks)

    async def test_explain_without_index_scans(self, populated_db: TrackDb) -> None:
        report = await populated_db.explain_probe()

        assert not report.uses_index
        assert report.row_count == 3
        assert report.elapsed_ms >= 0.0
        assert report.statement.startswith("SELECT")

    async def test_compare_plans(self, populated_db: TrackDb) -> None:
        comparison = await populated_db.compare_plans()

        assert not comparison.before.uses_index
        assert comparison.after.uses_index
        assert any("artist_index" in d for d in comparison.after.details)
        assert comparison.before.row_count == comparison.after.row_count == 3
        assert await populated_db.has_artist_index()
