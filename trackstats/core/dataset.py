from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from trackstats.config import ProbeSettings, QuerySettings
from trackstats.core import analysis
from trackstats.core.catalogue import QuerySpec, UnknownQueryError, get_query, list_queries
from trackstats.core.db.models import DatasetSummary, PlanComparison, PlanReport, TrackRecord
from trackstats.core.loader import LoadConfig, LoadIssue, load_track_csv
from trackstats.core.track_db import TrackDb

logger = logging.getLogger(__name__)

__all__ = [
    "DatasetError",
    "DatasetNotReadyError",
    "ImportResult",
    "QueryResult",
    "SpotifyDataset",
    "UnknownQueryError",
]


@dataclass(frozen=True, slots=True)
class ImportResult:
    rows_read: int
    rows_inserted: int
    rows_removed: int
    issues: tuple[LoadIssue, ...]


@dataclass(frozen=True, slots=True)
class QueryResult:
    spec: QuerySpec
    rows: list[Any]
    source: str  # "sql" or "local"


class DatasetError(RuntimeError):
    """Base error for SpotifyDataset operations."""


class DatasetNotReadyError(DatasetError):
    """Raised when operations are attempted before the dataset is initialized."""


class SpotifyDataset:
    """
    High-level facade over the `spotify` table.

    We keep:
    - one flat table, loaded in bulk and cleaned once
    - the fixed query catalogue, runnable in SQLite or as pure functions
    - a clear async interface for UI layers (web/cli)

    Dependencies:
    - `TrackDb` for persistence
    - `loader` for reading the source CSV
    """

    def __init__(
        self,
        *,
        db: TrackDb,
        settings: QuerySettings | None = None,
        probe: ProbeSettings | None = None,
    ) -> None:
        self._db = db
        self._settings = settings or QuerySettings()
        self._probe = probe or ProbeSettings()
        self._initialized = False

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def settings(self) -> QuerySettings:
        return self._settings

    @property
    def db(self) -> TrackDb:
        return self._db

    async def initialize(self) -> None:
        """
        Prepare the dataset for use.

        Contract:
        - `TrackDb` must already be open.
        - schema/migrations are ensured here for convenience.
        """
        if not self._db.is_open:
            raise DatasetError("TrackDb is not open. Open it before initializing SpotifyDataset.")

        await self._db.ensure_schema()
        self._initialized = True

    def _require_initialized(self) -> None:
        if not self._initialized:
            raise DatasetNotReadyError("SpotifyDataset is not initialized. Call initialize() first.")

    # ------------------------------------------------------------------
    # Loading + cleanup
    # ------------------------------------------------------------------

    async def import_records(
        self, records: list[TrackRecord], *, replace: bool = True, clean: bool = False
    ) -> ImportResult:
        """Insert already-built records, optionally replacing the table first."""
        self._require_initialized()

        if replace:
            inserted = await self._db.replace_tracks(records)
            logger.info("Replaced table contents with %d rows", inserted)
        else:
            inserted = await self._db.insert_tracks(records)
        removed = await self.cleanup() if clean else 0
        return ImportResult(
            rows_read=len(records), rows_inserted=inserted, rows_removed=removed, issues=()
        )

    async def import_csv(
        self,
        path: Path,
        *,
        replace: bool = True,
        clean: bool = False,
        max_rows: int | None = None,
    ) -> ImportResult:
        """
        Bulk-load the source CSV into the table.

        `replace` swaps the table contents for the file in one transaction; a
        failed load keeps the previous rows. Appending instead duplicates rows
        when the same file is loaded twice (the table has no key).
        """
        self._require_initialized()

        result = await load_track_csv(LoadConfig(path=Path(path), max_rows=max_rows))
        imported = await self.import_records(result.tracks, replace=replace, clean=clean)
        logger.info(
            "Imported %d rows from %s (%d removed by cleanup, %d issues)",
            imported.rows_inserted,
            path,
            imported.rows_removed,
            len(result.issues),
        )
        return ImportResult(
            rows_read=imported.rows_read,
            rows_inserted=imported.rows_inserted,
            rows_removed=imported.rows_removed,
            issues=tuple(result.issues),
        )

    async def cleanup(self) -> int:
        """Delete rows with a zero duration. Returns count of deleted rows."""
        self._require_initialized()
        removed = await self._db.delete_zero_duration_tracks()
        logger.info("Removed %d zero-duration rows", removed)
        return removed

    async def records(self) -> list[TrackRecord]:
        self._require_initialized()
        return await self._db.all_tracks()

    async def summary(self) -> DatasetSummary:
        self._require_initialized()
        return await self._db.summarize()

    # ------------------------------------------------------------------
    # Catalogue
    # ------------------------------------------------------------------

    def queries(self) -> list[QuerySpec]:
        return list_queries()

    async def run_query(self, key: str | int) -> QueryResult:
        """Run a catalogue query in SQLite."""
        self._require_initialized()
        spec = get_query(key)
        rows = await spec.run_sql(self._db.connection, self._settings)
        logger.debug("Query %s returned %d rows", spec.key, len(rows))
        return QueryResult(spec=spec, rows=rows, source="sql")

    async def run_query_local(self, key: str | int) -> QueryResult:
        """Run a catalogue query as a pure function over the current rows."""
        self._require_initialized()
        spec = get_query(key)
        records = await self._db.all_tracks()
        rows = spec.run_local(records, self._settings)
        return QueryResult(spec=spec, rows=rows, source="local")

    # ------------------------------------------------------------------
    # Index + execution plan
    # ------------------------------------------------------------------

    async def explain(
        self, *, artist: str | None = None, platform: str | None = None
    ) -> PlanReport:
        self._require_initialized()
        return await self._db.explain_probe(
            artist=artist or self._probe.artist,
            platform=platform or self._probe.platform,
            limit=self._probe.limit,
        )

    async def compare_plans(
        self, *, artist: str | None = None, platform: str | None = None
    ) -> PlanComparison:
        self._require_initialized()
        comparison = await self._db.compare_plans(
            artist=artist or self._probe.artist,
            platform=platform or self._probe.platform,
            limit=self._probe.limit,
        )
        logger.info(
            "Probe: %.3f ms without artist_index, %.3f ms with it",
            comparison.before.elapsed_ms,
            comparison.after.elapsed_ms,
        )
        return comparison

    async def probe_local(self) -> list[Any]:
        self._require_initialized()
        records = await self._db.all_tracks()
        return analysis.probe_tracks(
            records,
            artist=self._probe.artist,
            platform=self._probe.platform,
            limit=self._probe.limit,
        )

    async def create_artist_index(self) -> bool:
        self._require_initialized()
        return await self._db.create_artist_index()

    async def drop_artist_index(self) -> bool:
        self._require_initialized()
        return await self._db.drop_artist_index()

    async def has_artist_index(self) -> bool:
        self._require_initialized()
        return await self._db.has_artist_index()
