"""
Internal DB subpackage for trackstats.

This package splits the storage layer into focused units (models, schema,
and query groups) while keeping `TrackDb` as the single public interface that
the rest of the codebase imports.

Re-exports here are primarily for convenience inside the `core` package.
External code should import `TrackDb` from `trackstats.core.track_db`.
"""

from __future__ import annotations

# Models / DTOs
from .models import TRACK_COLUMNS, DatasetSummary, PlanComparison, PlanReport, TrackRecord

# Schema / migrations
from .schema import CREATE_TABLE_SQL, ensure_schema, migrate, reset_table

__all__ = [
    # models
    "TRACK_COLUMNS",
    "TrackRecord",
    "DatasetSummary",
    "PlanReport",
    "PlanComparison",
    # schema
    "CREATE_TABLE_SQL",
    "ensure_schema",
    "migrate",
    "reset_table",
]
