"""
REST API Routes for trackstats.

Provides read-only REST endpoints:
- /api/status: Server and table status
- /api/summary: Exploratory overview of the table
- /api/queries: The query catalogue
- /api/queries/{key}: Run one catalogue query
- /api/plan: Explain and time the artist_index probe
"""

from __future__ import annotations

import logging
from dataclasses import asdict, is_dataclass
from typing import TYPE_CHECKING, Any, Literal

from fastapi import APIRouter, HTTPException, Query

from trackstats import __version__
from trackstats.core.catalogue import QuerySpec, UnknownQueryError

if TYPE_CHECKING:
    from trackstats.core.dataset import SpotifyDataset

logger = logging.getLogger(__name__)

router = APIRouter(tags=["api"])

# Reference set during route registration
_dataset: SpotifyDataset | None = None


def register_api_routes(app, dataset: SpotifyDataset) -> None:
    """
    Register API routes with the FastAPI app.

    Args:
        app: FastAPI application instance
        dataset: SpotifyDataset to serve
    """
    global _dataset
    _dataset = dataset
    app.include_router(router)


def to_dict(row: Any) -> dict[str, Any]:
    """Convert a result row (dict or dataclass) to a dictionary."""
    if isinstance(row, dict):
        return row
    if is_dataclass(row) and not isinstance(row, type):
        return asdict(row)
    raise TypeError(f"Cannot serialize {type(row).__name__}")


def _spec_info(spec: QuerySpec) -> dict[str, Any]:
    return {
        "key": spec.key,
        "level": spec.level.value,
        "question": spec.question,
        "columns": list(spec.columns),
    }


def _require_dataset() -> SpotifyDataset:
    if _dataset is None or not _dataset.initialized:
        raise HTTPException(status_code=503, detail="Dataset not initialized")
    return _dataset


# =============================================================================
# Status + summary
# =============================================================================


@router.get("/api/status")
async def server_status() -> dict[str, Any]:
    """Get server status and basic table info."""
    dataset = _require_dataset()
    return {
        "server": "trackstats",
        "version": __version__,
        "dataset_initialized": dataset.initialized,
        "rows": await dataset.db.count_rows(),
        "artist_index": await dataset.has_artist_index(),
    }


@router.get("/api/summary")
async def dataset_summary() -> dict[str, Any]:
    """Exploratory overview: counts, distinct values and duration range."""
    dataset = _require_dataset()
    return to_dict(await dataset.summary())


# =============================================================================
# Query catalogue
# =============================================================================


@router.get("/api/queries")
async def list_catalogue() -> dict[str, Any]:
    """List every catalogue query."""
    dataset = _require_dataset()
    queries = [_spec_info(spec) for spec in dataset.queries()]
    return {"count": len(queries), "queries": queries}


@router.get("/api/queries/{key}")
async def run_catalogue_query(
    key: str,
    source: Literal["sql", "local"] = Query(default="sql"),
    include_sql: bool = Query(default=False),
) -> dict[str, Any]:
    """Run one catalogue query in SQLite (default) or as a pure function."""
    dataset = _require_dataset()
    try:
        if source == "local":
            result = await dataset.run_query_local(key)
        else:
            result = await dataset.run_query(key)
    except UnknownQueryError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e

    payload = _spec_info(result.spec)
    payload["source"] = result.source
    payload["count"] = len(result.rows)
    payload["rows"] = [to_dict(r) for r in result.rows]
    if include_sql:
        payload["sql"] = result.spec.statement.strip()
    return payload


# =============================================================================
# Execution plan
# =============================================================================


@router.get("/api/plan")
async def explain_probe(
    artist: str | None = Query(default=None),
    platform: str | None = Query(default=None),
) -> dict[str, Any]:
    """Explain and time the probe statement with the current indexes."""
    dataset = _require_dataset()
    report = await dataset.explain(artist=artist, platform=platform)
    return to_dict(report)
