"""
Core of trackstats: the `spotify` table, its storage layer and the query catalogue.
"""

from trackstats.core.catalogue import CATALOGUE, QueryLevel, QuerySpec, UnknownQueryError, get_query
from trackstats.core.dataset import (
    DatasetError,
    DatasetNotReadyError,
    ImportResult,
    QueryResult,
    SpotifyDataset,
)
from trackstats.core.db.models import TrackRecord
from trackstats.core.track_db import TrackDb

__all__ = [
    "CATALOGUE",
    "DatasetError",
    "DatasetNotReadyError",
    "ImportResult",
    "QueryLevel",
    "QueryResult",
    "QuerySpec",
    "SpotifyDataset",
    "TrackDb",
    "TrackRecord",
    "UnknownQueryError",
    "get_query",
]
