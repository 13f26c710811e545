"""
DB models (DTOs) and small normalization helpers for the `spotify` table.

This module is intentionally lightweight:
- No DB connection knowledge
- No SQL
- Pure dataclasses + helper functions

Field names of every result row are the column names the catalogue SQL
produces, so a row can be rendered as-is by the CLI and the HTTP API.
"""

from __future__ import annotations

import math
import numbers
from dataclasses import dataclass, fields
from typing import Any, Final, Mapping

PLATFORM_SPOTIFY: Final[str] = "Spotify"
PLATFORM_YOUTUBE: Final[str] = "Youtube"

_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"true", "t", "yes", "y", "1"})
_FALSE_STRINGS: Final[frozenset[str]] = frozenset({"false", "f", "no", "n", "0"})


def normalize_text(value: Any) -> str | None:
    """
    Normalize optional text fields:
    - strip whitespace
    - coerce empty strings to None
    """
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    v = str(value).strip()
    return v if v else None


def normalize_float(value: Any) -> float | None:
    """Normalize optional float fields (NaN and blanks become None)."""
    if value is None:
        return None
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    f = float(value)
    return None if math.isnan(f) else f


def normalize_int(value: Any) -> int | None:
    """
    Normalize optional integer fields.

    Floats are accepted when they carry an integral value (pandas reads BIGINT
    columns containing blanks as float64).
    """
    if value is None:
        return None
    if isinstance(value, bool):
        return int(value)
    if isinstance(value, numbers.Integral):
        return int(value)
    f = normalize_float(value)
    if f is None:
        return None
    if not f.is_integer():
        raise ValueError(f"Expected an integral value, got {value!r}")
    return int(f)


def normalize_bool(value: Any) -> bool | None:
    """Normalize optional boolean fields; unknown spellings become None."""
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        if isinstance(value, float) and math.isnan(value):
            return None
        if value in (0, 1):
            return bool(value)
        return None
    v = str(value).strip().lower()
    if v in _TRUE_STRINGS:
        return True
    if v in _FALSE_STRINGS:
        return False
    return None


@dataclass(frozen=True, slots=True)
class TrackRecord:
    """
    One row of the `spotify` table.

    Field order is the table's column order. Every field is optional: the
    table carries no constraints, and the same artist/track/album can appear
    several times (one row per track/channel pairing).
    """

    artist: str | None = None
    track: str | None = None
    album: str | None = None
    album_type: str | None = None
    danceability: float | None = None
    energy: float | None = None
    loudness: float | None = None
    speechiness: float | None = None
    acousticness: float | None = None
    instrumentalness: float | None = None
    liveness: float | None = None
    valence: float | None = None
    tempo: float | None = None
    duration_min: float | None = None
    title: str | None = None
    channel: str | None = None
    views: float | None = None
    likes: int | None = None
    comments: int | None = None
    licensed: bool | None = None
    official_video: bool | None = None
    stream: int | None = None
    energy_liveness: float | None = None
    most_played_on: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> TrackRecord:
        """Build a record from a column-keyed mapping (DB row, CSV row)."""
        values: dict[str, Any] = {}
        for name in TRACK_COLUMNS:
            try:
                raw = data[name]
            except (KeyError, IndexError):
                raw = None
            values[name] = COLUMN_NORMALIZERS[name](raw)
        return cls(**values)

    def as_params(self) -> tuple[Any, ...]:
        """Values in column order, ready for parameter binding."""
        return tuple(getattr(self, name) for name in TRACK_COLUMNS)


TRACK_COLUMNS: Final[tuple[str, ...]] = tuple(f.name for f in fields(TrackRecord))

_TEXT_COLUMNS = ("artist", "track", "album", "album_type", "title", "channel", "most_played_on")
INTEGER_COLUMNS: Final[tuple[str, ...]] = ("likes", "comments", "stream")
_BOOL_COLUMNS = ("licensed", "official_video")

COLUMN_NORMALIZERS: Final[dict[str, Any]] = {
    name: (
        normalize_text
        if name in _TEXT_COLUMNS
        else normalize_int
        if name in INTEGER_COLUMNS
        else normalize_bool
        if name in _BOOL_COLUMNS
        else normalize_float
    )
    for name in TRACK_COLUMNS
}

NUMERIC_COLUMNS: Final[tuple[str, ...]] = tuple(
    name for name in TRACK_COLUMNS if name not in _TEXT_COLUMNS and name not in _BOOL_COLUMNS
)


def row_columns(row_type: type) -> tuple[str, ...]:
    """Result column names of a row dataclass, in output order."""
    return tuple(f.name for f in fields(row_type))


# ---------------------------------------------------------------------------
# Result rows: easy
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class TrackName:
    track: str | None


@dataclass(frozen=True, slots=True)
class AlbumArtist:
    album: str | None
    artist: str | None


@dataclass(frozen=True, slots=True)
class CommentTotal:
    total_comments: int | None


@dataclass(frozen=True, slots=True)
class ArtistTrackCount:
    artist: str | None
    total_no_of_song: int


# ---------------------------------------------------------------------------
# Result rows: medium
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class AlbumDanceability:
    album: str | None
    avg_danceability: float | None


@dataclass(frozen=True, slots=True)
class TrackEnergy:
    track: str | None
    max_energy: float | None


@dataclass(frozen=True, slots=True)
class TrackEngagement:
    track: str | None
    total_views: float | None
    total_likes: int | None


@dataclass(frozen=True, slots=True)
class AlbumTrackViews:
    album: str | None
    track: str | None
    total_views: float | None


@dataclass(frozen=True, slots=True)
class PlatformStreams:
    """Streams of one track split by the platform it is most played on."""

    track: str | None
    streamed_on_youtube: int
    streamed_on_spotify: int


# ---------------------------------------------------------------------------
# Result rows: advanced
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class RankedArtistTrack:
    artist: str | None
    track: str | None
    total_views: float | None
    d_rank: int


@dataclass(frozen=True, slots=True)
class TrackLiveness:
    track: str | None
    artist: str | None
    liveness: float | None


@dataclass(frozen=True, slots=True)
class AlbumEnergySpread:
    album: str | None
    energy_diff: float | None


@dataclass(frozen=True, slots=True)
class EnergyLivenessRatio:
    artist: str | None
    track: str | None
    album: str | None
    energy: float | None
    liveness: float | None
    energy_to_liveness_ratio: float


@dataclass(frozen=True, slots=True)
class CumulativeLikes:
    artist: str | None
    track: str | None
    album: str | None
    views: float | None
    likes: int | None
    cumulative_likes: int | None


# ---------------------------------------------------------------------------
# Exploration + plan reports
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class DatasetSummary:
    """Exploratory overview of the table (the checks run before cleanup)."""

    total_rows: int
    distinct_artists: int
    album_types: tuple[str | None, ...]
    max_duration_min: float | None
    min_duration_min: float | None
    zero_duration_rows: int
    channels: tuple[str | None, ...]
    platforms: tuple[str | None, ...]


@dataclass(frozen=True, slots=True)
class ViewsByStream:
    artist: str | None
    track: str | None
    views: float | None


@dataclass(frozen=True, slots=True)
class PlanReport:
    """
    Result of explaining and timing the probe statement.

    `details` holds SQLite's EXPLAIN QUERY PLAN lines in evaluation order.
    """

    statement: str
    details: tuple[str, ...]
    uses_index: bool
    elapsed_ms: float
    row_count: int


@dataclass(frozen=True, slots=True)
class PlanComparison:
    before: PlanReport
    after: PlanReport

    @property
    def speedup(self) -> float | None:
        if self.after.elapsed_ms <= 0:
            return None
        return self.before.elapsed_ms / self.after.elapsed_ms
