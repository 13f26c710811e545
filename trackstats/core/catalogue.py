"""
Registry of the 15 catalogue queries.

Each entry pairs the SQL implementation (run against an open connection)
with its pure-function twin (run over an in-memory record sequence), so
callers can pick either and compare them.
"""

from __future__ import annotations

import re
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass
from enum import Enum
from typing import Any

import aiosqlite

from trackstats.config import QuerySettings
from trackstats.core import analysis
from trackstats.core.db import queries_advanced, queries_easy, queries_medium
from trackstats.core.db.models import (
    AlbumArtist,
    AlbumDanceability,
    AlbumEnergySpread,
    AlbumTrackViews,
    ArtistTrackCount,
    CommentTotal,
    CumulativeLikes,
    EnergyLivenessRatio,
    PlatformStreams,
    RankedArtistTrack,
    TrackEnergy,
    TrackEngagement,
    TrackLiveness,
    TrackName,
    TrackRecord,
    row_columns,
)

SqlRunner = Callable[[aiosqlite.Connection, QuerySettings], Awaitable[list[Any]]]
LocalRunner = Callable[[Sequence[TrackRecord], QuerySettings], list[Any]]


class QueryLevel(Enum):
    EASY = "easy"
    MEDIUM = "medium"
    ADVANCED = "advanced"


class UnknownQueryError(KeyError):
    """Raised when a query key does not name a catalogue entry."""

    def __str__(self) -> str:
        return f"Unknown query: {self.args[0]!r}" if self.args else "Unknown query"


@dataclass(frozen=True, slots=True)
class QuerySpec:
    key: str
    level: QueryLevel
    question: str
    row_type: type
    statement: str
    run_sql: SqlRunner
    run_local: LocalRunner

    @property
    def columns(self) -> tuple[str, ...]:
        return row_columns(self.row_type)


_SPECS: tuple[QuerySpec, ...] = (
    QuerySpec(
        key="q01",
        level=QueryLevel.EASY,
        question="Retrieve the names of all tracks that have more than 1 billion streams.",
        row_type=TrackName,
        statement=queries_easy.TRACKS_OVER_STREAMS_SQL,
        run_sql=lambda conn, s: queries_easy.tracks_over_streams(
            conn, threshold=s.stream_threshold
        ),
        run_local=lambda records, s: analysis.tracks_over_streams(
            records, threshold=s.stream_threshold
        ),
    ),
    QuerySpec(
        key="q02",
        level=QueryLevel.EASY,
        question="List all albums along with their respective artists.",
        row_type=AlbumArtist,
        statement=queries_easy.ALBUMS_WITH_ARTISTS_SQL,
        run_sql=lambda conn, s: queries_easy.albums_with_artists(conn),
        run_local=lambda records, s: analysis.albums_with_artists(records),
    ),
    QuerySpec(
        key="q03",
        level=QueryLevel.EASY,
        question="Get the total number of comments for tracks where licensed = TRUE.",
        row_type=CommentTotal,
        statement=queries_easy.LICENSED_COMMENTS_SQL,
        run_sql=lambda conn, s: queries_easy.licensed_comment_total(conn),
        run_local=lambda records, s: analysis.licensed_comment_total(records),
    ),
    QuerySpec(
        key="q04",
        level=QueryLevel.EASY,
        question="Find all tracks that belong to the album type single.",
        row_type=TrackRecord,
        statement=queries_easy.SINGLES_SQL,
        run_sql=lambda conn, s: queries_easy.singles(conn),
        run_local=lambda records, s: analysis.singles(records),
    ),
    QuerySpec(
        key="q05",
        level=QueryLevel.EASY,
        question="Count the total number of tracks by each artist.",
        row_type=ArtistTrackCount,
        statement=queries_easy.TRACKS_PER_ARTIST_SQL,
        run_sql=lambda conn, s: queries_easy.tracks_per_artist(conn),
        run_local=lambda records, s: analysis.tracks_per_artist(records),
    ),
    QuerySpec(
        key="q06",
        level=QueryLevel.MEDIUM,
        question="Calculate the average danceability of tracks in each album.",
        row_type=AlbumDanceability,
        statement=queries_medium.AVG_DANCEABILITY_SQL,
        run_sql=lambda conn, s: queries_medium.avg_danceability_by_album(conn),
        run_local=lambda records, s: analysis.avg_danceability_by_album(records),
    ),
    QuerySpec(
        key="q07",
        level=QueryLevel.MEDIUM,
        question="Find the top 5 tracks with the highest energy values.",
        row_type=TrackEnergy,
        statement=queries_medium.TOP_ENERGY_SQL,
        run_sql=lambda conn, s: queries_medium.top_energy_tracks(conn, limit=s.top_energy_limit),
        run_local=lambda records, s: analysis.top_energy_tracks(
            records, limit=s.top_energy_limit
        ),
    ),
    QuerySpec(
        key="q08",
        level=QueryLevel.MEDIUM,
        question="List all tracks along with their views and likes where official_video = TRUE.",
        row_type=TrackEngagement,
        statement=queries_medium.OFFICIAL_VIDEO_ENGAGEMENT_SQL,
        run_sql=lambda conn, s: queries_medium.official_video_engagement(conn),
        run_local=lambda records, s: analysis.official_video_engagement(records),
    ),
    QuerySpec(
        key="q09",
        level=QueryLevel.MEDIUM,
        question="For each album, calculate the total views of all associated tracks.",
        row_type=AlbumTrackViews,
        statement=queries_medium.ALBUM_TRACK_VIEWS_SQL,
        run_sql=lambda conn, s: queries_medium.album_track_views(conn),
        run_local=lambda records, s: analysis.album_track_views(records),
    ),
    QuerySpec(
        key="q10",
        level=QueryLevel.MEDIUM,
        question="Retrieve the track names that have been streamed on Spotify more than YouTube.",
        row_type=PlatformStreams,
        statement=queries_medium.SPOTIFY_OVER_YOUTUBE_SQL,
        run_sql=lambda conn, s: queries_medium.spotify_over_youtube(conn),
        run_local=lambda records, s: analysis.spotify_over_youtube(records),
    ),
    QuerySpec(
        key="q11",
        level=QueryLevel.ADVANCED,
        question="Find the top 3 most-viewed tracks for each artist using window functions.",
        row_type=RankedArtistTrack,
        statement=queries_advanced.TOP_VIEWED_PER_ARTIST_SQL,
        run_sql=lambda conn, s: queries_advanced.top_viewed_per_artist(
            conn, max_rank=s.max_rank
        ),
        run_local=lambda records, s: analysis.top_viewed_per_artist(
            records, max_rank=s.max_rank
        ),
    ),
    QuerySpec(
        key="q12",
        level=QueryLevel.ADVANCED,
        question="Find tracks where the liveness score is above the average.",
        row_type=TrackLiveness,
        statement=queries_advanced.LIVENESS_ABOVE_AVERAGE_SQL,
        run_sql=lambda conn, s: queries_advanced.liveness_above_average(conn),
        run_local=lambda records, s: analysis.liveness_above_average(records),
    ),
    QuerySpec(
        key="q13",
        level=QueryLevel.ADVANCED,
        question=(
            "Calculate the difference between the highest and lowest energy values "
            "for tracks in each album."
        ),
        row_type=AlbumEnergySpread,
        statement=queries_advanced.ENERGY_SPREAD_SQL,
        run_sql=lambda conn, s: queries_advanced.energy_spread_by_album(conn),
        run_local=lambda records, s: analysis.energy_spread_by_album(records),
    ),
    QuerySpec(
        key="q14",
        level=QueryLevel.ADVANCED,
        question="Find tracks where the energy-to-liveness ratio is greater than 1.2.",
        row_type=EnergyLivenessRatio,
        statement=queries_advanced.ENERGY_LIVENESS_RATIO_SQL,
        run_sql=lambda conn, s: queries_advanced.energy_liveness_above(
            conn, ratio=s.energy_liveness_ratio
        ),
        run_local=lambda records, s: analysis.energy_liveness_above(
            records, ratio=s.energy_liveness_ratio
        ),
    ),
    QuerySpec(
        key="q15",
        level=QueryLevel.ADVANCED,
        question=(
            "Calculate the cumulative sum of likes for tracks ordered by the number of views."
        ),
        row_type=CumulativeLikes,
        statement=queries_advanced.CUMULATIVE_LIKES_SQL,
        run_sql=lambda conn, s: queries_advanced.cumulative_likes_by_views(conn),
        run_local=lambda records, s: analysis.cumulative_likes_by_views(records),
    ),
)

CATALOGUE: dict[str, QuerySpec] = {spec.key: spec for spec in _SPECS}

_KEY_RE = re.compile(r"^(?:q\.?)?0*(\d{1,2})$", re.IGNORECASE)


def normalize_key(key: str | int) -> str:
    """
    Canonicalize a query key: "q1", "Q01", "Q.1", "1" and 1 all become "q01".

    Raises UnknownQueryError if the key is malformed or out of range.
    """
    match = _KEY_RE.match(str(key).strip())
    if match is None:
        raise UnknownQueryError(key)
    canonical = f"q{int(match.group(1)):02d}"
    if canonical not in CATALOGUE:
        raise UnknownQueryError(key)
    return canonical


def get_query(key: str | int) -> QuerySpec:
    return CATALOGUE[normalize_key(key)]


def list_queries(level: QueryLevel | None = None) -> list[QuerySpec]:
    return [spec for spec in _SPECS if level is None or spec.level == level]
