"""
Pure-function rendition of the query catalogue.

Every function takes the table as an ordered sequence of `TrackRecord`
(table order = load order) and returns the same rows the SQL version in
`trackstats.core.db.queries_*` returns, without touching a database.

SQL null semantics are mirrored on purpose:
- aggregates skip nulls; SUM/AVG/MAX/MIN over no values is None
- comparisons involving null are false
- GROUP BY treats null as its own group
- nulls sort first ascending and last descending (SQLite's rule)
"""

from __future__ import annotations

from collections.abc import Callable, Hashable, Iterable, Sequence
from typing import Any, TypeVar

from trackstats.core.db.models import (
    PLATFORM_SPOTIFY,
    PLATFORM_YOUTUBE,
    AlbumArtist,
    AlbumDanceability,
    AlbumEnergySpread,
    AlbumTrackViews,
    ArtistTrackCount,
    CommentTotal,
    CumulativeLikes,
    DatasetSummary,
    EnergyLivenessRatio,
    PlatformStreams,
    RankedArtistTrack,
    TrackEnergy,
    TrackEngagement,
    TrackLiveness,
    TrackName,
    TrackRecord,
    ViewsByStream,
)
from trackstats.core.db.queries_advanced import DEFAULT_ENERGY_LIVENESS_RATIO, DEFAULT_MAX_RANK
from trackstats.core.db.queries_easy import DEFAULT_STREAM_THRESHOLD
from trackstats.core.db.queries_medium import DEFAULT_TOP_ENERGY_LIMIT
from trackstats.core.db.queries_plan import (
    DEFAULT_PROBE_ARTIST,
    DEFAULT_PROBE_LIMIT,
    DEFAULT_PROBE_PLATFORM,
)

T = TypeVar("T")
K = TypeVar("K", bound=Hashable)

Records = Sequence[TrackRecord]

# ---------------------------------------------------------------------------
# SQL-like helpers
# ---------------------------------------------------------------------------


def _nulls_first(value: Any) -> tuple[bool, Any]:
    return (value is not None, value)


def order_by(items: Iterable[T], *keys: tuple[Callable[[T], Any], bool]) -> list[T]:
    """
    Sort like ORDER BY with per-key direction: `(key_fn, descending)` pairs,
    most significant first. Equal rows keep their input order.
    """
    out = list(items)
    for key_fn, descending in reversed(keys):
        out.sort(key=lambda item: _nulls_first(key_fn(item)), reverse=descending)
    return out


def group_by(records: Iterable[T], key: Callable[[T], K]) -> dict[K, list[T]]:
    """Group rows by key, groups in order of first appearance."""
    groups: dict[K, list[T]] = {}
    for r in records:
        groups.setdefault(key(r), []).append(r)
    return groups


def sql_sum(values: Iterable[Any]) -> Any:
    present = [v for v in values if v is not None]
    return sum(present) if present else None


def sql_avg(values: Iterable[Any]) -> float | None:
    present = [v for v in values if v is not None]
    return sum(present) / len(present) if present else None


def sql_max(values: Iterable[Any]) -> Any:
    present = [v for v in values if v is not None]
    return max(present) if present else None


def sql_min(values: Iterable[Any]) -> Any:
    present = [v for v in values if v is not None]
    return min(present) if present else None


def _distinct_sorted(values: Iterable[Any]) -> tuple[Any, ...]:
    return tuple(sorted(set(values), key=_nulls_first))


# ---------------------------------------------------------------------------
# Exploration + cleanup
# ---------------------------------------------------------------------------


def count_rows(records: Records) -> int:
    return len(records)


def count_distinct_artists(records: Records) -> int:
    # COUNT(DISTINCT ...) ignores nulls
    return len({r.artist for r in records if r.artist is not None})


def list_album_types(records: Records) -> tuple[str | None, ...]:
    return _distinct_sorted(r.album_type for r in records)


def list_channels(records: Records) -> tuple[str | None, ...]:
    return _distinct_sorted(r.channel for r in records)


def list_platforms(records: Records) -> tuple[str | None, ...]:
    return _distinct_sorted(r.most_played_on for r in records)


def max_duration(records: Records) -> float | None:
    return sql_max(r.duration_min for r in records)


def min_duration(records: Records) -> float | None:
    return sql_min(r.duration_min for r in records)


def zero_duration_tracks(records: Records) -> list[TrackRecord]:
    return [r for r in records if r.duration_min is not None and r.duration_min == 0]


def drop_zero_duration(records: Records) -> tuple[TrackRecord, ...]:
    """The cleanup delete as a pure function; null durations are kept."""
    return tuple(r for r in records if not (r.duration_min is not None and r.duration_min == 0))


def summarize(records: Records) -> DatasetSummary:
    return DatasetSummary(
        total_rows=count_rows(records),
        distinct_artists=count_distinct_artists(records),
        album_types=list_album_types(records),
        max_duration_min=max_duration(records),
        min_duration_min=min_duration(records),
        zero_duration_rows=len(zero_duration_tracks(records)),
        channels=list_channels(records),
        platforms=list_platforms(records),
    )


# ---------------------------------------------------------------------------
# Easy (Q1..Q5)
# ---------------------------------------------------------------------------


def tracks_over_streams(
    records: Records, *, threshold: int = DEFAULT_STREAM_THRESHOLD
) -> list[TrackName]:
    return [TrackName(track=r.track) for r in records if r.stream is not None and r.stream > threshold]


def albums_with_artists(records: Records) -> list[AlbumArtist]:
    pairs = {(r.album, r.artist) for r in records}
    ordered = order_by(pairs, (lambda p: p[0], False), (lambda p: p[1], False))
    return [AlbumArtist(album=album, artist=artist) for album, artist in ordered]


def licensed_comment_total(records: Records) -> list[CommentTotal]:
    total = sql_sum(r.comments for r in records if r.licensed is True)
    return [CommentTotal(total_comments=total)]


def singles(records: Records) -> list[TrackRecord]:
    return [r for r in records if r.album_type == "single"]


def tracks_per_artist(records: Records) -> list[ArtistTrackCount]:
    rows = [
        ArtistTrackCount(artist=artist, total_no_of_song=len(group))
        for artist, group in group_by(records, lambda r: r.artist).items()
    ]
    return order_by(rows, (lambda c: c.total_no_of_song, False), (lambda c: c.artist, False))


# ---------------------------------------------------------------------------
# Medium (Q6..Q10)
# ---------------------------------------------------------------------------


def avg_danceability_by_album(records: Records) -> list[AlbumDanceability]:
    rows = [
        AlbumDanceability(album=album, avg_danceability=sql_avg(r.danceability for r in group))
        for album, group in group_by(records, lambda r: r.album).items()
    ]
    return order_by(rows, (lambda a: a.avg_danceability, True), (lambda a: a.album, False))


def top_energy_tracks(
    records: Records, *, limit: int = DEFAULT_TOP_ENERGY_LIMIT
) -> list[TrackEnergy]:
    rows = [
        TrackEnergy(track=track, max_energy=sql_max(r.energy for r in group))
        for track, group in group_by(records, lambda r: r.track).items()
    ]
    return order_by(rows, (lambda t: t.max_energy, True), (lambda t: t.track, False))[: max(0, limit)]


def official_video_engagement(records: Records) -> list[TrackEngagement]:
    official = [r for r in records if r.official_video is True]
    rows = [
        TrackEngagement(
            track=track,
            total_views=sql_sum(r.views for r in group),
            total_likes=sql_sum(r.likes for r in group),
        )
        for track, group in group_by(official, lambda r: r.track).items()
    ]
    return order_by(rows, (lambda t: t.total_views, True), (lambda t: t.track, False))


def album_track_views(records: Records) -> list[AlbumTrackViews]:
    rows = [
        AlbumTrackViews(album=album, track=track, total_views=sql_sum(r.views for r in group))
        for (album, track), group in group_by(records, lambda r: (r.album, r.track)).items()
    ]
    return order_by(
        rows,
        (lambda a: a.total_views, True),
        (lambda a: a.album, False),
        (lambda a: a.track, False),
    )


def _platform_streams(group: list[TrackRecord], platform: str) -> int:
    return sql_sum(r.stream for r in group if r.most_played_on == platform) or 0


def spotify_over_youtube(records: Records) -> list[PlatformStreams]:
    rows = []
    for track, group in group_by(records, lambda r: r.track).items():
        youtube = _platform_streams(group, PLATFORM_YOUTUBE)
        spotify = _platform_streams(group, PLATFORM_SPOTIFY)
        if spotify > youtube and youtube != 0:
            rows.append(
                PlatformStreams(track=track, streamed_on_youtube=youtube, streamed_on_spotify=spotify)
            )
    return order_by(rows, (lambda p: p.track, False))


# ---------------------------------------------------------------------------
# Advanced (Q11..Q15)
# ---------------------------------------------------------------------------


def dense_rank(values: Iterable[Any], *, descending: bool = True) -> dict[Any, int]:
    """
    Map each distinct value to its dense rank: ties share a rank and the
    sequence has no gaps. Nulls rank last when descending, first otherwise.
    """
    distinct = sorted(set(values), key=_nulls_first, reverse=descending)
    return {value: rank for rank, value in enumerate(distinct, start=1)}


def top_viewed_per_artist(
    records: Records, *, max_rank: int = DEFAULT_MAX_RANK
) -> list[RankedArtistTrack]:
    totals = [
        (artist, track, sql_sum(r.views for r in group))
        for (artist, track), group in group_by(records, lambda r: (r.artist, r.track)).items()
    ]
    rows: list[RankedArtistTrack] = []
    for artist, entries in group_by(totals, lambda e: e[0]).items():
        ranks = dense_rank(e[2] for e in entries)
        for _, track, total in entries:
            rank = ranks[total]
            if rank <= max_rank:
                rows.append(
                    RankedArtistTrack(artist=artist, track=track, total_views=total, d_rank=rank)
                )
    return order_by(
        rows,
        (lambda r: r.artist, False),
        (lambda r: r.total_views, True),
        (lambda r: r.track, False),
    )


def liveness_above_average(records: Records) -> list[TrackLiveness]:
    average = sql_avg(r.liveness for r in records)
    if average is None:
        return []
    return [
        TrackLiveness(track=r.track, artist=r.artist, liveness=r.liveness)
        for r in records
        if r.liveness is not None and r.liveness > average
    ]


def energy_spread_by_album(records: Records) -> list[AlbumEnergySpread]:
    rows = []
    for album, group in group_by(records, lambda r: r.album).items():
        highest = sql_max(r.energy for r in group)
        lowest = sql_min(r.energy for r in group)
        diff = highest - lowest if highest is not None and lowest is not None else None
        rows.append(AlbumEnergySpread(album=album, energy_diff=diff))
    return order_by(rows, (lambda a: a.energy_diff, True), (lambda a: a.album, False))


def energy_to_liveness(record: TrackRecord) -> float | None:
    """energy / liveness, None where SQLite would produce NULL (including liveness 0)."""
    if record.energy is None or record.liveness is None or record.liveness == 0:
        return None
    return record.energy / record.liveness


def energy_liveness_above(
    records: Records, *, ratio: float = DEFAULT_ENERGY_LIVENESS_RATIO
) -> list[EnergyLivenessRatio]:
    rows = []
    for r in records:
        value = energy_to_liveness(r)
        if value is not None and value > ratio:
            rows.append(
                EnergyLivenessRatio(
                    artist=r.artist,
                    track=r.track,
                    album=r.album,
                    energy=r.energy,
                    liveness=r.liveness,
                    energy_to_liveness_ratio=value,
                )
            )
    return rows


def cumulative_likes_by_views(records: Records) -> list[CumulativeLikes]:
    # Ascending views, ties in load order; output is the reverse walk.
    ascending = order_by(enumerate(records), (lambda e: e[1].views, False), (lambda e: e[0], False))
    running: int | None = None
    rows: list[CumulativeLikes] = []
    for _, r in ascending:
        if r.likes is not None:
            running = (running or 0) + r.likes
        rows.append(
            CumulativeLikes(
                artist=r.artist,
                track=r.track,
                album=r.album,
                views=r.views,
                likes=r.likes,
                cumulative_likes=running,
            )
        )
    rows.reverse()
    return rows


# ---------------------------------------------------------------------------
# Optimization probe
# ---------------------------------------------------------------------------


def probe_tracks(
    records: Records,
    *,
    artist: str = DEFAULT_PROBE_ARTIST,
    platform: str = DEFAULT_PROBE_PLATFORM,
    limit: int = DEFAULT_PROBE_LIMIT,
) -> list[ViewsByStream]:
    matching = [r for r in records if r.artist == artist and r.most_played_on == platform]
    ordered = order_by(matching, (lambda r: r.stream, True))[: max(0, limit)]
    return [ViewsByStream(artist=r.artist, track=r.track, views=r.views) for r in ordered]
