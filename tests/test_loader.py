"""
Tests for trackstats.core.loader (CSV -> TrackRecord).

These tests verify:
- Header normalization and aliases of published exports
- Numeric coercion with issues instead of failures
- Structural errors raised as LoaderError
"""

from __future__ import annotations

from pathlib import Path

import pytest

from trackstats.core.loader import (
    LoadConfig,
    LoaderError,
    load_track_csv,
    normalize_column_name,
    parse_integer,
    read_track_csv,
)

KAGGLE_HEADER = (
    ",Artist,Track,Album,Album_type,Danceability,Energy,Loudness,Speechiness,"
    "Acousticness,Instrumentalness,Liveness,Valence,Tempo,Duration_min,Title,Channel,"
    "Views,Likes,Comments,Licensed,official_video,Stream,EnergyLiveness,most_playedon"
)

KAGGLE_ROWS = (
    "0,Gorillaz,Feel Good Inc.,Demon Days,album,0.818,0.705,-6.679,0.177,0.00836,0.00233,"
    "0.613,0.772,138.559,3.70,Gorillaz - Feel Good Inc.,Gorillaz,693555221.0,6220896.0,"
    "169907.0,True,True,1040234854.0,1.1500815660685155,Spotify",
    "1,Gorillaz,Rhinestone Eyes,Plastic Beach,album,0.676,0.703,-5.815,0.0302,0.0869,0.000687,"
    "0.0463,0.852,92.761,3.33,Gorillaz - Rhinestone Eyes,Gorillaz,72011645.0,1079128.0,"
    "31003.0,True,True,310083733.0,15.183585313174945,Spotify",
    "2,Adele,Hello,25,single,0.481,0.451,-6.134,0.0347,0.336,0.0,"
    "0.0872,0.289,157.966,0.0,Adele - Hello,AdeleVEVO,,,,False,False,,,Youtube",
)


def _write_csv(path: Path, header: str, rows: tuple[str, ...]) -> Path:
    path.write_text("\n".join((header, *rows)) + "\n", encoding="utf-8")
    return path


class TestColumnNames:
    """Tests for header normalization."""

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("Artist", "artist"),
            ("Album_type", "album_type"),
            ("Duration_min", "duration_min"),
            ("EnergyLiveness", "energy_liveness"),
            ("most_playedon", "most_played_on"),
            ("Most Played On", "most_played_on"),
            (" official_video ", "official_video"),
        ],
    )
    def test_normalize_column_name(self, raw: str, expected: str) -> None:
        assert normalize_column_name(raw) == expected


class TestReadTrackCsv:
    """Tests for reading exports of the dataset."""

    def test_reads_kaggle_export(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path / "spotify.csv", KAGGLE_HEADER, KAGGLE_ROWS)
        result = read_track_csv(LoadConfig(path=path))

        assert result.issues == []
        assert [t.track for t in result.tracks] == ["Feel Good Inc.", "Rhinestone Eyes", "Hello"]

        first = result.tracks[0]
        assert first.artist == "Gorillaz"
        assert first.album_type == "album"
        assert first.views == 693555221.0
        assert first.likes == 6_220_896
        assert first.stream == 1_040_234_854
        assert first.licensed is True
        assert first.energy_liveness == pytest.approx(1.1500815660685155)
        assert first.most_played_on == "Spotify"

    def test_blank_cells_are_null(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path / "spotify.csv", KAGGLE_HEADER, KAGGLE_ROWS)
        hello = read_track_csv(LoadConfig(path=path)).tracks[2]

        assert hello.views is None
        assert hello.likes is None
        assert hello.stream is None
        assert hello.licensed is False
        assert hello.duration_min == 0.0

    def test_max_rows(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path / "spotify.csv", KAGGLE_HEADER, KAGGLE_ROWS)
        result = read_track_csv(LoadConfig(path=path, max_rows=2))
        assert len(result.tracks) == 2

    def test_missing_optional_columns_are_null(self, tmp_path: Path) -> None:
        path = _write_csv(
            tmp_path / "minimal.csv",
            "artist,track,album,duration_min",
            ("Adele,Hello,25,4.92",),
        )
        (track,) = read_track_csv(LoadConfig(path=path)).tracks

        assert track.duration_min == 4.92
        assert track.stream is None
        assert track.most_played_on is None

    def test_unparseable_numbers_become_issues(self, tmp_path: Path) -> None:
        path = _write_csv(
            tmp_path / "dirty.csv",
            "artist,track,album,duration_min,views,likes",
            ("Adele,Hello,25,4.92,lots,1.5", "Adele,Skyfall,Skyfall,4.77,100.0,7"),
        )
        result = read_track_csv(LoadConfig(path=path))

        assert [(i.row, i.column, i.value) for i in result.issues] == [
            (0, "views", "lots"),
            (0, "likes", "1.5"),
        ]
        assert result.tracks[0].views is None
        assert result.tracks[0].likes is None
        assert result.tracks[1].likes == 7

    def test_integers_keep_every_digit(self, tmp_path: Path) -> None:
        path = _write_csv(
            tmp_path / "wide.csv",
            "artist,track,album,duration_min,likes,stream",
            ("Adele,Hello,25,4.92,9007199254740993,9223372036854775807",),
        )
        result = read_track_csv(LoadConfig(path=path))

        assert result.issues == []
        assert result.tracks[0].likes == 2**53 + 1
        assert result.tracks[0].stream == 2**63 - 1

    def test_integers_outside_bigint_become_issues(self, tmp_path: Path) -> None:
        path = _write_csv(
            tmp_path / "overflow.csv",
            "artist,track,album,duration_min,comments,stream",
            ("Adele,Hello,25,4.92,-9223372036854775809,99999999999999999999",),
        )
        result = read_track_csv(LoadConfig(path=path))

        assert [(i.column, i.value) for i in result.issues] == [
            ("comments", "-9223372036854775809"),
            ("stream", "99999999999999999999"),
        ]
        assert result.tracks[0].comments is None
        assert result.tracks[0].stream is None

    @pytest.mark.parametrize(
        ("raw", "expected"),
        [
            ("1040234854.0", 1_040_234_854),
            (" 42 ", 42),
            ("1e3", 1000),
            ("", None),
            ("1.5", None),
            ("nan", None),
            ("many", None),
            (None, None),
        ],
    )
    def test_parse_integer(self, raw: str | None, expected: int | None) -> None:
        assert parse_integer(raw) == expected

    def test_missing_required_columns(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path / "bad.csv", "artist,track", ("Adele,Hello",))
        with pytest.raises(LoaderError, match="album, duration_min"):
            read_track_csv(LoadConfig(path=path))

    def test_missing_file(self, tmp_path: Path) -> None:
        with pytest.raises(LoaderError, match="not found"):
            read_track_csv(LoadConfig(path=tmp_path / "nope.csv"))

    def test_empty_file(self, tmp_path: Path) -> None:
        path = tmp_path / "empty.csv"
        path.write_text("", encoding="utf-8")
        with pytest.raises(LoaderError, match="Could not parse"):
            read_track_csv(LoadConfig(path=path))


class TestLoadTrackCsv:
    """Tests for the async wrapper."""

    async def test_load_track_csv(self, tmp_path: Path) -> None:
        path = _write_csv(tmp_path / "spotify.csv", KAGGLE_HEADER, KAGGLE_ROWS)
        result = await load_track_csv(LoadConfig(path=path))
        assert len(result.tracks) == 3
