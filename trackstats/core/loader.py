from __future__ import annotations

import asyncio
import logging
import math
import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any, Final

import pandas as pd

from trackstats.core.db.models import INTEGER_COLUMNS, NUMERIC_COLUMNS, TRACK_COLUMNS, TrackRecord

logger = logging.getLogger(__name__)

# Header spellings seen in published exports of the dataset, after
# normalization, mapped onto table columns.
COLUMN_ALIASES: Final[dict[str, str]] = {
    "energyliveness": "energy_liveness",
    "most_playedon": "most_played_on",
    "mostplayedon": "most_played_on",
    "duration": "duration_min",
    "officialvideo": "official_video",
    "albumtype": "album_type",
}

# Columns the loader refuses to work without.
REQUIRED_COLUMNS: Final[frozenset[str]] = frozenset({"artist", "track", "album", "duration_min"})

# SQLite INTEGER (BIGINT) range
INT64_MIN: Final[int] = -(2**63)
INT64_MAX: Final[int] = 2**63 - 1


class LoaderError(ValueError):
    """Raised when a source file cannot be mapped onto the table."""


@dataclass(frozen=True, slots=True)
class LoadConfig:
    """Configuration for reading a track CSV."""

    path: Path
    max_rows: int | None = None
    encoding: str = "utf-8"


@dataclass(frozen=True, slots=True)
class LoadIssue:
    """A cell that could not be coerced to its column type and was nulled."""

    row: int
    column: str
    value: str


@dataclass(frozen=True, slots=True)
class LoadResult:
    tracks: list[TrackRecord]
    issues: list[LoadIssue]


def normalize_column_name(name: Any) -> str:
    """'Duration_min' -> 'duration_min', 'EnergyLiveness' -> 'energy_liveness'."""
    c = str(name).strip().lower()
    c = re.sub(r"[^a-z0-9]+", "_", c)
    c = re.sub(r"_+", "_", c).strip("_")
    return COLUMN_ALIASES.get(c, c)


def _map_columns(df: pd.DataFrame) -> pd.DataFrame:
    renamed = {col: normalize_column_name(col) for col in df.columns}
    df = df.rename(columns=renamed)
    # Exports often carry the pandas index as an unnamed first column.
    df = df.loc[:, [c for c in df.columns if c and not c.startswith("unnamed")]]
    df = df.loc[:, ~df.columns.duplicated()].copy()

    missing = sorted(REQUIRED_COLUMNS - set(df.columns))
    if missing:
        raise LoaderError(f"Missing required columns: {', '.join(missing)}")

    for name in TRACK_COLUMNS:
        if name not in df.columns:
            df[name] = None
    return df.loc[:, list(TRACK_COLUMNS)].copy()


def parse_integer(value: Any) -> int | None:
    """
    Parse an integer cell exactly ("1040234854.0" is accepted).

    Returns None for blanks, fractions and values outside the BIGINT range.
    Decimal keeps digits beyond float64 precision intact.
    """
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return None
    text = str(value).strip()
    if not text:
        return None
    try:
        number = Decimal(text)
    except InvalidOperation:
        return None
    if not number.is_finite() or number != number.to_integral_value():
        return None
    result = int(number)
    if not INT64_MIN <= result <= INT64_MAX:
        return None
    return result


def _coerce_numeric(df: pd.DataFrame) -> tuple[pd.DataFrame, list[LoadIssue]]:
    issues: list[LoadIssue] = []
    for name in NUMERIC_COLUMNS:
        raw = df[name]
        if name in INTEGER_COLUMNS:
            # object dtype keeps Python ints; a float64 column would round them
            coerced = pd.Series([parse_integer(v) for v in raw], index=raw.index, dtype=object)
        else:
            coerced = pd.to_numeric(raw, errors="coerce")
        bad = coerced.isna() & raw.notna() & (raw.astype(str).str.strip() != "")
        for idx in df.index[bad]:
            issues.append(LoadIssue(row=int(idx), column=name, value=str(raw[idx])))
        df[name] = coerced
    return df, issues


def read_track_csv(config: LoadConfig) -> LoadResult:
    """
    Read a track CSV into records, in file order.

    Numeric cells that do not parse become null and are reported as issues;
    structural problems (unreadable file, missing columns) raise LoaderError.
    """
    if not config.path.is_file():
        raise LoaderError(f"CSV file not found: {config.path}")

    try:
        df = pd.read_csv(
            config.path,
            nrows=config.max_rows,
            encoding=config.encoding,
            dtype=str,
            keep_default_na=False,
            na_values=[""],
        )
    except (pd.errors.ParserError, pd.errors.EmptyDataError, UnicodeDecodeError) as e:
        raise LoaderError(f"Could not parse {config.path}: {e}") from e

    df = _map_columns(df)
    df, issues = _coerce_numeric(df)

    # Replace NaNs with None so the normalizers see SQL nulls
    df = df.astype(object).where(pd.notnull(df), None)

    tracks = [TrackRecord.from_mapping(row) for row in df.to_dict(orient="records")]
    return LoadResult(tracks=tracks, issues=issues)


async def load_track_csv(config: LoadConfig) -> LoadResult:
    """
    Load a track CSV without blocking the event loop.

    This returns a pure in-memory result. Persisting to a DB is a separate
    responsibility (see `SpotifyDataset.import_csv`).
    """
    logger.info("Loading CSV file: %s", config.path)
    result = await asyncio.to_thread(read_track_csv, config)

    for issue in result.issues[:20]:
        logger.warning(
            "Row %d: could not parse %s=%r, stored as NULL", issue.row, issue.column, issue.value
        )
    if len(result.issues) > 20:
        logger.warning("... %d more unparseable cells", len(result.issues) - 20)

    logger.info("Loaded %d records from CSV", len(result.tracks))
    return result
