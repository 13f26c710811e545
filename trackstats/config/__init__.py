"""
Configuration management for trackstats.

This module loads the database location, query thresholds, the
optimization probe and web server settings from a TOML file.
"""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

# Path to the config directory
CONFIG_DIR = Path(__file__).parent
DEFAULT_CONFIG_PATH = CONFIG_DIR / "trackstats.toml"


@dataclass(frozen=True, slots=True)
class DatabaseConfig:
    """Where the SQLite copy of the table lives and where it is loaded from."""

    path: str = "trackstats.sqlite3"
    csv_path: str | None = None
    max_rows: int | None = None


@dataclass(frozen=True, slots=True)
class QuerySettings:
    """Tunable constants of the query catalogue."""

    stream_threshold: int = 1_000_000_000
    top_energy_limit: int = 5
    max_rank: int = 3
    energy_liveness_ratio: float = 1.2


@dataclass(frozen=True, slots=True)
class ProbeSettings:
    """Parameters of the statement used to demonstrate `artist_index`."""

    artist: str = "Gorillaz"
    platform: str = "Youtube"
    limit: int = 25


@dataclass(frozen=True, slots=True)
class WebConfig:
    host: str = "127.0.0.1"
    port: int = 9100
    cors_origins: tuple[str, ...] = ("*",)


@dataclass(frozen=True, slots=True)
class AppConfig:
    """Loaded application configuration."""

    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    queries: QuerySettings = field(default_factory=QuerySettings)
    probe: ProbeSettings = field(default_factory=ProbeSettings)
    web: WebConfig = field(default_factory=WebConfig)


def _positive_int(section: str, key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ValueError(f"[{section}] {key} must be a positive integer, got {value!r}")
    return value


def _optional_positive_int(section: str, key: str, value: Any) -> int | None:
    if value is None or value == 0:
        return None
    return _positive_int(section, key, value)


def _parse_database(data: dict[str, Any]) -> DatabaseConfig:
    defaults = DatabaseConfig()
    csv_path = data.get("csv_path", defaults.csv_path)
    return DatabaseConfig(
        path=str(data.get("path", defaults.path)),
        csv_path=str(csv_path) if csv_path else None,
        max_rows=_optional_positive_int("database", "max_rows", data.get("max_rows")),
    )


def _parse_queries(data: dict[str, Any]) -> QuerySettings:
    defaults = QuerySettings()
    ratio = data.get("energy_liveness_ratio", defaults.energy_liveness_ratio)
    if isinstance(ratio, bool) or not isinstance(ratio, (int, float)):
        raise ValueError(f"[queries] energy_liveness_ratio must be a number, got {ratio!r}")
    threshold = data.get("stream_threshold", defaults.stream_threshold)
    if isinstance(threshold, bool) or not isinstance(threshold, int) or threshold < 0:
        raise ValueError(f"[queries] stream_threshold must be a non-negative integer, got {threshold!r}")
    return QuerySettings(
        stream_threshold=threshold,
        top_energy_limit=_positive_int(
            "queries", "top_energy_limit", data.get("top_energy_limit", defaults.top_energy_limit)
        ),
        max_rank=_positive_int("queries", "max_rank", data.get("max_rank", defaults.max_rank)),
        energy_liveness_ratio=float(ratio),
    )


def _parse_probe(data: dict[str, Any]) -> ProbeSettings:
    defaults = ProbeSettings()
    return ProbeSettings(
        artist=str(data.get("artist", defaults.artist)),
        platform=str(data.get("platform", defaults.platform)),
        limit=_positive_int("probe", "limit", data.get("limit", defaults.limit)),
    )


def _parse_web(data: dict[str, Any]) -> WebConfig:
    defaults = WebConfig()
    origins = data.get("cors_origins", list(defaults.cors_origins))
    if isinstance(origins, str):
        origins = [o.strip() for o in origins.split(",") if o.strip()]
    return WebConfig(
        host=str(data.get("host", defaults.host)),
        port=_positive_int("web", "port", data.get("port", defaults.port)),
        cors_origins=tuple(str(o) for o in origins),
    )


def parse_config(data: dict[str, Any]) -> AppConfig:
    """Build an AppConfig from already-parsed TOML data. Missing sections use defaults."""
    return AppConfig(
        database=_parse_database(data.get("database", {})),
        queries=_parse_queries(data.get("queries", {})),
        probe=_parse_probe(data.get("probe", {})),
        web=_parse_web(data.get("web", {})),
    )


def load_config(config_path: Path | None = None) -> AppConfig:
    """
    Load configuration from TOML file.

    Args:
        config_path: Path to a trackstats TOML file. If None, uses the bundled default.

    Returns:
        Loaded AppConfig instance.
    """
    if config_path is None:
        config_path = DEFAULT_CONFIG_PATH

    logger.debug("Loading config from %s", config_path)

    with Path(config_path).open("rb") as f:
        data = tomllib.load(f)

    return parse_config(data)


# Global singleton instance (lazy loaded)
_config: AppConfig | None = None


def get_config() -> AppConfig:
    """
    Get the global configuration (lazy loaded singleton).

    Returns:
        The AppConfig instance.
    """
    global _config

    if _config is None:
        _config = load_config()

    return _config


def reload_config(config_path: Path | None = None) -> AppConfig:
    """
    Force reload of configuration.

    Returns:
        The newly loaded AppConfig instance.
    """
    global _config
    _config = load_config(config_path)
    return _config
