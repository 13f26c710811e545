"""
trackstats - Entry Point

Run with: python -m trackstats <command>
"""

import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict, is_dataclass
from pathlib import Path
from typing import Any

from trackstats import __version__
from trackstats.config import AppConfig, load_config
from trackstats.core.catalogue import QueryLevel, UnknownQueryError, get_query
from trackstats.core.dataset import DatasetError, SpotifyDataset
from trackstats.core.loader import LoaderError
from trackstats.core.track_db import TrackDb
from trackstats.web.server import WebServer

logger = logging.getLogger(__name__)


def setup_logging(verbose: bool = False) -> None:
    """Configure logging for the application."""
    level = logging.DEBUG if verbose else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stderr,
    )

    # Reduce noise from third-party libraries
    logging.getLogger("asyncio").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="trackstats",
        description="Spotify track metrics: load, clean, query and explain the spotify table",
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose (debug) logging",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to a trackstats TOML file (default: bundled trackstats.toml)",
    )
    parser.add_argument(
        "--db",
        type=str,
        default=None,
        help="SQLite database path (overrides [database] path)",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    sub = parser.add_subparsers(dest="command", required=True)

    load = sub.add_parser("load", help="Bulk-load the source CSV into the table")
    load.add_argument("csv", type=Path, nargs="?", help="CSV file (default: [database] csv_path)")
    load.add_argument("--append", action="store_true", help="Keep existing rows")
    load.add_argument("--clean", action="store_true", help="Delete zero-duration rows after loading")
    load.add_argument("--max-rows", type=int, default=None, help="Read at most this many rows")

    sub.add_parser("clean", help="Delete rows with duration_min = 0")
    sub.add_parser("summary", help="Exploratory overview of the table")

    queries = sub.add_parser("queries", help="List the query catalogue")
    queries.add_argument("--level", choices=[lvl.value for lvl in QueryLevel], default=None)

    run = sub.add_parser("run", help="Run one catalogue query (e.g. q11)")
    run.add_argument("key", help="Query key: q01..q15, q1, 1")
    run.add_argument("--local", action="store_true", help="Evaluate as a pure function in Python")
    run.add_argument("--sql", action="store_true", help="Print the statement instead of running it")

    explain = sub.add_parser("explain", help="Explain and time the artist probe statement")
    explain.add_argument("--artist", default=None)
    explain.add_argument("--platform", default=None)
    explain.add_argument(
        "--compare", action="store_true", help="Report without artist_index, create it, report again"
    )

    index = sub.add_parser("index", help="Manage artist_index")
    index.add_argument("action", choices=["create", "drop", "status"])

    serve = sub.add_parser("serve", help="Serve the read-only HTTP API")
    serve.add_argument("--host", default=None)
    serve.add_argument("--port", type=int, default=None)

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command line arguments."""
    return build_parser().parse_args(argv)


def _jsonable(value: Any) -> Any:
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    if isinstance(value, list | tuple):
        return [_jsonable(v) for v in value]
    return value


def emit(value: Any) -> None:
    print(json.dumps(_jsonable(value), indent=2, ensure_ascii=False))


async def run_command(args: argparse.Namespace, config: AppConfig) -> int:
    """Open the database, dispatch one command, close the database."""
    db = TrackDb(args.db or config.database.path)
    await db.open()
    try:
        dataset = SpotifyDataset(db=db, settings=config.queries, probe=config.probe)
        await dataset.initialize()
        return await _dispatch(args, config, dataset)
    finally:
        await db.close()


async def _dispatch(args: argparse.Namespace, config: AppConfig, dataset: SpotifyDataset) -> int:
    command = args.command

    if command == "load":
        csv_path = args.csv or (Path(config.database.csv_path) if config.database.csv_path else None)
        if csv_path is None:
            logger.error("No CSV given and no [database] csv_path configured")
            return 2
        result = await dataset.import_csv(
            csv_path,
            replace=not args.append,
            clean=args.clean,
            max_rows=args.max_rows or config.database.max_rows,
        )
        emit(
            {
                "rows_read": result.rows_read,
                "rows_inserted": result.rows_inserted,
                "rows_removed": result.rows_removed,
                "issues": len(result.issues),
            }
        )
        return 0

    if command == "clean":
        emit({"rows_removed": await dataset.cleanup()})
        return 0

    if command == "summary":
        emit(await dataset.summary())
        return 0

    if command == "queries":
        level = QueryLevel(args.level) if args.level else None
        emit(
            [
                {"key": s.key, "level": s.level.value, "question": s.question}
                for s in dataset.queries()
                if level is None or s.level == level
            ]
        )
        return 0

    if command == "run":
        if args.sql:
            print(get_query(args.key).statement.strip())
            return 0
        result = await (dataset.run_query_local(args.key) if args.local else dataset.run_query(args.key))
        emit(result.rows)
        return 0

    if command == "explain":
        if args.compare:
            emit(await dataset.compare_plans(artist=args.artist, platform=args.platform))
        else:
            emit(await dataset.explain(artist=args.artist, platform=args.platform))
        return 0

    if command == "index":
        if args.action == "create":
            changed = await dataset.create_artist_index()
        elif args.action == "drop":
            changed = await dataset.drop_artist_index()
        else:
            changed = False
        emit({"artist_index": await dataset.has_artist_index(), "changed": changed})
        return 0

    if command == "serve":
        server = WebServer(dataset, cors_origins=config.web.cors_origins)
        await server.serve(host=args.host or config.web.host, port=args.port or config.web.port)
        return 0

    logger.error("Unknown command: %s", command)
    return 2


def main(argv: list[str] | None = None) -> int:
    """Main entry point for the application."""
    args = parse_args(argv)
    setup_logging(verbose=args.verbose)

    try:
        config = load_config(args.config)
    except (OSError, ValueError) as e:
        logger.error("Could not load config: %s", e)
        return 1

    try:
        return asyncio.run(run_command(args, config))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except (DatasetError, LoaderError, UnknownQueryError) as e:
        logger.error("%s", e)
        return 1
    except Exception as e:
        logger.exception("Fatal error: %s", e)
        return 1


if __name__ == "__main__":
    sys.exit(main())
