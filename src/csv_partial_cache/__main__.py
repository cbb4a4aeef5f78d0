from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from csv_partial_cache.cache import CsvPartialCache
from csv_partial_cache.config import YamlConfigLoader
from csv_partial_cache.config.models import AppConfig, ConfigLoadRequest
from csv_partial_cache.errors import ConfigError, CsvPartialCacheError
from csv_partial_cache.logging import init_logging
from csv_partial_cache.rows import ColumnsFactory, ColumnsRecord
from csv_partial_cache.scanner import read_header

logger = logging.getLogger(__name__)


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="csv-partial-cache", description="Indexed lookups into a CSV file")
    parser.add_argument(
        "--config",
        default="config.yaml",
        help="Path to config.yaml (default: config.yaml)",
    )
    subparsers = parser.add_subparsers(dest="command", required=True, help="Command to run")

    # Command: find
    find_parser = subparsers.add_parser("find", help="Print the full row whose key column equals KEY")
    find_parser.add_argument("key", help="Value of the configured key column")
    find_parser.add_argument(
        "--sorted",
        action="store_true",
        help="Use binary search; only valid when the file is ordered by the key column.",
    )

    # Command: stats
    subparsers.add_parser("stats", help="Print the header and the number of indexed rows")

    return parser


async def _load_config(args: argparse.Namespace) -> AppConfig:
    loader = YamlConfigLoader()
    request = ConfigLoadRequest(
        yaml_path=args.config,
    )
    return await loader.load(request)


def _open_cache(config: AppConfig) -> tuple[CsvPartialCache[ColumnsRecord, dict], ColumnsFactory]:
    settings = config.cache
    header = read_header(Path(settings.path), dialect=settings.dialect, encoding=settings.encoding)
    try:
        factory = ColumnsFactory(
            header=header,
            columns=settings.effective_columns(),
            offset_width=settings.offset_width,
            dialect=settings.dialect,
        )
    except ValueError as e:
        raise ConfigError(f"Invalid cached columns for {settings.path}: {e}") from e
    return CsvPartialCache.from_settings(settings, factory), factory


async def _find(args: argparse.Namespace, config: AppConfig) -> int:
    cache, factory = _open_cache(config)
    with cache:
        key_fn = factory.key_fn(config.cache.key_column)
        record = cache.find_sorted(args.key, key_fn) if args.sorted else cache.find(args.key, key_fn)
        if record is None:
            logger.info("Key not found. column=%s key=%s", config.cache.key_column, args.key)
            return 1
        row = await cache.full_record(record)
    print(json.dumps(row, ensure_ascii=False))
    return 0


async def _stats(config: AppConfig) -> int:
    cache, _ = _open_cache(config)
    with cache:
        print(json.dumps({"path": str(cache.path), "columns": list(cache.header), "rows": len(cache)}))
    return 0


async def _main_async() -> int:
    parser = _build_parser()
    args = parser.parse_args()

    config = await _load_config(args)
    init_logging(config.logging)

    if args.command == "find":
        return await _find(args, config)
    if args.command == "stats":
        return await _stats(config)
    return 2


def main() -> None:
    try:
        code = asyncio.run(_main_async())
    except CsvPartialCacheError as e:
        logger.error("%s", e)
        code = 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        code = 130
    sys.exit(code)


if __name__ == "__main__":
    main()
