"""Indexed access to an immutable CSV file with a few columns of every row cached in memory."""

from __future__ import annotations

from csv_partial_cache.cache import CsvPartialCache
from csv_partial_cache.errors import (
    ConfigError,
    CsvPartialCacheError,
    FetchError,
    MalformedRowError,
    MissingHeaderError,
    OffsetOverflowError,
    OpenFileError,
    RowConversionError,
    RowDecodeError,
    StaleOffsetError,
)
from csv_partial_cache.fetcher import FetchPolicy
from csv_partial_cache.models import OffsetWidth, PartialRecordFactory, RowDecoder
from csv_partial_cache.rows import ColumnsFactory, ColumnsRecord, CsvDialect, dict_decoder, model_decoder
from csv_partial_cache.store import IndexStore

__all__ = [
    "ColumnsFactory",
    "ColumnsRecord",
    "ConfigError",
    "CsvDialect",
    "CsvPartialCache",
    "CsvPartialCacheError",
    "FetchError",
    "FetchPolicy",
    "IndexStore",
    "MalformedRowError",
    "MissingHeaderError",
    "OffsetOverflowError",
    "OffsetWidth",
    "OpenFileError",
    "PartialRecordFactory",
    "RowConversionError",
    "RowDecodeError",
    "RowDecoder",
    "StaleOffsetError",
    "dict_decoder",
    "model_decoder",
]
