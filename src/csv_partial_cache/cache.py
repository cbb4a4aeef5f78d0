from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Generic, Optional, Tuple, TypeVar, Union

from csv_partial_cache.config.models import CacheSettings
from csv_partial_cache.errors import RowDecodeError
from csv_partial_cache.fetcher import FetchPolicy, RowFetcher
from csv_partial_cache.models import PartialRecordFactory, RowDecoder
from csv_partial_cache.rows import DEFAULT_DIALECT, CsvDialect, dict_decoder
from csv_partial_cache.scanner import build_index
from csv_partial_cache.store import IndexStore

logger = logging.getLogger(__name__)

T = TypeVar("T")
F = TypeVar("F")


class CsvPartialCache(Generic[T, F]):
    """Index over an immutable CSV file that keeps a few columns of every row in memory.

    Partial records of type `T` are built once by `open`. Full rows are re-read from disk on
    demand by `full_record` and decoded into `F`. The file must not change while the cache is
    in use: offsets are only meaningful against the bytes that were scanned.
    """

    def __init__(
        self,
        *,
        path: Path,
        header: Tuple[str, ...],
        items: IndexStore[T],
        factory: PartialRecordFactory[T],
        decoder: RowDecoder[F],
        dialect: CsvDialect,
        encoding: str,
        fetch_policy: FetchPolicy,
    ) -> None:
        self.path = path
        self.header = header
        self.items = items
        self._factory = factory
        self._decoder = decoder
        self._dialect = dialect
        self._encoding = encoding
        self._fetcher = RowFetcher(path, policy=fetch_policy)

    @classmethod
    def open(
        cls,
        path: Union[str, Path],
        factory: PartialRecordFactory[T],
        *,
        decoder: RowDecoder[Any] = dict_decoder,
        dialect: CsvDialect = DEFAULT_DIALECT,
        encoding: str = "utf-8",
        fetch_policy: FetchPolicy = "per_call",
    ) -> "CsvPartialCache[T, Any]":
        """Scan `path` and build the index. Blocks until the whole file has been read."""
        path = Path(path)
        header, items = build_index(path, factory, dialect=dialect, encoding=encoding)
        return cls(
            path=path,
            header=header,
            items=items,
            factory=factory,
            decoder=decoder,
            dialect=dialect,
            encoding=encoding,
            fetch_policy=fetch_policy,
        )

    @classmethod
    def from_settings(
        cls,
        settings: CacheSettings,
        factory: PartialRecordFactory[T],
        *,
        decoder: RowDecoder[Any] = dict_decoder,
    ) -> "CsvPartialCache[T, Any]":
        return cls.open(
            settings.path,
            factory,
            decoder=decoder,
            dialect=settings.dialect,
            encoding=settings.encoding,
            fetch_policy=settings.fetch_policy,
        )

    def __len__(self) -> int:
        return len(self.items)

    def __enter__(self) -> "CsvPartialCache[T, F]":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        self._fetcher.close()

    def find(self, key: Any, key_fn: Callable[[T], Any]) -> Optional[T]:
        return self.items.find(key, key_fn)

    def find_sorted(self, key: Any, key_fn: Callable[[T], Any]) -> Optional[T]:
        return self.items.find_sorted(key, key_fn)

    async def full_line(self, record: T) -> str:
        """Return the raw text of the row `record` was built from, without its terminator."""
        offset = self._factory.offset_of(record)
        raw = await self._fetcher.read_line(offset)
        try:
            return raw.decode(self._encoding)
        except UnicodeDecodeError as e:
            raise RowDecodeError(self.path, offset, raw.decode(self._encoding, errors="replace")) from e

    async def full_record(self, record: T) -> F:
        """Re-read the row `record` points at and decode all of its columns."""
        offset = self._factory.offset_of(record)
        line = await self.full_line(record)
        try:
            fields = self._dialect.parse_line(line)
            return self._decoder(self.header, fields)
        except Exception as e:
            logger.debug("Full record decode failed. path=%s offset=%s", self.path, offset)
            raise RowDecodeError(self.path, offset, line) from e
