from __future__ import annotations

import csv
import logging
from pathlib import Path
from typing import BinaryIO, Iterator, Tuple, TypeVar

from csv_partial_cache.errors import (
    MalformedRowError,
    MissingHeaderError,
    OffsetOverflowError,
    OpenFileError,
    RowConversionError,
)
from csv_partial_cache.models import PartialRecordFactory, ScannedLine
from csv_partial_cache.rows import DEFAULT_DIALECT, CsvDialect
from csv_partial_cache.store import IndexStore

logger = logging.getLogger(__name__)

T = TypeVar("T")


def strip_terminator(raw: bytes) -> bytes:
    if raw.endswith(b"\n"):
        raw = raw[:-1]
        if raw.endswith(b"\r"):
            raw = raw[:-1]
    return raw


class LineScanner:
    """Iterate the lines of a binary stream together with the byte offset each one starts at.

    Offsets are raw byte positions: the offset of a line equals the total length of all prior
    lines including their terminators. Lines are decoded after the terminator is stripped.
    """

    def __init__(self, stream: BinaryIO, *, path: Path, encoding: str = "utf-8") -> None:
        self._stream = stream
        self._path = path
        self._encoding = encoding
        self._offset = 0
        self._line_no = 0

    def __iter__(self) -> Iterator[ScannedLine]:
        return self

    def __next__(self) -> ScannedLine:
        try:
            raw = self._stream.readline()
        except OSError as e:
            raise OpenFileError(self._path) from e
        if not raw:
            raise StopIteration

        offset = self._offset
        self._offset += len(raw)
        self._line_no += 1
        stripped = strip_terminator(raw)
        try:
            text = stripped.decode(self._encoding)
        except UnicodeDecodeError as e:
            raise MalformedRowError(
                self._path, self._line_no, offset, stripped.decode(self._encoding, errors="replace")
            ) from e
        return ScannedLine(line_no=self._line_no, offset=offset, text=text)


def build_index(
    path: Path,
    factory: PartialRecordFactory[T],
    *,
    dialect: CsvDialect = DEFAULT_DIALECT,
    encoding: str = "utf-8",
) -> Tuple[Tuple[str, ...], IndexStore[T]]:
    """Scan the file once and build a partial record for every data row.

    Returns the tokenized header and the frozen index. Any failure aborts the whole build.
    """
    logger.debug("Building csv index. path=%s offset_width=%s", path, factory.offset_width.name)
    try:
        stream = open(path, "rb")
    except OSError as e:
        raise OpenFileError(path) from e

    max_offset = factory.offset_width.max_value
    items: list[T] = []
    with stream:
        lines = LineScanner(stream, path=path, encoding=encoding)
        first = next(lines, None)
        if first is None:
            raise MissingHeaderError(path)
        header = _parse_header(path, first, dialect)

        for scanned in lines:
            # Blank lines hold no row; their bytes still count toward later offsets.
            if not scanned.text:
                continue
            if scanned.offset > max_offset:
                raise OffsetOverflowError(path, scanned.line_no, scanned.offset, max_offset)
            items.append(_build_record(path, factory, scanned))

    logger.info("Built csv index. path=%s rows=%d columns=%d", path, len(items), len(header))
    return header, IndexStore(items)


def read_header(path: Path, *, dialect: CsvDialect = DEFAULT_DIALECT, encoding: str = "utf-8") -> Tuple[str, ...]:
    try:
        stream = open(path, "rb")
    except OSError as e:
        raise OpenFileError(path) from e
    with stream:
        first = next(LineScanner(stream, path=path, encoding=encoding), None)
    if first is None:
        raise MissingHeaderError(path)
    return _parse_header(path, first, dialect)


def _parse_header(path: Path, scanned: ScannedLine, dialect: CsvDialect) -> Tuple[str, ...]:
    try:
        return tuple(dialect.parse_line(scanned.text))
    except csv.Error as e:
        raise MalformedRowError(path, scanned.line_no, scanned.offset, scanned.text) from e


def _build_record(path: Path, factory: PartialRecordFactory[T], scanned: ScannedLine) -> T:
    try:
        return factory.build(scanned.text, scanned.offset)
    except csv.Error as e:
        raise MalformedRowError(path, scanned.line_no, scanned.offset, scanned.text) from e
    except Exception as e:
        raise RowConversionError(path, scanned.line_no, scanned.offset, scanned.text) from e
