from __future__ import annotations

from pathlib import Path
from typing import Optional


class CsvPartialCacheError(Exception):
    """Base class for every error raised by this package."""


class ConfigError(CsvPartialCacheError):
    pass


class OpenFileError(CsvPartialCacheError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Can't open file: {path}")
        self.path = path


class MissingHeaderError(CsvPartialCacheError):
    def __init__(self, path: Path) -> None:
        super().__init__(f"Expected a header line, file is empty: {path}")
        self.path = path


class RowError(CsvPartialCacheError):
    """A data row failed during the index build.

    Carries enough context to locate the row: the 1-based line number (the header is line 1),
    the byte offset of the row's first byte and the raw line text.
    """

    reason = "row failed"

    def __init__(self, path: Path, line_no: int, offset: int, line: str) -> None:
        super().__init__(f"{self.reason}: {path} line={line_no} offset={offset} text={line!r}")
        self.path = path
        self.line_no = line_no
        self.offset = offset
        self.line = line


class MalformedRowError(RowError):
    reason = "Malformed row"


class RowConversionError(RowError):
    reason = "Can't build partial record"


class OffsetOverflowError(CsvPartialCacheError):
    def __init__(self, path: Path, line_no: int, offset: int, max_value: int) -> None:
        super().__init__(
            f"Offset {offset} of line {line_no} in {path} exceeds the offset width maximum {max_value}"
        )
        self.path = path
        self.line_no = line_no
        self.offset = offset
        self.max_value = max_value


class FetchError(CsvPartialCacheError):
    def __init__(self, path: Path, offset: int, message: Optional[str] = None) -> None:
        super().__init__(message or f"Can't read line at offset {offset} from {path}")
        self.path = path
        self.offset = offset


class StaleOffsetError(FetchError):
    """The offset points at or past the end of the file; the file changed after the build."""

    def __init__(self, path: Path, offset: int) -> None:
        super().__init__(path, offset, f"Offset {offset} is past the end of {path}; the cache is stale")


class RowDecodeError(CsvPartialCacheError):
    def __init__(self, path: Path, offset: int, line: str) -> None:
        super().__init__(f"Can't decode csv line from {path} at {offset}: {line!r}")
        self.path = path
        self.offset = offset
        self.line = line


__all__ = [
    "ConfigError",
    "CsvPartialCacheError",
    "FetchError",
    "MalformedRowError",
    "MissingHeaderError",
    "OffsetOverflowError",
    "OpenFileError",
    "RowConversionError",
    "RowDecodeError",
    "RowError",
    "StaleOffsetError",
]
