from __future__ import annotations

import csv
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Sequence, Tuple, Type, TypeVar

from pydantic import BaseModel, ConfigDict, Field

from csv_partial_cache.models import OffsetWidth, RowDecoder

M = TypeVar("M", bound=BaseModel)


class CsvDialect(BaseModel):
    """Tokenizer settings for a single delimited-text line."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    delimiter: str = Field(default=",", min_length=1, max_length=1)
    quotechar: str = Field(default='"', min_length=1, max_length=1)
    escapechar: Optional[str] = Field(default=None, min_length=1, max_length=1)
    doublequote: bool = True
    skipinitialspace: bool = False

    def parse_line(self, text: str) -> list[str]:
        """Split one line into fields.

        Raises `csv.Error` for input the grammar rejects, e.g. an unterminated quoted field.
        """
        reader = csv.reader(
            [text],
            delimiter=self.delimiter,
            quotechar=self.quotechar,
            escapechar=self.escapechar,
            doublequote=self.doublequote,
            skipinitialspace=self.skipinitialspace,
            strict=True,
        )
        rows = list(reader)
        if not rows:
            return []
        if len(rows) > 1:
            raise csv.Error(f"expected a single record, got {len(rows)}")
        return rows[0]


DEFAULT_DIALECT = CsvDialect()


@dataclass(frozen=True, slots=True)
class ColumnsRecord:
    offset: int
    values: Tuple[str, ...]


class ColumnsFactory:
    """Caches a subset of columns, chosen by header name, as plain strings."""

    def __init__(
        self,
        *,
        header: Sequence[str],
        columns: Sequence[str],
        offset_width: OffsetWidth = OffsetWidth.U64,
        dialect: CsvDialect = DEFAULT_DIALECT,
    ) -> None:
        missing = [name for name in columns if name not in header]
        if missing:
            raise ValueError(f"Unknown cached columns: {', '.join(missing)}")
        self.offset_width = offset_width
        self.columns = tuple(columns)
        self._positions = tuple(list(header).index(name) for name in columns)
        self._width = len(header)
        self._dialect = dialect

    def offset_of(self, record: ColumnsRecord) -> int:
        return record.offset

    def build(self, line: str, offset: int) -> ColumnsRecord:
        fields = self._dialect.parse_line(line)
        if len(fields) != self._width:
            raise ValueError(f"Expected {self._width} columns, got {len(fields)}")
        return ColumnsRecord(offset=offset, values=tuple(fields[i] for i in self._positions))

    def key_fn(self, column: str) -> Callable[[ColumnsRecord], str]:
        """Return a projection of records onto one cached column."""
        position = self.columns.index(column)
        return lambda record: record.values[position]


def dict_decoder(header: Sequence[str], fields: Sequence[str]) -> Dict[str, str]:
    if len(fields) != len(header):
        raise ValueError(f"Expected {len(header)} columns, got {len(fields)}")
    return dict(zip(header, fields))


def model_decoder(model: Type[M]) -> RowDecoder[M]:
    """Decode rows into a pydantic model, matching columns to fields by header name."""

    def decode(header: Sequence[str], fields: Sequence[str]) -> M:
        payload: Dict[str, Any] = dict_decoder(header, fields)
        return model.model_validate(payload)

    return decode
