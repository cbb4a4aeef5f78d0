from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import Protocol, Sequence, TypeVar

T = TypeVar("T")
F_co = TypeVar("F_co", covariant=True)


class OffsetWidth(IntEnum):
    """Unsigned integer width, in bits, used to store a row offset.

    Narrower widths keep partial records small but cap the usable file size.
    """

    U8 = 8
    U16 = 16
    U32 = 32
    U64 = 64

    @property
    def max_value(self) -> int:
        return (1 << int(self)) - 1


@dataclass(frozen=True, slots=True)
class ScannedLine:
    line_no: int
    offset: int
    text: str


class PartialRecordFactory(Protocol[T]):
    """Builds the caller's partial records and reads their offsets back.

    `offset_width` bounds the offsets the factory can store; the index build fails when a row
    starts beyond it. `build` must be deterministic and free of side effects.
    """

    offset_width: OffsetWidth

    def offset_of(self, record: T) -> int:
        ...

    def build(self, line: str, offset: int) -> T:
        ...


class RowDecoder(Protocol[F_co]):
    def __call__(self, header: Sequence[str], fields: Sequence[str]) -> F_co:
        ...
