from __future__ import annotations

from bisect import bisect_left
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, TypeVar, overload

T = TypeVar("T")


class IndexStore(Sequence[T]):
    """Frozen, file-ordered collection of partial records.

    Built once from the records produced during a scan; records cannot be added or removed
    afterwards.
    """

    __slots__ = ("_items",)

    def __init__(self, items: Iterable[T]) -> None:
        self._items: tuple[T, ...] = tuple(items)

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[T]:
        return iter(self._items)

    @overload
    def __getitem__(self, index: int) -> T: ...

    @overload
    def __getitem__(self, index: slice) -> tuple[T, ...]: ...

    def __getitem__(self, index):
        return self._items[index]

    def __repr__(self) -> str:
        return f"IndexStore(rows={len(self._items)})"

    def find(self, key: Any, key_fn: Callable[[T], Any]) -> Optional[T]:
        """Return the first record in file order whose projected key equals `key`."""
        for item in self._items:
            if key_fn(item) == key:
                return item
        return None

    def find_sorted(self, key: Any, key_fn: Callable[[T], Any]) -> Optional[T]:
        """Binary search for `key`, assuming the records are ordered by `key_fn`.

        Returns the earliest matching record. The result is undefined when the rows are not
        sorted by the projected key; use `find` in that case.
        """
        index = bisect_left(self._items, key, key=key_fn)
        if index < len(self._items) and key_fn(self._items[index]) == key:
            return self._items[index]
        return None
