"""Ordered queue — a comparator-sorted sequence of waiting items.

The scheduler parks every job that cannot run yet in one of these.
Unlike ``collections.deque`` (which the FIFO-only policies could get
away with), the queue keeps itself sorted by a pluggable comparator so
that the front is always the job the active policy wants next.

The comparator follows the classic C ``qsort`` convention::

    cmp(a, b) < 0   → a goes before b
    cmp(a, b) == 0  → a and b rank equally
    cmp(a, b) > 0   → a goes after b

Tie-breaking:
    ``offer`` stops at the *first* stored element that ranks at or after
    the newcomer and inserts in front of it.  Among equal keys the most
    recently offered element therefore comes out first (LIFO for ties).
    Policies that care about ties break them inside the comparator.

Storage is a plain list, so ``offer`` and ``remove`` are O(n).  That is
fine for a simulator whose queues hold a handful of jobs.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Generic, TypeVar

if TYPE_CHECKING:
    from collections.abc import Callable, Iterator

T = TypeVar("T")


class OrderedQueue(Generic[T]):
    """A list kept non-decreasing under a comparator.

    The queue holds references only; it never copies or destroys the
    items it stores.
    """

    def __init__(self, cmp: Callable[[T, T], int]) -> None:
        """Create an empty queue bound to *cmp*.

        Args:
            cmp: Three-way comparator (negative / zero / positive).

        """
        self._cmp = cmp
        self._items: list[T] = []

    @property
    def comparator(self) -> Callable[[T, T], int]:
        """Return the comparator this queue is ordered by."""
        return self._cmp

    @property
    def size(self) -> int:
        """Return the number of stored items."""
        return len(self._items)

    def __len__(self) -> int:
        """Return the number of stored items."""
        return len(self._items)

    def __bool__(self) -> bool:
        """Return True if the queue holds at least one item."""
        return bool(self._items)

    def __iter__(self) -> Iterator[T]:
        """Iterate front to back over a snapshot of the queue."""
        return iter(list(self._items))

    def offer(self, item: T) -> int:
        """Insert *item* in order and return its zero-based position.

        Scanning from the front, the item is placed immediately before
        the first element ``e`` with ``cmp(e, item) >= 0``, or at the
        back if there is none.
        """
        for index, existing in enumerate(self._items):
            if self._cmp(existing, item) >= 0:
                self._items.insert(index, item)
                return index
        self._items.append(item)
        return len(self._items) - 1

    def peek(self) -> T | None:
        """Return the front item without removing it, or None if empty."""
        if not self._items:
            return None
        return self._items[0]

    def poll(self) -> T | None:
        """Remove and return the front item, or None if empty."""
        if not self._items:
            return None
        return self._items.pop(0)

    def at(self, index: int) -> T | None:
        """Return the item at *index* (0 = front), or None if out of bounds."""
        if not 0 <= index < len(self._items):
            return None
        return self._items[index]

    def remove(self, target: T) -> int:
        """Remove every item that ranks equal to *target*.

        Equality is decided by the comparator (``cmp(target, e) == 0``),
        not by identity.  Surviving items keep their relative order.

        Returns:
            Number of items removed.

        """
        before = len(self._items)
        self._items = [e for e in self._items if self._cmp(target, e) != 0]
        return before - len(self._items)

    def remove_at(self, index: int) -> T | None:
        """Remove and return the item at *index*, or None if out of range."""
        if not 0 <= index < len(self._items):
            return None
        return self._items.pop(index)

    def clear(self) -> None:
        """Drop every stored reference, leaving the queue empty."""
        self._items.clear()

    def __repr__(self) -> str:
        """Return a debug-friendly representation."""
        return f"OrderedQueue(size={len(self._items)})"
