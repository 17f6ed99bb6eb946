"""Fixed-capacity sorted array of floats.

SortedSampleArray is the backing store of UniformSamplingReservoir. It holds
up to `capacity` values in ascending order inside a preallocated list and
tracks how many leading slots are occupied.

Key properties:
- Space: O(capacity), allocated once
- Lookup: O(log n) binary search
- Insert / replace: O(log n) search plus a shift of only the slots between
  the freed position and the insertion position
- Bulk load: O(n log n)
"""

from __future__ import annotations

import bisect
import sys
from collections.abc import Iterable, Iterator

from reservoirstats.errors import InvalidArgumentError


class SortedSampleArray:
    """Sorted, in-place sequence of floats with a fixed capacity.

    Slots ``[0, len(self))`` are occupied and sorted ascending; the rest of
    the preallocated list is scratch space. Equal values keep leftmost
    insertion order (a new value goes before existing equal values).

    Args:
        capacity: Number of slots. Must be > 0.

    Example:
        arr = SortedSampleArray(capacity=4)
        arr.insert(3.0)
        arr.insert(1.0)
        arr.replace(0, 5.0)   # evict 1.0, insert 5.0
        list(arr)             # [3.0, 5.0]
    """

    def __init__(self, capacity: int):
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise InvalidArgumentError(f"capacity must be an integer, got {capacity!r}")
        if capacity <= 0:
            raise InvalidArgumentError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._values: list[float] = [0.0] * capacity
        self._length = 0

    @property
    def capacity(self) -> int:
        """Number of slots available."""
        return self._capacity

    @property
    def is_full(self) -> bool:
        """Whether every slot is occupied."""
        return self._length == self._capacity

    def __len__(self) -> int:
        return self._length

    def __getitem__(self, index: int) -> float:
        if index < 0:
            index += self._length
        if not 0 <= index < self._length:
            raise IndexError(f"index {index} out of range for {self._length} values")
        return self._values[index]

    def __iter__(self) -> Iterator[float]:
        return iter(self._values[: self._length])

    def to_list(self) -> list[float]:
        """Copy of the occupied slots, in ascending order."""
        return self._values[: self._length]

    def search(self, value: float) -> int:
        """Leftmost index at which `value` keeps the array sorted."""
        return bisect.bisect_left(self._values, value, 0, self._length)

    def count_at_most(self, value: float) -> int:
        """Number of occupied slots holding a value <= `value`."""
        return bisect.bisect_right(self._values, value, 0, self._length)

    def insert(self, value: float) -> int:
        """Insert a value into its sorted position, growing the array by one.

        Args:
            value: The value to insert.

        Returns:
            The index the value now occupies.

        Raises:
            IndexError: If the array is full. Use replace() to evict instead.
        """
        if self._length == self._capacity:
            raise IndexError(f"array is full ({self._capacity} values)")
        # The first unoccupied slot acts as the freed position.
        index = self._relocate(self._length, value)
        self._length += 1
        return index

    def replace(self, index: int, value: float) -> int:
        """Evict the value at `index` and insert `value` in sorted position.

        Args:
            index: Occupied slot to evict.
            value: The value to insert.

        Returns:
            The index the new value now occupies.

        Raises:
            IndexError: If index is not an occupied slot.
        """
        if not 0 <= index < self._length:
            raise IndexError(f"index {index} out of range for {self._length} values")
        return self._relocate(index, value)

    def _relocate(self, free: int, value: float) -> int:
        """Move `value` into sorted position, treating slot `free` as vacant.

        Only the values strictly between the vacant slot and the insertion
        point move, each by one slot toward the vacancy.
        """
        values = self._values
        add = self.search(value)

        if free < add:
            # [a, b, _, d, e] + d2 -> [a, b, d, d2, e]
            add -= 1
            values[free:add] = values[free + 1 : add + 1]
        elif free > add:
            # [a, b, _, d, e] + a2 -> [a, a2, b, d, e]
            values[add + 1 : free + 1] = values[add:free]

        values[add] = value
        return add

    def load(self, values: Iterable[float]) -> None:
        """Replace the contents with `values`, sorted.

        Args:
            values: At most `capacity` values, in any order.

        Raises:
            InvalidArgumentError: If more values than slots are given.
        """
        ordered = sorted(values)
        if len(ordered) > self._capacity:
            raise InvalidArgumentError(
                f"cannot load {len(ordered)} values into {self._capacity} slots"
            )
        self._values[: len(ordered)] = ordered
        self._length = len(ordered)

    def clear(self) -> None:
        """Mark every slot as unoccupied."""
        self._length = 0

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes."""
        # Preallocated list of float references (8 bytes each on 64-bit)
        return self._capacity * 8 + sys.getsizeof(self._values) + sys.getsizeof(self)

    def __repr__(self) -> str:
        return f"SortedSampleArray(capacity={self._capacity}, values={self.to_list()})"
