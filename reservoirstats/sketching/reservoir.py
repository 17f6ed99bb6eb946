"""Uniform sampling reservoir with a sorted backing store.

The reservoir keeps a uniform random sample of at most `capacity`
observations from a numeric stream of unknown length, using Algorithm R.
Unlike a plain reservoir, the sample is kept sorted at all times so that
quantiles can be read without sorting on every query.

Key properties:
- Space: O(capacity), allocated once
- Update: O(log capacity) search plus a partial shift, O(capacity) worst case
- Query: O(1) per quantile
- Guarantee: while count <= capacity the sample is the whole stream and the
  quantiles are exact; past that, every observation seen so far has about the
  same probability capacity / count of being in the sample

A reservoir can be created empty, bulk-loaded from historical values with a
logical count, or restored from a snapshot (see snapshot.py). All three paths
end in the same sorted, uniformly sampled state.

Reference:
    Vitter. "Random Sampling with a Reservoir" (1985)
"""

from __future__ import annotations

import logging
import math
import random
import sys
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from reservoirstats.errors import InvalidArgumentError
from reservoirstats.sketching.base import QuantileSketch, SamplingSketch
from reservoirstats.sketching.quantiles import (
    QUARTILES,
    interpolated_quantile,
    interpolated_quantiles,
    validate_fraction,
)
from reservoirstats.sketching.sorted_array import SortedSampleArray

if TYPE_CHECKING:
    from collections.abc import Iterator

    from reservoirstats.sketching.snapshot import ReservoirSnapshot

logger = logging.getLogger(__name__)

DEFAULT_CAPACITY = 999


@dataclass(frozen=True, slots=True)
class ReservoirSummary:
    """Read-only view of a reservoir for downstream reporting.

    Attributes:
        count: Number of observations the reservoir represents.
        capacity: Maximum sample size.
        quartiles: Quantiles at the reservoir's configured fractions.
        samples: The stored sample, ascending.
        fractions: The fractions `quartiles` were read at.
    """

    count: int
    capacity: int
    quartiles: tuple[float, ...]
    samples: tuple[float, ...]
    fractions: tuple[float, ...] = QUARTILES

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "capacity": self.capacity,
            "quartiles": list(self.quartiles),
            "samples": list(self.samples),
            "fractions": list(self.fractions),
        }


class UniformSamplingReservoir(SamplingSketch[float], QuantileSketch):
    """Sorted uniform sample of a numeric stream, for quantile estimation.

    Args:
        capacity: Maximum number of stored values. Must be > 0.
        seed: Random seed for reproducibility. Ignored if `rng` is given.
        rng: Random generator to draw from. Defaults to a private
            ``random.Random(seed)``; the process-wide generator is never used.
        fractions: Quantile fractions reported by quartiles() and summary().

    Example:
        reservoir = UniformSamplingReservoir(capacity=500, seed=42)

        for latency in latencies:
            reservoir.add(latency)

        q1, median, q3 = reservoir.quartiles()
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        seed: int | None = None,
        rng: random.Random | None = None,
        fractions: Iterable[float] = QUARTILES,
    ):
        """Create an empty reservoir.

        Raises:
            InvalidArgumentError: If capacity <= 0 or a fraction is not in (0, 1).
        """
        if isinstance(capacity, bool) or not isinstance(capacity, int):
            raise InvalidArgumentError(f"capacity must be an integer, got {capacity!r}")
        if capacity <= 0:
            raise InvalidArgumentError(f"capacity must be positive, got {capacity}")

        self._capacity = capacity
        self._fractions = tuple(validate_fraction(q) for q in fractions)
        self._samples = SortedSampleArray(capacity)
        self._count = 0
        self._rng = rng if rng is not None else random.Random(seed)

    @classmethod
    def from_values(
        cls,
        values: Iterable[float],
        count: int | None = None,
        capacity: int = DEFAULT_CAPACITY,
        *,
        seed: int | None = None,
        rng: random.Random | None = None,
        fractions: Iterable[float] = QUARTILES,
    ) -> UniformSamplingReservoir:
        """Create a reservoir that samples from historical values.

        Args:
            values: Values to sample from, in any order.
            count: Number of observations these values represent. Defaults
                to the number of values.
            capacity: Maximum number of stored values.

        Raises:
            InvalidArgumentError: If values is None, capacity <= 0, or
                count is smaller than the number of values.
        """
        reservoir = cls(capacity, seed=seed, rng=rng, fractions=fractions)
        reservoir.load(values, count)
        return reservoir

    # === Views ===

    @property
    def capacity(self) -> int:
        """Maximum number of values in the sample."""
        return self._capacity

    @property
    def fractions(self) -> tuple[float, ...]:
        """Quantile fractions reported by quartiles()."""
        return self._fractions

    @property
    def count(self) -> int:
        """Number of observations represented, including evicted ones."""
        return self._count

    @property
    def item_count(self) -> int:
        """Total count of observations seen (not sample size)."""
        return self._count

    @property
    def sample_size(self) -> int:
        """Current number of values in the sample."""
        return len(self._samples)

    @property
    def is_full(self) -> bool:
        """Whether the sample is at capacity."""
        return self._samples.is_full

    @property
    def min(self) -> float | None:
        """Smallest stored value, or None if empty."""
        return self._samples[0] if self._samples else None

    @property
    def max(self) -> float | None:
        """Largest stored value, or None if empty."""
        return self._samples[-1] if self._samples else None

    def sample(self) -> list[float]:
        """Return a copy of the stored sample, ascending.

        Returns:
            At most `capacity` values, never more than `count`.
        """
        return self._samples.to_list()

    def __iter__(self) -> Iterator[float]:
        return iter(self._samples)

    def __len__(self) -> int:
        return len(self._samples)

    def __getitem__(self, index: int) -> float:
        return self._samples[index]

    # === Updates ===

    def add(self, item: float, count: int = 1) -> None:
        """Add an observation to the stream.

        The value may or may not be stored, depending on random selection
        that keeps the sample uniform.

        Args:
            item: The observed value.
            count: Number of times to add this value. Each occurrence is
                   considered independently for sampling.

        Raises:
            InvalidArgumentError: If count is not a non-negative integer or item is NaN.
        """
        if isinstance(count, bool) or not isinstance(count, int):
            raise InvalidArgumentError(f"count must be an integer, got {count!r}")
        if count < 0:
            raise InvalidArgumentError(f"count must be non-negative, got {count}")
        value = _as_sample(item)

        for _ in range(count):
            self._add_one(value)

    def _add_one(self, value: float) -> None:
        if not self._samples.is_full:
            self._samples.insert(value)
        else:
            # Algorithm R: the new value survives with probability
            # capacity / count (count before this value) and then replaces a
            # uniformly chosen stored value. Array position r stands in for
            # "a uniformly chosen stored value": which values are stored never
            # depended on where they sit, so every position holds each stored
            # value with equal probability even though the array is ordered.
            r = self._rng.randrange(self._count)
            if r < self._capacity:
                self._samples.replace(r, value)

        self._count += 1

    def load(self, values: Iterable[float], count: int | None = None) -> None:
        """Re-initialize from a set of values and a logical count.

        The stored sample becomes a uniform random subset of `values` of size
        min(capacity, len(values)), sorted, and the logical count becomes
        `count`. Nothing is changed if validation fails.

        Args:
            values: Values to sample from, in any order.
            count: Number of observations these values represent. Defaults
                to the number of values.

        Raises:
            InvalidArgumentError: If values is None, contains NaN, or count
                is smaller than the number of values.
        """
        if values is None:
            raise InvalidArgumentError("values may not be None")
        pool = [_as_sample(v) for v in values]
        if count is None:
            count = len(pool)
        elif isinstance(count, bool) or not isinstance(count, int):
            raise InvalidArgumentError(f"count must be an integer, got {count!r}")
        if count < len(pool):
            raise InvalidArgumentError(
                f"count must be at least the number of values ({len(pool)}), got {count}"
            )

        self._samples.load(self._subsample(pool))
        self._count = count

    def restore(self, snapshot: ReservoirSnapshot) -> None:
        """Re-initialize from a snapshot with the same capacity.

        Raises:
            InvalidArgumentError: If the capacities differ or the snapshot
                values are missing.
        """
        if snapshot.capacity != self._capacity:
            raise InvalidArgumentError(
                f"Cannot restore: capacity differs ({self._capacity} vs {snapshot.capacity})"
            )
        logger.debug(
            "Restoring reservoir: count=%d, values=%d",
            snapshot.count,
            len(snapshot.values) if snapshot.values is not None else 0,
        )
        self.load(snapshot.values, snapshot.count)

    def _subsample(self, pool: list[float]) -> list[float]:
        """Pick min(capacity, len(pool)) values uniformly without replacement."""
        size = len(pool)
        capacity = self._capacity

        if size <= capacity:
            return pool

        if size <= 2 * capacity:
            # Indexes still in the pool are exactly the unpicked ones.
            logger.debug("Subsampling %d values to %d from shrinking pool", size, capacity)
            indexes = list(range(size))
            chosen = []
            for _ in range(capacity):
                j = self._rng.randrange(len(indexes))
                indexes[j], indexes[-1] = indexes[-1], indexes[j]
                chosen.append(pool[indexes.pop()])
            return chosen

        # Each draw hits an unpicked index with probability >= 1/2.
        logger.debug("Subsampling %d values to %d by rejection", size, capacity)
        picked: set[int] = set()
        while len(picked) < capacity:
            picked.add(self._rng.randrange(size))
        return [pool[i] for i in picked]

    def merge(self, other: UniformSamplingReservoir) -> None:
        """Merge another reservoir into this one.

        The result is a uniform sample of the combined stream. Each merged
        slot is drawn from one side with probability proportional to that
        side's not-yet-drawn observations, then filled with a stored value
        picked uniformly without replacement from that side.

        Args:
            other: Another UniformSamplingReservoir with the same capacity.

        Raises:
            TypeError: If other is not a UniformSamplingReservoir.
            InvalidArgumentError: If other has a different capacity.
        """
        if not isinstance(other, UniformSamplingReservoir):
            raise TypeError(
                f"Can only merge with UniformSamplingReservoir, got {type(other).__name__}"
            )
        if other._capacity != self._capacity:
            raise InvalidArgumentError(
                f"Cannot merge: capacity differs ({self._capacity} vs {other._capacity})"
            )

        ours = self._samples.to_list()
        theirs = other._samples.to_list()
        # remaining_* >= available_* holds throughout because count >= stored.
        remaining_ours, remaining_theirs = self._count, other._count
        available_ours, available_theirs = len(ours), len(theirs)

        take_ours = take_theirs = 0
        for _ in range(min(self._capacity, available_ours + available_theirs)):
            if available_theirs == 0:
                from_ours = True
            elif available_ours == 0:
                from_ours = False
            else:
                draw = self._rng.randrange(remaining_ours + remaining_theirs)
                from_ours = draw < remaining_ours

            if from_ours:
                take_ours += 1
                remaining_ours -= 1
                available_ours -= 1
            else:
                take_theirs += 1
                remaining_theirs -= 1
                available_theirs -= 1

        merged = self._rng.sample(ours, take_ours) + self._rng.sample(theirs, take_theirs)
        self._samples.load(merged)
        self._count += other._count

    def clear(self) -> None:
        """Reset the reservoir to empty state."""
        self._samples.clear()
        self._count = 0

    # === Queries ===

    def quantile(self, q: float) -> float:
        """Estimate the value at quantile q.

        Exact while count <= capacity, an estimate afterwards.

        Returns:
            The interpolated quantile, or NaN if the reservoir is empty.

        Raises:
            InvalidArgumentError: If q is not in (0, 1).
        """
        return interpolated_quantile(self._samples, q)

    def quantiles(self, fractions: Iterable[float] | None = None) -> tuple[float, ...]:
        """Estimate several quantiles in one pass.

        Args:
            fractions: Fractions to read. Defaults to the configured ones.
        """
        if fractions is None:
            fractions = self._fractions
        return interpolated_quantiles(self._samples, fractions)

    def quartiles(self) -> tuple[float, ...]:
        """Quantiles at the configured fractions (25/50/75 by default)."""
        return interpolated_quantiles(self._samples, self._fractions)

    def cdf(self, value: float) -> float:
        """Fraction of stored values that are <= value (0.0 if empty)."""
        if not self._samples:
            return 0.0
        return self._samples.count_at_most(value) / len(self._samples)

    def summary(self) -> ReservoirSummary:
        """Snapshot of count, capacity, quartiles and samples for reporting."""
        return ReservoirSummary(
            count=self._count,
            capacity=self._capacity,
            quartiles=self.quartiles(),
            samples=tuple(self._samples),
            fractions=self._fractions,
        )

    @property
    def memory_bytes(self) -> int:
        """Estimated memory usage in bytes."""
        return self._samples.memory_bytes + sys.getsizeof(self)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, UniformSamplingReservoir):
            return NotImplemented
        return (
            self._capacity == other._capacity
            and self._count == other._count
            and self._samples.to_list() == other._samples.to_list()
        )

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return (
            f"UniformSamplingReservoir(capacity={self._capacity}, "
            f"sampled={len(self._samples)}, "
            f"seen={self._count})"
        )


def _as_sample(value: float) -> float:
    """Coerce to float, rejecting NaN (it has no sorted position)."""
    sample = float(value)
    if math.isnan(sample):
        raise InvalidArgumentError("NaN cannot be sampled")
    return sample
