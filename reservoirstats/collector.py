"""Bounded per-key aggregate of a numeric stream.

ValueCollector keeps running min, max, sum, count and mean exactly, and
estimates quartiles and the interquartile range from a sampling reservoir,
so its memory stays bounded however long the stream runs. Its whole state
can be checkpointed with to_dict() and rebuilt with from_dict().
"""

from __future__ import annotations

import math
import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Any

from reservoirstats.errors import InvalidArgumentError
from reservoirstats.sketching.quantiles import QUARTILES
from reservoirstats.sketching.reservoir import (
    DEFAULT_CAPACITY,
    ReservoirSummary,
    UniformSamplingReservoir,
)
from reservoirstats.sketching.snapshot import ReservoirSnapshot, from_snapshot, to_snapshot

__all__ = ["ValueCollector", "ValueSummary"]


@dataclass(frozen=True, slots=True)
class ValueSummary:
    """Aggregate statistics of one key's stream.

    min, max and mean are NaN before the first observation.
    """

    count: int
    min: float
    max: float
    sum: float
    mean: float
    iqr: float
    reservoir: ReservoirSummary

    @property
    def quartiles(self) -> tuple[float, ...]:
        return self.reservoir.quartiles

    def to_dict(self) -> dict[str, Any]:
        return {
            "count": self.count,
            "min": self.min,
            "max": self.max,
            "sum": self.sum,
            "mean": self.mean,
            "quartiles": list(self.quartiles),
            "iqr": self.iqr,
            "reservoir": self.reservoir.to_dict(),
        }


class ValueCollector:
    """Running statistics plus reservoir-estimated quartiles.

    Args:
        capacity: Reservoir capacity used for quartile estimation.
        fractions: Quantile fractions reported in summaries.
        seed: Random seed for the reservoir. Ignored if `rng` is given.
        rng: Random generator for the reservoir.

    Example:
        collector = ValueCollector(capacity=200, seed=1)
        for reading in readings:
            collector.add(reading)
        print(collector.mean, collector.iqr)
    """

    def __init__(
        self,
        capacity: int = DEFAULT_CAPACITY,
        *,
        fractions: Iterable[float] = QUARTILES,
        seed: int | None = None,
        rng: random.Random | None = None,
    ):
        self._reservoir = UniformSamplingReservoir(
            capacity, seed=seed, rng=rng, fractions=fractions
        )
        self._min: float | None = None
        self._max: float | None = None
        self._sum = Decimal(0)
        self._count = 0

    @property
    def count(self) -> int:
        return self._count

    @property
    def min(self) -> float:
        return self._min if self._min is not None else math.nan

    @property
    def max(self) -> float:
        return self._max if self._max is not None else math.nan

    @property
    def sum(self) -> float:
        return float(self._sum)

    @property
    def mean(self) -> float:
        if self._count == 0:
            return math.nan
        return float(self._sum / self._count)

    @property
    def reservoir(self) -> UniformSamplingReservoir:
        return self._reservoir

    @property
    def quartiles(self) -> tuple[float, ...]:
        return self._reservoir.quartiles()

    @property
    def iqr(self) -> float:
        """Interquartile range q3 - q1, NaN before the first observation."""
        return self._reservoir.quantile(0.75) - self._reservoir.quantile(0.25)

    def add(self, value: float) -> None:
        """Record one observation.

        Raises:
            InvalidArgumentError: If value is NaN or infinite.
        """
        sample = float(value)
        if not math.isfinite(sample):
            raise InvalidArgumentError(f"value must be finite, got {value!r}")

        if self._min is None or sample < self._min:
            self._min = sample
        if self._max is None or sample > self._max:
            self._max = sample
        self._sum += Decimal(sample)
        self._count += 1
        self._reservoir.add(sample)

    def summary(self) -> ValueSummary:
        return ValueSummary(
            count=self._count,
            min=self.min,
            max=self.max,
            sum=self.sum,
            mean=self.mean,
            iqr=self.iqr,
            reservoir=self._reservoir.summary(),
        )

    def to_dict(self) -> dict[str, Any]:
        """Checkpoint form. The sum is kept as a decimal string so it stays exact."""
        return {
            "count": self._count,
            "min": self._min,
            "max": self._max,
            "sum": str(self._sum),
            "reservoir": to_snapshot(self._reservoir).to_dict(),
        }

    @classmethod
    def from_dict(
        cls,
        data: Mapping[str, Any],
        *,
        fractions: Iterable[float] = QUARTILES,
        seed: int | None = None,
        rng: random.Random | None = None,
    ) -> ValueCollector:
        """Rebuild a collector from its checkpoint form.

        Raises:
            InvalidArgumentError: If a field is missing or inconsistent.
        """
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(
                f"collector state must be a mapping, got {type(data).__name__}"
            )
        for key in ("count", "sum", "reservoir"):
            if key not in data:
                raise InvalidArgumentError(f"collector state is missing field {key!r}")

        snapshot = ReservoirSnapshot.from_dict(data["reservoir"])
        count = data["count"]
        if count != snapshot.count:
            raise InvalidArgumentError(
                f"collector count {count} does not match reservoir count {snapshot.count}"
            )
        try:
            total = Decimal(data["sum"])
        except (InvalidOperation, TypeError, ValueError) as e:
            raise InvalidArgumentError(f"collector sum is not a number: {data['sum']!r}") from e
        low, high = data.get("min"), data.get("max")
        if count > 0 and (low is None or high is None):
            raise InvalidArgumentError("collector state with observations needs min and max")
        if count > 0:
            try:
                low, high = float(low), float(high)
            except (TypeError, ValueError) as e:
                raise InvalidArgumentError(
                    f"collector min and max must be numbers, got {low!r} and {high!r}"
                ) from e

        reservoir = from_snapshot(snapshot, seed=seed, rng=rng, fractions=fractions)

        collector = cls.__new__(cls)
        collector._reservoir = reservoir
        collector._min = low if count > 0 else None
        collector._max = high if count > 0 else None
        collector._sum = total
        collector._count = count
        return collector

    def __repr__(self) -> str:
        return (
            f"ValueCollector(count={self._count}, min={self.min}, max={self.max}, "
            f"mean={self.mean}, quartiles={self.quartiles})"
        )
