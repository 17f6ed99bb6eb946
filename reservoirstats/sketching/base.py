"""Abstract interfaces for fixed-memory stream summaries.

A stream summary consumes observations one at a time and keeps only a
bounded amount of state, so it can sit in front of a stream of any length.
Its answers are exact until the stream outgrows that state and estimates
afterwards.

Three layers:
- Sketch: what every summary supports (add, merge, clear, size accounting)
- QuantileSketch: summaries that answer quantile and CDF queries
- SamplingSketch: summaries whose state is a retained sample of the stream
"""

from abc import ABC, abstractmethod
from collections.abc import Iterator
from typing import TypeVar

from reservoirstats.errors import InvalidArgumentError

T = TypeVar("T")


class Sketch(ABC):
    """Common interface of bounded-memory stream summaries.

    Randomized summaries take either a `seed` or an explicit `rng` so that a
    run can be replayed exactly.
    """

    @abstractmethod
    def add(self, item: T, count: int = 1) -> None:
        """Feed `count` occurrences of `item` into the summary."""

    @abstractmethod
    def merge(self, other: "Sketch") -> None:
        """Fold another summary of the same kind into this one.

        Afterwards this summary describes the concatenation of both streams.

        Raises:
            TypeError: If other is a different kind of summary.
            InvalidArgumentError: If other was configured differently.
        """

    @property
    @abstractmethod
    def memory_bytes(self) -> int:
        """Approximate footprint in bytes."""

    @property
    @abstractmethod
    def item_count(self) -> int:
        """Observations fed in so far, retained or not."""

    @abstractmethod
    def clear(self) -> None:
        """Forget every observation."""


class QuantileSketch(Sketch):
    """Summary of a numeric stream that answers order-statistic queries.

    Implementations: UniformSamplingReservoir
    """

    @abstractmethod
    def quantile(self, q: float) -> float:
        """Value below which a fraction `q` of the stream falls.

        Args:
            q: Fraction strictly between 0 and 1 (0.5 is the median).

        Returns:
            The estimate, or NaN before the first observation.

        Raises:
            InvalidArgumentError: If q is not in (0, 1).
        """

    @abstractmethod
    def cdf(self, value: float) -> float:
        """Estimated fraction of observations that are <= value."""

    def percentile(self, p: float) -> float:
        """quantile() on a 0-100 scale.

        Raises:
            InvalidArgumentError: If p is not in (0, 100).
        """
        if not 0 < p < 100:
            raise InvalidArgumentError(f"Percentile must be in (0, 100), got {p}")
        return self.quantile(p / 100.0)


class SamplingSketch[T](Sketch):
    """Summary whose state is a bounded sample of the observations.

    Implementations: UniformSamplingReservoir
    """

    @abstractmethod
    def sample(self) -> list[T]:
        """Copy of the retained observations (fewer than capacity early on)."""

    @abstractmethod
    def __iter__(self) -> Iterator[T]:
        """Iterate over the retained observations."""

    @property
    @abstractmethod
    def capacity(self) -> int:
        """Upper bound on the number of retained observations."""
