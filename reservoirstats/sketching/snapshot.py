"""Checkpoint and restore of reservoir state.

A snapshot holds exactly what is needed to rebuild an equivalent reservoir:
the logical count, the capacity and the stored values. Restoring goes
through the same bulk-load path as building a reservoir from historical
data, so a restored reservoir obeys the same invariants as a fresh one.

Restoring keeps the logical count and the sorted multiset of stored values.
It does not keep the array layout or the random generator state.

Example:
    snapshot = to_snapshot(reservoir)
    payload = snapshot.to_json()

    # ... after a restart ...
    restored = from_snapshot(ReservoirSnapshot.from_json(payload))
"""

from __future__ import annotations

import json
import logging
import random
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from typing import Any

from reservoirstats.errors import InvalidArgumentError
from reservoirstats.sketching.quantiles import QUARTILES
from reservoirstats.sketching.reservoir import UniformSamplingReservoir

__all__ = ["ReservoirSnapshot", "from_snapshot", "to_snapshot"]

logger = logging.getLogger(__name__)

# Persisted field names, followed by accepted aliases.
_COUNT_KEYS = ("count",)
_CAPACITY_KEYS = ("maxSize", "capacity")
_VALUES_KEYS = ("samples", "values")


@dataclass(frozen=True, slots=True)
class ReservoirSnapshot:
    """Serializable reservoir state.

    Attributes:
        count: Number of observations the reservoir represents (>= 0).
        capacity: Maximum sample size (> 0).
        values: Stored values, in any order. None only for malformed input,
            which from_snapshot() rejects.
    """

    count: int
    capacity: int
    values: tuple[float, ...] | None

    def to_dict(self) -> dict[str, Any]:
        """Plain-dict form using the persisted field names."""
        return {
            "count": self.count,
            "maxSize": self.capacity,
            "samples": list(self.values) if self.values is not None else None,
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> ReservoirSnapshot:
        """Parse the dict form. Accepts `capacity` and `values` as aliases.

        Raises:
            InvalidArgumentError: If a field is missing or has the wrong type.
        """
        if not isinstance(data, Mapping):
            raise InvalidArgumentError(f"snapshot must be a mapping, got {type(data).__name__}")
        count = _field(data, _COUNT_KEYS)
        capacity = _field(data, _CAPACITY_KEYS)
        values = _field(data, _VALUES_KEYS)

        for name, number in (("count", count), ("capacity", capacity)):
            if isinstance(number, bool) or not isinstance(number, int):
                raise InvalidArgumentError(
                    f"snapshot {name} must be an integer, got {number!r}"
                )
        if count < 0:
            raise InvalidArgumentError(f"snapshot count must be non-negative, got {count}")
        if values is None:
            raise InvalidArgumentError("snapshot values may not be None")
        if isinstance(values, (str, bytes)) or not isinstance(values, Iterable):
            raise InvalidArgumentError(
                f"snapshot values must be a sequence of numbers, got {type(values).__name__}"
            )
        try:
            samples = tuple(float(v) for v in values)
        except (TypeError, ValueError) as e:
            raise InvalidArgumentError(f"snapshot values must be numbers: {e}") from e

        return cls(count=count, capacity=capacity, values=samples)

    def to_json(self) -> str:
        return json.dumps(self.to_dict())

    @classmethod
    def from_json(cls, payload: str | bytes) -> ReservoirSnapshot:
        """Parse a JSON document produced by to_json().

        Raises:
            InvalidArgumentError: If the payload is not a JSON object of the
                expected shape.
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise InvalidArgumentError(f"snapshot is not valid JSON: {e}") from e
        if not isinstance(data, dict):
            raise InvalidArgumentError(
                f"snapshot must be a JSON object, got {type(data).__name__}"
            )
        return cls.from_dict(data)


def to_snapshot(reservoir: UniformSamplingReservoir) -> ReservoirSnapshot:
    """Capture the state of a reservoir."""
    return ReservoirSnapshot(
        count=reservoir.count,
        capacity=reservoir.capacity,
        values=tuple(reservoir.sample()),
    )


def from_snapshot(
    snapshot: ReservoirSnapshot,
    *,
    seed: int | None = None,
    rng: random.Random | None = None,
    fractions: Iterable[float] = QUARTILES,
) -> UniformSamplingReservoir:
    """Rebuild a reservoir from a snapshot.

    The snapshot values are treated as an already representative sample and
    its count as the size of the population they were drawn from.

    Args:
        snapshot: State captured by to_snapshot().
        seed: Random seed for the new reservoir. Ignored if `rng` is given.
        rng: Random generator for the new reservoir.
        fractions: Quantile fractions reported by the new reservoir.

    Raises:
        InvalidArgumentError: If values are missing, capacity <= 0, or count
            is smaller than the number of values.
    """
    if snapshot.values is None:
        raise InvalidArgumentError("snapshot values may not be None")
    if len(snapshot.values) > snapshot.capacity:
        logger.warning(
            "Snapshot holds %d values for capacity %d; subsampling",
            len(snapshot.values),
            snapshot.capacity,
        )
    return UniformSamplingReservoir.from_values(
        snapshot.values,
        snapshot.count,
        snapshot.capacity,
        seed=seed,
        rng=rng,
        fractions=fractions,
    )


def _field(data: Mapping[str, Any], keys: tuple[str, ...]) -> Any:
    for key in keys:
        if key in data:
            return data[key]
    raise InvalidArgumentError(f"snapshot is missing field {keys[0]!r}")
