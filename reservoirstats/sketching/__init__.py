"""Bounded-memory sampling and quantile estimation for numeric streams.

This module provides a sorted uniform sampling reservoir and the pieces it is
built from:
- SortedSampleArray: fixed-capacity sorted storage with in-place eviction
- interpolated_quantile: quantiles of a sorted sample at p = q * (n + 1)
- UniformSamplingReservoir: Algorithm R over a sorted store
- ReservoirSnapshot: checkpoint/restore of reservoir state

Example:
    from reservoirstats.sketching import (
        UniformSamplingReservoir, from_snapshot, to_snapshot,
    )

    reservoir = UniformSamplingReservoir(capacity=999, seed=7)
    for value in heart_rates:
        reservoir.add(value)
    print(reservoir.quartiles())

    # Checkpoint and restore
    restored = from_snapshot(to_snapshot(reservoir))
"""

# Base protocols
from reservoirstats.sketching.base import QuantileSketch, SamplingSketch, Sketch

# Quantile estimation
from reservoirstats.sketching.quantiles import (
    QUARTILES,
    interpolated_quantile,
    interpolated_quantiles,
)

# Sampling
from reservoirstats.sketching.reservoir import (
    DEFAULT_CAPACITY,
    ReservoirSummary,
    UniformSamplingReservoir,
)

# Checkpointing
from reservoirstats.sketching.snapshot import ReservoirSnapshot, from_snapshot, to_snapshot
from reservoirstats.sketching.sorted_array import SortedSampleArray

__all__ = [
    "DEFAULT_CAPACITY",
    "QUARTILES",
    "QuantileSketch",
    "ReservoirSnapshot",
    "ReservoirSummary",
    "SamplingSketch",
    "Sketch",
    "SortedSampleArray",
    "UniformSamplingReservoir",
    "from_snapshot",
    "interpolated_quantile",
    "interpolated_quantiles",
    "to_snapshot",
]
