"""Interpolated quantiles over sorted samples.

Quantiles are read at position ``p = q * (n + 1)`` (1-indexed) and linearly
interpolated between the two neighbouring order statistics. For the sample
[1, 2, 3, 4] this gives quartiles 1.25, 2.5 and 3.75. Positions before the
first or past the last value clamp to that value.
"""

from __future__ import annotations

import math
from collections.abc import Iterable, Sequence

from reservoirstats.errors import InvalidArgumentError

__all__ = [
    "QUARTILES",
    "interpolated_quantile",
    "interpolated_quantiles",
    "validate_fraction",
]

QUARTILES: tuple[float, float, float] = (0.25, 0.5, 0.75)


def validate_fraction(q: float) -> float:
    """Check that `q` is a quantile fraction strictly between 0 and 1.

    Raises:
        InvalidArgumentError: If q is not in (0, 1).
    """
    if not 0.0 < q < 1.0:
        raise InvalidArgumentError(f"Quantile must be in (0, 1), got {q}")
    return float(q)


def interpolated_quantile(
    sorted_values: Sequence[float], q: float, length: int | None = None
) -> float:
    """Quantile `q` of an ascending sequence.

    Args:
        sorted_values: Values in ascending order.
        q: Fraction strictly between 0 and 1.
        length: Number of leading values that are meaningful. Defaults to
            ``len(sorted_values)``; useful when the sequence is a
            preallocated buffer that is only partly occupied.

    Returns:
        The interpolated quantile, or NaN if there are no values.

    Raises:
        InvalidArgumentError: If q is not in (0, 1).
    """
    validate_fraction(q)
    n = len(sorted_values) if length is None else length

    if n == 0:
        return math.nan
    if n == 1:
        return float(sorted_values[0])

    pos = q * (n + 1)
    i = int(pos)
    if i == 0:
        return float(sorted_values[0])
    if i >= n:
        return float(sorted_values[n - 1])

    base = sorted_values[i - 1]
    upper = sorted_values[i]
    frac = pos - i
    if frac == 0 or base == upper:
        return float(base)
    if math.isinf(base) and math.isinf(upper):
        return float(base if frac < 0.5 else upper)
    if math.isinf(base) or math.isinf(upper):
        # Any nonzero weight on an infinite neighbour is that infinity.
        return float(base if math.isinf(base) else upper)
    return float(base + frac * (upper - base))


def interpolated_quantiles(
    sorted_values: Sequence[float],
    fractions: Iterable[float] = QUARTILES,
    length: int | None = None,
) -> tuple[float, ...]:
    """Several quantiles of the same ascending sequence.

    Returns:
        One value per fraction, in the order given. All NaN if empty.
    """
    return tuple(interpolated_quantile(sorted_values, q, length) for q in fractions)
