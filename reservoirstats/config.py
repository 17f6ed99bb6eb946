"""Reservoir configuration.

ReservoirConfig collects the settings shared by every reservoir a stream
driver creates: capacity, reported quantile fractions and an optional seed.
It can be built in code or read from environment variables.

Environment variables:
    RS_RESERVOIR_CAPACITY: Maximum reservoir size (default 999)
    RS_QUANTILES: Comma-separated fractions, e.g. "0.05,0.5,0.95"
    RS_SEED: Integer seed for reproducible sampling
"""

from __future__ import annotations

import os
import random
from dataclasses import dataclass

from reservoirstats.errors import InvalidArgumentError
from reservoirstats.sketching.quantiles import QUARTILES, validate_fraction
from reservoirstats.sketching.reservoir import DEFAULT_CAPACITY

__all__ = ["ReservoirConfig"]

CAPACITY_ENV = "RS_RESERVOIR_CAPACITY"
QUANTILES_ENV = "RS_QUANTILES"
SEED_ENV = "RS_SEED"


@dataclass(frozen=True, slots=True)
class ReservoirConfig:
    """Settings for reservoirs created by a stream driver.

    Attributes:
        capacity: Maximum number of stored values per reservoir.
        fractions: Quantile fractions to report, each in (0, 1).
        seed: Seed for the driver's random generator, or None for entropy.
    """

    capacity: int = DEFAULT_CAPACITY
    fractions: tuple[float, ...] = QUARTILES
    seed: int | None = None

    def __post_init__(self) -> None:
        if isinstance(self.capacity, bool) or not isinstance(self.capacity, int):
            raise InvalidArgumentError(f"capacity must be an integer, got {self.capacity!r}")
        if self.capacity <= 0:
            raise InvalidArgumentError(f"capacity must be positive, got {self.capacity}")
        if not self.fractions:
            raise InvalidArgumentError("at least one quantile fraction is required")
        object.__setattr__(
            self, "fractions", tuple(validate_fraction(q) for q in self.fractions)
        )

    def make_rng(self) -> random.Random:
        """A fresh generator seeded from this configuration."""
        return random.Random(self.seed)

    @classmethod
    def from_env(cls) -> ReservoirConfig:
        """Build a configuration from RS_* environment variables.

        Unset or empty variables keep their defaults.

        Raises:
            InvalidArgumentError: If a variable is set to a malformed value.
        """
        kwargs: dict = {}

        capacity = os.environ.get(CAPACITY_ENV, "").strip()
        if capacity:
            kwargs["capacity"] = _parse_int(CAPACITY_ENV, capacity)

        quantiles = os.environ.get(QUANTILES_ENV, "").strip()
        if quantiles:
            try:
                kwargs["fractions"] = tuple(
                    float(part) for part in quantiles.split(",") if part.strip()
                )
            except ValueError as e:
                raise InvalidArgumentError(
                    f"{QUANTILES_ENV} must be comma-separated numbers, got {quantiles!r}"
                ) from e

        seed = os.environ.get(SEED_ENV, "").strip()
        if seed:
            kwargs["seed"] = _parse_int(SEED_ENV, seed)

        return cls(**kwargs)


def _parse_int(name: str, raw: str) -> int:
    try:
        return int(raw)
    except ValueError as e:
        raise InvalidArgumentError(f"{name} must be an integer, got {raw!r}") from e
