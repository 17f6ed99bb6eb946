"""Emission log for periodic reservoir summaries.

A stream driver emits a summary per key every so often. EmissionLog keeps
those emissions in order and turns them into a pandas DataFrame (one row per
emission) or a chart of how the quantiles evolved.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import pandas as pd

from reservoirstats.collector import ValueSummary
from reservoirstats.errors import InvalidArgumentError
from reservoirstats.sketching.reservoir import ReservoirSummary

__all__ = ["Emission", "EmissionLog", "quantile_label"]

logger = logging.getLogger(__name__)

BASE_COLUMNS = ["key", "sequence", "count", "capacity", "sample_size"]
VALUE_COLUMNS = ["min", "max", "sum", "mean", "iqr"]


def quantile_label(q: float) -> str:
    """Column name for a quantile fraction: 0.25 -> "p25", 0.999 -> "p99.9"."""
    return f"p{round(q * 100, 6):g}"


@dataclass(frozen=True, slots=True)
class Emission:
    """One summary emitted for one key."""

    key: str
    sequence: int
    summary: ValueSummary | ReservoirSummary

    @property
    def reservoir(self) -> ReservoirSummary:
        if isinstance(self.summary, ValueSummary):
            return self.summary.reservoir
        return self.summary

    def to_row(self) -> dict[str, Any]:
        reservoir = self.reservoir
        row: dict[str, Any] = {
            "key": self.key,
            "sequence": self.sequence,
            "count": reservoir.count,
            "capacity": reservoir.capacity,
            "sample_size": len(reservoir.samples),
        }
        for q, value in zip(reservoir.fractions, reservoir.quartiles):
            row[quantile_label(q)] = value
        if isinstance(self.summary, ValueSummary):
            row.update({name: getattr(self.summary, name) for name in VALUE_COLUMNS})
        return row


class EmissionLog:
    """Ordered record of emitted summaries.

    Example:
        log = EmissionLog()
        log.record("sensor-1", collector.summary())
        frame = log.to_dataframe()
        log.plot_quantiles("out/quantiles.png")
    """

    def __init__(self) -> None:
        self._emissions: list[Emission] = []
        self._quantile_columns: list[str] = []

    def record(self, key: str, summary: ValueSummary | ReservoirSummary) -> Emission:
        """Append an emission and return it."""
        emission = Emission(key=key, sequence=len(self._emissions), summary=summary)
        self._emissions.append(emission)
        for q in emission.reservoir.fractions:
            label = quantile_label(q)
            if label not in self._quantile_columns:
                self._quantile_columns.append(label)
        return emission

    @property
    def emissions(self) -> list[Emission]:
        return list(self._emissions)

    @property
    def quantile_columns(self) -> list[str]:
        """Quantile column names seen so far, in first-seen order."""
        return list(self._quantile_columns)

    def for_key(self, key: str) -> list[Emission]:
        return [e for e in self._emissions if e.key == key]

    def clear(self) -> None:
        self._emissions.clear()
        self._quantile_columns.clear()

    def __len__(self) -> int:
        return len(self._emissions)

    def __iter__(self) -> Iterator[Emission]:
        return iter(self._emissions)

    def to_dataframe(self) -> pd.DataFrame:
        """One row per emission.

        Columns: key, sequence, count, capacity, sample_size, one pXX column
        per quantile fraction, and min, max, sum, mean, iqr when collector
        summaries were recorded.
        """
        columns = BASE_COLUMNS + self._quantile_columns
        if any(isinstance(e.summary, ValueSummary) for e in self._emissions):
            columns = columns + VALUE_COLUMNS
        return pd.DataFrame([e.to_row() for e in self._emissions], columns=columns)

    def plot_quantiles(self, path: str | Path, key: str | None = None) -> Path:
        """Save a line chart of every quantile column against sequence.

        Args:
            path: Output image path. Parent directories are created.
            key: Plot only this key. Defaults to all keys.

        Returns:
            The path written.

        Raises:
            InvalidArgumentError: If there is nothing to plot.
        """
        import matplotlib.pyplot as plt

        frame = self.to_dataframe()
        if key is not None:
            frame = frame[frame["key"] == key]
        if frame.empty:
            raise InvalidArgumentError(
                f"no emissions to plot for key {key!r}" if key is not None else "no emissions to plot"
            )

        fig, ax = plt.subplots(figsize=(10, 5))
        for group_key, group in frame.groupby("key", sort=True):
            for column in self._quantile_columns:
                if column in group and group[column].notna().any():
                    ax.plot(group["sequence"], group[column], marker=".", label=f"{group_key} {column}")
        ax.set_xlabel("Emission")
        ax.set_ylabel("Value")
        ax.set_title("Reservoir quantiles" if key is None else f"Reservoir quantiles: {key}")
        ax.legend()
        ax.grid(True, alpha=0.3)

        path = Path(path)
        path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(path, dpi=150)
        plt.close(fig)
        logger.info("Saved quantile plot to %s", path)
        return path
