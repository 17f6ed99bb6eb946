"""Keyed stream aggregation with periodic emission and checkpointing.

KeyedReservoirAggregator is the driver side of the library: it routes each
observation to the ValueCollector for its key, emits summaries every
`emit_every` observations of a key, and checkpoints or restores the state of
every key at once.

A single aggregator is not thread-safe. Partition keys across aggregators,
or lock externally, when feeding it from several threads.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator, Mapping
from typing import Any

from reservoirstats.collector import ValueCollector, ValueSummary
from reservoirstats.config import ReservoirConfig
from reservoirstats.errors import InvalidArgumentError
from reservoirstats.reporting import EmissionLog

__all__ = ["KeyedReservoirAggregator"]

logger = logging.getLogger(__name__)

EmitCallback = Callable[[str, ValueSummary], None]


class KeyedReservoirAggregator:
    """Per-key value collectors fed from one stream.

    Args:
        config: Capacity, quantile fractions and seed for every key.
        emit_every: Emit a key's summary after every this many observations
            of that key. None disables periodic emission.
        on_emit: Called with (key, summary) for each periodic emission.
        emissions: Log that receives emissions. A new one by default.

    Example:
        aggregator = KeyedReservoirAggregator(
            ReservoirConfig(capacity=500, seed=3), emit_every=1000
        )
        for record in stream:
            aggregator.add(record.sensor_id, record.value)

        state = aggregator.checkpoint()
        # ... after a restart ...
        aggregator.restore(state)
    """

    def __init__(
        self,
        config: ReservoirConfig | None = None,
        *,
        emit_every: int | None = None,
        on_emit: EmitCallback | None = None,
        emissions: EmissionLog | None = None,
    ):
        if emit_every is not None and emit_every <= 0:
            raise InvalidArgumentError(f"emit_every must be positive, got {emit_every}")

        self._config = config if config is not None else ReservoirConfig()
        self._emit_every = emit_every
        self._on_emit = on_emit
        self._emissions = emissions if emissions is not None else EmissionLog()
        self._rng = self._config.make_rng()
        self._collectors: dict[str, ValueCollector] = {}

    @property
    def config(self) -> ReservoirConfig:
        return self._config

    @property
    def emissions(self) -> EmissionLog:
        return self._emissions

    def keys(self) -> list[str]:
        return list(self._collectors)

    def collector(self, key: str) -> ValueCollector:
        """The collector for `key`.

        Raises:
            KeyError: If no observation was added for key.
        """
        return self._collectors[key]

    def __contains__(self, key: object) -> bool:
        return key in self._collectors

    def __len__(self) -> int:
        return len(self._collectors)

    def __iter__(self) -> Iterator[str]:
        return iter(self._collectors)

    def add(self, key: str, value: float) -> ValueSummary | None:
        """Route one observation to its key.

        Returns:
            The emitted summary if this observation triggered a periodic
            emission, otherwise None.
        """
        collector = self._collectors.get(key)
        if collector is None:
            collector = ValueCollector(
                self._config.capacity, fractions=self._config.fractions, rng=self._rng
            )
            self._collectors[key] = collector
            logger.debug("Created collector for key %r", key)

        collector.add(value)

        if self._emit_every is not None and collector.count % self._emit_every == 0:
            return self._emit_one(key, collector)
        return None

    def emit(self, key: str | None = None) -> dict[str, ValueSummary]:
        """Emit current summaries for one key, or for every key.

        Raises:
            KeyError: If key is given but unknown.
        """
        if key is not None:
            return {key: self._emit_one(key, self._collectors[key])}
        return {k: self._emit_one(k, c) for k, c in self._collectors.items()}

    def _emit_one(self, key: str, collector: ValueCollector) -> ValueSummary:
        summary = collector.summary()
        self._emissions.record(key, summary)
        if self._on_emit is not None:
            self._on_emit(key, summary)
        return summary

    def checkpoint(self) -> dict[str, dict[str, Any]]:
        """Serializable state of every key."""
        state = {key: collector.to_dict() for key, collector in self._collectors.items()}
        logger.info("Checkpointed %d keys", len(state))
        return state

    def restore(self, state: Mapping[str, Mapping[str, Any]]) -> None:
        """Replace all per-key state from a checkpoint.

        Every entry is validated before anything is replaced, so a bad
        checkpoint leaves the aggregator unchanged.

        Raises:
            InvalidArgumentError: If any entry is malformed.
        """
        restored: dict[str, ValueCollector] = {}
        for key, data in state.items():
            try:
                restored[key] = ValueCollector.from_dict(
                    data, fractions=self._config.fractions, rng=self._rng
                )
            except InvalidArgumentError as e:
                raise InvalidArgumentError(f"invalid checkpoint for key {key!r}: {e}") from e

            capacity = restored[key].reservoir.capacity
            if capacity != self._config.capacity:
                logger.warning(
                    "Key %r restored with capacity %d (configured %d)",
                    key,
                    capacity,
                    self._config.capacity,
                )

        self._collectors = restored
        logger.info("Restored %d keys from checkpoint", len(restored))

    def __repr__(self) -> str:
        return (
            f"KeyedReservoirAggregator(keys={len(self._collectors)}, "
            f"capacity={self._config.capacity}, emit_every={self._emit_every})"
        )
