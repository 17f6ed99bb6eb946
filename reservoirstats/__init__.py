"""reservoirstats: bounded-memory quantiles for unbounded numeric streams.

A sorted uniform sampling reservoir keeps at most `capacity` values of a
stream of any length, reads quartiles from them directly, and can be
checkpointed and restored exactly. Around it sit a per-key value collector,
a keyed stream aggregator and an emission log for reporting.

Example:
    from reservoirstats import KeyedReservoirAggregator, ReservoirConfig

    aggregator = KeyedReservoirAggregator(ReservoirConfig(capacity=500), emit_every=100)
    for key, value in stream:
        aggregator.add(key, value)
    print(aggregator.emissions.to_dataframe())
"""

import logging

from reservoirstats.aggregation import KeyedReservoirAggregator
from reservoirstats.collector import ValueCollector, ValueSummary
from reservoirstats.config import ReservoirConfig
from reservoirstats.errors import InvalidArgumentError
from reservoirstats.logging_config import (
    configure_from_env,
    disable_logging,
    enable_console_logging,
    enable_file_logging,
    enable_json_file_logging,
    enable_json_logging,
    enable_timed_file_logging,
    set_level,
    set_module_level,
)
from reservoirstats.reporting import Emission, EmissionLog
from reservoirstats.sketching import (
    DEFAULT_CAPACITY,
    QUARTILES,
    ReservoirSnapshot,
    ReservoirSummary,
    SortedSampleArray,
    UniformSamplingReservoir,
    from_snapshot,
    interpolated_quantile,
    interpolated_quantiles,
    to_snapshot,
)

__version__ = "0.1.0"

# Silent unless the application configures logging.
logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "DEFAULT_CAPACITY",
    "QUARTILES",
    "Emission",
    "EmissionLog",
    "InvalidArgumentError",
    "KeyedReservoirAggregator",
    "ReservoirConfig",
    "ReservoirSnapshot",
    "ReservoirSummary",
    "SortedSampleArray",
    "UniformSamplingReservoir",
    "ValueCollector",
    "ValueSummary",
    "configure_from_env",
    "disable_logging",
    "enable_console_logging",
    "enable_file_logging",
    "enable_json_file_logging",
    "enable_json_logging",
    "enable_timed_file_logging",
    "from_snapshot",
    "interpolated_quantile",
    "interpolated_quantiles",
    "set_level",
    "set_module_level",
    "to_snapshot",
]
