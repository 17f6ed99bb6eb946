"""Tests for the sorted uniform sampling reservoir."""

import math
import random
from collections import Counter

import pytest

from reservoirstats import InvalidArgumentError
from reservoirstats.sketching import DEFAULT_CAPACITY, UniformSamplingReservoir


def _is_sorted(values: list[float]) -> bool:
    return all(a <= b for a, b in zip(values, values[1:]))


class TestReservoirCreation:
    """Tests for creation and configuration."""

    def test_creates_with_capacity(self):
        """Reservoir is created empty with the given capacity."""
        r = UniformSamplingReservoir(capacity=100)

        assert r.capacity == 100
        assert r.sample_size == 0
        assert r.count == 0
        assert r.item_count == 0

    def test_default_capacity(self):
        """Default capacity is 999."""
        r = UniformSamplingReservoir()

        assert r.capacity == DEFAULT_CAPACITY == 999

    def test_rejects_zero_capacity(self):
        """Rejects capacity=0."""
        with pytest.raises(InvalidArgumentError, match="must be positive"):
            UniformSamplingReservoir(capacity=0)

    def test_rejects_negative_capacity(self):
        """Rejects negative capacity."""
        with pytest.raises(InvalidArgumentError, match="must be positive"):
            UniformSamplingReservoir(capacity=-10)

    @pytest.mark.parametrize("capacity", [2.5, "10", False])
    def test_rejects_non_integer_capacity(self, capacity):
        """Capacity must be a plain int."""
        with pytest.raises(InvalidArgumentError, match="must be an integer"):
            UniformSamplingReservoir(capacity=capacity)

    def test_invalid_argument_is_value_error(self):
        """InvalidArgumentError can be caught as ValueError."""
        with pytest.raises(ValueError):
            UniformSamplingReservoir(capacity=0)

    def test_rejects_bad_fraction(self):
        """Configured fractions must be in (0, 1)."""
        with pytest.raises(InvalidArgumentError):
            UniformSamplingReservoir(capacity=10, fractions=(0.5, 1.0))

    def test_uses_injected_rng(self):
        """An explicit generator is used instead of a seeded one."""
        r1 = UniformSamplingReservoir(capacity=5, rng=random.Random(11))
        r2 = UniformSamplingReservoir(capacity=5, rng=random.Random(11))
        for i in range(200):
            r1.add(i)
            r2.add(i)

        assert r1.sample() == r2.sample()


class TestReservoirFromValues:
    """Tests for bulk initialization."""

    def test_rejects_none(self):
        """values may not be None."""
        with pytest.raises(InvalidArgumentError, match="may not be None"):
            UniformSamplingReservoir.from_values(None, 0, 10)

    def test_rejects_count_below_length(self):
        """count must be >= number of values."""
        with pytest.raises(InvalidArgumentError, match="at least the number of values"):
            UniformSamplingReservoir.from_values([1.0, 2.0, 3.0], 2, 10)

    def test_rejects_non_integer_count(self):
        """count must be an int when given."""
        with pytest.raises(InvalidArgumentError, match="must be an integer"):
            UniformSamplingReservoir.from_values([1.0, 2.0], 2.5, 10)

    def test_rejects_zero_capacity(self):
        """capacity must be positive."""
        with pytest.raises(InvalidArgumentError, match="must be positive"):
            UniformSamplingReservoir.from_values([1.0], 1, 0)

    def test_count_defaults_to_length(self):
        """Without a count, the values are the whole stream."""
        r = UniformSamplingReservoir.from_values([3.0, 1.0, 2.0], capacity=10)

        assert r.count == 3
        assert r.sample() == [1.0, 2.0, 3.0]

    def test_keeps_explicit_count(self):
        """An explicit count larger than the values is kept."""
        r = UniformSamplingReservoir.from_values([1.0, 2.0], 1000, 10)

        assert r.count == 1000
        assert r.sample_size == 2

    def test_empty_values(self):
        """An empty list gives an empty reservoir with the given count."""
        r = UniformSamplingReservoir.from_values([], 5, 10)

        assert r.sample_size == 0
        assert r.count == 5

    @pytest.mark.parametrize("capacity", [1, 2, 7, 50])
    @pytest.mark.parametrize("offset", [0, 1, "double", "double+1"])
    def test_branch_boundaries(self, capacity, offset):
        """m = c, c+1, 2c and 2c+1 all give c distinct, sorted values."""
        if offset == "double":
            m = 2 * capacity
        elif offset == "double+1":
            m = 2 * capacity + 1
        else:
            m = capacity + offset
        values = [float(i) for i in range(m)]

        r = UniformSamplingReservoir.from_values(values, m, capacity, seed=capacity)
        sample = r.sample()

        assert len(sample) == capacity
        assert _is_sorted(sample)
        assert len(set(sample)) == capacity  # no index picked twice
        assert set(sample) <= set(values)

    @pytest.mark.parametrize("m", [0, 3, 10, 15, 20, 21, 500])
    def test_size_is_min_of_capacity_and_length(self, m):
        """Stored size is min(capacity, m)."""
        r = UniformSamplingReservoir.from_values(
            [float(i) for i in range(m)][::-1], m, 10, seed=1
        )

        assert r.sample_size == min(10, m)
        assert _is_sorted(r.sample())

    @pytest.mark.parametrize("m", [15, 40])
    def test_bulk_load_uniform(self, m):
        """Each input value is kept with probability capacity/m."""
        capacity = 10
        trials = 4000
        counts: Counter[float] = Counter()
        values = [float(i) for i in range(m)]

        for trial in range(trials):
            r = UniformSamplingReservoir.from_values(values, m, capacity, seed=trial)
            counts.update(r.sample())

        expected = trials * capacity / m
        for value in values:
            assert expected * 0.85 < counts[value] < expected * 1.15, (
                f"value {value}: expected ~{expected}, got {counts[value]}"
            )

    def test_load_failure_leaves_state(self):
        """A rejected reload changes nothing."""
        r = UniformSamplingReservoir.from_values([1.0, 2.0], capacity=5)

        with pytest.raises(InvalidArgumentError):
            r.load([1.0, 2.0, 3.0], count=1)

        assert r.sample() == [1.0, 2.0]
        assert r.count == 2


class TestReservoirAdd:
    """Tests for online insertion."""

    def test_add_fills_reservoir_sorted(self):
        """Adding below capacity stores every value, sorted."""
        r = UniformSamplingReservoir(capacity=5)
        for value in [5.0, 3.0, 4.0, 1.0, 2.0]:
            r.add(value)

        assert r.sample() == [1.0, 2.0, 3.0, 4.0, 5.0]
        assert r.is_full

    def test_add_beyond_capacity(self):
        """Adding beyond capacity keeps the sample size and counts every item."""
        r = UniformSamplingReservoir(capacity=5, seed=3)
        for i in range(100):
            r.add(i)

        assert r.sample_size == 5
        assert r.count == 100

    def test_sorted_after_every_add(self):
        """The sample is sorted after each individual add."""
        rng = random.Random(99)
        r = UniformSamplingReservoir(capacity=20, seed=5)
        for _ in range(2000):
            r.add(rng.gauss(0, 10))
            sample = r.sample()
            assert _is_sorted(sample)
            assert len(sample) == min(20, r.count)

    def test_stored_values_come_from_stream(self):
        """Only observed values are ever stored."""
        r = UniformSamplingReservoir(capacity=10, seed=8)
        stream = [float(i) * 1.5 for i in range(300)]
        for value in stream:
            r.add(value)

        assert set(r.sample()) <= set(stream)

    def test_add_with_count(self):
        """count > 1 adds independent occurrences."""
        r = UniformSamplingReservoir(capacity=10)
        r.add(42.0, count=5)

        assert r.count == 5
        assert r.sample() == [42.0] * 5

    def test_add_zero_count_no_effect(self):
        """count=0 is a no-op."""
        r = UniformSamplingReservoir(capacity=10)
        r.add(42.0, count=0)

        assert r.count == 0
        assert r.sample_size == 0

    def test_rejects_negative_count(self):
        """Rejects negative count."""
        r = UniformSamplingReservoir(capacity=10)
        with pytest.raises(InvalidArgumentError, match="non-negative"):
            r.add(42.0, count=-1)

    def test_rejects_non_integer_count(self):
        """A fractional count is rejected before anything is added."""
        r = UniformSamplingReservoir(capacity=10)
        with pytest.raises(InvalidArgumentError, match="must be an integer"):
            r.add(42.0, count=1.5)
        assert r.count == 0

    def test_rejects_nan(self):
        """NaN has no sorted position and is rejected."""
        r = UniformSamplingReservoir(capacity=10)
        with pytest.raises(InvalidArgumentError, match="NaN"):
            r.add(math.nan)
        assert r.count == 0

    def test_accepts_ints(self):
        """Integers are stored as floats."""
        r = UniformSamplingReservoir(capacity=3)
        r.add(2)

        assert r.sample() == [2.0]
        assert isinstance(r[0], float)

    def test_capacity_one(self):
        """A capacity-1 reservoir keeps exactly one value."""
        r = UniformSamplingReservoir(capacity=1, seed=2)
        for i in range(50):
            r.add(i)

        assert r.sample_size == 1
        assert r.quartiles() == (r[0], r[0], r[0])

    def test_continues_after_partial_restore(self):
        """A reservoir loaded below capacity fills up before evicting."""
        r = UniformSamplingReservoir.from_values([1.0, 2.0], 100, 4, seed=1)
        r.add(3.0)
        r.add(0.5)

        assert r.sample() == [0.5, 1.0, 2.0, 3.0]
        assert r.count == 102


class TestReservoirUniformity:
    """Tests for the uniform inclusion property."""

    def test_small_stream_keeps_everything(self):
        """With count <= capacity every value is stored."""
        r = UniformSamplingReservoir(capacity=10)
        for i in range(5):
            r.add(i)

        assert set(r.sample()) == {0.0, 1.0, 2.0, 3.0, 4.0}

    def test_uniform_sampling_large_stream(self):
        """Each value is stored with probability close to capacity/N.

        Values that filled the reservoir survive with (capacity-1)/(N-1),
        later ones with capacity/(N-1); both are within the band.
        """
        counts: Counter[float] = Counter()
        n_trials = 5000
        stream_size = 100
        capacity = 10

        for trial in range(n_trials):
            r = UniformSamplingReservoir(capacity=capacity, seed=trial)
            for i in range(stream_size):
                r.add(i)
            counts.update(r.sample())

        expected = n_trials * capacity / stream_size
        for i in range(stream_size):
            observed = counts[float(i)]
            assert expected * 0.75 < observed < expected * 1.25, (
                f"Item {i}: expected ~{expected}, got {observed}"
            )

    def test_eviction_position_is_unbiased_by_value(self):
        """Small, middle and large early values survive equally often.

        Evicting by array position is only fair because position does not
        depend on which values were selected. Fill the reservoir with a value
        that always sorts first, one that sorts in the middle and one that
        always sorts last, and check that none is evicted more often.
        """
        n_trials = 8000
        capacity = 4
        low_kept = mid_kept = high_kept = 0

        for trial in range(n_trials):
            r = UniformSamplingReservoir(capacity=capacity, seed=trial)
            r.add(-1000.0)
            r.add(19.5)
            r.add(1000.0)
            for i in range(37):
                r.add(float(i))
            sample = r.sample()
            low_kept += -1000.0 in sample
            mid_kept += 19.5 in sample
            high_kept += 1000.0 in sample

        assert abs(low_kept - mid_kept) < 0.25 * mid_kept
        assert abs(high_kept - mid_kept) < 0.25 * mid_kept

    def test_deterministic_with_seed(self):
        """Same seed produces same sample."""
        r1 = UniformSamplingReservoir(capacity=10, seed=42)
        r2 = UniformSamplingReservoir(capacity=10, seed=42)
        for i in range(100):
            r1.add(i)
            r2.add(i)

        assert r1.sample() == r2.sample()
        assert r1 == r2


class TestReservoirQuantiles:
    """Tests for quantile queries."""

    def test_empty_quartiles_are_nan(self):
        """Empty reservoir gives three NaNs."""
        r = UniformSamplingReservoir(capacity=10)

        q = r.quartiles()
        assert len(q) == 3
        assert all(math.isnan(v) for v in q)

    def test_single_value_quartiles(self):
        """Single value {5.0} is every quartile."""
        r = UniformSamplingReservoir(capacity=10)
        r.add(5.0)

        assert r.quartiles() == (5.0, 5.0, 5.0)

    def test_infinite_values_give_infinite_quartiles(self):
        """Runs of equal infinities interpolate to that infinity, not NaN."""
        r = UniformSamplingReservoir(capacity=10)
        for value in [1.0, math.inf, math.inf, math.inf]:
            r.add(value)

        assert r.quartiles() == (math.inf, math.inf, math.inf)

    def test_negative_infinity_quartiles(self):
        """A sample led by -inf reports -inf where it dominates."""
        r = UniformSamplingReservoir.from_values([-math.inf, -math.inf, 0.0, 1.0], capacity=10)

        q1, median, q3 = r.quartiles()
        assert q1 == -math.inf
        assert median == -math.inf
        assert q3 == 0.75

    def test_known_quartiles(self):
        """{1, 2, 3, 4} gives 1.25, 2.5, 3.75."""
        r = UniformSamplingReservoir(capacity=4)
        for value in [3.0, 1.0, 4.0, 2.0]:
            r.add(value)

        assert r.quartiles() == (1.25, 2.5, 3.75)

    def test_quantile_and_percentile(self):
        """quantile(q) and percentile(100q) agree."""
        r = UniformSamplingReservoir(capacity=100)
        for i in range(1, 100):
            r.add(i)

        assert r.quantile(0.5) == 50.0
        assert r.percentile(50) == r.quantile(0.5)

    def test_percentile_rejects_out_of_range(self):
        """percentile must be in (0, 100)."""
        r = UniformSamplingReservoir(capacity=10)
        with pytest.raises(InvalidArgumentError):
            r.percentile(100)

    def test_configured_fractions(self):
        """quartiles() reports the configured fractions."""
        r = UniformSamplingReservoir(capacity=10, fractions=(0.5,))
        for value in [1.0, 2.0, 3.0]:
            r.add(value)

        assert r.fractions == (0.5,)
        assert r.quartiles() == (2.0,)
        assert r.quantiles([0.25, 0.75]) == (1.0, 3.0)

    def test_quartiles_estimate_large_stream(self):
        """Past capacity, quartiles approximate the stream's."""
        rng = random.Random(1)
        r = UniformSamplingReservoir(capacity=999, seed=2)
        for _ in range(50_000):
            r.add(rng.uniform(0, 100))

        q1, median, q3 = r.quartiles()
        assert q1 == pytest.approx(25, abs=5)
        assert median == pytest.approx(50, abs=5)
        assert q3 == pytest.approx(75, abs=5)

    def test_cdf(self):
        """cdf is the fraction of stored values <= x."""
        r = UniformSamplingReservoir.from_values([1.0, 2.0, 3.0, 4.0], capacity=4)

        assert r.cdf(0.0) == 0.0
        assert r.cdf(2.0) == 0.5
        assert r.cdf(10.0) == 1.0
        assert UniformSamplingReservoir(capacity=3).cdf(1.0) == 0.0

    def test_min_max(self):
        """min and max are the sample extremes, None when empty."""
        r = UniformSamplingReservoir(capacity=10)
        assert r.min is None
        assert r.max is None

        for value in [3.0, -1.0, 8.0]:
            r.add(value)
        assert r.min == -1.0
        assert r.max == 8.0


class TestReservoirSummary:
    """Tests for the emission record."""

    def test_summary_fields(self):
        """summary() carries count, capacity, quartiles and samples."""
        r = UniformSamplingReservoir(capacity=4)
        for value in [1.0, 2.0, 3.0, 4.0]:
            r.add(value)

        summary = r.summary()

        assert summary.count == 4
        assert summary.capacity == 4
        assert summary.quartiles == (1.25, 2.5, 3.75)
        assert summary.samples == (1.0, 2.0, 3.0, 4.0)

    def test_summary_to_dict(self):
        """to_dict() gives plain lists."""
        r = UniformSamplingReservoir(capacity=4)
        r.add(1.0)

        data = r.summary().to_dict()

        assert data["count"] == 1
        assert data["capacity"] == 4
        assert data["quartiles"] == [1.0, 1.0, 1.0]
        assert data["samples"] == [1.0]

    def test_summary_does_not_mutate(self):
        """Reading a summary leaves the reservoir unchanged."""
        r = UniformSamplingReservoir(capacity=4, seed=1)
        for i in range(10):
            r.add(i)
        before = r.sample()

        r.summary()
        r.quartiles()

        assert r.sample() == before
        assert r.count == 10


class TestReservoirViews:
    """Tests for sample access."""

    def test_sample_returns_copy(self):
        """sample() returns a copy, not internal storage."""
        r = UniformSamplingReservoir(capacity=10)
        for i in range(5):
            r.add(i)

        sample = r.sample()
        sample.append(999.0)

        assert 999.0 not in r.sample()

    def test_iteration_and_indexing(self):
        """Can iterate and index the sorted sample."""
        r = UniformSamplingReservoir(capacity=10)
        for value in [3.0, 1.0, 2.0]:
            r.add(value)

        assert list(r) == [1.0, 2.0, 3.0]
        assert r[0] == 1.0
        assert len(r) == 3

    def test_equality(self):
        """Equal capacity, count and samples compare equal."""
        a = UniformSamplingReservoir.from_values([1.0, 2.0], capacity=5)
        b = UniformSamplingReservoir.from_values([2.0, 1.0], capacity=5)
        c = UniformSamplingReservoir.from_values([1.0, 2.0], 3, capacity=5)

        assert a == b
        assert a != c
        assert a != "not a reservoir"

    def test_unhashable(self):
        """Reservoirs are mutable and not hashable."""
        with pytest.raises(TypeError):
            hash(UniformSamplingReservoir(capacity=3))

    def test_memory_bytes_positive(self):
        """memory_bytes gives a positive estimate."""
        assert UniformSamplingReservoir(capacity=100).memory_bytes > 100 * 8

    def test_repr(self):
        """repr shows capacity, sampled and seen."""
        r = UniformSamplingReservoir(capacity=10)
        r.add(1.0)

        assert repr(r) == "UniformSamplingReservoir(capacity=10, sampled=1, seen=1)"


class TestReservoirMerge:
    """Tests for merging reservoirs."""

    def test_merge_small_streams_keeps_all(self):
        """Merging two partially filled reservoirs keeps every value."""
        a = UniformSamplingReservoir.from_values([1.0, 3.0], capacity=10)
        b = UniformSamplingReservoir.from_values([2.0, 4.0], capacity=10)

        a.merge(b)

        assert a.sample() == [1.0, 2.0, 3.0, 4.0]
        assert a.count == 4

    def test_merge_caps_sample(self):
        """Merged sample never exceeds capacity and stays sorted."""
        a = UniformSamplingReservoir(capacity=10, seed=1)
        b = UniformSamplingReservoir(capacity=10, seed=2)
        for i in range(50):
            a.add(i)
        for i in range(50, 100):
            b.add(i)

        a.merge(b)

        assert a.count == 100
        assert a.sample_size == 10
        assert _is_sorted(a.sample())

    def test_merge_proportional_to_counts(self):
        """Each side contributes in proportion to its logical count."""
        n_trials = 2000
        from_a = 0
        for trial in range(n_trials):
            a = UniformSamplingReservoir.from_values(
                [float(i) for i in range(10)], 300, 10, seed=trial
            )
            b = UniformSamplingReservoir.from_values(
                [float(i) for i in range(100, 110)], 100, 10
            )
            a.merge(b)
            from_a += sum(1 for v in a.sample() if v < 100)

        expected = n_trials * 10 * 0.75
        assert expected * 0.95 < from_a < expected * 1.05

    def test_merge_with_sparse_side(self):
        """A side holding fewer values than its count share never overdraws."""
        a = UniformSamplingReservoir.from_values([1.0, 2.0], 1000, 10, seed=4)
        b = UniformSamplingReservoir.from_values([float(i) for i in range(10, 20)], capacity=10)

        a.merge(b)

        assert a.sample_size == 10
        assert a.count == 1010

    def test_merge_rejects_different_capacity(self):
        """Cannot merge reservoirs with different capacity."""
        a = UniformSamplingReservoir(capacity=10)
        b = UniformSamplingReservoir(capacity=20)

        with pytest.raises(InvalidArgumentError, match="capacity differs"):
            a.merge(b)

    def test_merge_rejects_wrong_type(self):
        """Cannot merge with a non-reservoir."""
        r = UniformSamplingReservoir(capacity=10)

        with pytest.raises(TypeError, match="Can only merge"):
            r.merge("not a reservoir")  # type: ignore


class TestReservoirClear:
    """Tests for clearing."""

    def test_clear_resets(self):
        """clear() empties the sample and count."""
        r = UniformSamplingReservoir(capacity=5, seed=1)
        for i in range(20):
            r.add(i)

        r.clear()

        assert r.count == 0
        assert r.sample() == []
        assert all(math.isnan(v) for v in r.quartiles())
