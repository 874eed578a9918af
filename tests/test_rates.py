"""Tests for framecheck.rates module."""

import pytest

from framecheck.rates import (
    RateReconciliation,
    greatest_common_divisor,
    least_common_multiple,
)


class TestGreatestCommonDivisor:
    """Tests for greatest_common_divisor function."""

    @pytest.mark.fast
    def test_known_values(self):
        assert greatest_common_divisor(12, 18) == 6
        assert greatest_common_divisor(7, 7) == 7
        assert greatest_common_divisor(1, 60) == 1
        assert greatest_common_divisor(60, 1) == 1

    @pytest.mark.fast
    @pytest.mark.parametrize("first,second", [(0, 10), (10, 0), (-5, 10)])
    def test_non_positive_rates_rejected(self, first, second):
        with pytest.raises(ValueError, match="must be positive"):
            greatest_common_divisor(first, second)


class TestLeastCommonMultiple:
    """Tests for least_common_multiple function."""

    @pytest.mark.fast
    def test_known_values(self):
        assert least_common_multiple(10, 20) == 20
        assert least_common_multiple(24, 30) == 120
        assert least_common_multiple(3, 2) == 6
        assert least_common_multiple(25, 25) == 25

    @pytest.mark.fast
    def test_divisible_by_both_rates(self):
        """The common rate is a multiple of every pair of small frame rates."""
        for actual in range(1, 31):
            for golden in range(1, 31):
                common = least_common_multiple(actual, golden)
                assert common % actual == 0
                assert common % golden == 0


class TestRateReconciliation:
    """Tests for RateReconciliation dataclass."""

    @pytest.mark.fast
    def test_double_rate_actual(self):
        """Actual at 20 fps against a 10 fps golden."""
        rates = RateReconciliation.from_rates(actual_fps=20, golden_fps=10)

        assert rates.common_frame_rate == 20
        assert rates.actual_deltas_per_frame == 1
        assert rates.expected_deltas_per_frame == 2

    @pytest.mark.fast
    def test_equal_rates(self):
        rates = RateReconciliation.from_rates(actual_fps=30, golden_fps=30)

        assert rates == RateReconciliation(30, 1, 1)

    @pytest.mark.fast
    def test_ticks_cover_same_duration(self):
        """One second of either animation spans the same number of ticks."""
        for actual in (1, 7, 12, 24, 25, 30, 60):
            for golden in (1, 5, 10, 24, 30, 50):
                rates = RateReconciliation.from_rates(actual, golden)
                assert rates.actual_deltas_per_frame * actual == rates.common_frame_rate
                assert rates.expected_deltas_per_frame * golden == rates.common_frame_rate

    @pytest.mark.fast
    def test_is_immutable(self):
        rates = RateReconciliation.from_rates(10, 10)
        with pytest.raises(AttributeError):
            rates.common_frame_rate = 5  # type: ignore[misc]
