"""Frame rate reconciliation between golden and actual animations."""

from dataclasses import dataclass


def greatest_common_divisor(first: int, second: int) -> int:
    """Subtractive Euclid. Both rates must be positive."""
    if first <= 0 or second <= 0:
        raise ValueError(f"Frame rates must be positive, got {first} and {second}")

    while first != second:
        if first > second:
            first -= second
        else:
            second -= first
    return first


def least_common_multiple(first: int, second: int) -> int:
    return (first * second) // greatest_common_divisor(first, second)


@dataclass(frozen=True)
class RateReconciliation:
    """Common timeline for two frame rates.

    Each actual frame is repeated ``actual_deltas_per_frame`` times and each golden
    frame ``expected_deltas_per_frame`` times on a timeline running at
    ``common_frame_rate``.
    """

    common_frame_rate: int
    actual_deltas_per_frame: int
    expected_deltas_per_frame: int

    @classmethod
    def from_rates(cls, actual_fps: int, golden_fps: int) -> "RateReconciliation":
        common = least_common_multiple(actual_fps, golden_fps)
        return cls(
            common_frame_rate=common,
            actual_deltas_per_frame=common // actual_fps,
            expected_deltas_per_frame=common // golden_fps,
        )
