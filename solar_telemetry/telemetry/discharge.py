"""
Voltage -> consumed capacity lookup over the cell discharge curve.

The calibration table (``data/discharge_curve.csv``) maps average cell
voltage to amp-hours consumed from a full cell. Rows are ordered by
descending voltage, i.e. ascending consumed Ah. The table is loaded once
at import and never changes afterwards.

CHANGELOG:
- 2025-02-18: Switch lookup to bisect so calibration voltages map exactly
- 2025-02-13: Initial creation

TODO:
- None
"""

import csv
from bisect import bisect_left
from dataclasses import dataclass
from importlib import resources

CURVE_RESOURCE = "discharge_curve.csv"


@dataclass(frozen=True)
class VoltageCapacityPoint:
    """One calibration row."""

    voltage: float
    amp_hours_consumed: float


def load_curve() -> tuple[VoltageCapacityPoint, ...]:
    """Read the packaged calibration table in file order (descending voltage).

    Returns:
        tuple: Immutable sequence of calibration points.
    """
    source = resources.files("solar_telemetry.data").joinpath(CURVE_RESOURCE)
    with source.open("r", encoding="utf-8", newline="") as f:
        return tuple(
            VoltageCapacityPoint(
                voltage=float(row["voltage"]),
                amp_hours_consumed=float(row["amp_hours_consumed"]),
            )
            for row in csv.DictReader(f)
        )


DISCHARGE_CURVE: tuple[VoltageCapacityPoint, ...] = load_curve()


class DischargeCurve:
    """Piecewise-linear interpolator over a monotonic calibration table.

    The table must be strictly decreasing in voltage. That ordering is
    checked by the test suite, not at runtime.

    Args:
        points: Calibration rows ordered by descending voltage.
    """

    def __init__(self, points: tuple[VoltageCapacityPoint, ...]) -> None:
        if not points:
            raise ValueError("discharge curve needs at least one point")
        # Ascending voltage so bisect can be used directly.
        ordered = points[::-1]
        self._voltages = [p.voltage for p in ordered]
        self._amp_hours = [p.amp_hours_consumed for p in ordered]

    @property
    def min_voltage(self) -> float:
        return self._voltages[0]

    @property
    def max_voltage(self) -> float:
        return self._voltages[-1]

    def consumed_ah(self, voltage: float) -> float:
        """Return amp-hours consumed at the given average cell voltage.

        Voltages outside the table saturate at the nearest end: anything at
        or above the highest calibration voltage reads as that row's Ah
        (full cell), anything at or below the lowest reads as the
        lowest-voltage row's Ah (empty cell). A voltage equal to a
        calibration voltage returns that row's Ah exactly.

        Args:
            voltage: Average single-cell voltage.

        Returns:
            float: Consumed amp-hours.
        """
        if voltage <= self._voltages[0]:
            return self._amp_hours[0]
        if voltage >= self._voltages[-1]:
            return self._amp_hours[-1]

        hi = bisect_left(self._voltages, voltage)
        if self._voltages[hi] == voltage:
            return self._amp_hours[hi]

        lo = hi - 1
        v_lo, v_hi = self._voltages[lo], self._voltages[hi]
        ah_lo, ah_hi = self._amp_hours[lo], self._amp_hours[hi]
        ratio = (voltage - v_lo) / (v_hi - v_lo)
        return ah_lo + ratio * (ah_hi - ah_lo)


default_curve = DischargeCurve(DISCHARGE_CURVE)


def consumed_ah(voltage: float) -> float:
    """Interpolate consumed Ah on the packaged discharge curve."""
    return default_curve.consumed_ah(voltage)
