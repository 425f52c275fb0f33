"""
Tests for the voltage -> consumed capacity interpolator.

CHANGELOG:
- 2025-02-18: Exactness check for every calibration row
- 2025-02-13: Initial creation

TODO:
- None
"""

import pytest

from solar_telemetry.telemetry.discharge import (
    DISCHARGE_CURVE,
    DischargeCurve,
    VoltageCapacityPoint,
    consumed_ah,
    default_curve,
)


@pytest.fixture()
def small_curve() -> DischargeCurve:
    """Three-row curve in file order (descending voltage)."""
    return DischargeCurve(
        (
            VoltageCapacityPoint(4.0, 0.0),
            VoltageCapacityPoint(3.5, 2.0),
            VoltageCapacityPoint(3.0, 4.0),
        )
    )


class TestCalibrationTable:
    """The packaged table is well formed."""

    def test_table_loaded(self) -> None:
        """The table has rows."""
        assert len(DISCHARGE_CURVE) > 100

    def test_voltage_strictly_decreasing(self) -> None:
        """Voltage decreases row over row."""
        voltages = [p.voltage for p in DISCHARGE_CURVE]
        assert all(a > b for a, b in zip(voltages, voltages[1:]))

    def test_amp_hours_strictly_increasing(self) -> None:
        """Consumed Ah increases row over row."""
        amp_hours = [p.amp_hours_consumed for p in DISCHARGE_CURVE]
        assert all(a < b for a, b in zip(amp_hours, amp_hours[1:]))

    def test_full_cell_consumed_nothing(self) -> None:
        """The first row is a full cell."""
        assert DISCHARGE_CURVE[0].amp_hours_consumed == 0.0
        assert default_curve.max_voltage == DISCHARGE_CURVE[0].voltage
        assert default_curve.min_voltage == DISCHARGE_CURVE[-1].voltage


class TestExactness:
    """A calibration voltage returns its row's Ah exactly."""

    def test_every_row_exact(self) -> None:
        """consumed_ah(v_i) == ah_i for every row."""
        for point in DISCHARGE_CURVE:
            assert consumed_ah(point.voltage) == point.amp_hours_consumed

    def test_small_curve_middle_row(self, small_curve: DischargeCurve) -> None:
        """The interior row is returned unchanged."""
        assert small_curve.consumed_ah(3.5) == 2.0


class TestSaturation:
    """Voltages outside the table clamp to the nearest end."""

    def test_above_max_voltage_is_full(self, small_curve: DischargeCurve) -> None:
        """Above the highest voltage nothing is consumed."""
        assert small_curve.consumed_ah(4.5) == 0.0

    def test_below_min_voltage_is_empty(self, small_curve: DischargeCurve) -> None:
        """Below the lowest voltage everything is consumed."""
        assert small_curve.consumed_ah(2.0) == 4.0

    def test_packaged_curve_saturates(self) -> None:
        """The packaged curve clamps at both ends."""
        assert consumed_ah(5.0) == DISCHARGE_CURVE[0].amp_hours_consumed
        assert consumed_ah(0.0) == DISCHARGE_CURVE[-1].amp_hours_consumed


class TestInterpolation:
    """Linear interpolation between bracketing rows."""

    def test_midpoint(self, small_curve: DischargeCurve) -> None:
        """Halfway between two rows gives the mean Ah."""
        assert small_curve.consumed_ah(3.75) == pytest.approx(1.0)

    def test_quarter_point(self, small_curve: DischargeCurve) -> None:
        """Interpolation is linear within a segment."""
        assert small_curve.consumed_ah(3.125) == pytest.approx(3.5)

    def test_monotonic_over_packaged_curve(self) -> None:
        """Lower voltage never means less consumed capacity."""
        previous = consumed_ah(4.3)
        voltage = 4.3
        while voltage > 2.8:
            voltage -= 0.0037
            current = consumed_ah(voltage)
            assert current >= previous
            previous = current

    def test_empty_curve_rejected(self) -> None:
        """A curve needs at least one row."""
        with pytest.raises(ValueError):
            DischargeCurve(())
