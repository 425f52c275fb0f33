"""
Tests for power, energy and status calculations.

CHANGELOG:
- 2025-03-01: Cell temperature status and speed conversion
- 2025-02-19: Solar power from MPPT output side
- 2025-02-13: Initial creation

TODO:
- None
"""

import pytest

from solar_telemetry.telemetry import calculations as calc
from solar_telemetry.telemetry.catalog import DerivedField
from solar_telemetry.telemetry.discharge import consumed_ah
from solar_telemetry.telemetry.snapshot import (
    BatteryData,
    GpsData,
    MitsubaData,
    MpptData,
    TelemetrySnapshot,
    to_snapshot,
)


@pytest.fixture()
def snapshot(full_row: dict) -> TelemetrySnapshot[float]:
    """Complete snapshot: 450 W solar output, 500 W motor, 48.6 V pack reading."""
    return to_snapshot(full_row)


def _mppts(**overrides) -> dict:
    channels = {
        "mppt1": MpptData(input_v=60.0, input_c=3.0, output_v=50.0, output_c=4.0),
        "mppt2": MpptData(input_v=62.0, input_c=2.0, output_v=50.0, output_c=3.0),
        "mppt3": MpptData(input_v=64.0, input_c=1.0, output_v=50.0, output_c=2.0),
    }
    channels.update(overrides)
    return channels


class TestSolarPower:
    """Solar power uses the MPPT output side."""

    def test_total_solar_power(self, snapshot) -> None:
        """50 V * (4 + 3 + 2) A = 450 W."""
        assert calc.total_solar_power(snapshot) == pytest.approx(450.0)

    def test_missing_channel_is_unavailable(self) -> None:
        """Any absent channel makes the total unavailable."""
        snapshot = TelemetrySnapshot(**_mppts(mppt3=None))
        assert calc.total_solar_power(snapshot) is None

    def test_missing_field_is_unavailable(self) -> None:
        """A channel without output current makes the total unavailable."""
        snapshot = TelemetrySnapshot(**_mppts(mppt2=MpptData(output_v=50.0)))
        assert calc.total_solar_power(snapshot) is None

    def test_mppt_output_voltage_sum(self, snapshot) -> None:
        """Sum of the three output voltages."""
        assert calc.mppt_output_voltage_sum(snapshot) == pytest.approx(150.0)

    def test_input_side_aggregates(self) -> None:
        """Average input voltage and total input current."""
        snapshot = TelemetrySnapshot(**_mppts())
        assert calc.average_solar_input_voltage(snapshot) == pytest.approx(62.0)
        assert calc.total_solar_input_current(snapshot) == pytest.approx(6.0)

    def test_input_side_unavailable(self) -> None:
        """Input aggregates need every channel."""
        snapshot = TelemetrySnapshot(**_mppts(mppt1=None))
        assert calc.average_solar_input_voltage(snapshot) is None
        assert calc.total_solar_input_current(snapshot) is None


class TestMotorAndNetPower:
    """Motor power defaults to 0; net power identity holds."""

    def test_motor_power(self, snapshot) -> None:
        """50 V * 10 A."""
        assert calc.motor_power(snapshot) == pytest.approx(500.0)

    def test_motor_power_absent_subsystem(self) -> None:
        """No mitsuba data means no draw."""
        assert calc.motor_power(TelemetrySnapshot()) == 0.0

    def test_motor_power_absent_field(self) -> None:
        """Missing current means no draw."""
        snapshot = TelemetrySnapshot(mitsuba=MitsubaData(voltage=50.0))
        assert calc.motor_power(snapshot) == 0.0

    @pytest.mark.parametrize(
        "snap",
        [
            TelemetrySnapshot(),
            TelemetrySnapshot(mitsuba=MitsubaData(voltage=50.0, current=20.0)),
            TelemetrySnapshot(**_mppts()),
            TelemetrySnapshot(**_mppts(), mitsuba=MitsubaData(voltage=48.0, current=5.0)),
            TelemetrySnapshot(**_mppts(mppt2=None), mitsuba=MitsubaData(voltage=48.0, current=5.0)),
        ],
    )
    def test_net_power_identity(self, snap) -> None:
        """net = (solar or 0) - motor."""
        solar = calc.total_solar_power(snap)
        expected = (solar if solar is not None else 0.0) - calc.motor_power(snap)
        assert calc.net_power(snap) == pytest.approx(expected)

    def test_net_power_value(self, snapshot) -> None:
        """450 W in, 500 W out."""
        assert calc.net_power(snapshot) == pytest.approx(-50.0)

    def test_battery_power(self, snapshot) -> None:
        """48.6 V * 12.5 A."""
        assert calc.battery_power(snapshot) == pytest.approx(607.5)
        assert calc.battery_power(TelemetrySnapshot()) is None


class TestMotorPowerConsumption:
    """Zero operands count as not sampled."""

    def test_value(self, snapshot) -> None:
        """450 W solar minus 607.5 W battery."""
        assert calc.motor_power_consumption(snapshot) == pytest.approx(-157.5)

    def test_zero_output_current_unavailable(self, full_row) -> None:
        """A single zero operand makes the metric unavailable."""
        full_row["mppt2_output_c"] = 0.0
        assert calc.motor_power_consumption(to_snapshot(full_row)) is None

    def test_zero_battery_current_unavailable(self, full_row) -> None:
        """Zero battery current is treated the same way."""
        full_row["battery_main_bat_c"] = 0.0
        assert calc.motor_power_consumption(to_snapshot(full_row)) is None

    def test_missing_battery_unavailable(self) -> None:
        """Missing battery data makes the metric unavailable."""
        assert calc.motor_power_consumption(TelemetrySnapshot(**_mppts())) is None


class TestBatteryEnergy:
    """Pack reading -> average cell voltage -> remaining Ah / SOC."""

    def test_average_cell_voltage(self) -> None:
        """29/13 scaling then divided by 29 groups."""
        assert calc.average_cell_voltage(48.6) == pytest.approx(48.6 / 13)

    def test_energy_for_48_6_volts(self) -> None:
        """48.6 V reading gives 4.8 Ah minus the curve lookup."""
        snapshot = TelemetrySnapshot(battery=BatteryData(main_bat_v=48.6))
        pack_voltage = 29 / 13 * 48.6
        assert pack_voltage == pytest.approx(108.42, abs=0.05)
        expected = 4.8 - consumed_ah(pack_voltage / 29)
        energy = calc.battery_energy_ah(snapshot)
        assert energy == pytest.approx(expected)
        assert 0.0 < energy < 4.8

    def test_energy_floor_at_zero(self) -> None:
        """A deeply discharged reading never goes negative."""
        snapshot = TelemetrySnapshot(battery=BatteryData(main_bat_v=1.0))
        assert calc.battery_energy_ah(snapshot) >= 0.0

    def test_energy_unavailable_without_voltage(self) -> None:
        """No main battery voltage, no energy."""
        assert calc.battery_energy_ah(TelemetrySnapshot()) is None
        snapshot = TelemetrySnapshot(battery=BatteryData(main_bat_c=5.0))
        assert calc.battery_energy_ah(snapshot) is None

    @pytest.mark.parametrize("voltage", [0.0, 10.0, 36.0, 46.0, 48.6, 52.0, 54.6, 60.0, 100.0])
    def test_soc_clamped(self, voltage: float) -> None:
        """SOC stays within [0, 100]."""
        snapshot = TelemetrySnapshot(battery=BatteryData(main_bat_v=voltage))
        soc = calc.battery_soc(snapshot)
        assert 0.0 <= soc <= 100.0

    def test_soc_full_pack(self) -> None:
        """A full pack reads 100 %."""
        snapshot = TelemetrySnapshot(battery=BatteryData(main_bat_v=4.2 * 13))
        assert calc.battery_soc(snapshot) == pytest.approx(100.0)

    def test_soc_unavailable(self) -> None:
        """SOC is unavailable without battery voltage."""
        assert calc.battery_soc(TelemetrySnapshot()) is None


class TestStatuses:
    """Fixed-threshold classifiers."""

    @pytest.mark.parametrize(
        ("speed", "expected"),
        [(30.0, "good"), (60.0, "good"), (65.0, "warning"), (80.0, "warning"), (81.0, "critical")],
    )
    def test_speed(self, speed: float, expected: str) -> None:
        """Speed in mph."""
        assert calc.speed_status(speed) == expected

    @pytest.mark.parametrize(
        ("voltage", "expected"),
        [(43.9, "critical"), (44.0, "warning"), (45.9, "warning"), (46.0, "good"), (50.0, "good")],
    )
    def test_main_battery(self, voltage: float, expected: str) -> None:
        """Main battery bands use strict less-than."""
        assert calc.battery_status(voltage, "main") == expected

    @pytest.mark.parametrize(
        ("voltage", "expected"),
        [(10.5, "critical"), (11.0, "warning"), (11.5, "warning"), (12.4, "good")],
    )
    def test_supplemental_battery(self, voltage: float, expected: str) -> None:
        """Supplemental battery bands."""
        assert calc.battery_status(voltage, "supplemental") == expected

    @pytest.mark.parametrize(
        ("voltage", "expected"),
        [(2.9, "critical"), (3.1, "warning"), (3.7, "good"), (4.15, "warning"), (4.3, "critical")],
    )
    def test_cell(self, voltage: float, expected: str) -> None:
        """Two-sided cell voltage window."""
        assert calc.cell_status(voltage) == expected

    @pytest.mark.parametrize(
        ("temperature", "expected"), [(25.0, "good"), (40.0, "warning"), (50.0, "critical")],
    )
    def test_cell_temperature(self, temperature: float, expected: str) -> None:
        """Cell temperature in degrees C."""
        assert calc.cell_temperature_status(temperature) == expected

    @pytest.mark.parametrize(
        ("power", "expected"),
        [(100.0, "good"), (0.0, "warning"), (-499.0, "warning"), (-500.0, "critical")],
    )
    def test_net_power(self, power: float, expected: str) -> None:
        """Surplus is good, a large deficit is critical."""
        assert calc.net_power_status(power) == expected

    @pytest.mark.parametrize(
        ("current", "expected"), [(10.0, "good"), (45.0, "warning"), (55.0, "critical")],
    )
    def test_motor(self, current: float, expected: str) -> None:
        """Motor current bands."""
        assert calc.motor_status(current) == expected

    def test_snapshot_statuses(self, snapshot) -> None:
        """Every dashboard status is classified from a complete snapshot."""
        statuses = calc.snapshot_statuses(snapshot)
        assert statuses == {
            "speed": "good",
            "main_battery": "good",
            "supplemental_battery": "good",
            "cell_voltage": "good",
            "cell_temperature": "good",
            "net_power": "warning",
            "motor": "good",
        }

    def test_cell_voltage_reports_worse_cell(self) -> None:
        """A low cell outranks a healthy high cell."""
        snapshot = TelemetrySnapshot(battery=BatteryData(low_cell_v=2.9, high_cell_v=3.9))
        assert calc.snapshot_statuses(snapshot)["cell_voltage"] == "critical"

    def test_missing_inputs_are_none(self) -> None:
        """Statuses without inputs are None; net power always classifies."""
        statuses = calc.snapshot_statuses(TelemetrySnapshot())
        assert statuses["speed"] is None
        assert statuses["main_battery"] is None
        assert statuses["cell_voltage"] is None
        assert statuses["motor"] is None
        assert statuses["net_power"] == "warning"


class TestDerivedDispatch:
    """Every derived field has a calculation."""

    def test_every_field_dispatched(self) -> None:
        """The dispatch table covers the enumeration."""
        assert set(calc.DERIVED_CALCULATIONS) == set(DerivedField)

    def test_compute_derived(self, snapshot) -> None:
        """compute_derived routes to the matching function."""
        assert calc.compute_derived(DerivedField.MOTOR_POWER, snapshot) == pytest.approx(500.0)

    def test_snapshot_metrics(self, snapshot) -> None:
        """Dashboard metrics include derived fields and extra scalars."""
        metrics = calc.snapshot_metrics(snapshot)
        assert metrics["total_solar_power"] == pytest.approx(450.0)
        assert metrics["net_power"] == pytest.approx(-50.0)
        assert metrics["battery_power"] == pytest.approx(607.5)
        assert metrics["speed_kph"] == pytest.approx(42.5 * 1.60934)
        assert set(metrics) >= {f.name.lower() for f in DerivedField}

    def test_mph_to_kph(self) -> None:
        """One mile is 1.60934 km."""
        assert calc.mph_to_kph(100.0) == pytest.approx(160.934)
