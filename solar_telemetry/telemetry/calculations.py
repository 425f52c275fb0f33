"""
Power, energy and status calculations over a telemetry snapshot.

All functions are pure and never raise on incomplete snapshots. Each one
documents what it returns when a subsystem or a field is missing; for most
metrics that is ``None`` ("unavailable"), never a synthesized zero.

Battery pack geometry: the BMS reports ``battery.main_bat_v`` as a
13-cell-equivalent reading. The real pack has 29 series groups of
parallel cells with 4.8 Ah usable capacity per group.

CHANGELOG:
- 2025-03-01: Add cell temperature status and speed conversion
- 2025-02-19: Solar power uses MPPT output side
- 2025-02-13: Initial creation

TODO:
- None
"""

from collections.abc import Callable
from typing import Literal

from solar_telemetry.telemetry.catalog import DerivedField
from solar_telemetry.telemetry.discharge import consumed_ah
from solar_telemetry.telemetry.snapshot import MPPT_CHANNELS, TelemetrySnapshot, get_value

Status = Literal["good", "warning", "critical"]

TOTAL_CAPACITY_AH = 4.8
SERIES_GROUPS = 29
REPORTED_CELLS = 13
MPH_TO_KPH = 1.60934


# ---------------------------------------------------------------------------
# Power
# ---------------------------------------------------------------------------


def mppt_power(voltage: float | None, current: float | None) -> float | None:
    """Return ``voltage * current`` or ``None`` if either is missing."""
    if voltage is None or current is None:
        return None
    return voltage * current


def total_solar_power(snapshot: TelemetrySnapshot[float]) -> float | None:
    """Sum of ``output_v * output_c`` over mppt1..3.

    Returns ``None`` if any MPPT channel is absent or lacks an output
    voltage or current.
    """
    total = 0.0
    for channel in MPPT_CHANNELS:
        power = mppt_power(
            get_value(snapshot, channel, "output_v"),
            get_value(snapshot, channel, "output_c"),
        )
        if power is None:
            return None
        total += power
    return total


def mppt_output_voltage_sum(snapshot: TelemetrySnapshot[float]) -> float | None:
    """Sum of ``output_v`` over mppt1..3; ``None`` if any is missing."""
    voltages = [get_value(snapshot, channel, "output_v") for channel in MPPT_CHANNELS]
    if any(v is None for v in voltages):
        return None
    return sum(voltages)


def average_solar_input_voltage(snapshot: TelemetrySnapshot[float]) -> float | None:
    """Mean MPPT ``input_v``; ``None`` if any channel lacks it."""
    voltages = [get_value(snapshot, channel, "input_v") for channel in MPPT_CHANNELS]
    if any(v is None for v in voltages):
        return None
    return sum(voltages) / len(voltages)


def total_solar_input_current(snapshot: TelemetrySnapshot[float]) -> float | None:
    """Sum of MPPT ``input_c``; ``None`` if any channel lacks it."""
    currents = [get_value(snapshot, channel, "input_c") for channel in MPPT_CHANNELS]
    if any(c is None for c in currents):
        return None
    return sum(currents)


def motor_power(snapshot: TelemetrySnapshot[float]) -> float:
    """Motor controller ``voltage * current``.

    Returns 0 when the mitsuba subsystem or either field is absent: a
    silent motor controller is treated as drawing nothing.
    """
    power = mppt_power(
        get_value(snapshot, "mitsuba", "voltage"),
        get_value(snapshot, "mitsuba", "current"),
    )
    return 0.0 if power is None else power


def battery_power(snapshot: TelemetrySnapshot[float]) -> float | None:
    """``main_bat_v * main_bat_c``; ``None`` if battery data is missing."""
    return mppt_power(
        get_value(snapshot, "battery", "main_bat_v"),
        get_value(snapshot, "battery", "main_bat_c"),
    )


def net_power(snapshot: TelemetrySnapshot[float]) -> float:
    """Solar input minus motor draw. Unavailable solar power counts as 0."""
    solar = total_solar_power(snapshot)
    return (solar if solar is not None else 0.0) - motor_power(snapshot)


def motor_power_consumption(snapshot: TelemetrySnapshot[float]) -> float | None:
    """Power not accounted for by the battery: solar output minus battery power.

    A 0 reading on any of the eight operands (mppt1..3 output voltage and
    current, battery voltage and current) means the channel has not been
    sampled yet, so the result is ``None`` just as when the operand is
    missing.
    """
    outputs = [
        (get_value(snapshot, channel, "output_v"), get_value(snapshot, channel, "output_c"))
        for channel in MPPT_CHANNELS
    ]
    bat_v = get_value(snapshot, "battery", "main_bat_v")
    bat_c = get_value(snapshot, "battery", "main_bat_c")
    operands = [value for pair in outputs for value in pair] + [bat_v, bat_c]
    if any(not value for value in operands):
        return None

    solar = sum(voltage * current for voltage, current in outputs)
    return solar - bat_v * bat_c


# ---------------------------------------------------------------------------
# Energy
# ---------------------------------------------------------------------------


def average_cell_voltage(main_bat_v: float) -> float:
    """Convert the 13-cell-equivalent reading into an average cell voltage."""
    pack_voltage = main_bat_v * SERIES_GROUPS / REPORTED_CELLS
    return pack_voltage / SERIES_GROUPS


def battery_energy_ah(snapshot: TelemetrySnapshot[float]) -> float | None:
    """Remaining capacity in Ah, floored at 0.

    Returns ``None`` when the battery subsystem or ``main_bat_v`` is absent.
    """
    main_bat_v = get_value(snapshot, "battery", "main_bat_v")
    if main_bat_v is None:
        return None
    used = consumed_ah(average_cell_voltage(main_bat_v))
    return max(0.0, TOTAL_CAPACITY_AH - used)


def battery_soc(snapshot: TelemetrySnapshot[float]) -> float | None:
    """State of charge in percent, clamped to [0, 100].

    Returns ``None`` under the same conditions as :func:`battery_energy_ah`.
    """
    energy = battery_energy_ah(snapshot)
    if energy is None:
        return None
    return min(100.0, max(0.0, 100.0 * energy / TOTAL_CAPACITY_AH))


def mph_to_kph(speed_mph: float) -> float:
    return speed_mph * MPH_TO_KPH


# ---------------------------------------------------------------------------
# Status classification
#
# Bands are one-sided; a value sitting exactly on a threshold belongs to
# the band it would reach with a strict comparison (e.g. main battery at
# 44 V is warning, 43.99 V is critical).
# ---------------------------------------------------------------------------

_SEVERITY: dict[str, int] = {"good": 0, "warning": 1, "critical": 2}


def speed_status(speed_mph: float) -> Status:
    if speed_mph > 80:
        return "critical"
    if speed_mph > 60:
        return "warning"
    return "good"


def battery_status(voltage: float, kind: Literal["main", "supplemental"]) -> Status:
    """Classify a main or supplemental battery voltage."""
    if kind == "main":
        if voltage < 44:
            return "critical"
        if voltage < 46:
            return "warning"
        return "good"
    if voltage < 11:
        return "critical"
    if voltage < 11.8:
        return "warning"
    return "good"


def cell_status(voltage: float) -> Status:
    """Classify a single cell voltage (Li-ion safe window 3.0-4.2 V)."""
    if voltage < 3.0 or voltage > 4.2:
        return "critical"
    if voltage < 3.2 or voltage > 4.1:
        return "warning"
    return "good"


def cell_temperature_status(temperature_c: float) -> Status:
    if temperature_c > 45:
        return "critical"
    if temperature_c > 35:
        return "warning"
    return "good"


def net_power_status(power: float) -> Status:
    """Positive net power is good; a deficit beyond 500 W is critical."""
    if power > 0:
        return "good"
    if power > -500:
        return "warning"
    return "critical"


def motor_status(current: float) -> Status:
    """Classify motor current draw."""
    if current > 50:
        return "critical"
    if current > 40:
        return "warning"
    return "good"


def snapshot_statuses(snapshot: TelemetrySnapshot[float]) -> dict[str, Status | None]:
    """Classify every status the dashboard shows; ``None`` where input is missing."""
    speed = get_value(snapshot, "gps", "speed")
    main_v = get_value(snapshot, "battery", "main_bat_v")
    sup_v = get_value(snapshot, "battery", "sup_bat_v")
    low_cell = get_value(snapshot, "battery", "low_cell_v")
    high_cell = get_value(snapshot, "battery", "high_cell_v")
    cell_temp = get_value(snapshot, "battery", "high_cell_t")
    motor_current = get_value(snapshot, "mitsuba", "current")

    cell: Status | None = None
    cell_readings = [v for v in (low_cell, high_cell) if v is not None]
    if cell_readings:
        # Report the worse of the lowest and highest cell.
        cell = max((cell_status(v) for v in cell_readings), key=_SEVERITY.__getitem__)

    return {
        "speed": None if speed is None else speed_status(speed),
        "main_battery": None if main_v is None else battery_status(main_v, "main"),
        "supplemental_battery": (
            None if sup_v is None else battery_status(sup_v, "supplemental")
        ),
        "cell_voltage": cell,
        "cell_temperature": (
            None if cell_temp is None else cell_temperature_status(cell_temp)
        ),
        "net_power": net_power_status(net_power(snapshot)),
        "motor": None if motor_current is None else motor_status(motor_current),
    }


# ---------------------------------------------------------------------------
# Derived-field dispatch
# ---------------------------------------------------------------------------

DERIVED_CALCULATIONS: dict[
    DerivedField, Callable[[TelemetrySnapshot[float]], float | None]
] = {
    DerivedField.MPPT_SUM: mppt_output_voltage_sum,
    DerivedField.TOTAL_SOLAR_POWER: total_solar_power,
    DerivedField.NET_POWER: net_power,
    DerivedField.MOTOR_POWER: motor_power,
    DerivedField.BATTERY_ENERGY_AH: battery_energy_ah,
    DerivedField.BATTERY_SOC: battery_soc,
    DerivedField.MOTOR_POWER_CONSUMPTION: motor_power_consumption,
}


def compute_derived(
    field: DerivedField, snapshot: TelemetrySnapshot[float],
) -> float | None:
    """Compute one derived metric for *snapshot*."""
    return DERIVED_CALCULATIONS[field](snapshot)


def snapshot_metrics(snapshot: TelemetrySnapshot[float]) -> dict[str, float | None]:
    """All summary scalars shown on the live dashboard cards."""
    metrics = {
        field.name.lower(): compute_derived(field, snapshot) for field in DerivedField
    }
    metrics["battery_power"] = battery_power(snapshot)
    metrics["average_solar_input_voltage"] = average_solar_input_voltage(snapshot)
    metrics["total_solar_input_current"] = total_solar_input_current(snapshot)
    speed = get_value(snapshot, "gps", "speed")
    metrics["speed_kph"] = None if speed is None else mph_to_kph(speed)
    return metrics
