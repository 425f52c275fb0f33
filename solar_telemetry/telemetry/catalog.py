"""
Field catalog: the selectable telemetry fields and derived metrics.

Every raw field is addressed by a dotted identifier ``subsystem.field``
(e.g. ``battery.main_bat_v``) that resolves to a storage column and a
human label. Derived metrics form a closed enumeration (``DerivedField``)
under the ``derived.`` prefix; their computations live in
``calculations.DERIVED_CALCULATIONS``.

CHANGELOG:
- 2025-02-27: Per-field zero-sentinel flag
- 2025-02-26: Add GPS and Mitsuba groups
- 2025-02-12: Initial creation

TODO:
- None
"""

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from solar_telemetry.errors import UnknownFieldError
from solar_telemetry.telemetry.snapshot import column_name, subsystem_fields


@dataclass(frozen=True)
class FieldSpec:
    """A raw telemetry field.

    Attributes:
        identifier: Dotted identifier, ``subsystem.field``.
        subsystem: Snapshot subsystem name.
        field: Leaf field name within the subsystem.
        label: Human-readable label.
        storage_column: Column in the telemetry table.
        zero_is_sentinel: Whether a stored 0 means "not sampled" for this
            field rather than a genuine reading.
    """

    identifier: str
    subsystem: str
    field: str
    label: str
    storage_column: str
    zero_is_sentinel: bool = True


class DerivedField(str, Enum):
    """Closed set of metrics computed from several raw fields."""

    MPPT_SUM = "derived.mppt_sum"
    TOTAL_SOLAR_POWER = "derived.total_solar_power"
    NET_POWER = "derived.net_power"
    MOTOR_POWER = "derived.motor_power"
    BATTERY_ENERGY_AH = "derived.battery_energy_ah"
    BATTERY_SOC = "derived.battery_soc"
    MOTOR_POWER_CONSUMPTION = "derived.motor_power_consumption"


DERIVED_LABELS: dict[DerivedField, str] = {
    DerivedField.MPPT_SUM: "Total MPPT Voltage Output",
    DerivedField.TOTAL_SOLAR_POWER: "Total Solar Power",
    DerivedField.NET_POWER: "Net Power",
    DerivedField.MOTOR_POWER: "Motor Power",
    DerivedField.BATTERY_ENERGY_AH: "Battery Remaining Energy (Ah)",
    DerivedField.BATTERY_SOC: "Battery SOC (%)",
    DerivedField.MOTOR_POWER_CONSUMPTION: "Motor Power Consumption",
}

DERIVED_GROUP_LABEL = "Derived"


def _mppt_labels(channel: int) -> dict[str, str]:
    return {
        "input_v": f"Voltage Input (MPPT {channel})",
        "input_c": f"Current Input (MPPT {channel})",
        "output_v": f"Voltage Output (MPPT {channel})",
        "output_c": f"Current Output (MPPT {channel})",
    }


# subsystem -> (group label, {field: label})
FIELD_GROUPS: dict[str, tuple[str, dict[str, str]]] = {
    "gps": (
        "GPS",
        {
            "rx_time": "RX Time",
            "longitude": "Longitude",
            "latitude": "Latitude",
            "speed": "Speed",
            "num_sats": "Number of Satellites",
        },
    ),
    "battery": (
        "Battery",
        {
            "sup_bat_v": "Supplemental Battery Voltage",
            "main_bat_v": "Main Battery Voltage",
            "main_bat_c": "Main Battery Current",
            "low_cell_v": "Low Cell Voltage",
            "high_cell_v": "High Cell Voltage",
            "high_cell_t": "High Cell Temp",
            "cell_idx_low_v": "Low Voltage Cell Index",
            "cell_idx_high_t": "High Temp Cell Index",
        },
    ),
    "mppt1": ("MPPT 1", _mppt_labels(1)),
    "mppt2": ("MPPT 2", _mppt_labels(2)),
    "mppt3": ("MPPT 3", _mppt_labels(3)),
    "mitsuba": (
        "Mitsuba",
        {
            "voltage": "Motor Voltage",
            "current": "Motor Current",
            "error_frame": "Motor Error Frame",
        },
    ),
}

# Fields where a stored 0 is a legitimate reading.
ZERO_IS_VALID: frozenset[str] = frozenset(
    {
        "gps.rx_time",
        "gps.longitude",
        "gps.latitude",
        "gps.speed",
        "gps.num_sats",
        "battery.main_bat_c",
        "battery.cell_idx_low_v",
        "battery.cell_idx_high_t",
        "mitsuba.current",
        "mitsuba.error_frame",
    }
)


class FieldCatalog:
    """Registry of raw fields and derived metrics.

    Group order follows ``FIELD_GROUPS`` followed by the derived group;
    within a group, fields keep their declaration order.
    """

    def __init__(self) -> None:
        self._fields: dict[str, FieldSpec] = {}
        for subsystem, (_, labels) in FIELD_GROUPS.items():
            known = set(subsystem_fields(subsystem))
            for field, label in labels.items():
                if field not in known:
                    raise ValueError(f"{subsystem}.{field} is not a snapshot field")
                identifier = f"{subsystem}.{field}"
                self._fields[identifier] = FieldSpec(
                    identifier=identifier,
                    subsystem=subsystem,
                    field=field,
                    label=label,
                    storage_column=column_name(subsystem, field),
                    zero_is_sentinel=identifier not in ZERO_IS_VALID,
                )

    @property
    def direct_fields(self) -> tuple[FieldSpec, ...]:
        return tuple(self._fields.values())

    def list_groups(self) -> list[dict]:
        """Return select groups for UI population.

        Returns:
            list: ``[{"label": str, "options": [{"identifier", "label"}]}]``
        """
        groups = []
        for subsystem, (group_label, _) in FIELD_GROUPS.items():
            groups.append(
                {
                    "label": group_label,
                    "options": [
                        {"identifier": field_spec.identifier, "label": field_spec.label}
                        for field_spec in self._fields.values()
                        if field_spec.subsystem == subsystem
                    ],
                }
            )
        groups.append(
            {
                "label": DERIVED_GROUP_LABEL,
                "options": [
                    {"identifier": derived.value, "label": DERIVED_LABELS[derived]}
                    for derived in DerivedField
                ],
            }
        )
        return groups

    def resolve_direct(self, identifier: str) -> FieldSpec | None:
        """Return the raw field for *identifier*, or ``None`` if not a raw field."""
        return self._fields.get(identifier)

    def is_derived(self, identifier: str) -> bool:
        try:
            DerivedField(identifier)
        except ValueError:
            return False
        return True

    def label(self, identifier: str) -> str:
        """Return the human label of a raw or derived identifier.

        Raises:
            UnknownFieldError: If the identifier is not in the catalog.
        """
        field_spec = self._fields.get(identifier)
        if field_spec is not None:
            return field_spec.label
        if self.is_derived(identifier):
            return DERIVED_LABELS[DerivedField(identifier)]
        raise UnknownFieldError([identifier])

    def partition(
        self, identifiers: Iterable[str],
    ) -> tuple[list[FieldSpec], list[DerivedField]]:
        """Split identifiers into raw fields and derived metrics.

        Duplicates are dropped, keeping first occurrence order.

        Args:
            identifiers: Requested field identifiers.

        Returns:
            Tuple of (raw field specs, derived fields).

        Raises:
            UnknownFieldError: Listing every identifier that is neither a
                raw field nor a derived metric.
        """
        direct: list[FieldSpec] = []
        derived: list[DerivedField] = []
        unknown: list[str] = []
        seen: set[str] = set()
        for identifier in identifiers:
            if identifier in seen:
                continue
            seen.add(identifier)
            field_spec = self._fields.get(identifier)
            if field_spec is not None:
                direct.append(field_spec)
            elif self.is_derived(identifier):
                derived.append(DerivedField(identifier))
            else:
                unknown.append(identifier)
        if unknown:
            raise UnknownFieldError(unknown)
        return direct, derived


catalog = FieldCatalog()
