"""
SQLAlchemy ORM models for the telemetry database.

Defines the append-only ``telemetry`` table (one column per snapshot leaf,
named ``{subsystem}_{field}``) and the mutable ``users`` table holding the
dashboard verification flag.

CHANGELOG:
- 2025-02-26: Add mitsuba_error_frame column
- 2025-02-21: Add User model
- 2025-02-12: Initial creation

TODO:
- None
"""

import datetime

from sqlalchemy import BigInteger, Boolean, DateTime, Double, Integer, Text, func, text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    """SQLAlchemy declarative base for all telemetry ORM models."""

    pass


class TelemetryRecord(Base):
    """One telemetry packet as received from the car.

    Rows are only ever inserted. ``created_at`` is assigned by the
    database at insert time and is the series timestamp for every query.
    All reading columns are nullable: a NULL means the packet did not
    carry the field.
    """

    __tablename__ = "telemetry"

    id: Mapped[int] = mapped_column(BigInteger, primary_key=True, autoincrement=True)
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        index=True,
    )

    gps_rx_time: Mapped[float | None] = mapped_column(Double, nullable=True)
    gps_longitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    gps_latitude: Mapped[float | None] = mapped_column(Double, nullable=True)
    gps_speed: Mapped[float | None] = mapped_column(Double, nullable=True)
    gps_num_sats: Mapped[float | None] = mapped_column(Double, nullable=True)

    battery_sup_bat_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    battery_main_bat_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    battery_main_bat_c: Mapped[float | None] = mapped_column(Double, nullable=True)
    battery_low_cell_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    battery_high_cell_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    battery_high_cell_t: Mapped[float | None] = mapped_column(Double, nullable=True)
    battery_cell_idx_low_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    battery_cell_idx_high_t: Mapped[float | None] = mapped_column(Double, nullable=True)

    mppt1_input_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt1_input_c: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt1_output_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt1_output_c: Mapped[float | None] = mapped_column(Double, nullable=True)

    mppt2_input_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt2_input_c: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt2_output_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt2_output_c: Mapped[float | None] = mapped_column(Double, nullable=True)

    mppt3_input_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt3_input_c: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt3_output_v: Mapped[float | None] = mapped_column(Double, nullable=True)
    mppt3_output_c: Mapped[float | None] = mapped_column(Double, nullable=True)

    mitsuba_voltage: Mapped[float | None] = mapped_column(Double, nullable=True)
    mitsuba_current: Mapped[float | None] = mapped_column(Double, nullable=True)
    mitsuba_error_frame: Mapped[float | None] = mapped_column(Double, nullable=True)

    def __repr__(self) -> str:
        """Return string representation of the TelemetryRecord."""
        return f"TelemetryRecord(id={self.id!r}, created_at={self.created_at!r})"


class User(Base):
    """Dashboard user; only verified users may view telemetry."""

    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str | None] = mapped_column(Text, nullable=True)
    email: Mapped[str] = mapped_column(Text, nullable=False, unique=True)
    is_verified: Mapped[bool] = mapped_column(
        Boolean, nullable=False, server_default=text("false"),
    )
    created_at: Mapped[datetime.datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=func.now(),
    )

    def __repr__(self) -> str:
        """Return string representation of the User."""
        return f"User(id={self.id!r}, email={self.email!r}, is_verified={self.is_verified!r})"
