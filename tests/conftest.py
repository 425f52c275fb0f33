"""
Shared test fixtures for the telemetry API tests.

Provides environment defaults for Settings, a loaded sample packet, a
mocked AsyncSession and TestClients wired through dependency overrides.

CHANGELOG:
- 2025-02-21: Add admin key to the environment
- 2025-02-14: Add mocked session and client fixtures
- 2025-02-12: Initial creation

TODO:
- None
"""

import json
from datetime import UTC, datetime
from pathlib import Path
from unittest.mock import AsyncMock, MagicMock

import pytest
from fastapi.testclient import TestClient

from solar_telemetry.db.session import get_async_session
from solar_telemetry.main import app

FIXTURES_DIR = Path(__file__).parent / "fixtures"

INGEST_KEY = "ingest-secret"
ADMIN_KEY = "admin-secret"


@pytest.fixture(autouse=True)
def _env_vars(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Set required env vars and keep a developer's .env out of the tests."""
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("DATABASE_URL", "postgresql+asyncpg://u:p@localhost/db")
    monkeypatch.setenv("REDIS_URL", "redis://localhost:6379/0")
    monkeypatch.setenv("INGEST_AUTH_KEY", INGEST_KEY)
    monkeypatch.setenv("ADMIN_AUTH_KEY", ADMIN_KEY)
    monkeypatch.delenv("CACHE_TTL_S", raising=False)
    monkeypatch.delenv("LOG_LEVEL", raising=False)


@pytest.fixture()
def sample_packets() -> dict:
    """Load sample_packet.json.

    Returns:
        dict: Parsed fixture with a valid and an incomplete packet.
    """
    with open(FIXTURES_DIR / "sample_packet.json") as f:
        return json.load(f)


@pytest.fixture()
def full_row() -> dict:
    """A complete telemetry row as stored (battery voltages in volts)."""
    return {
        "id": 1,
        "created_at": datetime(2025, 3, 1, 12, 0, tzinfo=UTC),
        "gps_rx_time": 171512.0,
        "gps_longitude": -97.7431,
        "gps_latitude": 30.2672,
        "gps_speed": 42.5,
        "gps_num_sats": 9.0,
        "battery_sup_bat_v": 12.4,
        "battery_main_bat_v": 48.6,
        "battery_main_bat_c": 12.5,
        "battery_low_cell_v": 3.65,
        "battery_high_cell_v": 3.72,
        "battery_high_cell_t": 31.5,
        "battery_cell_idx_low_v": 7.0,
        "battery_cell_idx_high_t": 3.0,
        "mppt1_input_v": 62.1,
        "mppt1_input_c": 3.2,
        "mppt1_output_v": 50.0,
        "mppt1_output_c": 4.0,
        "mppt2_input_v": 61.7,
        "mppt2_input_c": 3.1,
        "mppt2_output_v": 50.0,
        "mppt2_output_c": 3.0,
        "mppt3_input_v": 60.9,
        "mppt3_input_c": 2.9,
        "mppt3_output_v": 50.0,
        "mppt3_output_c": 2.0,
        "mitsuba_voltage": 50.0,
        "mitsuba_current": 10.0,
        "mitsuba_error_frame": 0.0,
    }


@pytest.fixture()
def make_row():
    """Factory wrapping a dict so it looks like a SQLAlchemy Row (``row._mapping``)."""
    def _make(mapping: dict) -> MagicMock:
        row = MagicMock()
        row._mapping = mapping
        return row

    return _make


@pytest.fixture()
def mock_db_session() -> AsyncMock:
    """Create a mock AsyncSession.

    Returns:
        AsyncMock: Session whose ``execute`` returns a MagicMock result.
    """
    session = AsyncMock()
    session.execute.return_value = MagicMock()
    return session


@pytest.fixture()
def client(mock_db_session: AsyncMock) -> TestClient:
    """TestClient with the DB session dependency replaced by the mock.

    Args:
        mock_db_session: Mock async database session.

    Returns:
        TestClient: Client for the FastAPI app (lifespan not started).
    """
    async def override_get_session():
        yield mock_db_session

    app.dependency_overrides[get_async_session] = override_get_session

    yield TestClient(app)

    app.dependency_overrides.clear()
