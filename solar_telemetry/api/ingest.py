"""
Ingest API endpoint for solar car telemetry packets.

Accepts one packet via POST /v1/telemetry from the telemetry gateway,
authenticated by the ``auth-key`` header. The key is checked before the
body is read, so an unauthenticated request is a 401 whatever it carries.
The body is then validated by the Pydantic payload schema (422 on
malformed JSON, shape or type errors), normalized, and appended to the
telemetry table. The stored row then replaces the cached latest snapshot.

CHANGELOG:
- 2025-03-04: Check the auth key before reading the body; write the
  stored row through to the latest-snapshot cache
- 2025-02-16: Invalidate latest-snapshot cache after insert
- 2025-02-14: Initial creation

TODO:
- None
"""

from datetime import datetime

from fastapi import APIRouter, Depends, Request
from fastapi.exceptions import RequestValidationError
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from solar_telemetry.api.deps import DbSession, require_ingest_key
from solar_telemetry.api.realtime import publish_latest
from solar_telemetry.services.ingestion import TelemetryPayload, ingest_packet
from solar_telemetry.services.latest import LatestTelemetry

router = APIRouter(prefix="/v1", tags=["ingest"])


class IngestResponse(BaseModel):
    """Schema for the ingest response.

    Attributes:
        success: Always True for a stored packet.
        message: Human-readable outcome.
        id: Surrogate id of the new row.
        created_at: Server-assigned row timestamp.
    """

    success: bool
    message: str
    id: int
    created_at: datetime


async def _read_payload(request: Request) -> TelemetryPayload:
    # Not a body parameter: FastAPI would decode it before require_ingest_key runs.
    try:
        return TelemetryPayload.model_validate_json(await request.body())
    except PydanticValidationError as exc:
        raise RequestValidationError(exc.errors(include_url=False)) from exc


@router.post(
    "/telemetry",
    response_model=IngestResponse,
    status_code=201,
    dependencies=[Depends(require_ingest_key)],
    openapi_extra={
        "requestBody": {
            "required": True,
            "content": {"application/json": {"schema": TelemetryPayload.model_json_schema()}},
        },
    },
)
async def ingest(request: Request, db: DbSession) -> IngestResponse:
    """Store one telemetry packet.

    Args:
        request: Incoming request; its body is a telemetry packet with
            battery voltages in mV.
        db: Async database session.

    Returns:
        IngestResponse: Identity of the stored row.

    Raises:
        HTTPException: 401 if the auth-key header is missing or wrong.
        RequestValidationError: If the body is not a valid packet (422).
        StorageError: If the insert fails (mapped to 503).
    """
    payload = await _read_payload(request)
    stored = await ingest_packet(db, payload)

    await publish_latest(LatestTelemetry(created_at=stored.created_at, snapshot=stored.snapshot))

    return IngestResponse(
        success=True,
        message="Telemetry data stored successfully",
        id=stored.id,
        created_at=stored.created_at,
    )
