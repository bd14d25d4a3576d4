"""Data models for FINS gateway."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from fins_gateway.protocol.constants import END_CODE_MESSAGES


class FinsResponse(BaseModel):
    """Decoded FINS reply, common to every command."""

    remote_host: str = Field(..., description="Address of the replying node")
    sid: int = Field(..., ge=0, le=255, description="Service identifier echoed by the node")
    command: str = Field(..., description="Echoed command code as hex (e.g. '0101')")
    response_code: str = Field(..., description="End code as hex (e.g. '0000')")

    @property
    def ok(self) -> bool:
        """Whether the node reported normal completion."""
        return self.response_code == "0000"

    @property
    def end_code_message(self) -> str:
        """Description of the main response code."""
        main_code = int(self.response_code[:2], 16) & 0x7F
        return END_CODE_MESSAGES.get(main_code, f"Unknown end code {self.response_code}")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "remote_host": "192.168.250.1",
                "sid": 12,
                "command": "0102",
                "response_code": "0000",
            }
        }
    )


class StatusResponse(FinsResponse):
    """Reply to CONTROLLER STATUS READ."""

    status: str | None = Field(None, description="Run status name (RUN/STOP/CPU_STANDBY)")
    mode: str | None = Field(None, description="Operating mode name (DEBUG/MONITOR/RUN)")
    fatal_error_data: list[str] = Field(default_factory=list, description="Active fatal error flags")
    non_fatal_error_data: list[str] = Field(default_factory=list, description="Active non-fatal error flags")


class ReadResponse(FinsResponse):
    """Reply to MEMORY AREA READ."""

    values: list[int] = Field(default_factory=list, description="Signed 16-bit words read")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "remote_host": "192.168.250.1",
                "sid": 3,
                "command": "0101",
                "response_code": "0000",
                "values": [5, 10],
            }
        }
    )


# ============================================================================
# API Request/Response Models
# ============================================================================


class WriteRequest(BaseModel):
    """Request model for POST /api/memory/{address}."""

    values: list[int] = Field(..., min_length=1, description="Words to write")

    model_config = ConfigDict(json_schema_extra={"example": {"values": [1, 2, 3]}})


class FillRequest(BaseModel):
    """Request model for POST /api/memory/{address}/fill."""

    value: int = Field(..., ge=-0x8000, le=0xFFFF, description="Word written to every address")
    count: int = Field(..., ge=1, le=0xFFFF, description="Number of words to fill")

    model_config = ConfigDict(json_schema_extra={"example": {"value": 0, "count": 10}})


class ErrorResponse(BaseModel):
    """Response model for errors."""

    success: bool = Field(False, description="Operation success status")
    error: str = Field(..., description="Error message")
    detail: str | None = Field(None, description="Additional error details")
    timestamp: datetime = Field(default_factory=datetime.now, description="Error timestamp")


class HealthResponse(BaseModel):
    """Response model for health check."""

    status: str = Field(..., description="Health status (healthy/degraded/unhealthy)")
    controller_connected: bool = Field(..., description="Whether the UDP endpoint is open")
    pending_replies: int = Field(..., ge=0, description="Replies received but not yet claimed")
    last_reply: datetime | None = Field(None, description="Time the last datagram was received")
    transport: dict[str, int] = Field(default_factory=dict, description="Datagram counters of the UDP endpoint")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "status": "healthy",
                "controller_connected": True,
                "pending_replies": 0,
                "last_reply": "2026-01-13T10:30:00",
                "transport": {"datagrams_read": 12, "bytes_read": 240, "datagrams_written": 12, "errors": 0},
            }
        }
    )
