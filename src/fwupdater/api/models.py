"""Pydantic models for HTTP API requests and responses."""

from typing import Optional
from pydantic import BaseModel, Field

from fwupdater.models.status import StageEnum


class UpdateRequest(BaseModel):
    """POST /api/v1.0/update payload.

    Starts a firmware update run against a connected device.

    Example:
        {
            "device_id": "usb:0001:0004"
        }
    """

    device_id: str = Field(
        ...,
        min_length=1,
        description="Device identifier understood by the device bridge",
        examples=["usb:0001:0004", "ble:AA:BB:CC:DD:EE:FF"],
    )


class ProgressData(BaseModel):
    """Progress data nested in response."""

    stage: StageEnum = Field(..., description="Current lifecycle stage")
    message: str = Field(..., description="Human-readable status description")
    error: Optional[str] = Field(
        None, description="Error message if stage == failed"
    )
    device_id: Optional[str] = Field(None, description="Device being updated")


class ProgressResponse(BaseModel):
    """GET /api/v1.0/progress response.

    Returns current status with application-level status code.
    """

    code: int = Field(..., description="Application-level status code (200/500)")
    msg: str = Field(..., description="Status message or error description")
    data: ProgressData = Field(..., description="Progress data")
    stage: Optional[StageEnum] = Field(
        None, description="Current stage (for failed responses at root level)"
    )


class SuccessResponse(BaseModel):
    """Success response for command endpoints.

    Used by POST /update and POST /cancel when the command is accepted.
    """

    code: int = Field(default=200, description="Application-level status code (200)")
    msg: str = Field(default="success", description="Success message")
    data: Optional[dict] = Field(None, description="Optional response data")


class ErrorResponse(BaseModel):
    """Error response for command endpoints.

    HTTP status code is always 200, real status in 'code' field.
    """

    code: int = Field(..., description="Application-level error code (404/409)")
    msg: str = Field(..., description="Error message")
    stage: Optional[StageEnum] = Field(
        None, description="Current stage (for operation state errors)"
    )


class ReportPayload(BaseModel):
    """Payload for POST to the host service /api/v1.0/firmware/report.

    Sent once per run when it reaches a terminal stage.
    """

    device_id: str = Field(..., description="Device that was updated")
    stage: StageEnum = Field(..., description="Terminal stage of the run")
    message: str = Field(..., description="Human-readable status description")
    error: Optional[str] = Field(
        None, description="Error message if stage == failed"
    )
