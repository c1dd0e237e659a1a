"""API route handlers for firmware updater endpoints."""

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from fwupdater.api.models import (
    UpdateRequest,
    ProgressResponse,
    SuccessResponse,
    ErrorResponse,
)
from fwupdater.models.status import StageEnum
from fwupdater.services.runner import UpdateRunner
from fwupdater.services.state_manager import StateManager

router = APIRouter(prefix="/api/v1.0")


def _get_runner(request: Request) -> UpdateRunner:
    return request.app.state.runner


@router.get("/progress", response_model=ProgressResponse)
async def get_progress():
    """GET /api/v1.0/progress - Query current firmware update status.

    Response format (success):
        {
            "code": 200,
            "msg": "success",
            "data": {
                "stage": "installing",
                "message": "Running installBootloaderFirmware...",
                "error": null,
                "device_id": "usb:0001:0004"
            }
        }

    Response format (failed stage):
        {
            "code": 500,
            "msg": "Update failed: flash rejected",
            "data": {...},
            "stage": "failed"
        }
    """
    state_manager = StateManager()
    status = state_manager.get_status()

    if status.stage == StageEnum.FAILED:
        msg = f"Update failed: {status.error}" if status.error else "Update failed"
        return ProgressResponse(code=500, msg=msg, data=status, stage=status.stage)
    return ProgressResponse(code=200, msg="success", data=status)


@router.post("/update", response_model=SuccessResponse)
async def post_update(request: Request, body: UpdateRequest):
    """POST /api/v1.0/update - Start a firmware update run in the background.

    Returns:
        SuccessResponse if the run starts, code 409 if one is already active
    """
    runner = _get_runner(request)
    state_manager = StateManager()

    # A run reports through the shared StateManager until it reaches a terminal stage
    if runner.active is not None or state_manager.is_busy():
        current_status = state_manager.get_status()
        busy_device = (
            runner.active.device_id if runner.active is not None else current_status.device_id
        )
        return JSONResponse(
            status_code=200,
            content=ErrorResponse(
                code=409,
                msg=f"Update already in progress: {busy_device}",
                stage=current_status.stage,
            ).model_dump(mode="json"),
        )

    runner.start(body.device_id)

    return JSONResponse(
        status_code=200,
        content={"code": 200, "msg": "success", "data": {"device_id": body.device_id}},
    )


@router.post("/cancel", response_model=SuccessResponse)
async def post_cancel(request: Request):
    """POST /api/v1.0/cancel - Cancel the active firmware update run.

    The run stops at its next suspension point and reports no outcome.

    Returns:
        SuccessResponse if a run was cancelled, code 404 if none is active
    """
    runner = _get_runner(request)
    handle = runner.active

    if handle is None:
        return JSONResponse(
            status_code=200,
            content=ErrorResponse(code=404, msg="No update in progress").model_dump(
                mode="json"
            ),
        )

    handle.cancel()

    return JSONResponse(
        status_code=200,
        content={"code": 200, "msg": "success", "data": {"device_id": handle.device_id}},
    )
