"""Caller-facing entry point for firmware update runs."""

import asyncio
from typing import Callable, Optional
import logging

from fwupdater.models.outcome import LoopOutcome
from fwupdater.models.status import StageEnum
from fwupdater.services.cancellation import CancellationToken
from fwupdater.services.orchestrator import FirmwareUpdateOrchestrator, StageCallback
from fwupdater.services.reporter import ReportService
from fwupdater.services.state_manager import StateManager
from fwupdater.transport.base import DeviceTransport

OrchestratorFactory = Callable[[StageCallback], FirmwareUpdateOrchestrator]


class UpdateHandle:
    """Handle to a run started with UpdateRunner.start()."""

    def __init__(
        self,
        device_id: str,
        task: "asyncio.Task[Optional[LoopOutcome]]",
        token: CancellationToken,
    ):
        self.device_id = device_id
        self.task = task
        self.token = token

    def cancel(self) -> None:
        """Stop the run at its next suspension point. It produces no outcome."""
        self.token.cancel()

    def done(self) -> bool:
        return self.task.done()

    async def wait(self) -> Optional[LoopOutcome]:
        """Wait for the run to end.

        Returns:
            LoopOutcome, or None if the run was cancelled
        """
        return await self.task


class UpdateRunner:
    """Opens the device session and runs the update loop inside it.

    One run at a time per runner; the caller serializes access to a device.
    """

    def __init__(
        self,
        transport: DeviceTransport,
        orchestrator_factory: Optional[OrchestratorFactory] = None,
        state_manager: Optional[StateManager] = None,
        reporter: Optional[ReportService] = None,
    ):
        """Initialize update runner.

        Args:
            transport: Transport used to open device sessions
            orchestrator_factory: Builds an orchestrator given a stage callback
                (default orchestrator if None)
            state_manager: StateManager instance (uses singleton if None)
            reporter: ReportService for terminal outcomes (no reporting if None)
        """
        self.logger = logging.getLogger("fwupdater.runner")
        self.transport = transport
        self.orchestrator_factory = orchestrator_factory or (
            lambda on_stage: FirmwareUpdateOrchestrator(on_stage=on_stage)
        )
        self.state_manager = state_manager or StateManager()
        self.reporter = reporter
        self._handle: Optional[UpdateHandle] = None

    @property
    def active(self) -> Optional[UpdateHandle]:
        """Handle of the run in progress, if any."""
        if self._handle is not None and not self._handle.done():
            return self._handle
        return None

    async def run_firmware_update(
        self, device_id: str, token: Optional[CancellationToken] = None
    ) -> Optional[LoopOutcome]:
        """Update the firmware of one device.

        Args:
            device_id: Device to update
            token: Cancellation token held by the caller (new one if None)

        Returns:
            LoopOutcome.completed() or LoopOutcome.failed(error); None if the
            run was cancelled
        """
        token = token or CancellationToken()
        self.logger.info(f"Starting firmware update for device {device_id}")
        self.state_manager.update_status(
            stage=StageEnum.PROBING,
            message=f"Connecting to device {device_id}...",
            device_id=device_id,
        )

        def on_stage(stage: StageEnum, message: str) -> None:
            self.state_manager.update_status(stage=stage, message=message)

        orchestrator = self.orchestrator_factory(on_stage)
        session_open = False

        try:
            async with self.transport.session(device_id) as session:
                session_open = True
                outcome = await orchestrator.run(session, token)
        except asyncio.CancelledError:
            self.logger.warning(f"Update task for {device_id} was cancelled")
            self.state_manager.update_status(
                stage=StageEnum.CANCELLED, message="Update cancelled"
            )
            raise
        except Exception as e:
            reason = "UPDATE_ABORTED" if session_open else "SESSION_FAILED"
            self.logger.error(f"Update of {device_id} aborted ({reason}): {e}", exc_info=True)
            outcome = LoopOutcome.failed(f"{reason}: {e}")

        await self._finish(device_id, outcome)
        return outcome

    async def _finish(self, device_id: str, outcome: Optional[LoopOutcome]) -> None:
        if outcome is None:
            stage, message, error = StageEnum.CANCELLED, "Update cancelled", None
        elif outcome.is_completed:
            stage, message, error = StageEnum.COMPLETED, "Firmware update complete", None
        else:
            stage, message, error = StageEnum.FAILED, "Firmware update failed", outcome.error

        self.logger.info(f"Update of {device_id} finished: {stage.value}")
        self.state_manager.update_status(stage=stage, message=message, error=error)

        # Cancelled runs have no outcome to report
        if self.reporter is not None and outcome is not None:
            await self.reporter.report_outcome(
                device_id=device_id, stage=stage, message=message, error=error
            )

    def start(self, device_id: str) -> UpdateHandle:
        """Schedule a run on the current event loop.

        Raises:
            RuntimeError: If a run is already in progress
        """
        if self.active is not None:
            raise RuntimeError(
                f"Update already in progress for device {self._handle.device_id}"
            )

        token = CancellationToken()
        task = asyncio.create_task(self.run_firmware_update(device_id, token))
        self._handle = UpdateHandle(device_id, task, token)
        return self._handle
