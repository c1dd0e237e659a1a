"""Firmware update loop: probe, select, install, settle, repeat."""

import asyncio
from typing import Awaitable, Callable, Optional
import logging

from pydantic import BaseModel, Field

from fwupdater.exceptions import OperationCancelled
from fwupdater.models.device import InstallAction
from fwupdater.models.outcome import InstallResultKind, LoopOutcome
from fwupdater.models.status import StageEnum
from fwupdater.services.cancellation import CancellationToken
from fwupdater.services.installer import DisconnectFilter, InstallInvoker
from fwupdater.services.probe import DeviceProbe
from fwupdater.services.selector import select_step
from fwupdater.transport.base import DeviceSession

StageCallback = Callable[[StageEnum, str], None]


class RunStats(BaseModel):
    """Counters collected during one orchestration run."""

    probes: int = 0
    installs: int = 0
    suppressed_errors: int = 0
    settles: int = 0
    actions: list[InstallAction] = Field(default_factory=list)


class FirmwareUpdateOrchestrator:
    """Drives a device through its update modes until it reports normal mode.

    Device state is never tracked between iterations: each pass decides
    from a fresh probe only.

    Loop (one pass):
    probing → selecting → done
                        → installing → settling → probing
                                     → failed
    """

    def __init__(
        self,
        probe: Optional[DeviceProbe] = None,
        invoker: Optional[InstallInvoker] = None,
        disconnect_filter: Optional[DisconnectFilter] = None,
        settle_delay: float = 2.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        on_stage: Optional[StageCallback] = None,
    ):
        """Initialize orchestrator.

        Args:
            probe: DeviceProbe instance (default retries with 0.5s backoff)
            invoker: InstallInvoker instance
            disconnect_filter: DisconnectFilter instance
            settle_delay: Pause after each install step, in seconds
            sleep: Delay coroutine used for the settle delay
            on_stage: Called with (stage, message) on every loop transition
        """
        self.logger = logging.getLogger("fwupdater.orchestrator")
        self.probe = probe or DeviceProbe()
        self.invoker = invoker or InstallInvoker()
        self.disconnect_filter = disconnect_filter or DisconnectFilter()
        self.settle_delay = settle_delay
        self.sleep = sleep
        self.on_stage = on_stage
        self.last_stats: Optional[RunStats] = None

    def _notify(self, stage: StageEnum, message: str) -> None:
        self.logger.debug(f"Stage: {stage.value} ({message})")
        if self.on_stage is not None:
            self.on_stage(stage, message)

    async def run(
        self, session: DeviceSession, token: CancellationToken
    ) -> Optional[LoopOutcome]:
        """Run the update loop on an open session.

        Args:
            session: Device session owned by this run
            token: Caller's cancellation token

        Returns:
            LoopOutcome.completed() once the device is in normal mode,
            LoopOutcome.failed(detail) on a fatal install error, or None if
            the run was cancelled
        """
        stats = RunStats()
        self.last_stats = stats
        device_id = session.device_id

        try:
            while True:
                self._notify(StageEnum.PROBING, f"Waiting for device {device_id}...")
                info = await self.probe.probe(session, token)
                stats.probes += 1

                action = select_step(info)
                if action is None:
                    self.logger.info(
                        f"Device {device_id} in normal mode after "
                        f"{stats.installs} install step(s)"
                    )
                    return LoopOutcome.completed()

                self._notify(StageEnum.INSTALLING, f"Running {action.value}...")
                result = await self.invoker.invoke(session, action, token)
                stats.installs += 1
                stats.actions.append(action)

                if not self.disconnect_filter.should_continue(result):
                    self.logger.error(f"Update of {device_id} failed: {result.detail}")
                    return LoopOutcome.failed(result.detail or "Install failed")
                if result.kind == InstallResultKind.DEVICE_UNREACHABLE:
                    stats.suppressed_errors += 1

                self._notify(StageEnum.SETTLING, "Waiting for device to switch mode...")
                await token.sleep(self.settle_delay, self.sleep)
                stats.settles += 1

        except OperationCancelled:
            self.logger.info(
                f"Update of {device_id} cancelled after {stats.installs} install step(s)"
            )
            return None
