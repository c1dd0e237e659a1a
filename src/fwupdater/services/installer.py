"""Install step execution and disconnect classification."""

from typing import Awaitable, Callable
import logging

from fwupdater.exceptions import DeviceUnreachable, OperationCancelled
from fwupdater.models.device import InstallAction
from fwupdater.models.outcome import InstallResult, InstallResultKind
from fwupdater.services.cancellation import CancellationToken
from fwupdater.transport.base import DeviceSession


class InstallInvoker:
    """Runs one install action against the device.

    Install actions are never retried here: re-issuing a partially applied
    flash is unsafe. Failures come back as a tagged InstallResult.
    """

    def __init__(self):
        self.logger = logging.getLogger("fwupdater.installer")

    def _resolve(
        self, session: DeviceSession, action: InstallAction
    ) -> Callable[[], Awaitable[None]]:
        if action == InstallAction.INSTALL_BOOTLOADER_FIRMWARE:
            return session.install_mcu
        if action == InstallAction.INSTALL_PENDING_UPDATE:
            return session.install_final_firmware
        raise ValueError(f"Unknown install action: {action}")

    async def invoke(
        self,
        session: DeviceSession,
        action: InstallAction,
        token: CancellationToken,
    ) -> InstallResult:
        """Execute an install action.

        Args:
            session: Open device session
            action: Install action selected for the device's mode
            token: Caller's cancellation token

        Returns:
            InstallResult.ok(), .device_unreachable() or .other(detail)

        Raises:
            OperationCancelled: If the token is tripped during the install
        """
        install = self._resolve(session, action)
        token.raise_if_cancelled()
        self.logger.info(f"Starting {action.value} on {session.device_id}")

        try:
            await token.run(install())
        except OperationCancelled:
            raise
        except DeviceUnreachable as e:
            self.logger.info(f"{action.value}: device went away ({e})")
            return InstallResult.device_unreachable(str(e))
        except Exception as e:
            self.logger.error(f"{action.value} failed: {e}", exc_info=True)
            return InstallResult.other(str(e) or type(e).__name__)

        self.logger.info(f"{action.value} accepted by {session.device_id}")
        return InstallResult.ok()


class DisconnectFilter:
    """Decides whether the update loop may continue after an install step.

    A disconnect during install is what a device rebooting into its next
    mode looks like, so it is allowed. Every other failure is fatal.
    """

    def __init__(self):
        self.logger = logging.getLogger("fwupdater.disconnect_filter")

    def should_continue(self, result: InstallResult) -> bool:
        if result.kind == InstallResultKind.OK:
            return True
        if result.kind == InstallResultKind.DEVICE_UNREACHABLE:
            self.logger.info(f"Suppressed expected disconnect: {result.detail}")
            return True
        self.logger.warning(f"Install failure is fatal: {result.detail}")
        return False
