"""Device probe that waits for the device to answer."""

import asyncio
from typing import Awaitable, Callable
import logging

from fwupdater.exceptions import OperationCancelled
from fwupdater.models.device import DeviceInfo
from fwupdater.services.cancellation import CancellationToken
from fwupdater.transport.base import DeviceSession


class DeviceProbe:
    """Queries device state, retrying every failure until it succeeds.

    There is no retry limit: while flashing, the device disappears for an
    unpredictable time (reboot, USB re-enumeration). The only way out of a
    device that never comes back is caller cancellation.
    """

    def __init__(
        self,
        backoff: float = 0.5,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        """Initialize device probe.

        Args:
            backoff: Pause between failed attempts in seconds (0 = retry at once)
            sleep: Delay coroutine, replaceable in tests
        """
        self.logger = logging.getLogger("fwupdater.probe")
        self.backoff = backoff
        self.sleep = sleep
        self.last_attempts = 0

    async def probe(self, session: DeviceSession, token: CancellationToken) -> DeviceInfo:
        """Return the first successful device info query.

        Args:
            session: Open device session
            token: Caller's cancellation token

        Returns:
            DeviceInfo from the first query that succeeds

        Raises:
            OperationCancelled: If the token is tripped while waiting
        """
        attempts = 0
        while True:
            attempts += 1
            self.last_attempts = attempts
            token.raise_if_cancelled()
            try:
                info = await token.run(session.get_device_info())
            except OperationCancelled:
                raise
            except Exception as e:
                self.logger.debug(
                    f"Probe attempt {attempts} failed for {session.device_id}: {e}"
                )
                if self.backoff > 0:
                    await token.sleep(self.backoff, self.sleep)
                continue

            self.logger.info(
                f"Device {session.device_id} answered after {attempts} attempt(s): "
                f"mode={info.mode.value}"
            )
            return info
