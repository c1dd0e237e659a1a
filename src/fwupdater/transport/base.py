"""Device transport contracts used by the update loop."""

from abc import ABC, abstractmethod
from contextlib import asynccontextmanager
from typing import AsyncIterator
import logging

from fwupdater.models.device import DeviceInfo


class DeviceSession(ABC):
    """Open connection to one device.

    Implementations raise ``TransportError`` from ``get_device_info`` when
    the device cannot be queried, and ``DeviceUnreachable`` or
    ``InstallError`` from the install calls.
    """

    def __init__(self, device_id: str):
        self.device_id = device_id

    @abstractmethod
    async def get_device_info(self) -> DeviceInfo:
        """Query the device's current mode and identity."""

    @abstractmethod
    async def install_mcu(self) -> None:
        """Flash the MCU firmware while the device is in bootloader mode."""

    @abstractmethod
    async def install_final_firmware(self) -> None:
        """Finalize the staged OS update while the device is update-pending."""

    @abstractmethod
    async def close(self) -> None:
        """Release the connection."""


class DeviceTransport(ABC):
    """Factory for device sessions."""

    def __init__(self):
        self.logger = logging.getLogger("fwupdater.transport")

    @abstractmethod
    async def open_session(self, device_id: str) -> DeviceSession:
        """Open a session to the given device."""

    @asynccontextmanager
    async def session(self, device_id: str) -> AsyncIterator[DeviceSession]:
        """Scoped session, closed however the body exits.

        Args:
            device_id: Device identifier understood by the transport

        Yields:
            Open DeviceSession
        """
        session = await self.open_session(device_id)
        self.logger.info(f"Session opened: device={device_id}")
        try:
            yield session
        finally:
            try:
                await session.close()
            except Exception as e:
                self.logger.warning(f"Failed to close session for {device_id}: {e}")
            else:
                self.logger.info(f"Session closed: device={device_id}")
