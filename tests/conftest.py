"""Global pytest fixtures and configuration."""

import asyncio
import sys
from pathlib import Path
from typing import Optional
from unittest.mock import AsyncMock

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from fwupdater.exceptions import TransportError
from fwupdater.models.device import DeviceInfo, DeviceMode
from fwupdater.services.state_manager import StateManager
from fwupdater.transport.base import DeviceSession, DeviceTransport


class FakeDeviceSession(DeviceSession):
    """Scripted device session.

    ``probes`` is consumed one entry per get_device_info() call: a DeviceMode
    or DeviceInfo is returned, an exception instance is raised. Once the
    script is exhausted the probe hangs until cancelled.

    ``installs`` is consumed one entry per install call: None means the
    install succeeds, an exception instance is raised.
    """

    def __init__(self, device_id="dev-1", probes=None, installs=None):
        super().__init__(device_id)
        self.probes = list(probes or [])
        self.installs = list(installs or [])
        self.calls: list[str] = []
        self.closed = False
        self.probe_pending = asyncio.Event()

    async def get_device_info(self) -> DeviceInfo:
        self.calls.append("probe")
        if not self.probes:
            self.probe_pending.set()
            await asyncio.sleep(3600)
        item = self.probes.pop(0)
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, DeviceMode):
            return DeviceInfo(mode=item, serial="SN-0001")
        return item

    async def _install(self, name: str) -> None:
        self.calls.append(name)
        result = self.installs.pop(0) if self.installs else None
        if isinstance(result, BaseException):
            raise result

    async def install_mcu(self) -> None:
        await self._install("install_mcu")

    async def install_final_firmware(self) -> None:
        await self._install("install_final_firmware")

    async def close(self) -> None:
        self.closed = True

    @property
    def probe_calls(self) -> int:
        return self.calls.count("probe")

    @property
    def install_calls(self) -> list[str]:
        return [c for c in self.calls if c != "probe"]


class FakeDeviceTransport(DeviceTransport):
    """Transport handing out a prepared FakeDeviceSession."""

    def __init__(self, session: FakeDeviceSession, open_error: Optional[Exception] = None):
        super().__init__()
        self.fake_session = session
        self.open_error = open_error
        self.opened: list[str] = []

    async def open_session(self, device_id: str) -> FakeDeviceSession:
        self.opened.append(device_id)
        if self.open_error is not None:
            raise self.open_error
        return self.fake_session


@pytest.fixture(autouse=True)
def reset_state_manager():
    """Reset the StateManager singleton around every test."""
    StateManager._instance = None
    yield
    StateManager._instance = None


@pytest.fixture
def fake_sleep():
    """Delay replacement that returns immediately and records delays."""
    return AsyncMock(return_value=None)


@pytest.fixture
def transport_error():
    return TransportError("USB device not found")


@pytest.fixture
def make_session():
    """Factory for scripted device sessions."""
    return FakeDeviceSession


@pytest.fixture
def make_transport():
    """Factory for transports serving a FakeDeviceSession."""
    return FakeDeviceTransport
