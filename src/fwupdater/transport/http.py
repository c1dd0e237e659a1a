"""Device transport backed by the device bridge HTTP service."""

from typing import Any, Optional
import logging

import httpx
from pydantic import ValidationError

from fwupdater.exceptions import DeviceUnreachable, InstallError, TransportError
from fwupdater.models.device import DeviceInfo, DeviceMode
from fwupdater.transport.base import DeviceSession, DeviceTransport

# Bridge code (HTTP status or envelope code) for "device disappeared mid-request"
CODE_DEVICE_GONE = 410


def parse_device_info(data: dict[str, Any]) -> DeviceInfo:
    """Build DeviceInfo from a bridge payload.

    Older bridges report ``is_bootloader``/``is_osu`` flags instead of a
    ``mode`` string; both forms are accepted.

    Raises:
        TransportError: If the payload cannot be interpreted
    """
    if "mode" not in data:
        data = dict(data)
        if data.pop("is_bootloader", False):
            data["mode"] = DeviceMode.BOOTLOADER
        elif data.pop("is_osu", False):
            data["mode"] = DeviceMode.UPDATE_PENDING
        else:
            data["mode"] = DeviceMode.NORMAL
    try:
        return DeviceInfo.model_validate(data)
    except ValidationError as e:
        raise TransportError(f"Malformed device info: {e}") from e


class HttpDeviceSession(DeviceSession):
    """Session to one device through the bridge.

    Bridge responses use the envelope ``{"code": int, "msg": str, "data": ...}``
    with HTTP status 200; the real status is in ``code``.
    """

    def __init__(
        self,
        device_id: str,
        client: httpx.AsyncClient,
        request_timeout: float = 5.0,
        install_timeout: float = 300.0,
    ):
        super().__init__(device_id)
        self.logger = logging.getLogger("fwupdater.transport.http")
        self.client = client
        self.request_timeout = request_timeout
        self.install_timeout = install_timeout
        self.base_path = f"/api/v1.0/devices/{device_id}"

    async def get_device_info(self) -> DeviceInfo:
        try:
            response = await self.client.get(
                f"{self.base_path}/info", timeout=self.request_timeout
            )
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise TransportError(f"Device info request failed: {e}") from e
        except ValueError as e:
            raise TransportError(f"Device info response is not JSON: {e}") from e

        code = body.get("code")
        if code != 200:
            raise TransportError(f"Device info unavailable: {body.get('msg', code)}")

        info = parse_device_info(body.get("data") or {})
        self.logger.debug(f"Device info: {info.model_dump(mode='json')}")
        return info

    async def install_mcu(self) -> None:
        await self._install("mcu")

    async def install_final_firmware(self) -> None:
        await self._install("final")

    async def _install(self, script: str) -> None:
        """POST an install request and map the bridge result to exceptions.

        Raises:
            DeviceUnreachable: Connection lost or bridge reports the device gone
            InstallError: Bridge reports any other failure
        """
        url = f"{self.base_path}/install/{script}"
        self.logger.info(f"Requesting install: device={self.device_id}, script={script}")
        try:
            response = await self.client.post(url, timeout=self.install_timeout)
        except httpx.TransportError as e:
            raise DeviceUnreachable(f"Lost device during install: {e}") from e

        body: Optional[dict] = None
        try:
            body = response.json()
        except ValueError:
            pass
        if not isinstance(body, dict):
            body = None

        status = response.status_code
        code = body.get("code") if body is not None else None
        msg = body.get("msg") if body is not None else None
        if not msg:
            if status >= 400 or code is None:
                msg = f"Install {script} failed: HTTP {status}"
            else:
                msg = f"Install {script} failed: code {code}"

        if status == CODE_DEVICE_GONE or code == CODE_DEVICE_GONE:
            raise DeviceUnreachable(msg)
        if status >= 400 or code != 200:
            raise InstallError(msg)

    async def close(self) -> None:
        await self.client.aclose()


class HttpDeviceTransport(DeviceTransport):
    """Opens HttpDeviceSession instances against a device bridge."""

    def __init__(
        self,
        bridge_url: str = "http://localhost:9081",
        request_timeout: float = 5.0,
        install_timeout: float = 300.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__()
        self.bridge_url = bridge_url
        self.transport = transport
        self.request_timeout = request_timeout
        self.install_timeout = install_timeout

    async def open_session(self, device_id: str) -> HttpDeviceSession:
        client = httpx.AsyncClient(base_url=self.bridge_url, transport=self.transport)
        return HttpDeviceSession(
            device_id,
            client,
            request_timeout=self.request_timeout,
            install_timeout=self.install_timeout,
        )
