"""Device state models reported by the device probe."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class DeviceMode(str, Enum):
    """Operating mode of the connected device.

    Mode transitions caused by the update steps:
    bootloader → update-pending → normal
    """

    BOOTLOADER = "bootloader"
    UPDATE_PENDING = "update-pending"
    NORMAL = "normal"


class InstallAction(str, Enum):
    """Installation step selected for an observed device mode."""

    INSTALL_BOOTLOADER_FIRMWARE = "installBootloaderFirmware"
    INSTALL_PENDING_UPDATE = "installPendingUpdate"


class DeviceInfo(BaseModel):
    """Snapshot of one device query.

    Only ``mode`` drives the update sequence; identity and version fields
    are carried through for logging.
    """

    model_config = ConfigDict(frozen=True)

    mode: DeviceMode = Field(..., description="Current operating mode")
    target_id: Optional[int] = Field(None, description="Hardware target identifier")
    se_version: Optional[str] = Field(None, description="Secure element firmware version")
    mcu_version: Optional[str] = Field(None, description="MCU firmware version")
    serial: Optional[str] = Field(None, description="Device serial number")

    @property
    def is_bootloader(self) -> bool:
        return self.mode == DeviceMode.BOOTLOADER

    @property
    def is_osu(self) -> bool:
        """True while a staged OS update is waiting to be finalized."""
        return self.mode == DeviceMode.UPDATE_PENDING
