"""Maps an observed device mode to the next install step."""

from typing import Optional

from fwupdater.models.device import DeviceInfo, DeviceMode, InstallAction


def select_step(info: DeviceInfo) -> Optional[InstallAction]:
    """Pick the install action for the device's current mode.

    Returns:
        InstallAction to run, or None when the device is in normal mode
        and the update is done
    """
    if info.mode == DeviceMode.BOOTLOADER:
        return InstallAction.INSTALL_BOOTLOADER_FIRMWARE
    if info.mode == DeviceMode.UPDATE_PENDING:
        return InstallAction.INSTALL_PENDING_UPDATE
    return None
