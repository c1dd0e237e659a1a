"""Exceptions raised by device transports and the update loop."""


class FirmwareUpdateError(Exception):
    """Base class for firmware updater errors."""


class TransportError(FirmwareUpdateError):
    """Device could not be queried over the transport (any cause)."""


class DeviceUnreachable(TransportError):
    """Device dropped off the bus, usually because it is rebooting."""


class InstallError(FirmwareUpdateError):
    """Install step failed for a reason other than a disconnect."""


class OperationCancelled(FirmwareUpdateError):
    """Update run was cancelled by its caller."""
