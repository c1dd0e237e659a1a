"""Status enums for the firmware updater service."""

from enum import Enum


class StageEnum(str, Enum):
    """Firmware update lifecycle stages.

    State transitions:
    idle → probing → installing → settling → probing → ... → completed
                ↓          ↓           ↓
            cancelled    failed    cancelled
    """

    IDLE = "idle"
    PROBING = "probing"
    INSTALLING = "installing"
    SETTLING = "settling"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (StageEnum.COMPLETED, StageEnum.FAILED, StageEnum.CANCELLED)
