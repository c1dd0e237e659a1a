"""State manager for in-memory update status."""

from typing import Optional
import logging

from fwupdater.models.status import StageEnum
from fwupdater.api.models import ProgressData


class StateManager:
    """Singleton holding the current update status for GET /progress."""

    _instance: Optional["StateManager"] = None

    def __new__(cls):
        """Implement singleton pattern."""
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._initialized = False
        return cls._instance

    def __init__(self):
        """Initialize state manager (only once due to singleton)."""
        if self._initialized:
            return

        self.logger = logging.getLogger("fwupdater.state_manager")

        self._current_stage: StageEnum = StageEnum.IDLE
        self._current_message: str = "Updater ready"
        self._current_error: Optional[str] = None
        self._current_device: Optional[str] = None

        self._initialized = True
        self.logger.info("StateManager initialized")

    def get_status(self) -> ProgressData:
        """Get current status for GET /progress endpoint.

        Returns:
            ProgressData with current stage, message, error and device id
        """
        return ProgressData(
            stage=self._current_stage,
            message=self._current_message,
            error=self._current_error,
            device_id=self._current_device,
        )

    def update_status(
        self,
        stage: StageEnum,
        message: str,
        error: Optional[str] = None,
        device_id: Optional[str] = None,
    ) -> None:
        """Update in-memory status state.

        Args:
            stage: Current lifecycle stage
            message: Human-readable description
            error: Error message if stage == failed
            device_id: Device being updated (keeps the current one if None)
        """
        self._current_stage = stage
        self._current_message = message
        self._current_error = error
        if device_id is not None:
            self._current_device = device_id
        self.logger.debug(
            f"Status updated: stage={stage.value}, device={self._current_device}, "
            f"message={message}"
        )

    def is_busy(self) -> bool:
        """True while an update run is between start and a terminal stage."""
        stage = self._current_stage
        return stage != StageEnum.IDLE and not stage.is_terminal

    def reset(self) -> None:
        """Reset to idle state."""
        self._current_stage = StageEnum.IDLE
        self._current_message = "Updater ready"
        self._current_error = None
        self._current_device = None
        self.logger.info("State reset to idle")
