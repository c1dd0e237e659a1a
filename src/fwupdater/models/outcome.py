"""Result types for install steps and whole update runs."""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class OutcomeEnum(str, Enum):
    """Terminal result of an update run that was not cancelled."""

    COMPLETED = "completed"
    FAILED = "failed"


class LoopOutcome(BaseModel):
    """Terminal outcome of one orchestration run.

    A cancelled run produces no LoopOutcome at all.
    """

    model_config = ConfigDict(frozen=True)

    result: OutcomeEnum = Field(..., description="Completed or failed")
    error: Optional[str] = Field(None, description="Failure detail if result == failed")

    @classmethod
    def completed(cls) -> "LoopOutcome":
        return cls(result=OutcomeEnum.COMPLETED)

    @classmethod
    def failed(cls, error: str) -> "LoopOutcome":
        return cls(result=OutcomeEnum.FAILED, error=error)

    @property
    def is_completed(self) -> bool:
        return self.result == OutcomeEnum.COMPLETED


class InstallResultKind(str, Enum):
    """Classification of a finished install step."""

    OK = "ok"
    DEVICE_UNREACHABLE = "device_unreachable"
    OTHER = "other"


class InstallResult(BaseModel):
    """Tagged result returned by the install invoker.

    ``detail`` holds the error message for ``device_unreachable`` and
    ``other`` results.
    """

    model_config = ConfigDict(frozen=True)

    kind: InstallResultKind
    detail: Optional[str] = None

    @classmethod
    def ok(cls) -> "InstallResult":
        return cls(kind=InstallResultKind.OK)

    @classmethod
    def device_unreachable(cls, detail: Optional[str] = None) -> "InstallResult":
        return cls(kind=InstallResultKind.DEVICE_UNREACHABLE, detail=detail)

    @classmethod
    def other(cls, detail: str) -> "InstallResult":
        return cls(kind=InstallResultKind.OTHER, detail=detail)
