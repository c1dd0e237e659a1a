"""Service configuration for the firmware updater."""

import json
from pathlib import Path
from typing import Optional, Union
import logging

from pydantic import BaseModel, Field, ValidationError, field_validator

from fwupdater.utils.logging import resolve_level


class UpdaterConfig(BaseModel):
    """Runtime settings, optionally loaded from ./config/updater.json."""

    settle_delay: float = Field(
        default=2.0, ge=0, description="Pause after each install step (seconds)"
    )
    probe_backoff: float = Field(
        default=0.5, ge=0, description="Pause between failed probe attempts (seconds)"
    )
    bridge_url: str = Field(
        default="http://localhost:9081",
        pattern=r"^https?://.+",
        description="Base URL of the device bridge service",
    )
    report_url: Optional[str] = Field(
        default="http://localhost:9080",
        description="Base URL of the host service receiving outcome reports",
    )
    request_timeout: float = Field(
        default=5.0, gt=0, description="Timeout for device info requests (seconds)"
    )
    install_timeout: float = Field(
        default=300.0, gt=0, description="Timeout for a single install step (seconds)"
    )
    log_file: str = Field(default="./logs/fwupdater.log")
    log_level: str = Field(default="INFO", description="Service log level name")
    component_log_levels: dict[str, str] = Field(
        default_factory=dict,
        description="Per-component level overrides, e.g. {\"installer\": \"DEBUG\"}",
    )
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=12316, gt=0, lt=65536)

    @field_validator("log_level")
    @classmethod
    def known_log_level(cls, v: str) -> str:
        """Reject level names the logging module does not know."""
        resolve_level(v)
        return v.upper()

    @field_validator("component_log_levels")
    @classmethod
    def known_component_levels(cls, v: dict[str, str]) -> dict[str, str]:
        for level in v.values():
            resolve_level(level)
        return {component: level.upper() for component, level in v.items()}

    @classmethod
    def load(cls, path: Union[str, Path] = "./config/updater.json") -> "UpdaterConfig":
        """Load configuration from a JSON file.

        Args:
            path: Path to JSON config file

        Returns:
            UpdaterConfig with file values over defaults (defaults only if
            the file does not exist)

        Raises:
            ValueError: If the file is not valid JSON or fails validation
        """
        logger = logging.getLogger("fwupdater.config")
        config_path = Path(path)
        if not config_path.exists():
            logger.debug(f"No config file at {config_path}, using defaults")
            return cls()

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = json.load(f)
            config = cls(**data)
        except (json.JSONDecodeError, ValidationError, TypeError) as e:
            raise ValueError(f"Invalid config file {config_path}: {e}") from e

        logger.info(f"Loaded config from {config_path}")
        return config
