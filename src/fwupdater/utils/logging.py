"""Logger setup for the firmware updater and its component loggers."""

import logging
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Mapping, Optional, Union

LevelType = Union[int, str]

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
LOG_DATEFMT = "%Y-%m-%dT%H:%M:%S%z"


def resolve_level(level: LevelType) -> int:
    """Convert a level name ("DEBUG", "warning") or number to a logging level.

    Raises:
        ValueError: If the name is not a known logging level
    """
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.strip().upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logger(
    name: str = "fwupdater",
    log_file: str = "./logs/fwupdater.log",
    max_bytes: int = 10 * 1024 * 1024,  # 10MB
    backup_count: int = 3,
    level: LevelType = logging.INFO,
    component_levels: Optional[Mapping[str, LevelType]] = None,
) -> logging.Logger:
    """Configure the service logger and per-component overrides.

    Handlers live on the ``name`` logger only; components such as
    ``fwupdater.installer`` or ``fwupdater.transport.http`` propagate to it. The
    handlers pass every record through so a component set to DEBUG is
    written even while the service logger stays at INFO.

    Args:
        name: Service logger name
        log_file: Path to log file (created if doesn't exist)
        max_bytes: Max size before rotation
        backup_count: Number of rotated files to keep
        level: Service log level, as a number or a level name
        component_levels: Component suffix → level, e.g. {"installer": "DEBUG"}

    Returns:
        Configured service logger
    """
    logger = logging.getLogger(name)
    logger.setLevel(resolve_level(level))

    for component, component_level in (component_levels or {}).items():
        logging.getLogger(f"{name}.{component}").setLevel(resolve_level(component_level))

    # Levels may be re-applied; handlers are attached once
    if logger.handlers:
        return logger

    Path(log_file).parent.mkdir(parents=True, exist_ok=True)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)

    handlers = [
        RotatingFileHandler(
            log_file, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8"
        ),
        logging.StreamHandler(),
    ]
    for handler in handlers:
        handler.setLevel(logging.NOTSET)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger
