"""Process-wide logging setup for the relay: stdout plus an optional rotating file."""

from __future__ import annotations

import contextlib
import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import List, Optional, Union

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
LOG_DATEFMT = "%Y-%m-%d %H:%M:%S"

# A relay left running on a field unit should not fill its card
LOG_FILE_MAX_BYTES = 500 * 1024
LOG_FILE_BACKUPS = 2

# asyncio and aiohttp are noisy at DEBUG; fix reports are what matter there
QUIET_LOGGERS = ("asyncio", "aiohttp.access", "aiohttp.client")

_configured = False


def coerce_level(level: Union[int, str]) -> int:
    """Translate "debug"/"info"/"alert"/... or a number into a logging level."""
    if isinstance(level, str):
        name = level.strip().upper()
        if name == "ALERT":
            return logging.WARNING
        value = logging.getLevelName(name)
        if not isinstance(value, int):
            raise ValueError(f"Unknown log level '{level}'")
        return value
    return int(level)


def _relay_handlers(log_file: Optional[Path]) -> List[logging.Handler]:
    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                log_file,
                maxBytes=LOG_FILE_MAX_BYTES,
                backupCount=LOG_FILE_BACKUPS,
                encoding="utf-8",
            )
        )
    return handlers


def configure_logging(
    level: Union[int, str] = logging.INFO,
    *,
    force: bool = False,
    log_file: Optional[Union[str, Path]] = None,
) -> None:
    """Install the relay's handlers on the root logger.

    A second call without ``force`` only changes the level, so the CLI can
    log config errors early and then reconfigure once the file is read.
    Raises ValueError for an unknown level name before touching any handler.
    """
    global _configured
    numeric_level = coerce_level(level)
    root = logging.getLogger()

    if _configured and not force:
        root.setLevel(numeric_level)
        return

    for handler in list(root.handlers):
        root.removeHandler(handler)
        with contextlib.suppress(Exception):
            handler.close()

    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=LOG_DATEFMT)
    for handler in _relay_handlers(Path(log_file) if log_file else None):
        handler.setLevel(numeric_level)
        handler.setFormatter(formatter)
        root.addHandler(handler)
    root.setLevel(numeric_level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    _configured = True


__all__ = ["configure_logging", "coerce_level", "LOG_FORMAT", "LOG_DATEFMT"]
