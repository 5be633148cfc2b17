"""Logging setup for scripts and the example launcher.

Library modules only create module-level loggers
(``logging.getLogger(__name__)``) and never add handlers; scripts call
:func:`configure_logging` once. Calling it again replaces the handlers
instead of stacking duplicates, which keeps notebook re-runs readable.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

DEFAULT_LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s - %(message)s"
PACKAGE_LOGGER = "data_treatment"


def configure_logging(
    level: int = logging.INFO,
    log_file: Optional[Union[str, Path]] = None,
    logger_name: Optional[str] = PACKAGE_LOGGER,
    *,
    force: bool = True,
    capture_warnings: bool = True,
) -> logging.Logger:
    """Attach a stderr handler (and optionally a file handler) to a logger.

    Parameters
    ----------
    level:
        Log level for the logger and its handlers.
    log_file:
        Optional log file. A directory (existing, or a path ending in a
        separator) gets ``<logger_name>.log`` inside it.
    logger_name:
        Logger to configure. The default covers every module of this package;
        ``None`` configures the root logger.
    force:
        Remove existing handlers first.
    capture_warnings:
        Route :mod:`warnings` through logging.
    """
    logger = logging.getLogger(logger_name)
    logger.setLevel(level)

    if force:
        for handler in list(logger.handlers):
            logger.removeHandler(handler)
            handler.close()

    formatter = logging.Formatter(DEFAULT_LOG_FORMAT)

    console = logging.StreamHandler(stream=sys.stderr)
    console.setLevel(level)
    console.setFormatter(formatter)
    logger.addHandler(console)

    if log_file is not None:
        log_path = Path(log_file)
        if log_path.is_dir() or str(log_path).endswith(("/", "\\")):
            log_path = log_path / f"{(logger_name or 'root').replace('/', '_')}.log"

        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    # Keep records from reaching the root logger a second time.
    logger.propagate = False

    if capture_warnings:
        logging.captureWarnings(True)

    return logger


__all__ = ["configure_logging", "DEFAULT_LOG_FORMAT", "PACKAGE_LOGGER"]
