"""
Spritechain logging configuration.
"""

import logging
import sys
from pathlib import Path
from typing import Optional, Union

ROOT_LOGGER = "spritechain"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
VERBOSE_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(funcName)s | %(message)s"


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[Path] = None,
    verbose: bool = False,
    console_output: bool = True
) -> logging.Logger:
    """
    Configure the package root logger.

    Args:
        level: Minimum level, as a logging constant or name ("DEBUG", ...)
        log_file: Optional path of a file to mirror log output into
        verbose: Use the verbose format with line numbers
        console_output: Emit to stderr

    Returns:
        The configured root logger for the package
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())

    root_logger = logging.getLogger(ROOT_LOGGER)
    root_logger.setLevel(level)
    root_logger.handlers.clear()

    formatter = logging.Formatter(VERBOSE_FORMAT if verbose else DEFAULT_FORMAT,
                                  datefmt="%Y-%m-%d %H:%M:%S")

    if console_output:
        console_handler = logging.StreamHandler(sys.stderr)
        console_handler.setFormatter(formatter)
        root_logger.addHandler(console_handler)

    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

    root_logger.debug(f"Logging initialized - Level: {logging.getLevelName(level)}, Verbose: {verbose}")
    return root_logger


def get_logger(name: str) -> logging.Logger:
    """Return the logger for a component, namespaced under the package root."""
    if name == ROOT_LOGGER or name.startswith(ROOT_LOGGER + "."):
        return logging.getLogger(name)
    return logging.getLogger(f"{ROOT_LOGGER}.{name}")
