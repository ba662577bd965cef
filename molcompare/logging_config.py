"""
Logging configuration.

The library only creates module loggers under the ``molcompare`` namespace
and attaches a NullHandler to the package logger. ``setup_logging`` gives
scripts and benchmarks a console (and optional file) handler on that package
logger, and can route RDKit's own messages into Python logging.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "molcompare"

DEFAULT_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"

# Marks handlers installed here so a second call replaces them
_OWNED = "_molcompare_owned"


def _parse_level(level: Union[str, int]) -> int:
    if isinstance(level, int):
        return level
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown logging level: {level!r}")
    return value


def setup_logging(
    level: Union[str, int] = "INFO",
    log_file: Optional[Path] = None,
    format_string: Optional[str] = None,
    *,
    capture_rdkit: bool = False,
) -> logging.Logger:
    """
    Configure the molcompare package logger.

    Calling it again replaces the handlers installed by the previous call;
    handlers added by the application are left alone.

    Args:
        level: Logging level name (DEBUG, INFO, WARNING, ERROR) or number.
        log_file: Optional file to also write records to.
        format_string: Custom format string.
        capture_rdkit: Send RDKit's warnings and errors to the ``rdkit``
            Python logger instead of stderr, at the same level.

    Returns:
        The package logger.

    Raises:
        ValueError: If ``level`` is not a known level name.
    """
    numeric = _parse_level(level)
    formatter = logging.Formatter(format_string or DEFAULT_FORMAT)
    package = logging.getLogger(PACKAGE_LOGGER)

    for handler in list(package.handlers):
        if getattr(handler, _OWNED, False):
            package.removeHandler(handler)
            handler.close()

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        log_file = Path(log_file)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    for handler in handlers:
        handler.setFormatter(formatter)
        setattr(handler, _OWNED, True)
        package.addHandler(handler)
    package.setLevel(numeric)

    if capture_rdkit:
        from rdkit import rdBase

        rdBase.LogToPythonLogger()
        logging.getLogger("rdkit").setLevel(numeric)

    return package


def get_logger(name: str) -> logging.Logger:
    """Get a logger inside the molcompare namespace."""
    if not name.startswith(PACKAGE_LOGGER):
        name = f"{PACKAGE_LOGGER}.{name}"
    return logging.getLogger(name)
