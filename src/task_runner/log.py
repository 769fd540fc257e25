"""
Logging setup for applications embedding the task runner.

The library only creates module loggers under the "task_runner" namespace and
never installs handlers itself. Call setup_logging() once from an entry point
(the scripts in examples/ do) to get console and optional file output.
"""

import logging
import sys
from pathlib import Path
from typing import Optional

_CONFIGURED = False


def setup_logging(level: str = "INFO", log_file: Optional[Path] = None, verbose: bool = False) -> None:
    """
    Configure the "task_runner" logger. Subsequent calls are ignored.

    Args:
        level (str): Log level name, case-insensitive.
        log_file (Optional[Path]): Also write records to this file; its parent directory is created.
        verbose (bool): Include logger name and line number in each record.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    if verbose:
        fmt = "%(asctime)s | %(levelname)-8s | %(name)s:%(lineno)d | %(message)s"
    else:
        fmt = "%(asctime)s | %(levelname)-8s | %(message)s"
    formatter = logging.Formatter(fmt, datefmt="%Y-%m-%d %H:%M:%S")

    handlers = [logging.StreamHandler(sys.stdout)]
    if log_file:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(log_file))

    logger = logging.getLogger("task_runner")
    logger.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    logger.propagate = False

    _CONFIGURED = True
