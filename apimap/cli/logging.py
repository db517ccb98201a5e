"""
Logging setup for the CLI.

The library itself only logs through module loggers under `apimap`; the CLI
attaches a stderr handler for the duration of one invocation.
"""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


@dataclass(frozen=True, slots=True)
class PreviousLogging:
    level: int
    handler: logging.Handler


def _level_for(verbosity: int) -> int:
    if verbosity >= 2:
        return logging.DEBUG
    if verbosity == 1:
        return logging.INFO
    return logging.WARNING


def configure_logging(*, verbosity: int) -> PreviousLogging:
    """Attach a stderr handler to the `apimap` logger; returns what to restore."""
    logger = logging.getLogger("apimap")
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter(_FORMAT))
    previous = PreviousLogging(level=logger.level, handler=handler)

    logger.addHandler(handler)
    logger.setLevel(_level_for(verbosity))
    return previous


def restore_logging(previous: PreviousLogging) -> None:
    logger = logging.getLogger("apimap")
    logger.removeHandler(previous.handler)
    logger.setLevel(previous.level)
