"""Utility modules for treasurebot."""

from .errors import (
    BotError,
    ClientError,
    InconsistencyError,
    NotConnectedError,
    RecoveryAction,
    VersionMismatchError,
)
from .telemetry import MonotonicClock, WallClock, get_logger, setup_logging
from .version import VERSION_CODE, VersionGuard

__all__ = [
    "VERSION_CODE",
    "BotError",
    "ClientError",
    "InconsistencyError",
    "MonotonicClock",
    "NotConnectedError",
    "RecoveryAction",
    "VersionGuard",
    "VersionMismatchError",
    "WallClock",
    "get_logger",
    "setup_logging",
]
