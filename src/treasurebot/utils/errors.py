"""Structured error types for the bot core.

This module provides structured exceptions with recovery actions
for the failure modes the orchestration loop distinguishes: transient
client failures, missing sessions, version mismatches and store
inconsistencies.
"""

from enum import Enum
from typing import Any


class RecoveryAction(Enum):
    """Recovery actions for error handling."""

    RETRY = "retry"
    RETRY_WITH_DELAY = "retry_with_delay"
    ABORT = "abort"
    IGNORE = "ignore"


class BotError(Exception):
    """Base exception for bot errors."""

    def __init__(
        self, message: str, recovery_action: RecoveryAction = RecoveryAction.ABORT
    ):
        """Initialize bot error.

        Args:
            message: Error message
            recovery_action: Suggested recovery action
        """
        super().__init__(message)
        self.recovery_action = recovery_action


class ClientError(BotError):
    """Transient failure reported by the game client.

    The core never catches these. They propagate to whoever drives the
    loop, which is expected to reconnect and retry.
    """

    def __init__(self, operation: str, reason: str):
        """Initialize client error.

        Args:
            operation: Client operation that failed (e.g. "go_work")
            reason: Human readable failure reason
        """
        self.operation = operation
        self.reason = reason

        super().__init__(
            f"Client operation {operation} failed: {reason}",
            RecoveryAction.RETRY_WITH_DELAY,
        )


class NotConnectedError(BotError):
    """Error raised when a session-bound query runs before login."""

    def __init__(self, message: str = "Not connected, please wait"):
        super().__init__(message, RecoveryAction.RETRY)


class VersionMismatchError(BotError):
    """Error raised when the running version is outdated.

    This is fatal for the session: the loop must not continue with a
    version the backend no longer accepts.
    """

    def __init__(self, local_version: int, remote_version: Any):
        """Initialize version mismatch error.

        Args:
            local_version: Version code of the running bot
            remote_version: Version code published remotely
        """
        self.local_version = local_version
        self.remote_version = remote_version

        message = (
            f"Please update your code version: running {local_version}, "
            f"latest is {remote_version}"
        )

        super().__init__(message, RecoveryAction.ABORT)


class InconsistencyError(BotError):
    """A delta referenced a hero or block the local mirror does not know.

    Never raised out of the synchronization layer. Instances are built so
    the inconsistency can be logged with structured context and dropped.
    """

    def __init__(self, entity: str, key: Any, delta_kind: str | None = None):
        """Initialize inconsistency error.

        Args:
            entity: Kind of entity that was missing ("hero", "block", "enemy")
            key: Identifier of the missing entity
            delta_kind: Delta kind being applied, if known
        """
        self.entity = entity
        self.key = key
        self.delta_kind = delta_kind

        message = f"Unknown {entity} {key!r}"
        if delta_kind:
            message += f" while applying {delta_kind}"

        super().__init__(message, RecoveryAction.IGNORE)

    def to_dict(self) -> dict[str, Any]:
        """Convert error to dictionary for logging."""
        return {
            "error_type": self.__class__.__name__,
            "entity": self.entity,
            "key": self.key,
            "delta_kind": self.delta_kind,
            "recovery_action": self.recovery_action.value,
        }
