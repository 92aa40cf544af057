"""Version guard.

The backend only accepts the current release of the bot. The guard
compares the local version code with the published one, warns through the
notifier and stops the session on mismatch.
"""

import asyncio
from collections.abc import Awaitable, Callable
from typing import Any

from treasurebot.utils.errors import VersionMismatchError
from treasurebot.utils.telemetry import get_logger

VERSION_CODE = 1
UPDATE_MESSAGE = "Please update your code version"


class VersionGuard:
    """Checks the published version once and then periodically."""

    def __init__(
        self,
        fetch_remote: Callable[[], Awaitable[Any]],
        notify: Callable[[str], Awaitable[None]] | None = None,
        local_version: int = VERSION_CODE,
        interval_seconds: float = 60.0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        """Initialize the guard.

        Args:
            fetch_remote: Coroutine function returning the published version code
            notify: Coroutine function used to warn the operator
            local_version: Version code of the running bot
            interval_seconds: Delay between periodic checks
            sleep: Coroutine used to wait between checks
        """
        self.fetch_remote = fetch_remote
        self.notify = notify
        self.local_version = local_version
        self.interval_seconds = interval_seconds
        self.sleep = sleep
        self._logger = get_logger("treasurebot.version")

    async def check(self) -> None:
        """Compare versions once.

        Raises:
            VersionMismatchError: If the published version differs
        """
        remote = await self.fetch_remote()
        if remote == self.local_version:
            self._logger.debug("Version up to date", version=self.local_version)
            return

        self._logger.error(
            "Version mismatch", local_version=self.local_version, remote_version=remote
        )
        if self.notify is not None:
            try:
                await self.notify(UPDATE_MESSAGE)
            except Exception as e:
                # Notification is best effort; the mismatch below is what matters
                self._logger.warning("Failed to send update notice", error=str(e))

        raise VersionMismatchError(self.local_version, remote)

    async def watch(self) -> None:
        """Re-check forever; returns only by raising."""
        while True:
            await self.sleep(self.interval_seconds)
            await self.check()
