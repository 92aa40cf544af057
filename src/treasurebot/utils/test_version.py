"""Unit tests for the version guard."""

import pytest

from treasurebot.utils.errors import RecoveryAction, VersionMismatchError
from treasurebot.utils.version import UPDATE_MESSAGE, VERSION_CODE, VersionGuard


def remote_version(value):
    async def fetch():
        return value

    return fetch


class TestVersionGuard:
    @pytest.mark.asyncio
    async def test_matching_version(self):
        sent = []

        async def notify(message):
            sent.append(message)

        await VersionGuard(remote_version(VERSION_CODE), notify=notify).check()

        assert sent == []

    @pytest.mark.asyncio
    async def test_mismatch_notifies_then_raises(self):
        sent = []

        async def notify(message):
            sent.append(message)

        guard = VersionGuard(remote_version(VERSION_CODE + 1), notify=notify)

        with pytest.raises(VersionMismatchError) as exc_info:
            await guard.check()

        assert sent == [UPDATE_MESSAGE]
        assert exc_info.value.remote_version == VERSION_CODE + 1
        assert exc_info.value.recovery_action == RecoveryAction.ABORT

    @pytest.mark.asyncio
    async def test_failed_notification_still_raises(self):
        async def notify(message):
            raise ConnectionError("chat down")

        guard = VersionGuard(remote_version("2.0"), notify=notify)

        with pytest.raises(VersionMismatchError):
            await guard.check()

    @pytest.mark.asyncio
    async def test_watch_checks_after_each_interval(self):
        versions = iter([VERSION_CODE, VERSION_CODE, VERSION_CODE + 1])
        delays = []

        async def fetch():
            return next(versions)

        async def sleep(delay):
            delays.append(delay)

        guard = VersionGuard(fetch, interval_seconds=60, sleep=sleep)

        with pytest.raises(VersionMismatchError):
            await guard.watch()

        assert delays == [60, 60, 60]
