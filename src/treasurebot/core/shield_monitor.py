"""Shield exhaustion alerts, at most one per hero per day."""

from treasurebot.core.client import Notifier
from treasurebot.schemas.models import Hero
from treasurebot.utils.telemetry import Clock, WallClock, get_logger, record_shield_alert

ALERT_WINDOW_SECONDS = 24 * 60 * 60


class ShieldMonitor:
    """Rate-limited shield repair alerts.

    A hero whose shields are missing or at or below the alert threshold
    triggers an alert, unless one was already sent for it within the alert
    window. A hero with no shield value left cannot work.
    """

    def __init__(
        self,
        notifier: Notifier,
        alert_threshold: int = 0,
        clock: Clock | None = None,
        window_seconds: float = ALERT_WINDOW_SECONDS,
    ) -> None:
        self.notifier = notifier
        self.alert_threshold = alert_threshold
        self.clock: Clock = clock or WallClock()
        self.window_seconds = window_seconds
        self._last_alert: dict[int, float] = {}
        self._logger = get_logger("treasurebot.core.shield_monitor")

    def needs_repair(self, hero: Hero) -> bool:
        return not hero.has_shield or hero.shield_total <= self.alert_threshold

    def alert_due(self, hero_id: int) -> bool:
        last = self._last_alert.get(hero_id)
        return last is None or self.clock.now() - last > self.window_seconds

    def last_alert(self, hero_id: int) -> float | None:
        return self._last_alert.get(hero_id)

    async def inspect(self, hero: Hero) -> bool:
        """Alert if needed and tell whether ``hero`` may be sent to work.

        Returns:
            False when the hero has no shield value left
        """
        if self.needs_repair(hero) and self.alert_due(hero.id):
            self._last_alert[hero.id] = self.clock.now()
            record_shield_alert()
            self._logger.info("Hero needs shield repair", hero_id=hero.id)
            await self.notifier.send(f"Hero {hero.id} needs shield repair")

        return hero.has_shield and hero.shield_total != 0
