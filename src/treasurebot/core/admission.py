"""Target selection and admission control for treasure-map strikes.

For every hero the controller keeps a sticky target so that heroes do not
hop between equally good tiles, a cooldown record derived from travel
distance and speed, and a shared history of the most recently struck tiles
used to spread heroes across the map.
"""

from collections import deque
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from treasurebot.core.slots import ActionSlotTracker
from treasurebot.schemas.models import Hero, StrikeResult
from treasurebot.schemas.types import Tile
from treasurebot.storage.treasure_map import TargetOption, TreasureMap
from treasurebot.utils.telemetry import (
    Clock,
    MonotonicClock,
    get_logger,
    record_admission_rejection,
)

HISTORY_SIZE = 5
MOVE_UNIT_MS = 500.0

StrikeCall = Callable[[Hero, Tile, int], Awaitable[StrikeResult | None]]


@dataclass(frozen=True)
class DispatchRecord:
    """When (in whole milliseconds) and where a hero last struck."""

    timestamp_ms: int
    tile: Tile


class AdmissionController:
    """Chooses targets and gates strikes on cooldown and slot capacity.

    Requirements addressed:
    - Sticky targets are kept while they still yield damage
    - A hero waits ``distance / speed * 500`` ms after moving before striking,
      measured at millisecond resolution
    - A hero never has more strikes in flight than its capacity
    """

    def __init__(
        self,
        treasure_map: TreasureMap,
        slots: ActionSlotTracker,
        clock: Clock | None = None,
        history_size: int = HISTORY_SIZE,
        move_unit_ms: float = MOVE_UNIT_MS,
    ) -> None:
        """Initialize the controller.

        Args:
            treasure_map: Map mirror used to rank targets
            slots: Slot tracker shared with the dispatch path
            clock: Time source in seconds (defaults to the monotonic clock)
            history_size: Number of recently struck tiles to avoid
            move_unit_ms: Milliseconds per speed-normalized tile of travel
        """
        self.treasure_map = treasure_map
        self.slots = slots
        self.clock: Clock = clock or MonotonicClock()
        self.history_size = history_size
        self.move_unit_ms = move_unit_ms

        self._sticky: dict[int, TargetOption] = {}
        self._dispatches: dict[int, DispatchRecord] = {}
        self._history: deque[Tile] = deque(maxlen=history_size)
        self._logger = get_logger("treasurebot.core.admission")

    @property
    def history(self) -> list[Tile]:
        """Recently struck tiles, oldest first."""
        return list(self._history)

    def sticky_target(self, hero_id: int) -> TargetOption | None:
        return self._sticky.get(hero_id)

    def last_dispatch(self, hero_id: int) -> DispatchRecord | None:
        return self._dispatches.get(hero_id)

    def next_target(self, hero: Hero) -> TargetOption | None:
        """Return the tile ``hero`` should strike next and commit to it.

        The current sticky target is kept while it still deals damage.
        Otherwise the first damaging tile in map order wins; when there are
        more candidates than the history holds, recently struck tiles are
        skipped.
        """
        current = self._sticky.get(hero.id)
        if current is not None and self.treasure_map.damage_at(hero, current.tile) > 0:
            return current

        options = self.treasure_map.damage_options(hero)
        if not options:
            self._sticky.pop(hero.id, None)
            return None

        selected = options[0]
        if len(options) > self.history_size:
            recent = set(self._history)
            fresh = [option for option in options if option.tile not in recent]
            if fresh:
                selected = fresh[0]

        self._sticky[hero.id] = selected
        return selected

    def required_wait_ms(self, hero: Hero, tile: Tile) -> float:
        """Travel time from the last struck tile to ``tile``."""
        record = self._dispatches.get(hero.id)
        if record is None:
            return 0.0
        return tile.distance(record.tile) * self.move_unit_ms / hero.speed

    def _now_ms(self) -> int:
        return round(self.clock.now() * 1000)

    def elapsed_ms(self, hero: Hero) -> int | None:
        """Milliseconds since the last dispatch, or None if there was none.

        Both instants are rounded to whole milliseconds before subtracting.
        """
        record = self._dispatches.get(hero.id)
        if record is None:
            return None
        return self._now_ms() - record.timestamp_ms

    def admit(self, hero: Hero, tile: Tile) -> bool:
        """Whether ``hero`` may strike ``tile`` right now."""
        elapsed = self.elapsed_ms(hero)
        if elapsed is not None and elapsed < self.required_wait_ms(hero, tile):
            record_admission_rejection("cooldown")
            return False

        if not self.slots.has_free_slot(hero):
            record_admission_rejection("capacity")
            return False

        return True

    async def dispatch(
        self, hero: Hero, tile: Tile, strike: StrikeCall
    ) -> StrikeResult | None:
        """Claim a slot, record the strike and perform it.

        The next sticky target is computed before the strike is awaited so
        that concurrent rounds already see it. The slot is released when the
        strike returns or fails.

        Args:
            hero: Striking hero
            tile: Tile to strike
            strike: Coroutine function performing the remote call

        Returns:
            The strike result, or None if no slot was free or the backend
            did not confirm the strike
        """
        slot_id = self.slots.acquire(hero)
        if slot_id is None:
            self._logger.debug("No free slot", hero_id=hero.id)
            return None

        self._sticky.pop(hero.id, None)
        self._dispatches[hero.id] = DispatchRecord(
            timestamp_ms=self._now_ms(), tile=tile
        )
        self.next_target(hero)
        self._history.append(tile)

        try:
            return await strike(hero, tile, slot_id)
        finally:
            self.slots.release(hero, slot_id)

    def reset(self) -> None:
        """Forget sticky targets, cooldowns and history."""
        self._sticky.clear()
        self._dispatches.clear()
        self._history.clear()
