"""Per-hero action slots bounding concurrent strikes.

Each hero may have at most ``capacity`` strikes in flight. A slot id is
handed out when a strike is dispatched and given back when the backend
answers, whatever the answer was.
"""

from dataclasses import dataclass, field

from treasurebot.schemas.models import Hero


@dataclass
class SlotRecord:
    """Slot bookkeeping for one hero."""

    last_id: int = 0
    outstanding: set[int] = field(default_factory=set)


class ActionSlotTracker:
    """Issues and recycles slot ids per hero.

    Ids cycle through ``1..capacity``. The counter advances and wraps to 1,
    skipping ids that are still outstanding, so an id is never handed out
    twice while in flight and the outstanding set never exceeds capacity.
    """

    def __init__(self) -> None:
        self._records: dict[int, SlotRecord] = {}

    def _record(self, hero_id: int) -> SlotRecord:
        if hero_id not in self._records:
            self._records[hero_id] = SlotRecord()
        return self._records[hero_id]

    def outstanding(self, hero_id: int) -> int:
        record = self._records.get(hero_id)
        return len(record.outstanding) if record else 0

    def outstanding_ids(self, hero_id: int) -> set[int]:
        record = self._records.get(hero_id)
        return set(record.outstanding) if record else set()

    def has_free_slot(self, hero: Hero) -> bool:
        return self.outstanding(hero.id) < hero.capacity

    def acquire(self, hero: Hero) -> int | None:
        """Allocate the next slot id for ``hero``.

        Returns:
            The slot id, or None when every slot is in flight
        """
        record = self._record(hero.id)
        if len(record.outstanding) >= hero.capacity:
            return None

        for _ in range(hero.capacity):
            record.last_id += 1
            if record.last_id > hero.capacity:
                record.last_id = 1
            if record.last_id not in record.outstanding:
                record.outstanding.add(record.last_id)
                return record.last_id

        return None

    def release(self, hero: Hero, slot_id: int) -> None:
        self._record(hero.id).outstanding.discard(slot_id)

    def reset(self) -> None:
        self._records.clear()
