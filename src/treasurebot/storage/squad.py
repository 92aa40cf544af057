"""In-memory mirror of the hero squad.

The squad store is written only by the synchronization layer. Every view
(working, sleeping, home) is computed from the current contents on each
call so callers never observe a stale snapshot.
"""

from collections.abc import Iterable

from treasurebot.schemas.models import Hero
from treasurebot.schemas.types import HeroState
from treasurebot.utils.errors import InconsistencyError
from treasurebot.utils.telemetry import get_logger, record_inconsistency


class SquadStore:
    """Mapping from hero id to hero record with state-filtered views."""

    def __init__(self, heroes: Iterable[Hero] = ()) -> None:
        self._heroes: dict[int, Hero] = {}
        self._logger = get_logger("treasurebot.storage.squad")
        self.replace(heroes)

    def replace(self, heroes: Iterable[Hero]) -> None:
        """Replace the whole squad with a fresh snapshot.

        Args:
            heroes: Heroes reported by the backend, in backend order
        """
        self._heroes = {hero.id: hero for hero in heroes}
        self._logger.debug("Squad replaced", heroes=len(self._heroes))

    def get(self, hero_id: int) -> Hero | None:
        return self._heroes.get(hero_id)

    def all(self) -> list[Hero]:
        return list(self._heroes.values())

    def __len__(self) -> int:
        return len(self._heroes)

    def __contains__(self, hero_id: object) -> bool:
        return hero_id in self._heroes

    def by_state(self, state: HeroState) -> list[Hero]:
        return [hero for hero in self._heroes.values() if hero.state == state]

    def working(self) -> list[Hero]:
        return self.by_state(HeroState.WORK)

    def sleeping(self) -> list[Hero]:
        return self.by_state(HeroState.SLEEP)

    def home(self) -> list[Hero]:
        return self.by_state(HeroState.HOME)

    def not_working(self) -> list[Hero]:
        return [hero for hero in self._heroes.values() if hero.state != HeroState.WORK]

    def patch_hero(
        self,
        hero_id: int,
        *,
        energy: int | None = None,
        energy_delta: int | None = None,
        state: HeroState | None = None,
    ) -> bool:
        """Apply a partial update to one hero.

        Absolute ``energy`` and ``state`` updates are idempotent. An
        ``energy_delta`` is added to the current energy, so replaying it
        applies it again.

        Args:
            hero_id: Hero to update
            energy: New absolute energy
            energy_delta: Relative energy change
            state: New lifecycle state

        Returns:
            True if the hero exists and was updated, False otherwise
        """
        hero = self._heroes.get(hero_id)
        if hero is None:
            error = InconsistencyError("hero", hero_id)
            record_inconsistency("hero")
            self._logger.warning("Ignoring patch for unknown hero", **error.to_dict())
            return False

        if energy is not None:
            hero.energy = energy
        elif energy_delta is not None:
            hero.energy = hero.energy + energy_delta
        if state is not None:
            hero.state = state
        return True
