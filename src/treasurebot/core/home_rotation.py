"""Rotation of resting heroes through the limited house slots.

Heroes recover energy faster at home, but the active house only holds a
few of them. After every selection refresh the best resting heroes are
moved in, evicting weaker non-priority occupants when the house is full.
"""

from collections.abc import Iterable

from treasurebot.core.client import GameClient
from treasurebot.schemas.models import Hero
from treasurebot.schemas.types import HeroState
from treasurebot.storage.squad import SquadStore
from treasurebot.utils.telemetry import get_logger, record_home_move


class HomeRotationManager:
    """Assigns house slots to resting heroes by priority then rarity."""

    def __init__(
        self,
        squad: SquadStore,
        client: GameClient,
        priority_ids: Iterable[int] = (),
        shield_mode: bool = False,
    ) -> None:
        """Initialize the manager.

        Args:
            squad: Squad mirror
            client: Client used to move heroes
            priority_ids: Heroes that should always get a slot first
            shield_mode: Only heroes with a positive shield total are eligible
        """
        self.squad = squad
        self.client = client
        self.priority_ids = set(priority_ids)
        self.shield_mode = shield_mode
        self._logger = get_logger("treasurebot.core.home_rotation")

    def _rank_key(self, hero: Hero) -> tuple[bool, int]:
        return (hero.id in self.priority_ids, hero.rarity_index)

    def eligible(self) -> list[Hero]:
        heroes = self.squad.not_working()
        if self.shield_mode:
            heroes = [hero for hero in heroes if hero.has_shield and hero.shield_total > 0]
        return heroes

    def ranked(self, slots: int) -> list[Hero]:
        """The ``slots`` heroes that deserve a house slot, best first."""
        if slots <= 0:
            return []
        return sorted(self.eligible(), key=self._rank_key, reverse=True)[:slots]

    def _pick_eviction(self, occupants: list[Hero]) -> Hero | None:
        """Lowest ranked occupant that is not on the priority list."""
        evictable = [hero for hero in occupants if hero.id not in self.priority_ids]
        if not evictable:
            return None
        return min(evictable, key=self._rank_key)

    async def rotate(self, slots: int) -> None:
        """Fill the house with the best ranked resting heroes.

        Args:
            slots: Capacity of the active house (0 when there is none)
        """
        self._logger.info("Rotating heroes home", slots=slots)

        for hero in self.ranked(slots):
            if hero.state == HeroState.HOME:
                continue

            occupants = self.squad.home()
            if len(occupants) < slots:
                self._logger.info("Sending hero home", hero_id=hero.id)
                await self.client.go_home(hero)
                record_home_move("in")
                continue

            if hero.id not in self.priority_ids:
                continue

            evicted = self._pick_eviction(occupants)
            if evicted is None:
                continue

            self._logger.info(
                "Replacing hero at home", evicted_id=evicted.id, hero_id=hero.id
            )
            await self.client.go_sleep(evicted)
            record_home_move("out")
            await self.client.go_home(hero)
            record_home_move("in")
