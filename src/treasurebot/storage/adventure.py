"""Ephemeral state of one adventure run."""

import random
from collections.abc import Iterable

from treasurebot.schemas.models import Enemy, StoryBlock, StoryMap
from treasurebot.schemas.types import Tile
from treasurebot.utils.errors import InconsistencyError
from treasurebot.utils.telemetry import get_logger, record_inconsistency


class AdventureSession:
    """Candidate blocks and enemies of the adventure map being played.

    Reset at the start of every run. The synchronization layer removes
    destroyed blocks, appends spawned enemies and updates enemy hit points.
    """

    def __init__(self) -> None:
        self.blocks: list[StoryBlock] = []
        self.enemies: list[Enemy] = []
        self._logger = get_logger("treasurebot.storage.adventure")

    def reset(self) -> None:
        self.blocks = []
        self.enemies = []

    def load(self, story_map: StoryMap) -> None:
        self.blocks = [block.model_copy() for block in story_map.blocks]
        self.enemies = [enemy.model_copy() for enemy in story_map.enemies]

    def live_enemies(self) -> list[Enemy]:
        return [enemy for enemy in self.enemies if enemy.alive]

    def remove_blocks(self, tiles: Iterable[Tile]) -> None:
        destroyed = set(tiles)
        self.blocks = [block for block in self.blocks if block.tile not in destroyed]

    def add_enemies(self, enemies: Iterable[Enemy]) -> None:
        added = [enemy.model_copy() for enemy in enemies]
        if added:
            self._logger.info("Enemies spawned", count=len(added))
        self.enemies.extend(added)

    def set_enemy_hp(self, enemy_id: int, hp: int) -> bool:
        """Set the absolute hit points of an enemy.

        Returns:
            True if the enemy exists and was updated, False otherwise
        """
        for enemy in self.enemies:
            if enemy.id == enemy_id:
                enemy.hp = hp
                return True

        error = InconsistencyError("enemy", enemy_id)
        record_inconsistency("enemy")
        self._logger.warning("Ignoring damage for unknown enemy", **error.to_dict())
        return False

    def random_live_enemy(self, rng: random.Random) -> Enemy | None:
        live = self.live_enemies()
        if not live:
            return None
        return rng.choice(live)

    def random_block(self, rng: random.Random) -> StoryBlock | None:
        if not self.blocks:
            return None
        return rng.choice(self.blocks)
