"""In-memory mirror of the treasure map.

Blocks are keyed by tile. The aggregate remaining life is maintained on
every update so the orchestration loop can poll it cheaply.
"""

from collections import Counter
from collections.abc import Iterable, Iterator
from dataclasses import dataclass

from treasurebot.schemas.models import Block, Hero
from treasurebot.schemas.types import BlockType, Tile
from treasurebot.utils.errors import InconsistencyError
from treasurebot.utils.telemetry import (
    get_logger,
    record_inconsistency,
    update_map_remaining_life,
)

DEFAULT_MAP_WIDTH = 35
DEFAULT_MAP_HEIGHT = 17

_DIRECTIONS = ((1, 0), (-1, 0), (0, 1), (0, -1))


@dataclass(frozen=True)
class TargetOption:
    """A tile a hero could strike from and the damage it would deal there."""

    tile: Tile
    damage: int


class TreasureMap:
    """Collection of blocks plus the derived remaining life counter."""

    def __init__(
        self,
        blocks: Iterable[Block] = (),
        width: int = DEFAULT_MAP_WIDTH,
        height: int = DEFAULT_MAP_HEIGHT,
    ) -> None:
        self._base_width = width
        self._base_height = height
        self.width = width
        self.height = height
        self._blocks: dict[Tile, Block] = {}
        self._total_life = 0
        self._max_life = 0
        self._logger = get_logger("treasurebot.storage.treasure_map")
        self.replace(blocks)

    def replace(self, blocks: Iterable[Block]) -> None:
        """Replace every block and recompute the aggregate life."""
        self._blocks = {block.tile: block for block in blocks}
        self._total_life = sum(block.hp for block in self._blocks.values())
        self._max_life = sum(block.max_hp for block in self._blocks.values())
        self.width = max([self._base_width, *(tile.i + 1 for tile in self._blocks)])
        self.height = max([self._base_height, *(tile.j + 1 for tile in self._blocks)])
        update_map_remaining_life(self._total_life)
        self._logger.debug(
            "Map replaced", blocks=len(self._blocks), total_life=self._total_life
        )

    def patch_block(self, tile: Tile, hp: int) -> bool:
        """Set the absolute hit points of one block.

        Re-applying the same patch leaves the map unchanged.

        Returns:
            True if the block exists and was updated, False otherwise
        """
        block = self._blocks.get(tile)
        if block is None:
            error = InconsistencyError("block", tuple(tile))
            record_inconsistency("block")
            self._logger.warning("Ignoring patch for unknown block", **error.to_dict())
            return False

        self._total_life -= block.hp - hp
        block.hp = hp
        update_map_remaining_life(self._total_life)
        return True

    def get(self, tile: Tile) -> Block | None:
        return self._blocks.get(tile)

    @property
    def blocks(self) -> list[Block]:
        return list(self._blocks.values())

    @property
    def total_life(self) -> int:
        return self._total_life

    @property
    def max_life(self) -> int:
        return self._max_life

    def __len__(self) -> int:
        return len(self._blocks)

    def _in_bounds(self, tile: Tile) -> bool:
        return 0 <= tile.i < self.width and 0 <= tile.j < self.height

    def _is_blocked(self, tile: Tile) -> bool:
        block = self._blocks.get(tile)
        return block is not None and block.alive

    def blast(self, tile: Tile, blast_range: int) -> list[Block]:
        """Blocks hit by a blast centered on ``tile``.

        The blast travels up to ``blast_range`` tiles in each cardinal
        direction and stops at the first live block it meets.
        """
        hit: list[Block] = []
        for di, dj in _DIRECTIONS:
            for step in range(1, blast_range + 1):
                target = Tile(tile.i + di * step, tile.j + dj * step)
                if not self._in_bounds(target):
                    break
                block = self._blocks.get(target)
                if block is not None and block.alive:
                    hit.append(block)
                    break
        return hit

    def damage_at(self, hero: Hero, tile: Tile) -> int:
        """Damage ``hero`` would deal with a strike placed on ``tile``."""
        if not self._in_bounds(tile) or self._is_blocked(tile):
            return 0
        return sum(min(hero.damage, block.hp) for block in self.blast(tile, hero.range))

    def tiles(self) -> Iterator[Tile]:
        """Every tile of the map in map order (column-major)."""
        for i in range(self.width):
            for j in range(self.height):
                yield Tile(i, j)

    def damage_options(self, hero: Hero) -> list[TargetOption]:
        """Tiles where ``hero`` would deal positive damage, in map order."""
        options = []
        for tile in self.tiles():
            damage = self.damage_at(hero, tile)
            if damage > 0:
                options.append(TargetOption(tile=tile, damage=damage))
        return options

    def special_block_counts(self) -> dict[BlockType, int]:
        """Live reward blocks remaining, by type."""
        counts = Counter(
            block.type
            for block in self._blocks.values()
            if block.alive and block.type.is_special
        )
        return dict(counts)

    def summary(self) -> str:
        alive = sum(1 for block in self._blocks.values() if block.alive)
        return (
            f"Blocks: {alive}/{len(self._blocks)} | "
            f"Life: {self._total_life}/{self._max_life}"
        )

    def __str__(self) -> str:
        return self.summary()
