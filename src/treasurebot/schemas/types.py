"""Core enumerations and lightweight value types."""

from enum import Enum
from typing import NamedTuple


class HeroState(str, Enum):
    """Lifecycle state of a hero as reported by the backend."""

    WORK = "Work"
    SLEEP = "Sleep"
    HOME = "Home"


class Rarity(str, Enum):
    """Hero rarity tiers, lowest first."""

    COMMON = "Common"
    RARE = "Rare"
    SUPER_RARE = "SuperRare"
    EPIC = "Epic"
    LEGEND = "Legend"
    SUPER_LEGEND = "SuperLegend"

    @property
    def index(self) -> int:
        """Position of the tier in ascending order, used for ranking."""
        return list(Rarity).index(self)


class BlockType(str, Enum):
    """Block types on the treasure map, in backend index order."""

    ROCK = "Rock"
    SOIL = "Soil"
    CAGE = "Cage"
    WOODEN_CHEST = "WoodenChest"
    METAL_CHEST = "MetalChest"
    GOLD_CHEST = "GoldChest"
    DIAMOND_CHEST = "DiamondChest"
    KEY_CHEST = "KeyChest"

    @classmethod
    def from_index(cls, index: int) -> "BlockType":
        """Map the numeric type code used by the backend to a block type."""
        members = list(cls)
        if not 0 <= index < len(members):
            raise ValueError(f"Unknown block type index: {index}")
        return members[index]

    @property
    def is_special(self) -> bool:
        """Whether the block holds a reward worth reporting."""
        return self not in (BlockType.ROCK, BlockType.SOIL)


class DeltaKind(str, Enum):
    """Remote event kinds the synchronization layer subscribes to."""

    MAP_LOADED = "getBlockMap"
    SQUAD_LOADED = "getActiveBomber"
    HERO_SLEEP = "goSleep"
    HERO_HOME = "goHome"
    HERO_WORK = "goWork"
    EXPLOSION = "startExplode"
    EXPLOSION_V2 = "startExplodeV2"
    STORY_EXPLOSION = "startStoryExplode"
    ENEMY_DAMAGE = "enemyTakeDamage"


class PlayMode(str, Enum):
    """What the bot is currently doing, for status reporting."""

    TREASURE = "Treasure"
    AMAZON = "Amazon"
    ADVENTURE = "Adventure"
    SLEEP = "sleep"


class Tile(NamedTuple):
    """A grid coordinate: ``i`` is the column, ``j`` the row."""

    i: int
    j: int

    def distance(self, other: "Tile") -> int:
        """Manhattan distance to another tile."""
        return abs(self.i - other.i) + abs(self.j - other.j)
