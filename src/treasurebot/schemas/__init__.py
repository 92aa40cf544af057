"""Schemas for game entities, value types and remote deltas."""

from .deltas import (
    Delta,
    EnemyDamaged,
    ExplosionResult,
    HeroStateChanged,
    MapLoaded,
    SquadLoaded,
    StoryExplosionResult,
    parse_delta,
)
from .models import (
    Block,
    BlockPatch,
    DoorResult,
    Enemy,
    Hero,
    House,
    Reward,
    Shield,
    StoryBlock,
    StoryDetails,
    StoryMap,
    StrikeRequest,
    StrikeResult,
)
from .types import BlockType, DeltaKind, HeroState, PlayMode, Rarity, Tile

__all__ = [
    "Block",
    "BlockPatch",
    "BlockType",
    "Delta",
    "DeltaKind",
    "DoorResult",
    "Enemy",
    "EnemyDamaged",
    "ExplosionResult",
    "Hero",
    "HeroState",
    "HeroStateChanged",
    "House",
    "MapLoaded",
    "PlayMode",
    "Rarity",
    "Reward",
    "Shield",
    "SquadLoaded",
    "StoryBlock",
    "StoryDetails",
    "StoryExplosionResult",
    "StoryMap",
    "StrikeRequest",
    "StrikeResult",
    "Tile",
    "parse_delta",
]
