"""Pydantic models for the game entities mirrored from the backend.

Heroes, blocks, houses, rewards and the adventure (story) structures all
arrive as data from the remote backend. These models validate that data
once at the boundary so the stores and planners can trust it.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from .types import BlockType, HeroState, Rarity, Tile


class Shield(BaseModel):
    """One shield entry on a hero."""

    current: int = Field(default=0, ge=0, description="Remaining shield value")
    total: int = Field(default=0, ge=0, description="Shield capacity")


class Hero(BaseModel):
    """A controllable worker unit."""

    id: int = Field(..., description="Stable hero identifier")
    rarity: Rarity = Field(default=Rarity.COMMON, description="Rarity tier")
    energy: int = Field(default=0, description="Current energy (stamina)")
    max_energy: int = Field(default=1, gt=0, description="Maximum energy")
    speed: int = Field(default=1, gt=0, description="Movement speed")
    capacity: int = Field(
        default=1, ge=1, description="Concurrent strikes the hero may have in flight"
    )
    range: int = Field(default=1, ge=1, description="Blast range in tiles")
    damage: int = Field(default=1, ge=0, description="Damage dealt per strike")
    state: HeroState = Field(default=HeroState.SLEEP, description="Lifecycle state")
    shields: list[Shield] = Field(default_factory=list, description="Shield entries")
    hero_type: int = Field(default=0, description="Backend hero type code")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("rarity", mode="before")
    @classmethod
    def validate_rarity(cls, v: Any) -> Any:
        """Accept the numeric rarity index the backend sends."""
        if isinstance(v, int):
            tiers = list(Rarity)
            if not 0 <= v < len(tiers):
                raise ValueError(f"Unknown rarity index: {v}")
            return tiers[v]
        return v

    @property
    def rarity_index(self) -> int:
        return self.rarity.index

    @property
    def energy_percentage(self) -> float:
        return self.energy / self.max_energy * 100

    @property
    def shield_total(self) -> int:
        """Sum of the current value of every shield."""
        return sum(shield.current for shield in self.shields)

    @property
    def has_shield(self) -> bool:
        return len(self.shields) > 0

    def label(self) -> str:
        return f"{self.rarity.value} [{self.id}]"


class Block(BaseModel):
    """One grid cell holding a destructible block."""

    i: int = Field(..., ge=0, description="Column")
    j: int = Field(..., ge=0, description="Row")
    type: BlockType = Field(default=BlockType.SOIL, description="Block type")
    hp: int = Field(default=1, ge=0, description="Remaining hit points")
    max_hp: int = Field(default=1, ge=0, description="Initial hit points")

    model_config = ConfigDict(validate_assignment=True)

    @field_validator("type", mode="before")
    @classmethod
    def validate_type(cls, v: Any) -> Any:
        """Accept the numeric block type index the backend sends."""
        if isinstance(v, int):
            return BlockType.from_index(v)
        return v

    @property
    def tile(self) -> Tile:
        return Tile(self.i, self.j)

    @property
    def alive(self) -> bool:
        return self.hp > 0


class BlockPatch(BaseModel):
    """Absolute hit point update for a block."""

    i: int
    j: int
    hp: int = Field(..., ge=0)

    @property
    def tile(self) -> Tile:
        return Tile(self.i, self.j)


class House(BaseModel):
    """A house granting home slots to resting heroes."""

    id: int
    rarity: int = 0
    slots: int = Field(default=0, ge=0, description="Heroes that can rest inside")
    active: bool = False


class Reward(BaseModel):
    """One reward balance line."""

    network: str = "BSC"
    type: str
    value: float = 0.0


class Enemy(BaseModel):
    """An adventure-mode enemy."""

    id: int
    hp: int = Field(default=0, ge=0)
    max_hp: int = Field(default=0, ge=0)

    @property
    def alive(self) -> bool:
        return self.hp > 0


class StoryBlock(BaseModel):
    """A destructible block in an adventure map."""

    i: int
    j: int

    @property
    def tile(self) -> Tile:
        return Tile(self.i, self.j)


class StoryMap(BaseModel):
    """An instanced adventure map."""

    level: int = Field(default=1, ge=1)
    door_x: int = Field(..., ge=0, description="Door column")
    door_y: int = Field(..., ge=0, description="Door row")
    blocks: list[StoryBlock] = Field(default_factory=list)
    enemies: list[Enemy] = Field(default_factory=list)
    max_i: int = Field(default=28, ge=0, description="Largest column index")
    max_j: int = Field(default=10, ge=0, description="Largest row index")

    @property
    def door(self) -> Tile:
        return Tile(self.door_x, self.door_y)


class StoryDetails(BaseModel):
    """Story progress of the account."""

    max_level: int = Field(default=0, ge=0)
    played_heroes: list[int] = Field(
        default_factory=list, description="Heroes already used for the current level"
    )


class StrikeRequest(BaseModel):
    """Parameters of one strike (bomb placement)."""

    hero_id: int
    bomb_id: int
    i: int
    j: int
    hero_type: int = 0


class StrikeResult(BaseModel):
    """Backend confirmation of a strike."""

    hero_id: int
    energy: int
    blocks: list[BlockPatch] = Field(default_factory=list)


class DoorResult(BaseModel):
    """Outcome of entering the adventure door."""

    rewards: float = 0.0
