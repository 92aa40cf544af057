"""Typed state deltas delivered by the game client.

Every remote notification the bot reacts to is parsed into exactly one of
the delta models below. The set is closed: :data:`Delta` enumerates every
variant and :func:`parse_delta` is the only way raw payloads become deltas.
"""

from collections.abc import Mapping
from typing import Any, Literal, TypeAlias

from pydantic import BaseModel, Field, model_validator

from .models import Block, BlockPatch, Enemy, Hero, StoryBlock
from .types import DeltaKind, HeroState


class MapLoaded(BaseModel):
    """Full treasure map snapshot."""

    blocks: list[Block] = Field(default_factory=list)


class SquadLoaded(BaseModel):
    """Full snapshot of the active squad."""

    heroes: list[Hero] = Field(default_factory=list)


class HeroStateChanged(BaseModel):
    """A hero was moved to work, sleep or home."""

    hero_id: int
    state: HeroState
    energy: int | None = Field(
        default=None, description="Absolute energy after the move, if reported"
    )


class ExplosionResult(BaseModel):
    """Outcome of a treasure-map strike.

    ``energy`` is absolute and safe to replay. ``energy_delta`` is relative:
    applying the same payload twice subtracts twice, so it relies on the
    client delivering each notification at most once.
    """

    variant: Literal["normal", "alternate"] = "normal"
    hero_id: int
    energy: int | None = None
    energy_delta: int | None = None
    blocks: list[BlockPatch] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_energy_form(self) -> "ExplosionResult":
        """Absolute and relative energy are mutually exclusive."""
        if self.energy is not None and self.energy_delta is not None:
            raise ValueError("Provide either energy or energy_delta, not both")
        return self


class StoryExplosionResult(BaseModel):
    """Outcome of an adventure strike: destroyed blocks and spawned enemies."""

    blocks: list[StoryBlock] = Field(default_factory=list)
    enemies: list[Enemy] = Field(default_factory=list)


class EnemyDamaged(BaseModel):
    """Absolute hit points of an adventure enemy after a hit."""

    enemy_id: int
    hp: int = Field(..., ge=0)


Delta: TypeAlias = (
    MapLoaded
    | SquadLoaded
    | HeroStateChanged
    | ExplosionResult
    | StoryExplosionResult
    | EnemyDamaged
)

_HERO_STATE_BY_KIND = {
    DeltaKind.HERO_SLEEP: HeroState.SLEEP,
    DeltaKind.HERO_HOME: HeroState.HOME,
    DeltaKind.HERO_WORK: HeroState.WORK,
}


def parse_delta(kind: DeltaKind, payload: Mapping[str, Any]) -> Delta:
    """Parse a raw client payload into its typed delta.

    Args:
        kind: Remote event kind the payload was delivered under
        payload: Raw payload mapping

    Returns:
        The typed delta

    Raises:
        pydantic.ValidationError: If the payload does not match the kind
        ValueError: If the kind is not a known delta kind
    """
    data = dict(payload)

    if kind is DeltaKind.MAP_LOADED:
        return MapLoaded.model_validate(data)
    if kind is DeltaKind.SQUAD_LOADED:
        return SquadLoaded.model_validate(data)
    if kind in _HERO_STATE_BY_KIND:
        data["state"] = _HERO_STATE_BY_KIND[kind]
        return HeroStateChanged.model_validate(data)
    if kind is DeltaKind.EXPLOSION:
        data["variant"] = "normal"
        return ExplosionResult.model_validate(data)
    if kind is DeltaKind.EXPLOSION_V2:
        data["variant"] = "alternate"
        return ExplosionResult.model_validate(data)
    if kind is DeltaKind.STORY_EXPLOSION:
        return StoryExplosionResult.model_validate(data)
    if kind is DeltaKind.ENEMY_DAMAGE:
        return EnemyDamaged.model_validate(data)

    raise ValueError(f"Unknown delta kind: {kind!r}")
