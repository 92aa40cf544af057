"""State synchronization between the backend and the local mirrors.

The synchronizer is the only writer of the squad store, the treasure map
and the adventure session from outside the orchestration loop. Each remote
notification is parsed into one typed delta and applied exactly once by a
single exhaustive dispatcher.

Replay safety differs by payload form. Map snapshots, squad snapshots,
state moves, absolute energies and block/enemy hit points are absolute, so
re-applying them is harmless. Explosion results that carry an
``energy_delta`` are relative: a duplicate delivery subtracts the energy
twice. The synchronizer does not deduplicate; it relies on the client
delivering each notification at most once.
"""

from collections.abc import Callable, Mapping
from functools import partial
from typing import Any

from treasurebot.core.client import GameClient
from treasurebot.schemas.deltas import (
    Delta,
    EnemyDamaged,
    ExplosionResult,
    HeroStateChanged,
    MapLoaded,
    SquadLoaded,
    StoryExplosionResult,
    parse_delta,
)
from treasurebot.schemas.models import Block
from treasurebot.schemas.types import BlockType, DeltaKind
from treasurebot.storage.adventure import AdventureSession
from treasurebot.storage.squad import SquadStore
from treasurebot.storage.treasure_map import TreasureMap
from treasurebot.utils.telemetry import get_logger

CageHandler = Callable[[Block], None]


class StateSynchronizer:
    """Applies remote deltas to the squad, map and adventure mirrors."""

    def __init__(
        self,
        squad: SquadStore,
        treasure_map: TreasureMap,
        adventure: AdventureSession,
        on_cage_opened: CageHandler | None = None,
    ) -> None:
        """Initialize the synchronizer.

        Args:
            squad: Squad mirror to update
            treasure_map: Treasure map mirror to update
            adventure: Adventure session to update
            on_cage_opened: Called once when a caged-reward block is destroyed
        """
        self.squad = squad
        self.treasure_map = treasure_map
        self.adventure = adventure
        self.on_cage_opened = on_cage_opened
        self._logger = get_logger("treasurebot.core.sync")

    def register(self, client: GameClient) -> None:
        """Subscribe to every delta kind, dropping earlier subscriptions first."""
        client.wipe()
        for kind in DeltaKind:
            client.on(kind, partial(self.handle, kind))

    def handle(self, kind: DeltaKind, payload: Mapping[str, Any]) -> None:
        """Parse and apply one raw notification."""
        self.apply(parse_delta(kind, payload))

    def apply(self, delta: Delta) -> None:
        """Apply a typed delta to the mirrors.

        Raises:
            TypeError: If the delta is not one of the known variants
        """
        if isinstance(delta, MapLoaded):
            self.treasure_map.replace(delta.blocks)
            self._logger.info("Map loaded", summary=self.treasure_map.summary())
        elif isinstance(delta, SquadLoaded):
            self.squad.replace(delta.heroes)
            self._logger.info("Squad loaded", heroes=len(delta.heroes))
        elif isinstance(delta, HeroStateChanged):
            self.squad.patch_hero(delta.hero_id, energy=delta.energy, state=delta.state)
        elif isinstance(delta, ExplosionResult):
            self._apply_explosion(delta)
        elif isinstance(delta, StoryExplosionResult):
            self.adventure.remove_blocks(block.tile for block in delta.blocks)
            self.adventure.add_enemies(delta.enemies)
        elif isinstance(delta, EnemyDamaged):
            self.adventure.set_enemy_hp(delta.enemy_id, delta.hp)
        else:
            raise TypeError(f"Unhandled delta type: {type(delta).__name__}")

    def _apply_explosion(self, delta: ExplosionResult) -> None:
        self.squad.patch_hero(
            delta.hero_id, energy=delta.energy, energy_delta=delta.energy_delta
        )

        for patch in delta.blocks:
            block = self.treasure_map.get(patch.tile)
            opened_cage = (
                block is not None
                and block.type is BlockType.CAGE
                and block.alive
                and patch.hp == 0
            )
            self.treasure_map.patch_block(patch.tile, patch.hp)
            if opened_cage and self.on_cage_opened is not None:
                self.on_cage_opened(block)
