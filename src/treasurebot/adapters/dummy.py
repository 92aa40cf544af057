"""In-memory game backend for tests and dry runs.

This module provides a client that keeps its own authoritative copy of the
squad, map and adventure state, answers requests from it and pushes the
same notifications a real backend would through the registered handlers.
"""

import asyncio
from collections.abc import Iterable, Mapping
from typing import Any

from treasurebot.core.client import DeltaHandler
from treasurebot.schemas.models import (
    Block,
    DoorResult,
    Enemy,
    Hero,
    House,
    Reward,
    StoryDetails,
    StoryMap,
    StrikeRequest,
    StrikeResult,
)
from treasurebot.schemas.types import DeltaKind, HeroState, Tile
from treasurebot.storage.treasure_map import TreasureMap
from treasurebot.utils.errors import ClientError
from treasurebot.utils.telemetry import get_logger


class DummyGameClient:
    """Mock game client emulating the backend in memory.

    Every request is recorded in :attr:`calls` so tests can assert on the
    exact sequence of remote operations.
    """

    def __init__(
        self,
        heroes: Iterable[Hero] = (),
        blocks: Iterable[Block] = (),
        houses: Iterable[House] = (),
        rewards: Iterable[Reward] = (),
        roster: Iterable[Hero] | None = None,
        story_details: StoryDetails | None = None,
        story_map: StoryMap | None = None,
        door_enemies: Iterable[Enemy] = (),
        door_reward: float = 0.0,
        energy_cost: int = 1,
        strike_delay: float = 0.0,
        network: str = "BSC",
        fail_on: Iterable[str] = (),
    ) -> None:
        """Initialize the dummy backend.

        Args:
            heroes: Active squad
            blocks: Treasure map blocks
            houses: Houses owned by the account
            rewards: Reward balances
            roster: Every hero owned (defaults to the active squad)
            story_details: Adventure progress
            story_map: Map served for any adventure level
            door_enemies: Enemies released when the door is struck
            door_reward: Reward granted when entering the door
            energy_cost: Energy spent per treasure-map strike
            strike_delay: Simulated strike round-trip in seconds
            network: Network reported by the client
            fail_on: Operations that raise ClientError instead of answering
        """
        self.network = network
        self.heroes: dict[int, Hero] = {hero.id: hero.model_copy(deep=True) for hero in heroes}
        self.treasure_map = TreasureMap(block.model_copy() for block in blocks)
        self.houses = [house.model_copy() for house in houses]
        self.rewards = [reward.model_copy() for reward in rewards]
        self.roster = (
            [hero.model_copy(deep=True) for hero in roster]
            if roster is not None
            else list(self.heroes.values())
        )
        self.story_details = story_details or StoryDetails()
        self.story_map = story_map
        self.door_enemies = [enemy.model_copy() for enemy in door_enemies]
        self.door_reward = door_reward
        self.energy_cost = energy_cost
        self.strike_delay = strike_delay
        self.fail_on = set(fail_on)

        self.calls: list[str] = []
        self._handlers: dict[DeltaKind, DeltaHandler] = {}
        self._enemies: dict[int, Enemy] = {}
        self._connected = False
        self._logged_in = False
        self._logger = get_logger("treasurebot.adapters.dummy")

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def is_logged_in(self) -> bool:
        return self._logged_in

    def _record(self, operation: str) -> None:
        self.calls.append(operation)
        if operation in self.fail_on:
            raise ClientError(operation, "injected failure")

    def count(self, operation: str) -> int:
        """Number of times ``operation`` was requested."""
        return self.calls.count(operation)

    def _emit(self, kind: DeltaKind, payload: Mapping[str, Any]) -> None:
        handler = self._handlers.get(kind)
        if handler is None:
            self._logger.debug("No handler registered", kind=kind.value)
            return
        handler(payload)

    def _hero(self, hero_id: int) -> Hero:
        if hero_id in self.heroes:
            return self.heroes[hero_id]
        for hero in self.roster:
            if hero.id == hero_id:
                return hero
        raise KeyError(f"Unknown hero {hero_id}")

    # Session

    async def connect(self) -> None:
        self._record("connect")
        self._connected = True

    async def login(self) -> None:
        self._record("login")
        self._logged_in = True

    def wipe(self) -> None:
        self._handlers.clear()

    def on(self, kind: DeltaKind, handler: DeltaHandler) -> None:
        self._handlers[kind] = handler

    async def ping(self) -> None:
        self._record("ping")

    # Treasure map

    async def get_block_map(self) -> None:
        self._record("get_block_map")
        blocks = [block.model_dump(mode="json") for block in self.treasure_map.blocks]
        self._emit(DeltaKind.MAP_LOADED, {"blocks": blocks})

    async def get_active_heroes(self) -> None:
        self._record("get_active_heroes")
        heroes = [hero.model_dump(mode="json") for hero in self.heroes.values()]
        self._emit(DeltaKind.SQUAD_LOADED, {"heroes": heroes})

    async def _move(self, hero: Hero, state: HeroState, kind: DeltaKind) -> None:
        backend_hero = self._hero(hero.id)
        backend_hero.state = state
        self._emit(kind, {"hero_id": hero.id, "energy": backend_hero.energy})

    async def go_work(self, hero: Hero) -> None:
        self._record("go_work")
        await self._move(hero, HeroState.WORK, DeltaKind.HERO_WORK)

    async def go_sleep(self, hero: Hero) -> None:
        self._record("go_sleep")
        await self._move(hero, HeroState.SLEEP, DeltaKind.HERO_SLEEP)

    async def go_home(self, hero: Hero) -> None:
        self._record("go_home")
        await self._move(hero, HeroState.HOME, DeltaKind.HERO_HOME)

    async def start_pve(self, alternate: bool) -> None:
        self._record("start_pve")

    async def stop_pve(self) -> None:
        self._record("stop_pve")

    async def strike(self, request: StrikeRequest, alternate: bool) -> StrikeResult | None:
        """Resolve a strike against the backend map.

        Returns:
            None if the hero is not working or has no energy left
        """
        self._record("strike")
        if self.strike_delay:
            await asyncio.sleep(self.strike_delay)
        else:
            await asyncio.sleep(0)

        hero = self._hero(request.hero_id)
        if hero.state != HeroState.WORK or hero.energy <= 0:
            return None

        patches = []
        for block in self.treasure_map.blast(Tile(request.i, request.j), hero.range):
            hp = max(0, block.hp - hero.damage)
            self.treasure_map.patch_block(block.tile, hp)
            patches.append({"i": block.i, "j": block.j, "hp": hp})
        hero.energy = max(0, hero.energy - self.energy_cost)

        payload = {"hero_id": hero.id, "energy": hero.energy, "blocks": patches}
        kind = DeltaKind.EXPLOSION_V2 if alternate else DeltaKind.EXPLOSION
        self._emit(kind, payload)
        return StrikeResult.model_validate(payload)

    # Adventure

    async def sync_roster(self) -> list[Hero]:
        self._record("sync_roster")
        return [hero.model_copy(deep=True) for hero in self.roster]

    async def get_rewards(self) -> list[Reward]:
        self._record("get_rewards")
        return [reward.model_copy() for reward in self.rewards]

    async def get_story_details(self) -> StoryDetails:
        self._record("get_story_details")
        return self.story_details.model_copy(deep=True)

    async def get_story_map(self, hero_id: int, level: int) -> StoryMap:
        self._record("get_story_map")
        if self.story_map is None:
            raise LookupError("No adventure map configured")

        story_map = self.story_map.model_copy(deep=True, update={"level": level})
        self._enemies = {enemy.id: enemy.model_copy() for enemy in story_map.enemies}
        return story_map

    async def story_strike(self, request: StrikeRequest) -> None:
        self._record("story_strike")
        await asyncio.sleep(0)

        spawned: list[dict[str, Any]] = []
        if self.story_map is not None and Tile(request.i, request.j) == self.story_map.door:
            for enemy in self.door_enemies:
                self._enemies[enemy.id] = enemy.model_copy()
                spawned.append(enemy.model_dump())
            self.door_enemies = []

        destroyed = [{"i": request.i, "j": request.j}]
        self._emit(DeltaKind.STORY_EXPLOSION, {"blocks": destroyed, "enemies": spawned})

    async def enemy_take_damage(self, enemy_id: int, hero_id: int) -> None:
        self._record("enemy_take_damage")
        enemy = self._enemies.get(enemy_id)
        if enemy is None:
            return
        enemy.hp = max(0, enemy.hp - self._hero(hero_id).damage)
        self._emit(DeltaKind.ENEMY_DAMAGE, {"enemy_id": enemy_id, "hp": enemy.hp})

    async def enter_door(self) -> DoorResult:
        self._record("enter_door")
        return DoorResult(rewards=self.door_reward)

    async def sync_houses(self) -> list[House]:
        self._record("sync_houses")
        return [house.model_copy() for house in self.houses]
