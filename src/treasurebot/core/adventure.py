"""Adventure (story) mode planner.

An adventure run picks one unused hero, loads an instanced map with
enemies, strikes random enemies from random blocks until none is left,
blows up the exit door, deals with whatever the door released and finally
enters the door to claim the reward.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass
from enum import Enum

from treasurebot.core.client import GameClient
from treasurebot.schemas.models import (
    Enemy,
    Hero,
    StoryDetails,
    StoryMap,
    StrikeRequest,
)
from treasurebot.schemas.types import Tile
from treasurebot.storage.adventure import AdventureSession
from treasurebot.utils.telemetry import async_performance_timer, get_logger

MIN_ROSTER_SIZE = 15
MAX_STORY_LEVEL = 45
POSITION_ATTEMPTS = 100
KEY_REWARD_TYPE = "Key"


class AdventureOutcome(str, Enum):
    """How an adventure run ended."""

    SKIPPED = "skipped"
    NO_KEYS = "no_keys"
    NO_HERO = "no_hero"
    CANCELLED = "cancelled"
    COMPLETED = "completed"


@dataclass
class AdventureResult:
    outcome: AdventureOutcome
    hero_id: int | None = None
    level: int | None = None
    rewards: float = 0.0


class AdventurePlanner:
    """Runs one adventure at a time against the shared client.

    Requirements addressed:
    - Runs are skipped without touching keys or maps for small rosters
    - Strike positions avoid the door's blast range with bounded retries
    - The enemy loop stops as soon as the run flag is cleared
    """

    def __init__(
        self,
        client: GameClient,
        session: AdventureSession,
        should_run: Callable[[], bool],
        hero_ids: Iterable[int] = (),
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        pause_range: tuple[float, float] = (4.0, 9.0),
        min_roster_size: int = MIN_ROSTER_SIZE,
    ) -> None:
        """Initialize the planner.

        Args:
            client: Game client
            session: Adventure state kept current by the synchronizer
            should_run: Polled between strikes; False cancels the run
            hero_ids: Restrict adventure heroes to these ids (empty = any)
            rng: Random source for enemies, blocks, positions and pauses
            sleep: Coroutine used for pauses between strikes
            pause_range: Bounds of the random pause in seconds
            min_roster_size: Smallest roster allowed to play
        """
        self.client = client
        self.session = session
        self.should_run = should_run
        self.hero_ids = set(hero_ids)
        self.rng = rng or random.Random()
        self.sleep = sleep
        self.pause_range = pause_range
        self.min_roster_size = min_roster_size
        self._logger = get_logger("treasurebot.core.adventure")

    def select_hero(self, roster: list[Hero], details: StoryDetails) -> Hero | None:
        """First roster hero not yet played in the current story level."""
        played = set(details.played_heroes)
        for hero in roster:
            if hero.id in played:
                continue
            if self.hero_ids and hero.id not in self.hero_ids:
                continue
            return hero
        return None

    def random_position(self, hero: Hero, story_map: StoryMap) -> Tile:
        """A random tile whose blast cannot reach the door.

        Draws up to ``POSITION_ATTEMPTS`` tiles, then tries the four map
        corners. If nothing qualifies the last draw is returned even though
        the door is within its blast range.
        """
        door = story_map.door

        def clear_of_door(tile: Tile) -> bool:
            return (
                door.i < tile.i - hero.range or door.i > tile.i + hero.range
            ) and (door.j < tile.j - hero.range or door.j > tile.j + hero.range)

        drawn = Tile(0, 0)
        for _ in range(POSITION_ATTEMPTS):
            drawn = Tile(
                self.rng.randint(0, story_map.max_i),
                self.rng.randint(0, story_map.max_j),
            )
            if clear_of_door(drawn):
                return drawn

        corners = [
            Tile(0, 0),
            Tile(0, story_map.max_j),
            Tile(story_map.max_i, 0),
            Tile(story_map.max_i, story_map.max_j),
        ]
        for corner in corners:
            if clear_of_door(corner):
                return corner

        self._logger.warning("No strike position clear of the door", hero_id=hero.id)
        return drawn

    async def strike(self, hero: Hero, tile: Tile, enemy: Enemy | None = None) -> None:
        """Strike ``tile``; when ``enemy`` is given, damage it in the same step."""
        request = StrikeRequest(hero_id=hero.id, bomb_id=0, i=tile.i, j=tile.j, hero_type=hero.hero_type)
        self._logger.info("Adventure strike", hero_id=hero.id, i=tile.i, j=tile.j)

        async with async_performance_timer("story_strike", mode="adventure"):
            if enemy is None:
                await self.client.story_strike(request)
                return

            self._logger.info(
                "Attacking enemy",
                hero_id=hero.id,
                enemy_id=enemy.id,
                hp=enemy.hp,
                max_hp=enemy.max_hp,
                live_enemies=len(self.session.live_enemies()),
            )
            await asyncio.gather(
                self.client.story_strike(request),
                self.client.enemy_take_damage(enemy.id, hero.id),
            )

    async def fight(self, hero: Hero, story_map: StoryMap) -> None:
        """Strike random live enemies until none remain or the run is cancelled."""
        while self.should_run():
            enemy = self.session.random_live_enemy(self.rng)
            if enemy is None:
                break

            block = self.session.random_block(self.rng)
            tile = block.tile if block else self.random_position(hero, story_map)
            await self.strike(hero, tile, enemy)
            await self.sleep(self.rng.uniform(*self.pause_range))

    async def run(self) -> AdventureResult:
        """Play one adventure level if the account can."""
        roster = await self.client.sync_roster()
        if len(roster) < self.min_roster_size:
            self._logger.info("Roster too small for adventure", heroes=len(roster))
            return AdventureResult(AdventureOutcome.SKIPPED)

        rewards = await self.client.get_rewards()
        keys = next((reward for reward in rewards if reward.type == KEY_REWARD_TYPE), None)
        if keys is None or keys.value == 0:
            self._logger.info("No keys to play right now")
            return AdventureResult(AdventureOutcome.NO_KEYS)
        self._logger.info("Adventure mode iteration", keys=keys.value)

        details = await self.client.get_story_details()
        hero = self.select_hero(roster, details)
        if hero is None:
            self._logger.info("No hero available for adventure mode")
            return AdventureResult(AdventureOutcome.NO_HERO)

        level = min(details.max_level + 1, MAX_STORY_LEVEL)
        self._logger.info("Playing adventure level", level=level, hero_id=hero.id)

        story_map = await self.client.get_story_map(hero.id, level)
        self.session.load(story_map)
        self._logger.info("Adventure map loaded", enemies=len(self.session.enemies))

        await self.fight(hero, story_map)

        self._logger.info("Striking door", i=story_map.door_x, j=story_map.door_y)
        await self.strike(hero, story_map.door)
        self._logger.info(
            "Enemies after door", live_enemies=len(self.session.live_enemies())
        )
        await self.fight(hero, story_map)

        if not self.should_run():
            return AdventureResult(AdventureOutcome.CANCELLED, hero.id, level)

        self._logger.info("Entering door")
        door = await self.client.enter_door()
        self._logger.info("Finished adventure mode", rewards=door.rewards)
        return AdventureResult(AdventureOutcome.COMPLETED, hero.id, level, door.rewards)
