"""Unit tests for the adventure planner."""

import random

import pytest

from treasurebot.adapters.dummy import DummyGameClient
from treasurebot.core.adventure import (
    MAX_STORY_LEVEL,
    POSITION_ATTEMPTS,
    AdventureOutcome,
    AdventurePlanner,
)
from treasurebot.core.sync import StateSynchronizer
from treasurebot.schemas.models import (
    Enemy,
    Hero,
    Reward,
    StoryBlock,
    StoryDetails,
    StoryMap,
)
from treasurebot.schemas.types import Tile
from treasurebot.storage.adventure import AdventureSession
from treasurebot.storage.squad import SquadStore
from treasurebot.storage.treasure_map import TreasureMap


class ScriptedRandom(random.Random):
    """Random source whose ``randint`` replays a fixed sequence."""

    def __init__(self, draws: list[int]):
        super().__init__(0)
        self.draws = list(draws)
        self.randint_calls = 0

    def randint(self, a: int, b: int) -> int:
        self.randint_calls += 1
        return self.draws.pop(0)


class SleepRecorder:
    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


def make_roster(size: int) -> list[Hero]:
    return [Hero(id=hero_id, energy=10, max_energy=10, damage=1, range=2) for hero_id in range(1, size + 1)]


def make_story_map() -> StoryMap:
    return StoryMap(
        door_x=14,
        door_y=5,
        blocks=[StoryBlock(i=3, j=3), StoryBlock(i=20, j=8)],
        enemies=[Enemy(id=1, hp=1, max_hp=1), Enemy(id=2, hp=1, max_hp=1)],
    )


def build_planner(client: DummyGameClient, **kwargs) -> tuple[AdventurePlanner, AdventureSession]:
    session = AdventureSession()
    StateSynchronizer(SquadStore(), TreasureMap(), session).register(client)
    kwargs.setdefault("should_run", lambda: True)
    kwargs.setdefault("rng", random.Random(7))
    kwargs.setdefault("sleep", SleepRecorder())
    return AdventurePlanner(client, session, **kwargs), session


class TestRandomPosition:
    hero = Hero(id=1, max_energy=10, range=2)
    story_map = StoryMap(door_x=14, door_y=5)

    @pytest.mark.parametrize("valid_draw", [1, 50, POSITION_ATTEMPTS])
    def test_first_valid_draw_is_returned(self, valid_draw):
        # (14, 5) is the door itself; (1, 9) is clear of it on both axes
        draws = [14, 5] * (valid_draw - 1) + [1, 9]
        rng = ScriptedRandom(draws)
        planner, _ = build_planner(DummyGameClient(), rng=rng)

        assert planner.random_position(self.hero, self.story_map) == Tile(1, 9)
        assert rng.randint_calls == 2 * valid_draw

    def test_corners_after_exhausting_draws(self):
        rng = ScriptedRandom([14, 5] * POSITION_ATTEMPTS)
        planner, _ = build_planner(DummyGameClient(), rng=rng)

        assert planner.random_position(self.hero, self.story_map) == Tile(0, 0)

    def test_corner_order(self):
        # Door near the origin: (0, 0) and (0, 10) are in range on the column axis
        story_map = StoryMap(door_x=1, door_y=5)
        rng = ScriptedRandom([1, 5] * POSITION_ATTEMPTS)
        planner, _ = build_planner(DummyGameClient(), rng=rng)

        assert planner.random_position(self.hero, story_map) == Tile(28, 0)

    def test_last_draw_when_nothing_qualifies(self):
        huge_range = Hero(id=1, max_energy=10, range=40)
        draws = [14, 5] * (POSITION_ATTEMPTS - 1) + [3, 4]
        planner, _ = build_planner(DummyGameClient(), rng=ScriptedRandom(draws))

        assert planner.random_position(huge_range, self.story_map) == Tile(3, 4)

    def test_draws_stay_on_grid(self):
        planner, _ = build_planner(DummyGameClient(), rng=random.Random(3))

        for _ in range(200):
            tile = planner.random_position(self.hero, self.story_map)
            assert 0 <= tile.i <= 28
            assert 0 <= tile.j <= 10


class TestSelectHero:
    def test_first_unplayed_hero(self):
        planner, _ = build_planner(DummyGameClient())
        details = StoryDetails(max_level=3, played_heroes=[1, 2])

        assert planner.select_hero(make_roster(5), details).id == 3

    def test_restricted_to_configured_heroes(self):
        planner, _ = build_planner(DummyGameClient(), hero_ids=[5, 2])
        details = StoryDetails(played_heroes=[2])

        assert planner.select_hero(make_roster(5), details).id == 5

    def test_no_hero_left(self):
        planner, _ = build_planner(DummyGameClient())
        details = StoryDetails(played_heroes=[1, 2])

        assert planner.select_hero(make_roster(2), details) is None


class TestAdventureRun:
    @pytest.mark.asyncio
    async def test_small_roster_skips_without_touching_keys_or_maps(self):
        client = DummyGameClient(
            heroes=make_roster(14),
            rewards=[Reward(type="Key", value=3)],
            story_map=make_story_map(),
        )
        planner, _ = build_planner(client)

        result = await planner.run()

        assert result.outcome is AdventureOutcome.SKIPPED
        assert client.count("get_rewards") == 0
        assert client.count("get_story_map") == 0

    @pytest.mark.asyncio
    async def test_no_keys(self):
        client = DummyGameClient(
            heroes=make_roster(15),
            rewards=[Reward(type="BCoin", value=3), Reward(type="Key", value=0)],
            story_map=make_story_map(),
        )
        planner, _ = build_planner(client)

        result = await planner.run()

        assert result.outcome is AdventureOutcome.NO_KEYS
        assert client.count("get_story_map") == 0

    @pytest.mark.asyncio
    async def test_no_hero(self):
        client = DummyGameClient(
            heroes=make_roster(15),
            rewards=[Reward(type="Key", value=1)],
            story_details=StoryDetails(played_heroes=list(range(1, 16))),
            story_map=make_story_map(),
        )
        planner, _ = build_planner(client)

        result = await planner.run()

        assert result.outcome is AdventureOutcome.NO_HERO
        assert client.count("get_story_map") == 0

    @pytest.mark.asyncio
    async def test_full_run(self):
        sleep = SleepRecorder()
        client = DummyGameClient(
            heroes=make_roster(15),
            rewards=[Reward(type="Key", value=2)],
            story_details=StoryDetails(max_level=7, played_heroes=[1]),
            story_map=make_story_map(),
            door_enemies=[Enemy(id=3, hp=1, max_hp=1)],
            door_reward=1.5,
        )
        planner, session = build_planner(client, sleep=sleep)

        result = await planner.run()

        assert result.outcome is AdventureOutcome.COMPLETED
        assert result.hero_id == 2
        assert result.level == 8
        assert result.rewards == 1.5
        assert session.live_enemies() == []
        assert [enemy.id for enemy in session.enemies] == [1, 2, 3]
        assert client.count("enemy_take_damage") == 3
        assert client.count("story_strike") == 4
        assert client.count("enter_door") == 1
        assert len(sleep.delays) == 3
        assert all(4.0 <= delay <= 9.0 for delay in sleep.delays)

    @pytest.mark.asyncio
    async def test_level_is_capped(self):
        client = DummyGameClient(
            heroes=make_roster(15),
            rewards=[Reward(type="Key", value=2)],
            story_details=StoryDetails(max_level=60),
            story_map=make_story_map(),
        )
        planner, _ = build_planner(client)

        result = await planner.run()

        assert result.level == MAX_STORY_LEVEL

    @pytest.mark.asyncio
    async def test_cancelled_run_does_not_enter_door(self):
        client = DummyGameClient(
            heroes=make_roster(15),
            rewards=[Reward(type="Key", value=2)],
            story_map=make_story_map(),
        )
        planner, _ = build_planner(client, should_run=lambda: False)

        result = await planner.run()

        assert result.outcome is AdventureOutcome.CANCELLED
        assert client.count("enemy_take_damage") == 0
        assert client.count("enter_door") == 0
