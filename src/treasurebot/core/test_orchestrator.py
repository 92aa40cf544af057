"""Unit tests for the orchestration loop."""

import asyncio

import pytest

from treasurebot.adapters.dummy import DummyGameClient
from treasurebot.core.adventure import AdventureOutcome
from treasurebot.core.orchestrator import BotConfig, Orchestrator
from treasurebot.schemas.models import Block, Hero, House, Reward, Shield
from treasurebot.schemas.types import BlockType, HeroState, PlayMode
from treasurebot.utils.errors import (
    ClientError,
    NotConnectedError,
    RecoveryAction,
    VersionMismatchError,
)
from treasurebot.utils.version import UPDATE_MESSAGE, VersionGuard

PARKED = 3600.0


class FakeTime:
    """Clock plus sleep; sleeping advances the clock instead of waiting.

    Delays of ``PARKED`` seconds or more never return, which keeps the
    keep-alive watcher quiet.
    """

    def __init__(self):
        self.current = 0.0
        self.delays: list[float] = []

    def now(self) -> float:
        return self.current

    async def sleep(self, delay: float) -> None:
        self.delays.append(delay)
        if delay >= PARKED:
            await asyncio.Event().wait()
        self.current += delay
        await asyncio.sleep(0)


class RecordingNotifier:
    def __init__(self):
        self.messages: list[str] = []

    async def send(self, message: str) -> None:
        self.messages.append(message)


def make_hero(
    hero_id: int,
    energy: int = 10,
    state: HeroState = HeroState.SLEEP,
    shields: list[Shield] | None = None,
) -> Hero:
    return Hero(
        id=hero_id,
        energy=energy,
        max_energy=10,
        speed=10,
        range=1,
        damage=1,
        state=state,
        shields=shields if shields is not None else [Shield(current=50, total=100)],
    )


def build_bot(client: DummyGameClient, time: FakeTime | None = None, **config) -> Orchestrator:
    time = time or FakeTime()
    config.setdefault("mode_amazon", False)
    config.setdefault("ping_interval_seconds", PARKED)
    return Orchestrator(
        client,
        BotConfig(**config),
        notifier=RecordingNotifier(),
        clock=time,
        wall_clock=time,
        sleep=time.sleep,
    )


class TestBotConfig:
    def test_colon_separated_hero_ids(self):
        config = BotConfig(house_heroes="12:34", adventure_heroes=7)

        assert config.house_heroes == [12, 34]
        assert config.adventure_heroes == [7]

    def test_defaults(self):
        config = BotConfig()

        assert config.min_hero_energy_percentage == 90
        assert config.stagger_ms == 70
        assert config.adventure_interval_seconds == 600


class TestHeroSelection:
    @pytest.mark.asyncio
    async def test_refresh_fills_up_to_work_cap(self):
        client = DummyGameClient(
            heroes=[
                make_hero(1, energy=5, state=HeroState.WORK),
                make_hero(2, energy=10),
                make_hero(3, energy=5),
                make_hero(4, energy=9),
            ]
        )
        bot = build_bot(client, num_hero_work=2)
        bot.reset()

        await bot.refresh_hero_selection()

        assert [hero.id for hero in bot.working_selection()] == [1, 2]
        assert client.count("go_work") == 1
        assert bot.squad.get(4).state == HeroState.SLEEP

    @pytest.mark.asyncio
    async def test_energy_threshold(self):
        client = DummyGameClient(heroes=[make_hero(1, energy=8), make_hero(2, energy=9)])
        bot = build_bot(client)
        bot.reset()

        await bot.refresh_hero_selection()

        assert [hero.id for hero in bot.working_selection()] == [2]

    @pytest.mark.asyncio
    async def test_shield_mode_skips_unshielded_heroes(self):
        client = DummyGameClient(heroes=[make_hero(1, shields=[]), make_hero(2)])
        bot = build_bot(client, mode_amazon=True)
        bot.reset()

        await bot.refresh_hero_selection()

        assert [hero.id for hero in bot.working_selection()] == [2]
        assert bot.notifier.messages == ["Hero 1 needs shield repair"]

    @pytest.mark.asyncio
    async def test_next_hero_round_robin(self):
        client = DummyGameClient(heroes=[make_hero(1), make_hero(2)])
        bot = build_bot(client)
        bot.reset()
        await bot.refresh_hero_selection()

        assert [bot.next_hero().id for _ in range(3)] == [1, 2, 1]

    @pytest.mark.asyncio
    async def test_refresh_rotates_house(self):
        client = DummyGameClient(
            heroes=[make_hero(1, energy=2), make_hero(2, energy=10)],
            houses=[House(id=1, slots=1, active=True)],
        )
        bot = build_bot(client)
        bot.reset()
        await bot.load_houses()

        await bot.refresh_hero_selection()

        assert bot.home_slots == 1
        assert [hero.id for hero in bot.squad.home()] == [1]


class TestStrikes:
    @pytest.mark.asyncio
    async def test_place_bombs_drains_the_map(self):
        client = DummyGameClient(
            heroes=[make_hero(1), make_hero(2)],
            blocks=[
                Block(i=1, j=0, hp=1, max_hp=1),
                Block(i=3, j=0, type=BlockType.CAGE, hp=1, max_hp=1),
                Block(i=6, j=2, hp=2, max_hp=2),
            ],
        )
        bot = build_bot(client)
        bot.should_run = True
        bot.reset()
        await bot.refresh_map()
        await bot.refresh_hero_selection()

        await bot.place_bombs()
        await asyncio.sleep(0)

        assert bot.treasure_map.total_life == 0
        assert client.treasure_map.total_life == 0
        assert bot.slots.outstanding(1) == 0
        assert bot.slots.outstanding(2) == 0
        assert bot.notifier.messages == ["You won a hero"]

    @pytest.mark.asyncio
    async def test_each_hero_task_is_staggered(self):
        time = FakeTime()
        client = DummyGameClient(
            heroes=[make_hero(1), make_hero(2)],
            blocks=[Block(i=1, j=0, hp=1, max_hp=1), Block(i=6, j=2, hp=2, max_hp=2)],
        )
        bot = build_bot(client, time)
        bot.should_run = True
        bot.reset()
        await bot.refresh_map()
        await bot.refresh_hero_selection()

        await bot.place_bombs()

        assert client.count("strike") >= 2
        assert len(time.delays) >= client.count("strike")
        assert len(time.delays) % 2 == 0
        assert all(delay == pytest.approx(0.07) for delay in time.delays)

    @pytest.mark.asyncio
    async def test_custom_stagger(self):
        time = FakeTime()
        client = DummyGameClient(
            heroes=[make_hero(1)], blocks=[Block(i=1, j=0, hp=1, max_hp=1)]
        )
        bot = build_bot(client, time, stagger_ms=250)
        bot.should_run = True
        bot.reset()
        await bot.refresh_map()
        await bot.refresh_hero_selection()

        await bot.place_bombs()

        assert time.delays
        assert all(delay == pytest.approx(0.25) for delay in time.delays)

    @pytest.mark.asyncio
    async def test_place_bombs_respects_run_flag(self):
        client = DummyGameClient(
            heroes=[make_hero(1)], blocks=[Block(i=1, j=0, hp=5, max_hp=5)]
        )
        bot = build_bot(client)
        bot.reset()
        await bot.refresh_map()
        await bot.refresh_hero_selection()

        await bot.place_bombs()

        assert client.count("strike") == 0

    @pytest.mark.asyncio
    async def test_exhausted_hero_goes_to_sleep(self):
        client = DummyGameClient(
            heroes=[make_hero(1, energy=1, state=HeroState.WORK)],
            blocks=[Block(i=1, j=0, hp=5, max_hp=5)],
        )
        bot = build_bot(client)
        bot.reset()
        await bot.refresh_map()
        await bot.refresh_hero_selection()

        result = await bot.place_bomb(bot.squad.get(1))

        assert result.energy == 0
        assert bot.squad.get(1).state == HeroState.SLEEP
        assert client.count("go_sleep") == 1
        assert bot.working_selection() == []

    @pytest.mark.asyncio
    async def test_exhausted_hero_refreshes_selection_and_rotates_house(self):
        client = DummyGameClient(
            heroes=[
                make_hero(1, energy=1, state=HeroState.WORK),
                make_hero(2, energy=2, shields=[Shield(current=10, total=100)]),
            ],
            blocks=[Block(i=1, j=0, hp=5, max_hp=5)],
            houses=[House(id=1, slots=2, active=True)],
        )
        bot = build_bot(client)
        bot.reset()
        await bot.refresh_map()
        await bot.refresh_hero_selection()
        await bot.load_houses()
        assert client.count("go_home") == 0

        await bot.place_bomb(bot.squad.get(1))

        assert client.calls[-4:] == ["go_sleep", "get_active_heroes", "go_home", "go_home"]
        assert sorted(hero.id for hero in bot.squad.home()) == [1, 2]
        assert bot.working_selection() == []

    @pytest.mark.asyncio
    async def test_strike_failure_is_raised_after_join(self):
        client = DummyGameClient(
            heroes=[make_hero(1), make_hero(2)],
            blocks=[Block(i=1, j=0, hp=5, max_hp=5)],
            fail_on={"strike"},
        )
        bot = build_bot(client)
        bot.should_run = True
        bot.reset()
        await bot.refresh_map()
        await bot.refresh_hero_selection()

        with pytest.raises(ClientError) as exc_info:
            await bot.place_bombs()

        assert exc_info.value.operation == "strike"
        assert exc_info.value.recovery_action == RecoveryAction.RETRY_WITH_DELAY
        assert bot.slots.outstanding(1) == 0
        assert bot.slots.outstanding(2) == 0

    @pytest.mark.asyncio
    async def test_exhausted_map_resets_state_on_refresh(self):
        client = DummyGameClient(heroes=[make_hero(1)], rewards=[Reward(type="BCoin", value=1)])
        bot = build_bot(client)
        bot.reset()
        bot._selection = [1]

        await bot.refresh_map()

        assert client.count("get_rewards") == 1
        assert bot.working_selection() == []


class TestAdventureScheduling:
    @pytest.mark.asyncio
    async def test_adventure_at_most_every_interval(self):
        time = FakeTime()
        client = DummyGameClient(heroes=[make_hero(1)])
        bot = build_bot(client, time, mode_adventure=True)

        assert bot.adventure_due()
        result = await bot.play_adventure()
        assert result.outcome is AdventureOutcome.SKIPPED
        assert bot.playing is PlayMode.ADVENTURE

        time.current += 600
        assert not bot.adventure_due()
        time.current += 1
        assert bot.adventure_due()

    def test_adventure_disabled(self):
        bot = build_bot(DummyGameClient())

        assert not bot.adventure_due()


class TestLoop:
    @pytest.mark.asyncio
    async def test_one_full_cycle(self):
        time = FakeTime()
        client = DummyGameClient(
            heroes=[make_hero(1), make_hero(2)],
            blocks=[Block(i=1, j=0, hp=1, max_hp=1), Block(i=4, j=4, hp=2, max_hp=2)],
        )
        bot = build_bot(client, time)

        async def sleep(delay: float) -> None:
            if delay == bot.config.loop_sleep_seconds:
                bot.should_run = False
            await time.sleep(delay)

        bot.sleep = sleep
        await bot.loop()

        assert client.calls[:2] == ["connect", "login"]
        assert client.calls.index("start_pve") < client.calls.index("stop_pve")
        assert client.count("strike") >= 2
        assert bot.treasure_map.total_life == 0
        assert bot.playing is PlayMode.SLEEP
        assert all(hero.state != HeroState.WORK for hero in bot.squad.all())

    @pytest.mark.asyncio
    async def test_version_mismatch_stops_before_login(self):
        client = DummyGameClient(heroes=[make_hero(1)])
        bot = build_bot(client)
        notifier = RecordingNotifier()

        async def fetch_remote() -> int:
            return 2

        bot.version_guard = VersionGuard(fetch_remote, notify=notifier.send, local_version=1)

        with pytest.raises(VersionMismatchError):
            await bot.loop()

        assert notifier.messages == [UPDATE_MESSAGE]
        assert client.count("login") == 0

    @pytest.mark.asyncio
    async def test_ping_failure_ends_the_loop(self):
        client = DummyGameClient(
            heroes=[make_hero(1)],
            blocks=[Block(i=1, j=0, hp=50, max_hp=50)],
            fail_on={"ping"},
        )
        bot = build_bot(client, ping_interval_seconds=1.0, loop_sleep_seconds=PARKED)

        with pytest.raises(ClientError, match="ping"):
            await bot.loop()

    @pytest.mark.asyncio
    async def test_stop_sleeps_working_heroes_after_grace(self):
        time = FakeTime()
        client = DummyGameClient(heroes=[make_hero(1), make_hero(2)])
        bot = build_bot(client, time)
        bot.should_run = True
        bot.reset()
        await bot.refresh_hero_selection()

        await bot.stop()

        assert not bot.should_run
        assert time.delays[-1] == 5.0
        assert client.count("go_sleep") == 2
        assert bot.working_selection() == []


class TestReports:
    @pytest.mark.asyncio
    async def test_reward_report_requires_connection(self):
        client = DummyGameClient(rewards=[Reward(network="BSC", type="BCoin", value=1.5)])
        bot = build_bot(client)

        with pytest.raises(NotConnectedError):
            await bot.render_reward_report()

        await client.connect()
        assert await bot.render_reward_report() == "Rewards:\nBSC-BCoin: 1.50"

    def test_status_report_before_first_cycle(self):
        bot = build_bot(DummyGameClient())

        assert bot.render_status_report().startswith("Playing mode: starting")
