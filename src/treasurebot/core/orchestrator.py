"""Main orchestration loop for treasure-map play.

This module owns every piece of per-session state (squad and map mirrors,
admission bookkeeping, selection, houses) and drives the cycle

    open map -> select heroes -> strike rounds -> rest -> rotate home
    -> close map -> optional adventure -> sleep

until it is stopped. Remote state changes arrive through the
:class:`~treasurebot.core.sync.StateSynchronizer`; the loop itself only
reads the mirrors and issues client calls.
"""

import asyncio
import random
from collections.abc import Awaitable, Callable
from typing import Any

from pydantic import BaseModel, Field, field_validator

from treasurebot.core.admission import AdmissionController
from treasurebot.core.adventure import AdventurePlanner, AdventureResult
from treasurebot.core.client import GameClient, LogNotifier, Notifier
from treasurebot.core.home_rotation import HomeRotationManager
from treasurebot.core.reports import render_reward_report, render_status_report
from treasurebot.core.shield_monitor import ShieldMonitor
from treasurebot.core.slots import ActionSlotTracker
from treasurebot.core.sync import StateSynchronizer
from treasurebot.schemas.models import Block, Hero, House, StrikeRequest, StrikeResult
from treasurebot.schemas.types import HeroState, PlayMode, Tile
from treasurebot.storage.adventure import AdventureSession
from treasurebot.storage.squad import SquadStore
from treasurebot.storage.treasure_map import TreasureMap
from treasurebot.utils.errors import NotConnectedError
from treasurebot.utils.telemetry import (
    Clock,
    MonotonicClock,
    async_performance_timer,
    get_logger,
    update_working_heroes,
)
from treasurebot.utils.version import VersionGuard


class BotConfig(BaseModel):
    """Configuration for the Orchestrator."""

    network: str = Field(default="BSC", description="Network the account plays on")
    mode_amazon: bool = Field(
        default=True, description="Shield mode: alternate strikes and shield checks"
    )
    mode_adventure: bool = Field(default=False, description="Play adventure levels")
    min_hero_energy_percentage: float = Field(
        default=90.0, ge=0, le=100, description="Energy needed to start working"
    )
    num_hero_work: int = Field(default=15, ge=1, description="Working heroes cap")
    alert_shield: int = Field(
        default=0, ge=0, description="Shield total at or below which to alert"
    )
    house_heroes: list[int] = Field(
        default_factory=list, description="Heroes prioritized for the house"
    )
    adventure_heroes: list[int] = Field(
        default_factory=list, description="Heroes allowed in adventure mode"
    )
    loop_sleep_seconds: float = Field(default=10.0, ge=0)
    adventure_interval_seconds: float = Field(default=600.0, ge=0)
    stagger_ms: float = Field(default=70.0, ge=0)
    ping_interval_seconds: float = Field(default=10.0, gt=0)
    version_check_interval_seconds: float = Field(default=60.0, gt=0)
    stop_grace_seconds: float = Field(default=5.0, ge=0)

    @field_validator("house_heroes", "adventure_heroes", mode="before")
    @classmethod
    def validate_hero_ids(cls, v: Any) -> Any:
        """Accept the colon separated form, e.g. ``"12:34"``."""
        if isinstance(v, str):
            return [int(part) for part in v.split(":") if part.strip()]
        if isinstance(v, int):
            return [v]
        return v


class Orchestrator:
    """Drives one account through treasure-map and adventure play.

    Requirements addressed:
    - All per-session state is owned here and cleared by ``reset``
    - Strike rounds launch one task per hero and join them at round end
    - The run flag is polled between rounds, never aborting in-flight calls
    """

    def __init__(
        self,
        client: GameClient,
        config: BotConfig | None = None,
        notifier: Notifier | None = None,
        clock: Clock | None = None,
        wall_clock: Clock | None = None,
        rng: random.Random | None = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        version_guard: VersionGuard | None = None,
    ) -> None:
        """Initialize the orchestrator.

        Args:
            client: Game client
            config: Bot configuration
            notifier: Sink for operator alerts (defaults to logging only)
            clock: Monotonic clock for cooldowns and the adventure window
            wall_clock: Wall clock for daily shield alerts
            rng: Random source for adventure mode
            sleep: Coroutine used for every timed pause
            version_guard: Optional guard checked at start and periodically
        """
        self.client = client
        self.config = config or BotConfig()
        self.notifier: Notifier = notifier or LogNotifier()
        self.clock: Clock = clock or MonotonicClock()
        self.sleep = sleep
        self.version_guard = version_guard

        self.squad = SquadStore()
        self.treasure_map = TreasureMap()
        self.adventure_session = AdventureSession()
        self.houses: list[House] = []

        self.slots = ActionSlotTracker()
        self.admission = AdmissionController(self.treasure_map, self.slots, clock=self.clock)
        self.shield_monitor = ShieldMonitor(
            self.notifier, alert_threshold=self.config.alert_shield, clock=wall_clock
        )
        self.home_rotation = HomeRotationManager(
            self.squad,
            client,
            priority_ids=self.config.house_heroes,
            shield_mode=self.config.mode_amazon,
        )
        self.synchronizer = StateSynchronizer(
            self.squad,
            self.treasure_map,
            self.adventure_session,
            on_cage_opened=self._on_cage_opened,
        )
        self.adventure = AdventurePlanner(
            client,
            self.adventure_session,
            should_run=lambda: self.should_run,
            hero_ids=self.config.adventure_heroes,
            rng=rng,
            sleep=sleep,
        )

        self.should_run = False
        self.playing: PlayMode | None = None
        self._selection: list[int] = []
        self._index = 0
        self._last_adventure: float | None = None
        self._notifications: set[asyncio.Task[None]] = set()
        self._logger = get_logger("treasurebot.core.orchestrator", network=self.config.network)

    @property
    def strike_mode(self) -> str:
        return "amazon" if self.config.mode_amazon else "treasure"

    # Lifecycle

    def reset(self) -> None:
        """Re-register delta handlers and clear all per-run state."""
        self.synchronizer.register(self.client)
        self.reset_state()

    def reset_state(self) -> None:
        """Forget cooldowns, slots, sticky targets, selection and the cursor."""
        self.admission.reset()
        self.slots.reset()
        self._selection = []
        self._index = 0

    async def log_in(self) -> None:
        if self.client.is_logged_in:
            return

        self._logger.info("Logging in")
        await self.client.connect()
        self.reset()
        await self.client.login()
        self._logger.info("Logged in successfully")

    async def load_houses(self) -> None:
        self.houses = await self.client.sync_houses()
        self._logger.info("Houses loaded", houses=len(self.houses), home_slots=self.home_slots)

    @property
    def home(self) -> House | None:
        """The active house, if any."""
        return next((house for house in self.houses if house.active), None)

    @property
    def home_slots(self) -> int:
        return self.home.slots if self.home else 0

    # Selection

    def working_selection(self) -> list[Hero]:
        """Selected heroes that are working and still have energy."""
        heroes = []
        for hero_id in self._selection:
            hero = self.squad.get(hero_id)
            if hero is not None and hero.state == HeroState.WORK and hero.energy > 0:
                heroes.append(hero)
        return heroes

    def next_hero(self) -> Hero | None:
        """Round-robin over the working selection."""
        working = self.working_selection()
        if not working:
            return None
        hero = working[self._index % len(working)]
        self._index += 1
        return hero

    async def refresh_map(self) -> None:
        """Fetch the map, clearing per-run state first if it was exhausted."""
        self._logger.info("Refreshing map")
        if self.treasure_map.total_life <= 0:
            self.reset_state()
            rewards = await self.client.get_rewards()
            self._logger.info(
                "Rewards",
                rewards={f"{r.network}-{r.type}": r.value for r in rewards},
            )
        await self.client.get_block_map()
        self._logger.info("Current map state", summary=self.treasure_map.summary())

    async def refresh_hero_selection(self) -> None:
        """Rebuild the working selection and rotate resting heroes home.

        Heroes already working stay selected. Resting heroes are sent to
        work by descending energy percentage while fewer than
        ``num_hero_work`` are working, skipping those under the energy
        threshold and, in shield mode, those without shield value.
        """
        self._logger.info("Refreshing heroes")
        await self.client.get_active_heroes()

        self._selection = [hero.id for hero in self.squad.working()]
        candidates = sorted(
            self.squad.not_working(), key=lambda hero: hero.energy_percentage, reverse=True
        )

        for hero in candidates:
            if hero.energy_percentage < self.config.min_hero_energy_percentage:
                continue

            if self.config.mode_amazon and not await self.shield_monitor.inspect(hero):
                continue

            if len(self.working_selection()) <= self.config.num_hero_work - 1:
                self._logger.info("Sending hero to work", hero_id=hero.id)
                await self.client.go_work(hero)
                self._selection.append(hero.id)

        update_working_heroes(len(self.working_selection()))
        self._logger.info("Heroes at work", count=len(self._selection))

        await self.home_rotation.rotate(self.home_slots)

    # Strikes

    async def _fire_strike(self, hero: Hero, tile: Tile, slot_id: int) -> StrikeResult | None:
        request = StrikeRequest(
            hero_id=hero.id, bomb_id=slot_id, i=tile.i, j=tile.j, hero_type=hero.hero_type
        )
        async with async_performance_timer("strike", mode=self.strike_mode):
            return await self.client.strike(request, alternate=self.config.mode_amazon)

    async def place_bomb(self, hero: Hero) -> StrikeResult | None:
        """Strike the hero's next target if admission allows it.

        A hero whose energy runs out is sent to sleep and the selection is
        refreshed, which also rotates the house.

        Returns:
            The confirmed strike result, or None if nothing was struck
        """
        option = self.admission.next_target(hero)
        if option is None or not self.admission.admit(hero, option.tile):
            return None

        self._logger.info(
            "Placing bomb",
            hero=hero.label(),
            energy=hero.energy,
            max_energy=hero.max_energy,
            i=option.tile.i,
            j=option.tile.j,
        )
        result = await self.admission.dispatch(hero, option.tile, self._fire_strike)
        if result is None:
            return None

        if result.energy <= 0:
            self._logger.info("Sending hero to sleep", hero_id=hero.id)
            await self.client.go_sleep(hero)
            await self.refresh_hero_selection()

        return result

    async def place_bombs(self) -> None:
        """Run strike rounds until the map, the heroes or the run flag is exhausted.

        Each round launches one task per working hero, 70 ms apart by
        default, without waiting for the previous one. Admission for a hero
        may therefore read state that another hero's in-flight strike has
        not updated yet. All tasks are joined before returning and the first
        failure, if any, is re-raised.
        """
        tasks: set[asyncio.Task[StrikeResult | None]] = set()
        failure: BaseException | None = None

        try:
            while (
                failure is None
                and self.should_run
                and self.treasure_map.total_life > 0
            ):
                working = self.working_selection()
                if not working:
                    break
                if all(self.admission.next_target(hero) is None for hero in working):
                    self._logger.info("No reachable targets left")
                    break

                for hero in working:
                    await self.sleep(self.config.stagger_ms / 1000)
                    tasks.add(asyncio.create_task(self.place_bomb(hero)))

                failure = self._collect_finished(tasks)
        finally:
            results = await asyncio.gather(*tasks, return_exceptions=True)

        if failure is None:
            failure = next((r for r in results if isinstance(r, BaseException)), None)
        if failure is not None:
            raise failure

    @staticmethod
    def _collect_finished(tasks: set[asyncio.Task[Any]]) -> BaseException | None:
        """Drop finished tasks from ``tasks`` and return the first failure."""
        failure = None
        for task in [task for task in tasks if task.done()]:
            tasks.discard(task)
            if task.cancelled():
                continue
            error = task.exception()
            if error is not None and failure is None:
                failure = error
        return failure

    async def sleep_all_heroes(self) -> None:
        self._logger.info("Sleeping all heroes")
        for hero in self.working_selection():
            await self.client.go_sleep(hero)

    # Adventure

    def adventure_due(self) -> bool:
        if not self.config.mode_adventure:
            return False
        if self._last_adventure is None:
            return True
        return self.clock.now() - self._last_adventure > self.config.adventure_interval_seconds

    async def play_adventure(self) -> AdventureResult:
        self.adventure_session.reset()
        self.playing = PlayMode.ADVENTURE
        try:
            return await self.adventure.run()
        finally:
            self._last_adventure = self.clock.now()

    # Main loop

    async def run_cycle(self) -> None:
        """One pass of the treasure-map cycle, plus adventure when due."""
        if self.treasure_map.total_life <= 0:
            await self.refresh_map()

        self._logger.info("Opening map")
        self.playing = PlayMode.AMAZON if self.config.mode_amazon else PlayMode.TREASURE
        await self.client.start_pve(alternate=self.config.mode_amazon)

        await self.refresh_hero_selection()
        await self.place_bombs()
        await self.sleep_all_heroes()
        await self.home_rotation.rotate(self.home_slots)

        self._logger.info("Closing map")
        await self.client.stop_pve()
        self._logger.info("There are no heroes to work now")

        if self.adventure_due():
            await self.play_adventure()

        self.playing = PlayMode.SLEEP
        self._logger.info("Sleeping", seconds=self.config.loop_sleep_seconds)
        await self.sleep(self.config.loop_sleep_seconds)

    async def _run_cycles(self) -> None:
        await self.log_in()
        await self.load_houses()
        await self.refresh_map()

        while True:
            await self.run_cycle()
            if not self.should_run:
                break

    async def _ping(self) -> None:
        while True:
            await self.sleep(self.config.ping_interval_seconds)
            await self.client.ping()

    async def loop(self) -> None:
        """Play until stopped.

        The version guard (if any) and the keep-alive ping run beside the
        cycle. A failure of either ends the loop with that error.

        Raises:
            VersionMismatchError: If the running version is outdated
        """
        self.should_run = True

        if self.version_guard is not None:
            await self.version_guard.check()

        main = asyncio.create_task(self._run_cycles())
        watchers = [asyncio.create_task(self._ping())]
        if self.version_guard is not None:
            watchers.append(asyncio.create_task(self.version_guard.watch()))

        tasks = [main, *watchers]
        try:
            done, _ = await asyncio.wait(tasks, return_when=asyncio.FIRST_COMPLETED)
            if main in done:
                main.result()
            else:
                for watcher in done:
                    watcher.result()
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)
            self._logger.info("Loop finished")

    async def stop(self) -> None:
        """Clear the run flag, wait for rounds to drain and rest the workers."""
        self._logger.info("Stopping, sending heroes to sleep")
        self.should_run = False

        await self.sleep(self.config.stop_grace_seconds)

        for hero in self.working_selection():
            await self.client.go_sleep(hero)

    # Notifications

    def _on_cage_opened(self, block: Block) -> None:
        self._logger.info("You won a hero", i=block.i, j=block.j)
        task = asyncio.create_task(self.notifier.send("You won a hero"))
        self._notifications.add(task)
        task.add_done_callback(self._notifications.discard)

    # Reports

    def render_status_report(self) -> str:
        return render_status_report(
            playing=self.playing,
            network=self.config.network,
            treasure_map=self.treasure_map,
            squad=self.squad,
            working=self.working_selection(),
            house_heroes=self.config.house_heroes,
            adventure=self.adventure_session,
            sleep_seconds=self.config.loop_sleep_seconds,
        )

    async def render_reward_report(self) -> str:
        """Current reward balances.

        Raises:
            NotConnectedError: If the client has no session yet
        """
        if not self.client.is_connected:
            raise NotConnectedError()
        return render_reward_report(await self.client.get_rewards())
