"""Boundary protocols for the external collaborators.

The bot never talks to the network itself. A :class:`GameClient` owns the
transport and authentication, answers requests, and pushes remote
notifications to the handlers registered with :meth:`GameClient.on`.
A :class:`Notifier` forwards human-facing alerts (chat, e-mail, ...).
"""

from collections.abc import Callable, Mapping
from typing import Any, Protocol, runtime_checkable

from treasurebot.schemas.models import (
    DoorResult,
    Hero,
    House,
    Reward,
    StoryDetails,
    StoryMap,
    StrikeRequest,
    StrikeResult,
)
from treasurebot.schemas.types import DeltaKind
from treasurebot.utils.telemetry import get_logger

DeltaHandler = Callable[[Mapping[str, Any]], None]


@runtime_checkable
class GameClient(Protocol):
    """Capabilities the bot consumes from the game backend.

    Every coroutine may raise; failures propagate to the caller.
    """

    network: str

    @property
    def is_connected(self) -> bool: ...

    @property
    def is_logged_in(self) -> bool: ...

    async def connect(self) -> None: ...

    async def login(self) -> None: ...

    def wipe(self) -> None:
        """Drop every registered handler."""
        ...

    def on(self, kind: DeltaKind, handler: DeltaHandler) -> None:
        """Register the handler for one remote event kind."""
        ...

    async def get_block_map(self) -> None:
        """Request the full map; answered with a MAP_LOADED notification."""
        ...

    async def get_active_heroes(self) -> None:
        """Request the full squad; answered with a SQUAD_LOADED notification."""
        ...

    async def go_work(self, hero: Hero) -> None: ...

    async def go_sleep(self, hero: Hero) -> None: ...

    async def go_home(self, hero: Hero) -> None: ...

    async def start_pve(self, alternate: bool) -> None: ...

    async def stop_pve(self) -> None: ...

    async def strike(
        self, request: StrikeRequest, alternate: bool
    ) -> StrikeResult | None: ...

    async def story_strike(self, request: StrikeRequest) -> None: ...

    async def enemy_take_damage(self, enemy_id: int, hero_id: int) -> None: ...

    async def get_story_details(self) -> StoryDetails: ...

    async def get_story_map(self, hero_id: int, level: int) -> StoryMap: ...

    async def enter_door(self) -> DoorResult: ...

    async def get_rewards(self) -> list[Reward]: ...

    async def sync_houses(self) -> list[House]: ...

    async def sync_roster(self) -> list[Hero]:
        """Every hero owned by the account, active or not."""
        ...

    async def ping(self) -> None: ...


@runtime_checkable
class Notifier(Protocol):
    """Sink for human-facing alerts."""

    async def send(self, message: str) -> None: ...


class LogNotifier:
    """Notifier that only writes alerts to the log."""

    def __init__(self) -> None:
        self._logger = get_logger("treasurebot.notifier")

    async def send(self, message: str) -> None:
        self._logger.info("Notification", message=message)
