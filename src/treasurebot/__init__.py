"""treasurebot - Hero orchestration for treasure-map play.

treasurebot keeps a squad of heroes striking a shared treasure map under
cooldown, capacity and energy limits, rotates resting heroes through the
house and plays adventure levels, while mirroring the backend state from
its notifications.
"""

__version__ = "0.1.0"

from .core import (
    AdventurePlanner,
    BotConfig,
    GameClient,
    Notifier,
    Orchestrator,
    StateSynchronizer,
)

__all__ = [
    "AdventurePlanner",
    "BotConfig",
    "GameClient",
    "Notifier",
    "Orchestrator",
    "StateSynchronizer",
    "__version__",
]
