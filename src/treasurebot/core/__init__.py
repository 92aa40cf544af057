# Orchestration engine components

from .admission import AdmissionController, DispatchRecord
from .adventure import AdventureOutcome, AdventurePlanner, AdventureResult
from .client import GameClient, LogNotifier, Notifier
from .home_rotation import HomeRotationManager
from .orchestrator import BotConfig, Orchestrator
from .shield_monitor import ShieldMonitor
from .slots import ActionSlotTracker
from .sync import StateSynchronizer

__all__ = [
    "ActionSlotTracker",
    "AdmissionController",
    "AdventureOutcome",
    "AdventurePlanner",
    "AdventureResult",
    "BotConfig",
    "DispatchRecord",
    "GameClient",
    "HomeRotationManager",
    "LogNotifier",
    "Notifier",
    "Orchestrator",
    "ShieldMonitor",
    "StateSynchronizer",
]
