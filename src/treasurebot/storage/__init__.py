"""In-memory state mirrors.

This package provides the squad, treasure map and adventure session
stores the synchronization layer keeps aligned with the backend.
"""

from treasurebot.storage.adventure import AdventureSession
from treasurebot.storage.squad import SquadStore
from treasurebot.storage.treasure_map import TargetOption, TreasureMap

__all__ = ["AdventureSession", "SquadStore", "TargetOption", "TreasureMap"]
