"""Human readable status and reward reports.

Both renderers are pure projections of the state they are given. The
status report uses the small HTML subset chat clients understand (``<b>``
for heroes on the home priority list).
"""

from collections.abc import Iterable, Sequence

from treasurebot.schemas.models import Hero, Reward
from treasurebot.schemas.types import PlayMode
from treasurebot.storage.adventure import AdventureSession
from treasurebot.storage.squad import SquadStore
from treasurebot.storage.treasure_map import TreasureMap


def format_value(value: float) -> str:
    """Integers as is, everything else with two decimals."""
    if float(value).is_integer():
        return str(int(value))
    return f"{value:.2f}"


def format_hero(hero: Hero, highlight: bool = False) -> str:
    if hero.shields:
        shield = f"{hero.shields[0].current}/{hero.shields[0].total}"
    else:
        shield = "empty shield"

    line = f"{hero.label()}: {hero.energy}/{hero.max_energy} | {shield}"
    if highlight:
        return f"<b>{line}</b>"
    return line


def playing_status(playing: PlayMode | None, sleep_seconds: float) -> str:
    if playing is None:
        return "starting"
    if playing is PlayMode.SLEEP:
        return f"sleep for {sleep_seconds:g} seconds"
    return playing.value


def render_status_report(
    *,
    playing: PlayMode | None,
    network: str,
    treasure_map: TreasureMap,
    squad: SquadStore,
    working: Sequence[Hero],
    house_heroes: Sequence[int],
    adventure: AdventureSession,
    sleep_seconds: float = 10.0,
) -> str:
    """Render the multi-line account status.

    Args:
        playing: Current play mode (None before the first cycle)
        network: Network the account plays on
        treasure_map: Treasure map mirror
        squad: Squad mirror
        working: Current working selection
        house_heroes: Hero ids prioritized for the house
        adventure: Adventure session, reported while in adventure mode
        sleep_seconds: Pause between cycles, shown while sleeping

    Returns:
        The report text
    """
    priority = set(house_heroes)

    def roster(heroes: Iterable[Hero]) -> str:
        return "\n".join(format_hero(hero, hero.id in priority) for hero in heroes)

    enemies = "\n"
    if playing is PlayMode.ADVENTURE:
        enemies = (
            f"Total enemies adventure: {len(adventure.live_enemies())}/"
            f"{len(adventure.enemies)}\n\n"
        )

    chests = "\n".join(
        f"{block_type.value}: {count}"
        for block_type, count in treasure_map.special_block_counts().items()
    )
    sleeping = squad.sleeping()
    home = squad.home()

    return (
        f"Playing mode: {playing_status(playing, sleep_seconds)}\n\n"
        f"{enemies}"
        f"Network: {network}\n"
        f"Treasure/Amazon:\n"
        f"{treasure_map.summary()}\n"
        f"Heroes selected for home({len(house_heroes)}): "
        f"{', '.join(str(hero_id) for hero_id in house_heroes)}\n"
        f"Remaining chest (Amazon): \n{chests}\n\n"
        f"INFO: LIFE HERO | SHIELD HERO\n"
        f"Working heroes ({len(working)}): \n{roster(working)}\n\n"
        f"Resting heroes ({len(sleeping)}): \n{roster(sleeping)}\n\n"
        f"Resting heroes at home ({len(home)}): \n{roster(home)}"
    )


def render_reward_report(rewards: Iterable[Reward]) -> str:
    """Reward balances, networks in descending order."""
    ordered = sorted(rewards, key=lambda reward: reward.network, reverse=True)
    lines = [
        f"{reward.network}-{reward.type}: {format_value(reward.value)}"
        for reward in ordered
    ]
    return "Rewards:\n" + "\n".join(lines)
