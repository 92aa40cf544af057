"""Unit tests for the adventure session store."""

import random

from treasurebot.schemas.models import Enemy, StoryBlock, StoryMap
from treasurebot.schemas.types import Tile
from treasurebot.storage.adventure import AdventureSession


def loaded_session() -> AdventureSession:
    session = AdventureSession()
    session.load(
        StoryMap(
            door_x=10,
            door_y=4,
            blocks=[StoryBlock(i=1, j=1), StoryBlock(i=2, j=2), StoryBlock(i=3, j=3)],
            enemies=[Enemy(id=1, hp=3, max_hp=3), Enemy(id=2, hp=0, max_hp=3)],
        )
    )
    return session


def test_load_copies_map_state():
    story_map = StoryMap(door_x=1, door_y=1, enemies=[Enemy(id=1, hp=2, max_hp=2)])
    session = AdventureSession()

    session.load(story_map)
    session.set_enemy_hp(1, 0)

    assert story_map.enemies[0].hp == 2


def test_remove_blocks():
    session = loaded_session()

    session.remove_blocks([Tile(2, 2), Tile(9, 9)])

    assert [block.tile for block in session.blocks] == [Tile(1, 1), Tile(3, 3)]


def test_live_enemies_and_spawns():
    session = loaded_session()

    session.add_enemies([Enemy(id=3, hp=5, max_hp=5)])

    assert [enemy.id for enemy in session.live_enemies()] == [1, 3]
    assert len(session.enemies) == 3


def test_set_enemy_hp():
    session = loaded_session()

    assert session.set_enemy_hp(1, 1)
    assert session.enemies[0].hp == 1
    assert not session.set_enemy_hp(99, 0)


def test_random_picks_only_live_enemies():
    session = loaded_session()
    rng = random.Random(1)

    for _ in range(20):
        assert session.random_live_enemy(rng).id == 1
        assert session.random_block(rng) in session.blocks


def test_empty_session():
    session = loaded_session()

    session.reset()

    assert session.random_live_enemy(random.Random(0)) is None
    assert session.random_block(random.Random(0)) is None
