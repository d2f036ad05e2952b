import pytest

from monktower.components import (
    Actor,
    Budding,
    Durability,
    Health,
    Interactive,
    Loot,
    Lunge,
    Obstacle,
    Offensive,
    Player,
    Summoner,
    Swing,
    describe,
    insert_data_components,
)
from monktower.config import MAX_WEAPONS
from monktower.ecs import World
from monktower.geometry import Vector2i
from monktower.structs import (
    Attack,
    AttackKind,
    Attitude,
    Interaction,
    InteractionKind,
    ValueMax,
)


@pytest.fixture
def world():
    return World()


def test_insert_data_components(world):
    entity = world.spawn_entity()
    insert_data_components(entity, world, {
        "Health": 3,
        "Obstacle": None,
        "Offensive": {"attacks": [{"kind": "Hit", "value": 1}]},
    })
    assert world.get_component(entity, Health) == Health(ValueMax(3, 3))
    assert world.get_component(entity, Obstacle) == Obstacle()
    assert world.get_component(entity, Offensive).attacks == [Attack(AttackKind.HIT, 1)]


def test_unknown_component_raises(world):
    entity = world.spawn_entity()
    with pytest.raises(ValueError):
        insert_data_components(entity, world, {"Flying": None})


def test_bad_component_data_raises(world):
    entity = world.spawn_entity()
    with pytest.raises(ValueError):
        insert_data_components(entity, world, {"Offensive": {"attacks": 5}})


def test_non_mapping_is_ignored(world):
    entity = world.spawn_entity()
    insert_data_components(entity, world, None)
    assert world.query(Health) == []


def test_marker_rejects_values():
    with pytest.raises(ValueError):
        Budding.from_data({"a": 1})


def test_actor_defaults_and_attitude():
    actor = Actor.from_data(None)
    assert actor.target is None
    assert actor.attitude is Attitude.NEUTRAL
    hostile = Actor.from_data({"attitude": "Hostile", "target": [1, 2]})
    assert hostile.attitude is Attitude.HOSTILE
    assert hostile.target == Vector2i(1, 2)


def test_durability_random_range():
    assert 2 <= Durability.from_data("2-3").value <= 3


def test_interactive_from_data():
    interactive = Interactive.from_data({"kind": {"Repair": 2}, "cost": 5, "next": "Altar"})
    assert interactive == Interactive(Interaction(InteractionKind.REPAIR, 2), "Altar", 5)


def test_summoner_and_loot():
    summoner = Summoner.from_data({"creature": "Rat", "cooldown": [0, 4]})
    assert summoner == Summoner("Rat", ValueMax(0, 4))
    loot = Loot.from_data({"items": ["Coin"], "chance": 1})
    assert loot.chance == 1.0
    assert loot.items == ["Coin"]


def test_describe():
    assert describe(Durability(4)) == "Durability(4)"
    interactive = Interactive(Interaction(InteractionKind.REPAIR, 2), None, 10)
    assert describe(interactive) == "Repair(2) Gold(10)"
    assert describe(Interactive(Interaction(InteractionKind.ASCEND))) == "Ascend"
    assert describe(Lunge()) == "Lunge"
    assert describe(Swing()) == "Swing"
    assert describe(Health(ValueMax(1, 1))) == ""


def test_player_defaults():
    player = Player()
    assert player.weapons == [None] * MAX_WEAPONS
    assert player.collectables == []
    assert player.gold == 0


def test_player_action_not_saved(world):
    world.register_serializable("Player", Player)
    entity = world.spawn_entity()
    world.insert_component(entity, Player(action="pending", gold=7, discovered={"Potion"}))
    saved = world.serialize()
    restored = World()
    restored.register_serializable("Player", Player)
    restored.deserialize(saved)
    player = restored.get_component(entity, Player)
    assert player.action is None
    assert player.gold == 7
    assert player.discovered == {"Potion"}