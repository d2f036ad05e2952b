"""Common lookups on the world: positions, the player, visibility and spawning."""

from __future__ import annotations

from .components import Actor, Name, Player, Position, ViewBlocker, insert_data_components
from .config import VIEW_RANGE
from .data import GameData
from .ecs import Entity, World
from .geometry import Vector2i, get_line
from .structs import Attitude


def is_hostile(entity: Entity, world: World) -> bool:
    actor = world.get_component(entity, Actor)
    return actor is not None and actor.attitude is Attitude.HOSTILE


def get_entities_at_position(world: World, v: Vector2i) -> list[Entity]:
    return [entity for entity, position in world.query(Position) if position.value == v]


def visibility(world: World, a: Vector2i, b: Vector2i) -> bool:
    """Whether b can be seen from a: within range and no view blocker in between."""
    line = get_line(a, b)
    if len(line) <= 2:
        return True
    if len(line) > VIEW_RANGE:
        return False
    return not any(
        world.get_component(entity, ViewBlocker) is not None
        for v in line[1:-1]
        for entity in get_entities_at_position(world, v)
    )


def spawn_with_position(world: World, name: str, position: Vector2i) -> Entity | None:
    """Spawn the named template at a position.

    Returns None when the world holds no game data; the entity then has only
    its name and position.
    """
    entity = world.spawn_entity()
    world.insert_component(entity, Name(name))
    world.insert_component(entity, Position(position))

    data = world.get_resource(GameData)
    if data is None:
        return None
    template = data.entities.get(name)
    if template is None:
        raise ValueError(f"Could not spawn: {name} - no data found!")
    insert_data_components(entity, world, template.components)
    return entity


def get_player_entity(world: World) -> Entity | None:
    rows = world.query(Player, Position)
    return rows[0][0] if rows else None


def get_player_position(world: World) -> Vector2i | None:
    rows = world.query(Player, Position)
    return rows[0][2].value if rows else None