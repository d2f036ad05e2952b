"""Board state and random level generation with a binary space partition layout."""

from __future__ import annotations

import random
from collections.abc import Sequence, Set
from dataclasses import dataclass, field
from enum import Enum, auto

from .components import Position, ViewBlocker
from .config import BOARD_SIZE, LEVEL_COUNT, VIEW_RANGE
from .data import GameData
from .ecs import Entity, World
from .geometry import ORTHO_DIRECTIONS, ZERO, Vector2i, tile_range, visible_tiles
from .queries import get_player_position, spawn_with_position


def _spawn_required(world: World, name: str, position: Vector2i) -> Entity:
    entity = spawn_with_position(world, name, position)
    if entity is None:
        raise LookupError(f"Cannot spawn {name}: the world holds no game data")
    return entity


def _choose_weighted(pool: Sequence[tuple[float, str]], weights: Sequence[float]) -> str:
    if not pool:
        raise ValueError("Cannot choose from an empty pool")
    if any(w < 0 for w in weights) or sum(weights) <= 0:
        raise ValueError("Invalid weights for a weighted choice")
    return random.choices([name for _, name in pool], weights=weights)[0]


class PieceKind(Enum):
    NPC = auto()
    ITEM = auto()
    FIXTURE = auto()


@dataclass
class Room:
    """A rectangle of floor between corners a and b, both inclusive."""

    a: Vector2i
    b: Vector2i
    doors: list[Vector2i] = field(default_factory=list)

    def tiles(self) -> set[Vector2i]:
        return tile_range(self.a, self.b)

    def area(self) -> int:
        w, h = self.dim()
        return w * h

    def dim(self) -> tuple[int, int]:
        return self.b.x - self.a.x + 1, self.b.y - self.a.y + 1


@dataclass
class Layout:
    doors: set[Vector2i]
    walls: set[Vector2i]
    rooms: list[Room]


@dataclass
class Board:
    """The current level: its tiles, exit flag, player spawn and what is seen."""

    level: int = 0
    tiles: dict[Vector2i, Entity] = field(default_factory=dict)
    exit: bool = False
    player_spawn: Vector2i = ZERO
    discovered: set[Vector2i] = field(default_factory=set)
    visible: set[Vector2i] = field(default_factory=set)

    def generate(self, world: World) -> None:
        """Spawn the tiles, walls, doors and pieces of this level into the world."""
        size = BOARD_SIZE
        tile_pool = tile_range(ZERO, Vector2i(size - 1, size - 1))
        for v in tile_pool:
            self.tiles[v] = _spawn_required(world, "Tile", v)

        layout = get_bsp_layout()
        for v in layout.walls:
            spawn_with_position(world, "Wall", v)
        for v in layout.doors:
            if random.random() >= 0.5:
                continue
            spawn_with_position(world, "Closed_Door", v)

        tile_pool -= layout.walls
        tile_pool = {
            v for v in tile_pool if not any(d.manhattan(v) <= 1 for d in layout.doors)
        }

        if self.level > 8:
            for v in get_columns(layout.rooms[-1]):
                tile_pool.discard(v)
                spawn_with_position(world, "Pillar", v)

        if self.level < LEVEL_COUNT:
            spawn_with_position(world, "Stair", _require_tile(tile_pool, None, None))

        player_room = layout.rooms[0].tiles()
        self.player_spawn = _require_tile(tile_pool, player_room, None)

        if self.level == 1:
            spawn_with_position(
                world, "Small_Sword", _require_tile(tile_pool, player_room, None)
            )

        if self.level == LEVEL_COUNT:
            v = _require_tile(tile_pool, None, player_room)
            spawn_with_position(world, "Second_Book_of_Poetics", v)

        data = world.get_resource(GameData)
        if data is None:
            return
        for name, kind in get_board_pieces(self.level, data):
            exclude = player_room if kind is PieceKind.NPC else None
            v = get_random_tile(tile_pool, None, exclude)
            if v is None:
                continue
            spawn_with_position(world, name, v)

        self.tiles.update(_create_bounds(world))

    def is_exit(self) -> bool:
        return self.exit


def _require_tile(
    pool: set[Vector2i], limit: Set[Vector2i] | None, exclude: Set[Vector2i] | None
) -> Vector2i:
    v = get_random_tile(pool, limit, exclude)
    if v is None:
        raise RuntimeError("No free tile left on the board")
    return v


def get_columns(room: Room) -> set[Vector2i]:
    """Pillar positions for a large room; none for rooms of area 20 or less."""
    if room.area() <= 20:
        return set()
    w, h = room.dim()
    xs = [room.a.x + w // 2 - 2, room.a.x + w // 2 + 1] if w >= 6 else [room.a.x + w // 2]
    ys = [room.a.y + h // 2 - 2, room.a.y + h // 2 + 1] if h >= 6 else [room.a.y + h // 2]
    return {Vector2i(x, y) for x in xs for y in ys}


def _create_bounds(world: World) -> dict[Vector2i, Entity]:
    entities = {}
    for x in range(-1, BOARD_SIZE + 1):
        for y in range(-1, BOARD_SIZE + 1):
            if 0 <= x < BOARD_SIZE and 0 <= y < BOARD_SIZE:
                continue
            v = Vector2i(x, y)
            entities[v] = _spawn_required(world, "Tile", v)
            _spawn_required(world, "Wall", v)
    return entities


def update_visibility(world: World) -> None:
    """Recompute the tiles the player sees and add them to the discovered ones."""
    position = get_player_position(world)
    if position is None:
        return
    board = world.get_resource(Board)
    if board is None:
        return
    blockers = {p.value for _, _, p in world.query(ViewBlocker, Position)}
    currently_visible = visible_tiles(position, set(board.tiles), blockers, VIEW_RANGE)
    board.discovered |= currently_visible
    board.visible = currently_visible


def _doors_are_valid(doors: Set[Vector2i], walls: Set[Vector2i]) -> bool:
    return all(
        sum(1 for d in ORTHO_DIRECTIONS if door + d in walls) <= 2 for door in doors
    )


def get_bsp_layout() -> Layout:
    """Partition the board into at least three rooms separated by walls with doors."""
    while True:
        base = Room(ZERO, Vector2i(BOARD_SIZE - 1, BOARD_SIZE - 1))
        wall_tiles = base.tiles()
        rooms = divide_room(base)
        if len(rooms) < 3:
            continue
        doors: set[Vector2i] = set()
        for room in rooms:
            doors.update(room.doors)
            wall_tiles -= room.tiles()
            wall_tiles.difference_update(room.doors)

        if not _doors_are_valid(doors, wall_tiles):
            continue

        rooms.sort(key=Room.area)
        return Layout(doors=doors, walls=wall_tiles, rooms=rooms)


def divide_room(room: Room) -> list[Room]:
    """Split a room recursively until its sides are short, adding doors in the splits."""
    a, b = room.a, room.b
    dx = b.x - a.x
    dy = b.y - a.y
    if dx < 4 and dy < 4:
        return [room]
    vertical = dx < dy

    if vertical:
        split_val = random.randrange(a.y + 2, b.y - 1)
    else:
        split_val = random.randrange(a.x + 2, b.x - 1)

    if vertical and any(v.x == split_val for v in room.doors):
        return [room]
    elif any(v.y == split_val for v in room.doors):
        return [room]

    if vertical:
        corner_a = Vector2i(b.x, split_val - 1)
        corner_b = Vector2i(a.x, split_val + 1)
    else:
        corner_a = Vector2i(split_val - 1, b.y)
        corner_b = Vector2i(split_val + 1, a.y)

    doors = list(room.doors)
    door = _get_bsp_door(vertical, split_val, a, b)

    if max(dx, dy) > 5 and random.random() < 0.75:
        extra_door = _get_bsp_door(vertical, split_val, a, b)
        if extra_door.manhattan(door) > 1:
            doors.append(extra_door)
    doors.append(door)

    room_a = Room(a, corner_a, list(doors))
    room_b = Room(corner_b, b, doors)
    return divide_room(room_a) + divide_room(room_b)


def _get_bsp_door(vertical: bool, split_val: int, a: Vector2i, b: Vector2i) -> Vector2i:
    if vertical:
        return Vector2i(random.randint(a.x, b.x), split_val)
    return Vector2i(split_val, random.randint(a.y, b.y))


def get_random_tile(
    pool: set[Vector2i],
    limit: Set[Vector2i] | None = None,
    exclude: Set[Vector2i] | None = None,
) -> Vector2i | None:
    """Take a random tile out of the pool, optionally within limit and outside exclude."""
    candidates = set(pool)
    if limit is not None:
        candidates &= set(limit)
    if exclude is not None:
        candidates -= set(exclude)
    if not candidates:
        return None
    v = random.choice(sorted(candidates))
    pool.discard(v)
    return v


def get_target_score(level: int) -> int:
    return int(level * 2.0)


def get_entity_pool(data: GameData, names: Sequence[str], level: int) -> list[tuple[float, str]]:
    """Weighted names available at a level: (spawn chance, name)."""
    pool = []
    for name in names:
        entity = data.entities.get(name)
        if entity is None:
            continue
        if entity.min_level <= level and (entity.max_level == 0 or entity.max_level >= level):
            chance = entity.spawn_chance if entity.spawn_chance is not None else 1.0
            pool.append((chance, name))
    return pool


def get_board_pieces(level: int, data: GameData) -> list[tuple[str, PieceKind]]:
    """Choose the items, npcs and fixtures to place on a level."""
    target_score = get_target_score(level)

    weapon_count = random.randint(0, 1) + (level + 1) % 2
    item_count = random.randint(1, 2)

    level_data = data.levels.get(level)
    if level_data is not None:
        items = list(level_data.required_items)
        npcs = list(level_data.required_npcs)
        fixtures = list(level_data.required_fixtures)
    else:
        items, npcs, fixtures = [], [], []

    item_pool = get_entity_pool(data, data.items, level)
    item_weights = [w for w, _ in item_pool]
    for _ in range(max(0, item_count - len(items))):
        items.append(_choose_weighted(item_pool, item_weights))

    weapon_pool = get_entity_pool(data, data.weapons, level)
    weapon_weights = [w for w, _ in weapon_pool]
    for _ in range(weapon_count):
        items.append(_choose_weighted(weapon_pool, weapon_weights))

    npc_score = sum(data.entities[name].score for name in npcs)
    npc_pool = get_entity_pool(data, data.npcs, level)
    while npc_score < target_score:
        # names already chosen become less likely
        weights = [w / (5 * npcs.count(name) + 1) for w, name in npc_pool]
        npc = _choose_weighted(npc_pool, weights)
        npc_score += data.entities[npc].score
        npcs.append(npc)

    output = [(name, PieceKind.ITEM) for name in items]
    output.extend((name, PieceKind.NPC) for name in npcs)

    if not fixtures and level % 2 == 0 and level > 2:
        fixture_pool = get_entity_pool(data, data.fixtures, level)
        fixtures.append(_choose_weighted(fixture_pool, [w for w, _ in fixture_pool]))

    output.extend((name, PieceKind.FIXTURE) for name in fixtures)
    return output