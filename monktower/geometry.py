"""Integer grid vectors, lines, path finding and field of view."""

from __future__ import annotations

import heapq
from collections.abc import Iterable, Set
from dataclasses import dataclass
from itertools import count


def _sign(value: int) -> int:
    return (value > 0) - (value < 0)


@dataclass(frozen=True, order=True)
class Vector2i:
    x: int
    y: int

    def __add__(self, other: object) -> Vector2i:
        if not isinstance(other, Vector2i):
            return NotImplemented
        return Vector2i(self.x + other.x, self.y + other.y)

    def __sub__(self, other: object) -> Vector2i:
        if not isinstance(other, Vector2i):
            return NotImplemented
        return Vector2i(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: object) -> Vector2i:
        if not isinstance(factor, int):
            return NotImplemented
        return Vector2i(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __neg__(self) -> Vector2i:
        return Vector2i(-self.x, -self.y)

    def manhattan(self, other: Vector2i) -> int:
        return abs(self.x - other.x) + abs(self.y - other.y)

    def clamped(self) -> Vector2i:
        """Each component reduced to its sign: -1, 0 or 1."""
        return Vector2i(_sign(self.x), _sign(self.y))


ZERO = Vector2i(0, 0)
ORTHO_DIRECTIONS: tuple[Vector2i, ...] = (
    Vector2i(0, 1),
    Vector2i(0, -1),
    Vector2i(-1, 0),
    Vector2i(1, 0),
)


def tile_range(a: Vector2i, b: Vector2i) -> set[Vector2i]:
    """All tiles in the rectangle spanned by a and b, both inclusive."""
    return {Vector2i(x, y) for x in range(a.x, b.x + 1) for y in range(a.y, b.y + 1)}


def get_line(a: Vector2i, b: Vector2i) -> list[Vector2i]:
    """Grid points of a straight line from a to b, both ends included."""
    dx = abs(b.x - a.x)
    dy = -abs(b.y - a.y)
    sx = 1 if a.x < b.x else -1
    sy = 1 if a.y < b.y else -1
    err = dx + dy
    x, y = a.x, a.y
    points = []
    while True:
        points.append(Vector2i(x, y))
        if x == b.x and y == b.y:
            return points
        e2 = 2 * err
        if e2 >= dy:
            err += dy
            x += sx
        if e2 <= dx:
            err += dx
            y += sy


def find_path(
    start: Vector2i,
    end: Vector2i,
    tiles: Set[Vector2i],
    blockers: Set[Vector2i],
) -> list[Vector2i] | None:
    """Shortest orthogonal path over tiles avoiding blockers.

    The path excludes start and includes end; end may itself be blocked.
    Returns None when no path exists.
    """
    if start == end:
        return []
    tie = count()
    frontier = [(start.manhattan(end), next(tie), start)]
    came_from: dict[Vector2i, Vector2i | None] = {start: None}
    cost = {start: 0}
    while frontier:
        _, _, current = heapq.heappop(frontier)
        if current == end:
            break
        for direction in ORTHO_DIRECTIONS:
            step = current + direction
            if step not in tiles or (step in blockers and step != end):
                continue
            new_cost = cost[current] + 1
            if step not in cost or new_cost < cost[step]:
                cost[step] = new_cost
                came_from[step] = current
                heapq.heappush(frontier, (new_cost + step.manhattan(end), next(tie), step))
    else:
        return None

    path = []
    node: Vector2i | None = end
    while node is not None and node != start:
        path.append(node)
        node = came_from[node]
    path.reverse()
    return path


def visible_tiles(
    origin: Vector2i,
    tiles: Iterable[Vector2i],
    blockers: Set[Vector2i],
    max_range: int,
) -> set[Vector2i]:
    """Tiles whose line from origin is within range and not interrupted by a blocker."""
    visible = set()
    for tile in tiles:
        line = get_line(origin, tile)
        if len(line) - 1 > max_range:
            continue
        if any(v in blockers for v in line[1:-1]):
            continue
        visible.add(tile)
    return visible