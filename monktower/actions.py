"""Actions chosen by actors: movement, attacks, interactions, summoning and shooting."""

from __future__ import annotations

import random
from collections import deque
from dataclasses import dataclass, field

from .board import Board
from .components import (
    Actor,
    Defensive,
    Durability,
    Fixture,
    Health,
    Immaterial,
    Interactive,
    Lunge,
    Name,
    Obstacle,
    Offensive,
    Player,
    Position,
    Projectile,
    Push,
    Ranged,
    Stunned,
    Summoner,
    Swing,
    Switch,
)
from .ecs import Entity, World
from .effects import (
    Action,
    ActionFailed,
    ApplyPoison,
    Ascend,
    Damage,
    Pause,
    Pay,
    Repair,
    Replace,
    TakeDurability,
    UpgradeHealth,
    get_empty_neighboring_tile,
)
from .events import EventKind, GameEvent
from .geometry import ORTHO_DIRECTIONS, Vector2i, find_path
from .queries import (
    get_entities_at_position,
    get_player_position,
    is_hostile,
    spawn_with_position,
)
from .structs import Attack, AttackKind, Attitude, InteractionKind


@dataclass
class PendingActions:
    """Actions waiting to be executed before the next actor moves."""

    actions: deque = field(default_factory=deque)


@dataclass
class ActorQueue:
    """Actors still to act in the current turn, the current one first."""

    entities: deque = field(default_factory=deque)


def _has(world: World, entity: Entity, component_type: type) -> bool:
    return world.get_component(entity, component_type) is not None


def _require(value, what: str):
    if value is None:
        raise ActionFailed(what)
    return value


def _player_at(world: World, target: Vector2i) -> bool:
    return any(_has(world, e, Player) for e in get_entities_at_position(world, target))


def get_attack_action(attack: Attack, target: Vector2i) -> Action:
    """The action that delivers an attack to a tile."""
    if attack.kind is AttackKind.HIT:
        return HitAction(target, attack.value)
    if attack.kind is AttackKind.POISON:
        return PoisonAction(target, attack.value)
    return StunAction(target, attack.value)


def is_shooting_range(source: Vector2i, target: Vector2i, distance: int, world: World) -> bool:
    """Whether target lies on a free orthogonal line from source, not adjacent, within distance."""
    if target.manhattan(source) == 1:
        return False
    d = (target - source).clamped()
    if d.x != 0 and d.y != 0:
        return False
    for i in range(1, distance + 1):
        v = source + d * i
        if v == target:
            return True
        if any(
            _has(world, e, Obstacle) and not _has(world, e, Immaterial)
            for e in get_entities_at_position(world, v)
        ):
            break
    return False


def get_action_at_dir(entity: Entity, world: World, direction: Vector2i) -> Action | None:
    """The action an entity takes by moving in a direction, or None if it cannot."""
    position = world.get_component(entity, Position)
    if position is None:
        return None
    target = position.value + direction
    board = world.get_resource(Board)
    if board is None or target not in board.tiles:
        return None

    entities = get_entities_at_position(world, target)

    # attacking takes priority
    if _has(world, entity, Offensive) and any(_has(world, e, Health) for e in entities):
        return AttackAction(entity, target)

    for e in entities:
        name = world.get_component(e, Name)
        if name is not None and name.value == "Closed_Door":
            return Replace(e, "Open_Door")

    if any(_has(world, e, Obstacle) for e in entities) and not _has(world, entity, Immaterial):
        return None
    return Walk(entity, target)


def _get_ranged_action(entity: Entity, world: World) -> Action | None:
    # only the player can be shot at
    ranged = world.get_component(entity, Ranged)
    position = world.get_component(entity, Position)
    player_v = get_player_position(world)
    if ranged is None or position is None or player_v is None:
        return None
    if player_v.manhattan(position.value) > ranged.distance:
        return None
    if not is_shooting_range(position.value, player_v, ranged.distance, world):
        return None
    return Shoot(entity, player_v)


def get_npc_action(entity: Entity, world: World) -> Action:
    """The best scored action available to a non-player actor; Pause if there is none."""
    possible = [
        action
        for direction in ORTHO_DIRECTIONS
        if (action := get_action_at_dir(entity, world, direction)) is not None
    ]
    ranged = _get_ranged_action(entity, world)
    if ranged is not None:
        possible.append(ranged)

    summoner = world.get_component(entity, Summoner)
    if summoner is not None and summoner.cooldown.current == 0:
        possible.append(Summon(entity))

    if not possible:
        return Pause()
    scored = sorted(possible, key=lambda action: action.score(world))
    return scored[-1]


@dataclass
class Walk(Action):
    entity: Entity
    target: Vector2i

    def execute(self, world: World) -> list[Action]:
        position = _require(world.get_component(self.entity, Position), "No position")
        position.value = self.target
        return []

    def event(self) -> GameEvent:
        return GameEvent(EventKind.TRAVEL, entity=self.entity, animated=True)

    def score(self, world: World) -> int:
        if any(
            _has(world, e, Offensive) and _has(world, e, Fixture)
            for e in get_entities_at_position(world, self.target)
        ):
            return -10
        r = random.randrange(4)
        position = world.get_component(self.entity, Position)
        actor = world.get_component(self.entity, Actor)
        if position is None or actor is None:
            return r

        player_v = get_player_position(world)
        if player_v is not None:
            if actor.attitude is Attitude.PANIC:
                return player_v.manhattan(self.target)
            ranged = world.get_component(self.entity, Ranged)
            if ranged is not None:
                if is_shooting_range(self.target, player_v, ranged.distance, world):
                    return 50
                if player_v.manhattan(self.target) == 1:
                    return -5

        if actor.target is None:
            return r
        board = world.get_resource(Board)
        if board is None:
            return r

        if _has(world, self.entity, Immaterial):
            blockers: set[Vector2i] = set()
        else:
            blockers = {p.value for _, _, p in world.query(Obstacle, Position)}

        path = find_path(position.value, actor.target, set(board.tiles), blockers)
        if path is None:
            return r
        return 20 if self.target in path else r


@dataclass
class AttackAction(Action):
    """Dispatches the attacks of the entity, or of the player's active weapon, onto a tile."""

    entity: Entity
    target: Vector2i

    def _offending_entity(self, world: World) -> Entity:
        player = world.get_component(self.entity, Player)
        if player is not None:
            weapon = player.weapons[player.active_weapon]
            if weapon is not None:
                return weapon
        return self.entity

    def _attack_targets(self, offending: Entity, world: World) -> set[Vector2i]:
        output = {self.target}
        position = world.get_component(self.entity, Position)
        if position is None:
            return output
        origin = position.value
        direction = self.target - origin
        if _has(world, offending, Swing):
            output.update(origin + d for d in ORTHO_DIRECTIONS if d != direction * -1)
        if _has(world, offending, Lunge):
            output.add(origin + direction * 2)
        return output

    def _attack_actions(self, offending: Entity, world: World, target: Vector2i) -> list[Action]:
        offensive = world.get_component(offending, Offensive)
        if offensive is None:
            return []
        return [get_attack_action(a, target) for a in offensive.attacks]

    def _side_effects(self, offending: Entity, world: World, target: Vector2i) -> list[Action]:
        actions: list[Action] = []
        if _has(world, offending, Push):
            position = world.get_component(self.entity, Position)
            if position is not None:
                actions.append(PushAction(position.value, target, 2))
        if _has(world, offending, Switch):
            actions.append(SwitchAction(self.entity, target))
        return actions

    def execute(self, world: World) -> list[Action]:
        offending = self._offending_entity(world)
        actions: list[Action] = []
        for v in sorted(self._attack_targets(offending, world)):
            actions.extend(self._attack_actions(offending, world, v))
            actions.extend(self._side_effects(offending, world, v))

        if actions:
            actions.append(Defend(self.entity, self.target))
        if _has(world, offending, Durability):
            actions.append(TakeDurability(offending, self.entity))
        return actions

    def event(self) -> GameEvent:
        return GameEvent(EventKind.ATTACK, entity=self.entity, position=self.target)

    def score(self, world: World) -> int:
        if not is_hostile(self.entity, world):
            return -50
        return 200 if _player_at(world, self.target) else -50


@dataclass
class Defend(Action):
    """Lets the attacked entities strike back at the attacker with their defensive attacks."""

    attacker: Entity
    target: Vector2i

    def execute(self, world: World) -> list[Action]:
        position = _require(world.get_component(self.attacker, Position), "No attacker position")
        actions: list[Action] = []
        for e in get_entities_at_position(world, self.target):
            defensive = world.get_component(e, Defensive)
            if defensive is not None:
                actions.extend(get_attack_action(a, position.value) for a in defensive.attacks)
        return actions


@dataclass
class HitAction(Action):
    target: Vector2i
    value: int

    def execute(self, world: World) -> list[Action]:
        return [
            Damage(e, self.value)
            for e in get_entities_at_position(world, self.target)
            if _has(world, e, Health)
        ]


@dataclass
class StunAction(Action):
    target: Vector2i
    value: int

    def execute(self, world: World) -> list[Action]:
        for e in get_entities_at_position(world, self.target):
            if not _has(world, e, Health):
                continue
            stunned = world.get_component(e, Stunned)
            if stunned is not None:
                stunned.value += self.value
            else:
                world.insert_component(e, Stunned(self.value))
        return []


@dataclass
class PoisonAction(Action):
    target: Vector2i
    value: int

    def execute(self, world: World) -> list[Action]:
        return [
            ApplyPoison(e, self.value)
            for e in get_entities_at_position(world, self.target)
            if _has(world, e, Health)
        ]


@dataclass
class PushAction(Action):
    source: Vector2i
    target: Vector2i
    distance: int

    def _furthest_walkable(self, world: World, direction: Vector2i) -> Vector2i | None:
        obstacles = {p.value for _, _, p in world.query(Obstacle, Position)}
        result = self.target
        for _ in range(self.distance):
            step = result + direction
            if step in obstacles:
                break
            result = step
        return None if result == self.target else result

    def execute(self, world: World) -> list[Action]:
        if self.source.manhattan(self.target) > 1:
            raise ActionFailed("Push source is not adjacent to the target")
        tile = self._furthest_walkable(world, self.target - self.source)
        if tile is None:
            return []
        return [
            Walk(e, tile)
            for e in get_entities_at_position(world, self.target)
            if _has(world, e, Actor)
        ]


@dataclass
class SwitchAction(Action):
    entity: Entity
    target: Vector2i

    def execute(self, world: World) -> list[Action]:
        source = _require(world.get_component(self.entity, Position), "No position").value
        actions: list[Action] = [
            Walk(e, source)
            for e in get_entities_at_position(world, self.target)
            if _has(world, e, Actor)
        ]
        if actions:
            actions.append(Walk(self.entity, self.target))
            # the switched actor is stunned so it cannot strike back
            actions.append(StunAction(source, 1))
            actor = world.get_component(self.entity, Actor)
            if actor is not None:
                # prevents an endless exchange of switches
                actor.attitude = Attitude.NEUTRAL
        return actions


@dataclass
class Bump(Action):
    entity: Entity
    target: Vector2i

    def execute(self, world: World) -> list[Action]:
        return []

    def event(self) -> GameEvent:
        return GameEvent(EventKind.BUMP, entity=self.entity, position=self.target)


@dataclass
class Interact(Action):
    entity: Entity

    def execute(self, world: World) -> list[Action]:
        interactive = _require(world.get_component(self.entity, Interactive), "Not interactive")
        rows = world.query(Player)
        if not rows:
            raise ActionFailed("No player")
        player_entity, player = rows[0]

        result: list[Action] = []
        if interactive.cost is not None:
            if interactive.cost > player.gold:
                raise ActionFailed("Not enough gold")
            result.append(Pay(interactive.cost))

        kind = interactive.kind
        if kind.kind is InteractionKind.ASCEND:
            result.append(Ascend())
        elif kind.kind is InteractionKind.REPAIR:
            weapon = _require(player.weapons[player.active_weapon], "No weapon to repair")
            result.append(Repair(weapon, kind.value))
        else:
            result.append(UpgradeHealth(player_entity, kind.value))

        if interactive.next is not None:
            result.append(Replace(self.entity, interactive.next))
        return result


@dataclass
class Summon(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.SPAWN)

    def execute(self, world: World) -> list[Action]:
        target = _require(get_empty_neighboring_tile(self.entity, world), "No free tile")
        summoner = _require(world.get_component(self.entity, Summoner), "Not a summoner")
        if summoner.cooldown.current > 0:
            raise ActionFailed("Summoning is cooling down")
        summoner.cooldown.current = summoner.cooldown.max
        _require(spawn_with_position(world, summoner.creature, target), "Could not summon")
        return []

    def score(self, world: World) -> int:
        return 200 if is_hostile(self.entity, world) else -50


@dataclass
class Shoot(Action):
    entity: Entity
    target: Vector2i

    def execute(self, world: World) -> list[Action]:
        ranged = _require(world.get_component(self.entity, Ranged), "No ranged attack")
        source = _require(world.get_component(self.entity, Position), "No position").value
        projectile = world.spawn_entity()
        world.insert_component(projectile, Projectile(list(ranged.attacks), source, self.target))
        return []

    def score(self, world: World) -> int:
        if not is_hostile(self.entity, world):
            return -50
        return 200 if _player_at(world, self.target) else -50