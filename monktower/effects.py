"""Actions that change a single entity or the player's state, and the item effect table."""

from __future__ import annotations

import random
from abc import ABC, abstractmethod
from dataclasses import dataclass

from .board import Board
from .components import (
    Budding,
    Discoverable,
    Durability,
    Effects,
    GameStats,
    Health,
    Immune,
    Loot,
    Name,
    Obstacle,
    Player,
    Poisoned,
    Position,
    Regeneration,
    Tile,
)
from .config import MAX_COLLECTABLES
from .ecs import Entity, World
from .events import EventKind, GameEvent
from .geometry import ORTHO_DIRECTIONS, Vector2i
from .queries import get_entities_at_position, get_player_entity, spawn_with_position
from .structs import Effect, EffectKind


class ActionFailed(Exception):
    """An action could not be carried out in the current world state."""


class Action(ABC):
    """Something that changes the world and may lead to further actions."""

    @abstractmethod
    def execute(self, world: World) -> list[Action]:
        """Apply the action; return the actions that follow from it.

        Raises ActionFailed when the action cannot be carried out.
        """

    def event(self) -> GameEvent:
        return GameEvent(EventKind.OTHER)

    def score(self, world: World) -> int:
        return 0


def _require(value, what: str):
    if value is None:
        raise ActionFailed(what)
    return value


def _player(world: World) -> tuple[Entity, Player] | None:
    rows = world.query(Player)
    if not rows:
        return None
    entity, player = rows[0]
    return entity, player


def _insert(world: World, entity: Entity, component) -> None:
    try:
        world.insert_component(entity, component)
    except LookupError:
        pass


def get_empty_neighboring_tile(entity: Entity, world: World) -> Vector2i | None:
    """A random orthogonal neighbour of the entity that holds no obstacle."""
    position = world.get_component(entity, Position)
    if position is None:
        return None
    pool = [
        v
        for v in (position.value + d for d in ORTHO_DIRECTIONS)
        if not any(
            world.get_component(e, Obstacle) is not None
            for e in get_entities_at_position(world, v)
        )
    ]
    return random.choice(pool) if pool else None


@dataclass
class TakeDurability(Action):
    entity: Entity
    owner: Entity

    def execute(self, world: World) -> list[Action]:
        durability = world.get_component(self.entity, Durability)
        if durability is not None:
            durability.value = max(0, durability.value - 1)
        return []


@dataclass
class Pause(Action):
    def execute(self, world: World) -> list[Action]:
        return []


@dataclass
class WieldWeapon(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.PICK_ITEM)

    def execute(self, world: World) -> list[Action]:
        replaced = None
        found = _player(world)
        if found is not None:
            _, player = found
            index = next(
                (i for i, slot in enumerate(player.weapons) if slot is None),
                player.active_weapon,
            )
            replaced = player.weapons[index]
            player.weapons[index] = self.entity

        world.remove_component(self.entity, Position)
        if replaced is not None:
            world.despawn_entity(replaced)
        return []


@dataclass
class PickCollectable(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.PICK_ITEM)

    def execute(self, world: World) -> list[Action]:
        found = _player(world)
        if found is not None:
            _, player = found
            if len(player.collectables) >= MAX_COLLECTABLES:
                raise ActionFailed("No room for another collectable")
            player.collectables.append(self.entity)
        world.remove_component(self.entity, Position)
        return []


@dataclass
class UseCollectable(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.USE_COLLECTABLE)

    def execute(self, world: World) -> list[Action]:
        player_entity, player = _require(_player(world), "No player")
        actions: list[Action] = []
        effects = world.get_component(self.entity, Effects)
        if effects is not None:
            actions.extend(get_effect_action(e, player_entity) for e in effects.effects)

        player.collectables = [e for e in player.collectables if e != self.entity]
        if world.get_component(self.entity, Discoverable) is not None:
            name = world.get_component(self.entity, Name)
            if name is not None:
                player.discovered.add(name.value)

        world.despawn_entity(self.entity)
        return actions


@dataclass
class UseInstant(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.PICK_ITEM)

    def execute(self, world: World) -> list[Action]:
        player_entity, _ = _require(_player(world), "No player")
        actions: list[Action] = []
        effects = world.get_component(self.entity, Effects)
        if effects is not None:
            actions.extend(get_effect_action(e, player_entity) for e in effects.effects)
        world.despawn_entity(self.entity)
        return actions


@dataclass
class Damage(Action):
    entity: Entity
    value: int

    def event(self) -> GameEvent:
        return GameEvent(EventKind.HEALTH, entity=self.entity, value=-self.value)

    def execute(self, world: World) -> list[Action]:
        if world.get_component(self.entity, Immune) is not None:
            raise ActionFailed("Target is immune")
        health = _require(world.get_component(self.entity, Health), "Target has no health")
        health.value.current = max(0, health.value.current - self.value)
        if world.get_component(self.entity, Budding) is not None:
            return [BuddingAction(self.entity)]
        return []


@dataclass
class Heal(Action):
    entity: Entity
    value: int

    def event(self) -> GameEvent:
        return GameEvent(EventKind.HEALTH, entity=self.entity, value=self.value)

    def execute(self, world: World) -> list[Action]:
        health = _require(world.get_component(self.entity, Health), "Target has no health")
        health.value.current = min(health.value.max, health.value.current + self.value)
        return []


@dataclass
class ApplyPoison(Action):
    entity: Entity
    value: int

    def event(self) -> GameEvent:
        return GameEvent(EventKind.POISON, entity=self.entity, value=self.value)

    def execute(self, world: World) -> list[Action]:
        poisoned = world.get_component(self.entity, Poisoned)
        if poisoned is not None:
            poisoned.value += self.value
        else:
            _insert(world, self.entity, Poisoned(self.value))
        return []


@dataclass
class HealPoison(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.HEAL_POISON, entity=self.entity)

    def execute(self, world: World) -> list[Action]:
        world.remove_component(self.entity, Poisoned)
        return []


@dataclass
class GiveImmunity(Action):
    entity: Entity
    value: int

    def event(self) -> GameEvent:
        return GameEvent(EventKind.IMMUNITY, entity=self.entity)

    def execute(self, world: World) -> list[Action]:
        immune = world.get_component(self.entity, Immune)
        if immune is not None:
            immune.value += self.value
        else:
            _insert(world, self.entity, Immune(self.value))
        return []


@dataclass
class GiveRegeneration(Action):
    entity: Entity
    value: int

    def event(self) -> GameEvent:
        return GameEvent(EventKind.REGENERATION, entity=self.entity)

    def execute(self, world: World) -> list[Action]:
        regeneration = world.get_component(self.entity, Regeneration)
        if regeneration is not None:
            regeneration.value += self.value
        else:
            _insert(world, self.entity, Regeneration(self.value))
        return []


@dataclass
class Repair(Action):
    entity: Entity
    value: int

    def event(self) -> GameEvent:
        return GameEvent(EventKind.UPGRADE)

    def execute(self, world: World) -> list[Action]:
        durability = _require(world.get_component(self.entity, Durability), "Nothing to repair")
        durability.value += self.value
        return []


@dataclass
class UpgradeHealth(Action):
    entity: Entity
    value: int

    def event(self) -> GameEvent:
        return GameEvent(EventKind.UPGRADE)

    def execute(self, world: World) -> list[Action]:
        health = _require(world.get_component(self.entity, Health), "Target has no health")
        health.value.max += self.value
        health.value.current += self.value
        return []


@dataclass
class PickGold(Action):
    value: int

    def execute(self, world: World) -> list[Action]:
        entity = _require(get_player_entity(world), "No player")
        player = _require(world.get_component(entity, Player), "No player")
        player.gold += self.value
        return []


@dataclass
class Pay(Action):
    value: int

    def execute(self, world: World) -> list[Action]:
        entity = _require(get_player_entity(world), "No player")
        player = _require(world.get_component(entity, Player), "No player")
        player.gold = max(0, player.gold - self.value)
        return []


@dataclass
class Replace(Action):
    entity: Entity
    name: str

    def execute(self, world: World) -> list[Action]:
        position = _require(world.get_component(self.entity, Position), "Nothing to replace")
        world.despawn_entity(self.entity)
        spawn_with_position(world, self.name, position.value)
        return []

    def score(self, world: World) -> int:
        # npcs should never choose this
        return -200


@dataclass
class BuddingAction(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.SPAWN)

    def execute(self, world: World) -> list[Action]:
        health = _require(world.get_component(self.entity, Health), "Source has no health")
        current = health.value.current
        target = _require(get_empty_neighboring_tile(self.entity, world), "No free tile")
        name = _require(world.get_component(self.entity, Name), "Source has no name").value

        spawned = _require(spawn_with_position(world, name, target), "Could not spawn")
        spawned_health = world.get_component(spawned, Health)
        if spawned_health is not None:
            spawned_health.value.current = current
        return []


@dataclass
class Ascend(Action):
    def event(self) -> GameEvent:
        return GameEvent(EventKind.ASCEND)

    def execute(self, world: World) -> list[Action]:
        board = _require(world.get_resource(Board), "No board")
        board.exit = True
        return []


@dataclass
class DropLoot(Action):
    entity: Entity

    def execute(self, world: World) -> list[Action]:
        loot = _require(world.get_component(self.entity, Loot), "No loot")
        position = _require(world.get_component(self.entity, Position), "No position")
        if not random.random() < loot.chance:
            return []
        if not loot.items:
            raise ActionFailed("Loot table is empty")
        spawn_with_position(world, random.choice(loot.items), position.value)
        return []


@dataclass
class Teleport(Action):
    entity: Entity

    def event(self) -> GameEvent:
        return GameEvent(EventKind.TRAVEL, entity=self.entity, animated=False)

    def execute(self, world: World) -> list[Action]:
        position = _require(world.get_component(self.entity, Position), "No position")
        pool = [
            (position.value.manhattan(p.value), p.value)
            for _, _, p in world.query(Tile, Position)
            if not any(
                world.get_component(e, Obstacle) is not None
                for e in get_entities_at_position(world, p.value)
            )
        ]
        weights = [d for d, _ in pool]
        if sum(weights) <= 0:
            raise ActionFailed("No tile to teleport to")
        _, target = random.choices(pool, weights=weights)[0]
        position.value = target
        return []


@dataclass
class WinAction(Action):
    def event(self) -> GameEvent:
        return GameEvent(EventKind.WIN)

    def execute(self, world: World) -> list[Action]:
        stats = world.get_resource(GameStats)
        if stats is not None:
            stats.win = True
        return []


def get_effect_action(effect: Effect, entity: Entity) -> Action:
    """The action an item effect applies to the given entity."""
    kind = effect.kind
    if kind is EffectKind.GOLD:
        return PickGold(effect.value)
    if kind is EffectKind.HEAL:
        return Heal(entity, effect.value)
    if kind is EffectKind.HEAL_POISON:
        return HealPoison(entity)
    if kind is EffectKind.IMMUNITY:
        return GiveImmunity(entity, effect.value)
    if kind is EffectKind.POISON:
        return ApplyPoison(entity, effect.value)
    if kind is EffectKind.REGENERATE:
        return GiveRegeneration(entity, effect.value)
    if kind is EffectKind.TELEPORT:
        return Teleport(entity)
    return WinAction()