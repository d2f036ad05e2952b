"""Components attached to entities, and their construction from entity templates."""

from __future__ import annotations

import functools
import time
from dataclasses import dataclass, field
from typing import Any

from .config import MAX_WEAPONS
from .ecs import Entity, World
from .geometry import Vector2i
from .structs import (
    Attack,
    Attitude,
    Effect,
    Interaction,
    ValueMax,
    parse_random_u32,
)


def _mapping(data: Any, what: str, allow_null: bool = False) -> dict:
    if data is None and allow_null:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{what}: expected a mapping, got {data!r}")
    return data


def _required(data: dict, key: str, what: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"{what}: missing field {key!r}") from None


def _string(value: Any, what: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{what}: expected a string, got {value!r}")
    return value


def _uint(value: Any, what: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ValueError(f"{what}: expected a non-negative integer, got {value!r}")
    return value


def _attacks(value: Any, what: str) -> list[Attack]:
    if not isinstance(value, list):
        raise ValueError(f"{what}: expected a list of attacks, got {value!r}")
    return [Attack.from_data(item) for item in value]


def _vector(value: Any, what: str) -> Vector2i:
    if isinstance(value, dict) and set(value) == {"x", "y"}:
        x, y = value["x"], value["y"]
    elif isinstance(value, list) and len(value) == 2:
        x, y = value
    else:
        raise ValueError(f"{what}: expected a vector, got {value!r}")
    if any(isinstance(c, bool) or not isinstance(c, int) for c in (x, y)):
        raise ValueError(f"{what}: vector components must be integers")
    return Vector2i(x, y)


@dataclass
class _Marker:
    """A component that carries no data."""

    @classmethod
    def from_data(cls, data: Any) -> _Marker:
        if data is not None:
            raise ValueError(f"{cls.__name__}: expected no value, got {data!r}")
        return cls()


# components built from entity templates

@dataclass
class Actor:
    target: Vector2i | None = None
    attitude: Attitude = Attitude.NEUTRAL

    @classmethod
    def from_data(cls, data: Any) -> Actor:
        data = _mapping(data, "Actor", allow_null=True)
        target = data.get("target")
        attitude = data.get("attitude")
        try:
            attitude = Attitude.NEUTRAL if attitude is None else Attitude(attitude)
        except ValueError:
            raise ValueError(f"Actor: unknown attitude {attitude!r}") from None
        return cls(
            target=None if target is None else _vector(target, "Actor.target"),
            attitude=attitude,
        )


class Budding(_Marker):
    """Splits off a copy of itself when damaged."""


class Collectable(_Marker):
    """A non-weapon item that can be kept for later use."""


@dataclass
class Defensive:
    """Attacks dealt back to whoever attacks this entity."""

    attacks: list[Attack]

    @classmethod
    def from_data(cls, data: Any) -> Defensive:
        data = _mapping(data, "Defensive")
        return cls(_attacks(_required(data, "attacks", "Defensive"), "Defensive.attacks"))


@dataclass
class Durability:
    value: int

    @classmethod
    def from_data(cls, data: Any) -> Durability:
        return cls(parse_random_u32(data))


class Discoverable(_Marker):
    """An item whose identity is unknown until used."""


@dataclass
class Effects:
    effects: list[Effect]

    @classmethod
    def from_data(cls, data: Any) -> Effects:
        data = _mapping(data, "Effects")
        effects = _required(data, "effects", "Effects")
        if not isinstance(effects, list):
            raise ValueError(f"Effects.effects: expected a list, got {effects!r}")
        return cls([Effect.from_data(item) for item in effects])


class Fixture(_Marker):
    """Fixed tile furnishing."""


@dataclass
class Health:
    value: ValueMax

    @classmethod
    def from_data(cls, data: Any) -> Health:
        return cls(ValueMax.from_data(data))


class Instant(_Marker):
    """An item used automatically when walked upon."""


@dataclass
class Interactive:
    kind: Interaction
    next: str | None = None
    cost: int | None = None

    @classmethod
    def from_data(cls, data: Any) -> Interactive:
        data = _mapping(data, "Interactive")
        kind = Interaction.from_data(_required(data, "kind", "Interactive"))
        following = data.get("next")
        cost = data.get("cost")
        return cls(
            kind=kind,
            next=None if following is None else _string(following, "Interactive.next"),
            cost=None if cost is None else _uint(cost, "Interactive.cost"),
        )


class Item(_Marker):
    """Marks every kind of item: weapon, collectable or instant."""


@dataclass
class Info:
    """An in-game info message."""

    text: str

    @classmethod
    def from_data(cls, data: Any) -> Info:
        data = _mapping(data, "Info")
        return cls(_string(_required(data, "text", "Info"), "Info.text"))


@dataclass
class Loot:
    items: list[str]
    chance: float

    @classmethod
    def from_data(cls, data: Any) -> Loot:
        data = _mapping(data, "Loot")
        items = _required(data, "items", "Loot")
        if not isinstance(items, list) or not all(isinstance(i, str) for i in items):
            raise ValueError(f"Loot.items: expected a list of names, got {items!r}")
        chance = _required(data, "chance", "Loot")
        if isinstance(chance, bool) or not isinstance(chance, (int, float)):
            raise ValueError(f"Loot.chance: expected a number, got {chance!r}")
        return cls(list(items), float(chance))


class Obstacle(_Marker):
    """Actors cannot travel onto a tile holding this."""


@dataclass
class Offensive:
    """Close-range attacks: melee weapons and traps."""

    attacks: list[Attack]

    @classmethod
    def from_data(cls, data: Any) -> Offensive:
        data = _mapping(data, "Offensive")
        return cls(_attacks(_required(data, "attacks", "Offensive"), "Offensive.attacks"))


@dataclass
class Ranged:
    attacks: list[Attack]
    distance: int

    @classmethod
    def from_data(cls, data: Any) -> Ranged:
        data = _mapping(data, "Ranged")
        return cls(
            _attacks(_required(data, "attacks", "Ranged"), "Ranged.attacks"),
            _uint(_required(data, "distance", "Ranged"), "Ranged.distance"),
        )


@dataclass
class Summoner:
    creature: str
    cooldown: ValueMax

    @classmethod
    def from_data(cls, data: Any) -> Summoner:
        data = _mapping(data, "Summoner")
        return cls(
            _string(_required(data, "creature", "Summoner"), "Summoner.creature"),
            ValueMax.from_data(_required(data, "cooldown", "Summoner")),
        )


class Tile(_Marker):
    """A floor tile of the board."""


@dataclass
class Transition:
    next: str

    @classmethod
    def from_data(cls, data: Any) -> Transition:
        data = _mapping(data, "Transition")
        return cls(_string(_required(data, "next", "Transition"), "Transition.next"))


class Weapon(_Marker):
    """An item wielded by the player."""


class Immaterial(_Marker):
    """Passes through obstacles."""


class Lunge(_Marker):
    """Attack also reaches the tile behind the target."""


class Swing(_Marker):
    """Attack also reaches the tiles around the attacker."""


class Push(_Marker):
    """Attack pushes the target away."""


class Switch(_Marker):
    """Attack swaps places with the target."""


class ViewBlocker(_Marker):
    """Blocks the line of sight."""


# components set up by the game itself

@dataclass
class Name:
    value: str = ""


@dataclass
class Player:
    """The player's state; a pending action is never stored in saves."""

    action: Any = None
    weapons: list[Entity | None] = field(default_factory=lambda: [None] * MAX_WEAPONS)
    discovered: set[str] = field(default_factory=set)
    collectables: list[Entity] = field(default_factory=list)
    active_weapon: int = 0
    gold: int = 0

    def __getstate__(self) -> dict[str, Any]:
        state = self.__dict__.copy()
        state["action"] = None
        return state


@dataclass
class Immune:
    value: int


@dataclass
class Stunned:
    value: int


@dataclass
class Poisoned:
    value: int


@dataclass
class Projectile:
    attacks: list[Attack]
    source: Vector2i
    target: Vector2i


@dataclass
class Position:
    value: Vector2i


@dataclass
class Regeneration:
    value: int


@dataclass
class GameStats:
    """Run statistics: kills by name, start time and whether the game was won."""

    kills: dict[str, int] = field(default_factory=dict)
    start: float = field(default_factory=time.time)
    win: bool = False


@functools.singledispatch
def describe(component: Any) -> str:
    """A short label for the component shown to the player; empty when it has none."""
    return ""


@describe.register(Durability)
def _describe_durability(component: Durability) -> str:
    return f"Durability({component.value})"


@describe.register(Interactive)
def _describe_interactive(component: Interactive) -> str:
    output = component.kind.describe()
    if component.cost is not None:
        output += f" Gold({component.cost})"
    return output


@describe.register(Lunge)
@describe.register(Swing)
@describe.register(Push)
@describe.register(Switch)
def _describe_attack_modifier(component: Any) -> str:
    return type(component).__name__


_DATA_COMPONENTS: dict[str, Any] = {
    cls.__name__: cls
    for cls in (
        Actor, Budding, Collectable, Defensive, Discoverable, Durability, Effects,
        Fixture, Health, Immaterial, Interactive, Instant, Item, Info, Loot, Lunge,
        Swing, Obstacle, Offensive, Ranged, Summoner, Push, Switch, Tile, Transition,
        Weapon, ViewBlocker,
    )
}


def insert_data_components(entity: Entity, world: World, value: Any) -> None:
    """Attach the components described by a template mapping of name to data."""
    if not isinstance(value, dict):
        return
    for name, data in value.items():
        if not isinstance(name, str):
            continue
        cls = _DATA_COMPONENTS.get(name)
        if cls is None:
            raise ValueError(f"Unknown component {name}")
        try:
            component = cls.from_data(data)
        except ValueError as exc:
            raise ValueError(f"Could not parse {name} from {data!r}: {exc}") from exc
        world.insert_component(entity, component)