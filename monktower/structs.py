"""Value types shared by components and actions: attitudes, attacks, effects, interactions."""

from __future__ import annotations

import random
from dataclasses import dataclass
from enum import Enum
from typing import Any, TypeVar

_U32_MAX = 0xFFFFFFFF

_E = TypeVar("_E", bound=Enum)


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _parse_u32_text(text: str) -> int:
    if not text or not text.isascii() or not text.isdigit():
        raise ValueError(f"Invalid unsigned number: {text!r}")
    number = int(text)
    if number > _U32_MAX:
        raise ValueError(f"Number out of range: {text!r}")
    return number


def parse_random_u32(value: Any, rng: random.Random | None = None) -> int:
    """Read a fixed number, or draw one from an inclusive range written as "a-b"."""
    if _is_uint(value):
        return value & _U32_MAX
    if isinstance(value, str):
        parts = value.split("-")
        if len(parts) != 2:
            raise ValueError(f"Wrong value: {value!r}")
        low, high = (_parse_u32_text(part) for part in parts)
        if low > high:
            raise ValueError(f"Empty range: {value!r}")
        return (rng or random).randint(low, high)
    raise ValueError(f"Wrong value: {value!r}")


def _enum_from(enum_cls: type[_E], value: Any) -> _E:
    try:
        return enum_cls(value)
    except ValueError:
        raise ValueError(f"Unknown {enum_cls.__name__} variant: {value!r}") from None


def _mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{what}: expected a mapping, got {data!r}")
    return data


def _required(data: dict, key: str, what: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"{what}: missing field {key!r}") from None


class Attitude(Enum):
    NEUTRAL = "Neutral"
    AWARE = "Aware"
    HOSTILE = "Hostile"
    PANIC = "Panic"


class AttackKind(Enum):
    HIT = "Hit"
    POISON = "Poison"
    STUN = "Stun"


@dataclass(frozen=True)
class Attack:
    kind: AttackKind
    value: int

    @classmethod
    def from_data(cls, data: Any) -> Attack:
        data = _mapping(data, "attack")
        kind = _enum_from(AttackKind, _required(data, "kind", "attack"))
        return cls(kind, parse_random_u32(_required(data, "value", "attack")))


class EffectKind(Enum):
    GOLD = "Gold"
    HEAL = "Heal"
    HEAL_POISON = "HealPoison"
    IMMUNITY = "Immunity"
    POISON = "Poison"
    REGENERATE = "Regenerate"
    TELEPORT = "Teleport"
    WIN = "Win"


@dataclass(frozen=True)
class Effect:
    kind: EffectKind
    value: int

    @classmethod
    def from_data(cls, data: Any) -> Effect:
        data = _mapping(data, "effect")
        kind = _enum_from(EffectKind, _required(data, "kind", "effect"))
        return cls(kind, parse_random_u32(_required(data, "value", "effect")))


@dataclass
class ValueMax:
    """A counter with its upper bound."""

    current: int
    max: int

    @classmethod
    def from_data(cls, data: Any) -> ValueMax:
        """Accept a number, a one- or two-element list, or a current/max mapping."""
        if _is_uint(data):
            return cls(data, data)
        if isinstance(data, list):
            if not data:
                raise ValueError("ValueMax: expected at least one element")
            current = data[0]
            maximum = data[1] if len(data) > 1 else current
            if not (_is_uint(current) and _is_uint(maximum)):
                raise ValueError(f"ValueMax: invalid values {data!r}")
            return cls(current, maximum)
        if isinstance(data, dict):
            current = maximum = None
            for key, value in data.items():
                if key in ("current", "Current", "CURRENT"):
                    current = value
                elif key in ("max", "Max", "MAX"):
                    maximum = value
            if current is None:
                raise ValueError("ValueMax: missing field 'current'")
            if maximum is None:
                raise ValueError("ValueMax: missing field 'max'")
            if not (_is_uint(current) and _is_uint(maximum)):
                raise ValueError(f"ValueMax: invalid values {data!r}")
            return cls(current, maximum)
        raise ValueError(f"ValueMax: unsupported value {data!r}")


class InteractionKind(Enum):
    ASCEND = "Ascend"
    REPAIR = "Repair"
    UPGRADE_HEALTH = "UpgradeHealth"


@dataclass(frozen=True)
class Interaction:
    """What an interactive fixture does; Repair and UpgradeHealth carry an amount."""

    kind: InteractionKind
    value: int | None = None

    @classmethod
    def from_data(cls, data: Any) -> Interaction:
        """Accept "Ascend" or a single-key mapping such as {"Repair": 3}."""
        if isinstance(data, str):
            kind = _enum_from(InteractionKind, data)
            if kind is not InteractionKind.ASCEND:
                raise ValueError(f"Interaction {data!r} needs a value")
            return cls(kind)
        if isinstance(data, dict) and len(data) == 1:
            ((name, value),) = data.items()
            kind = _enum_from(InteractionKind, name)
            if kind is InteractionKind.ASCEND:
                if value is not None:
                    raise ValueError("Interaction 'Ascend' takes no value")
                return cls(kind)
            return cls(kind, parse_random_u32(value))
        raise ValueError(f"Invalid interaction: {data!r}")

    def describe(self) -> str:
        if self.kind is InteractionKind.ASCEND:
            return "Ascend"
        if self.kind is InteractionKind.REPAIR:
            return f"Repair({self.value})"
        return f"Incr. HP({self.value})"