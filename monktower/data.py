"""Static game data: entity templates, level requirements, colours and settings."""

from __future__ import annotations

import random
from dataclasses import dataclass, field
from typing import Any

import yaml


@dataclass(frozen=True)
class Color:
    """An RGBA colour with 8-bit channels."""

    r: int = 0
    g: int = 0
    b: int = 0
    a: int = 0


COLORS: tuple[tuple[str, Color], ...] = (
    ("Green", Color(145, 200, 185, 255)),
    ("Gray", Color(189, 200, 220, 255)),
    ("Mercury", Color(195, 234, 254, 255)),
    ("Orange", Color(255, 126, 102, 255)),
    ("Red", Color(255, 0, 71, 255)),
    ("Yellow", Color(255, 191, 102, 255)),
    ("Pink", Color(255, 102, 145, 255)),
    ("Blue", Color(89, 116, 166, 255)),
)


def _is_uint(value: Any) -> bool:
    return isinstance(value, int) and not isinstance(value, bool) and value >= 0


def _as_mapping(data: Any, what: str) -> dict:
    if not isinstance(data, dict):
        raise ValueError(f"{what}: expected a mapping, got {data!r}")
    return data


def _required(data: dict, key: str, what: str) -> Any:
    try:
        return data[key]
    except KeyError:
        raise ValueError(f"{what}: missing field {key!r}") from None


def _uint(value: Any, what: str) -> int:
    if not _is_uint(value):
        raise ValueError(f"{what}: expected a non-negative integer, got {value!r}")
    return value


def _str_list(value: Any, what: str) -> list[str]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{what}: expected a list of strings, got {value!r}")
    return list(value)


def parse_color(value: Any) -> Color:
    """Build a colour from a sequence of exactly four channel values."""
    if not isinstance(value, (list, tuple)) or len(value) != 4:
        raise ValueError(f"Wrong color value: {value!r}")
    channels = []
    for channel in value:
        if not _is_uint(channel):
            raise ValueError(f"Incorrect color numerical value: {channel!r}")
        channels.append(channel & 0xFF)
    return Color(*channels)


@dataclass
class SpriteData:
    atlas_name: str
    index: int
    color: Color = field(default_factory=Color)
    frames: int | None = None

    @classmethod
    def from_dict(cls, data: Any) -> SpriteData:
        data = _as_mapping(data, "sprite")
        atlas_name = _required(data, "atlas_name", "sprite")
        if not isinstance(atlas_name, str):
            raise ValueError(f"sprite: atlas_name must be a string, got {atlas_name!r}")
        index = _uint(_required(data, "index", "sprite"), "sprite.index")
        color = parse_color(data["color"]) if "color" in data else Color()
        frames = data.get("frames")
        if frames is not None:
            frames = _uint(frames, "sprite.frames")
        return cls(atlas_name=atlas_name, index=index, color=color, frames=frames)


@dataclass
class EntityData:
    sprite: SpriteData
    components: Any
    min_level: int = 0
    max_level: int = 0
    spawn_chance: float | None = None
    score: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> EntityData:
        data = _as_mapping(data, "entity")
        sprite = SpriteData.from_dict(_required(data, "sprite", "entity"))
        components = _required(data, "components", "entity")
        min_level = _uint(data.get("min_level", 0), "entity.min_level")
        max_level = _uint(data.get("max_level", 0), "entity.max_level")
        spawn_chance = data.get("spawn_chance")
        if spawn_chance is not None:
            if isinstance(spawn_chance, bool) or not isinstance(spawn_chance, (int, float)):
                raise ValueError(f"entity.spawn_chance: expected a number, got {spawn_chance!r}")
            spawn_chance = float(spawn_chance)
        score = data.get("score", 0)
        if isinstance(score, bool) or not isinstance(score, int):
            raise ValueError(f"entity.score: expected an integer, got {score!r}")
        return cls(
            sprite=sprite,
            components=components,
            min_level=min_level,
            max_level=max_level,
            spawn_chance=spawn_chance,
            score=score,
        )


@dataclass
class LevelData:
    required_items: list[str] = field(default_factory=list)
    required_npcs: list[str] = field(default_factory=list)
    required_fixtures: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> LevelData:
        data = _as_mapping(data, "level")
        return cls(
            required_items=_str_list(data.get("required_items", []), "level.required_items"),
            required_npcs=_str_list(data.get("required_npcs", []), "level.required_npcs"),
            required_fixtures=_str_list(
                data.get("required_fixtures", []), "level.required_fixtures"
            ),
        )


@dataclass
class Settings:
    swipe_sensitivity: int = 5
    swipe_repeat_delay: int = 2
    dpad: bool = False
    dirty: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "swipe_sensitivity": self.swipe_sensitivity,
            "swipe_repeat_delay": self.swipe_repeat_delay,
            "dpad": self.dpad,
            "dirty": self.dirty,
        }

    @classmethod
    def from_dict(cls, data: Any) -> Settings:
        data = _as_mapping(data, "settings")
        values: dict[str, Any] = {}
        for key in ("swipe_sensitivity", "swipe_repeat_delay"):
            values[key] = _uint(_required(data, key, "settings"), f"settings.{key}")
        for key in ("dpad", "dirty"):
            value = _required(data, key, "settings")
            if not isinstance(value, bool):
                raise ValueError(f"settings.{key}: expected a boolean, got {value!r}")
            values[key] = value
        return cls(**values)


@dataclass
class GameData:
    """All entity templates by name, level data and the name groups used for spawning."""

    entities: dict[str, EntityData] = field(default_factory=dict)
    levels: dict[int, LevelData] = field(default_factory=dict)
    discoverables: list[str] = field(default_factory=list)
    items: list[str] = field(default_factory=list)
    npcs: list[str] = field(default_factory=list)
    fixtures: list[str] = field(default_factory=list)
    weapons: list[str] = field(default_factory=list)
    discoverable_colors: dict[str, tuple[str, Color]] = field(default_factory=dict)

    def add_entities_from_str(self, text: str) -> list[str]:
        """Parse a YAML mapping of entity templates; return the inserted names in order."""
        try:
            values = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Could not parse YAML data: {exc}") from exc
        values = _as_mapping(values, "entity data")

        inserted: list[str] = []
        for key, value in values.items():
            try:
                data = EntityData.from_dict(value)
            except ValueError as exc:
                raise ValueError(f"Incorrect value for {key!r}: {exc}") from exc
            if not isinstance(key, str):
                raise ValueError(f"Incorrect string key: {key!r}")
            if key in self.entities:
                raise ValueError(f"Duplicate data at: {key}")
            self.entities[key] = data
            inserted.append(key)
        return inserted

    def add_level_data_from_str(self, text: str) -> None:
        """Replace the level table with the YAML mapping of level number to data."""
        try:
            values = yaml.safe_load(text)
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid level data: {exc}") from exc
        values = _as_mapping(values, "level data")
        levels: dict[int, LevelData] = {}
        for key, value in values.items():
            if not _is_uint(key):
                raise ValueError(f"Invalid level number: {key!r}")
            levels[key] = LevelData.from_dict(value if value is not None else {})
        self.levels = levels

    def assign_discoverables(self, rng: random.Random | None = None) -> None:
        """Give each discoverable a distinct colour drawn at random from the palette."""
        rng = rng or random.Random()
        pool = list(COLORS)
        if len(pool) < len(self.discoverables):
            raise ValueError("Not enough colors in the pool!")
        self.discoverable_colors = {}
        for name in self.discoverables:
            self.discoverable_colors[name] = pool.pop(rng.randrange(len(pool)))