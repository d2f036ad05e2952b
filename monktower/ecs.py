"""A small entity-component store with resources and save-game serialization."""

from __future__ import annotations

import io
import pickle
from dataclasses import dataclass
from typing import Any

_PACKAGE = __name__.split(".")[0]

_SAFE_GLOBALS = {
    "builtins": {
        "set", "frozenset", "list", "dict", "tuple", "int", "float",
        "str", "bytes", "bool", "complex", "range", "slice",
    },
    "collections": {"deque", "OrderedDict", "defaultdict"},
}

_MISSING = object()


@dataclass(frozen=True, order=True)
class Entity:
    """A generational entity handle."""

    id: int
    version: int = 0


class _RestrictedUnpickler(pickle.Unpickler):
    def __init__(self, data: bytes, modules: set[str]) -> None:
        super().__init__(io.BytesIO(data))
        self._modules = modules

    def find_class(self, module: str, name: str) -> Any:
        allowed = (
            module == _PACKAGE
            or module.startswith(_PACKAGE + ".")
            or module in self._modules
            or name in _SAFE_GLOBALS.get(module, ())
        )
        if not allowed:
            raise pickle.UnpicklingError(f"Type {module}.{name} is not allowed in saves")
        return super().find_class(module, name)


class World:
    """Entities with typed components, plus singleton resources keyed by type."""

    def __init__(self) -> None:
        self._versions: list[int] = []
        self._free: list[int] = []
        self._alive: set[Entity] = set()
        self._components: dict[type, dict[Entity, Any]] = {}
        self._resources: dict[type, Any] = {}
        self._serializable: dict[str, type] = {}

    # entities

    def spawn_entity(self) -> Entity:
        if self._free:
            index = self._free.pop()
            entity = Entity(index, self._versions[index])
        else:
            entity = Entity(len(self._versions), 0)
            self._versions.append(0)
        self._alive.add(entity)
        return entity

    def despawn_entity(self, entity: Entity) -> None:
        """Remove an entity and all its components; unknown entities are ignored."""
        if entity not in self._alive:
            return
        self._alive.discard(entity)
        for storage in self._components.values():
            storage.pop(entity, None)
        self._versions[entity.id] += 1
        self._free.append(entity.id)

    def is_alive(self, entity: Entity) -> bool:
        return entity in self._alive

    # components

    def insert_component(self, entity: Entity, component: Any) -> None:
        """Attach a component, replacing any of the same type."""
        if entity not in self._alive:
            raise LookupError(f"{entity} does not exist")
        self._components.setdefault(type(component), {})[entity] = component

    def remove_component(self, entity: Entity, component_type: type) -> Any | None:
        return self._components.get(component_type, {}).pop(entity, None)

    def get_component(self, entity: Entity, component_type: type) -> Any | None:
        return self._components.get(component_type, {}).get(entity)

    def query(self, *component_types: type) -> list[tuple]:
        """Tuples of (entity, component, ...) for entities holding every given type."""
        if not component_types:
            raise ValueError("query needs at least one component type")
        first, *rest = component_types
        others = [self._components.get(t, {}) for t in rest]
        rows = []
        for entity, component in self._components.get(first, {}).items():
            found = [storage.get(entity, _MISSING) for storage in others]
            if any(c is _MISSING for c in found):
                continue
            rows.append((entity, component, *found))
        return rows

    # resources

    def insert_resource(self, resource: Any) -> None:
        self._resources[type(resource)] = resource

    def get_resource(self, resource_type: type) -> Any | None:
        return self._resources.get(resource_type)

    def remove_resource(self, resource_type: type) -> Any | None:
        return self._resources.pop(resource_type, None)

    # serialization

    def register_serializable(self, name: str, cls: type) -> None:
        """Mark a component or resource type to be stored in saves under the given name."""
        existing = self._serializable.get(name)
        if existing is not None and existing is not cls:
            raise ValueError(f"Name {name!r} is already registered for {existing.__name__}")
        self._serializable[name] = cls

    def serialize(self) -> bytes:
        """Store entities and all registered components and resources."""
        components = {}
        resources = {}
        for name, cls in self._serializable.items():
            if cls in self._components:
                components[name] = list(self._components[cls].items())
            if cls in self._resources:
                resources[name] = self._resources[cls]
        state = {
            "versions": list(self._versions),
            "free": list(self._free),
            "alive": sorted(self._alive),
            "components": components,
            "resources": resources,
        }
        return pickle.dumps(state, protocol=pickle.HIGHEST_PROTOCOL)

    def deserialize(self, data: bytes) -> None:
        """Replace the world contents with a state produced by serialize()."""
        modules = {cls.__module__ for cls in self._serializable.values()}
        try:
            state = _RestrictedUnpickler(data, modules).load()
            versions = list(state["versions"])
            free = list(state["free"])
            alive = set(state["alive"])
            components = dict(state["components"])
            resources = dict(state["resources"])
        except (pickle.UnpicklingError, EOFError, AttributeError, ImportError,
                IndexError, KeyError, TypeError, ValueError) as exc:
            raise ValueError(f"Invalid saved state: {exc}") from exc

        unknown = (set(components) | set(resources)) - set(self._serializable)
        if unknown:
            raise ValueError(f"Unregistered types in saved state: {sorted(unknown)}")

        self._versions = versions
        self._free = free
        self._alive = alive
        self._components = {}
        self._resources = {}
        for name, items in components.items():
            self._components[self._serializable[name]] = dict(items)
        for name, resource in resources.items():
            self._resources[self._serializable[name]] = resource