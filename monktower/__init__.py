"""Entity data, an entity-component world, board generation, actions and events of a tower-climbing roguelike."""

__version__ = "0.1.10"