# monktower

Game rules for a small turn-based roguelike in which a monk climbs a tower,
floor by floor. Each floor is an 8×8 board. It is split into rooms by binary
space partitioning and then filled with monsters, items, weapons and
fixtures described in YAML data.

The package is a library. It has no graphics, sound, input or command of
its own.

## Modules

- `monktower.config`: fixed parameters (`BOARD_SIZE`, `VIEW_RANGE`,
  `LEVEL_COUNT`, `MAX_WEAPONS`, `MAX_COLLECTABLES`).
- `monktower.data`: entity and level definitions loaded from YAML
  (`GameData`, `EntityData`, `SpriteData`, `LevelData`, `Color`,
  `parse_color`, the `COLORS` palette) and the player's `Settings`.
- `monktower.geometry`: `Vector2i`, `ORTHO_DIRECTIONS`, `tile_range`,
  `get_line`, `find_path` and `visible_tiles`.
- `monktower.ecs`: a small entity–component store (`World`, `Entity`) with
  resources and serialization to bytes.
- `monktower.events`: `EventKind`, `GameEvent`, `EventBus` and `Subscriber`.
- `monktower.structs`: `Attitude`, `Attack`, `Effect`, `ValueMax`,
  `Interaction` and `parse_random_u32`.
- `monktower.components`: everything an entity can be made of (`Health`,
  `Offensive`, `Ranged`, `Player`, `Position`, …), `GameStats`, `describe`
  and `insert_data_components`.
- `monktower.queries`: `get_entities_at_position`, `spawn_with_position`,
  `get_player_entity`, `get_player_position`, `is_hostile`, `visibility`.
- `monktower.board`: `Board`, the room layout generator and
  `update_visibility`.
- `monktower.effects`: the `Action` base class, `ActionFailed`, actions that
  change one entity or the player (`Damage`, `Heal`, `ApplyPoison`,
  `WieldWeapon`, `UseCollectable`, `Teleport`, …) and `get_effect_action`.
- `monktower.actions`: movement, attacks and other actor choices (`Walk`,
  `AttackAction`, `Defend`, `PushAction`, `SwitchAction`, `Interact`,
  `Summon`, `Shoot`, …), `get_action_at_dir`, `get_npc_action`, and the
  `PendingActions` and `ActorQueue` resources.

## Entity data

Entities are described in YAML mappings keyed by name. Each entry has a
sprite and a set of components:

```yaml
Rat:
  sprite:
    atlas_name: units
    index: 2
    color: [189, 200, 220, 255]
  min_level: 1
  max_level: 6
  spawn_chance: 1.0
  score: 1
  components:
    Actor: {}
    Obstacle:
    Health: 2
    Offensive:
      attacks:
        - kind: Hit
          value: 1-2
```

A value written as `"a-b"` is drawn at random from `a` to `b`, inclusive,
each time the template is turned into components. A `Health` value can be
one number (current and maximum alike), a `[current, max]` list, or a
mapping with `current` and `max`. An unknown component name, or a malformed
value, raises `ValueError`.

`GameData.add_entities_from_str` returns the names it added, in order; a
name that is already present raises `ValueError`. Level files map a level
number to the items, NPCs and fixtures that must appear on that floor:

```yaml
5:
  required_npcs: [Rat_King]
  required_fixtures: [Fountain]
```

## Building a floor and acting on it

`Board.generate` reads the `GameData` resource of the world. Besides the
item, weapon, NPC and fixture pools it needs templates named `Tile`,
`Wall`, `Closed_Door` and `Stair`, and `Small_Sword` on level 1.

```python
import random

from monktower.actions import get_action_at_dir, get_npc_action
from monktower.board import Board, update_visibility
from monktower.components import Player
from monktower.data import GameData
from monktower.ecs import World
from monktower.effects import ActionFailed
from monktower.events import EventBus
from monktower.geometry import Vector2i
from monktower.queries import spawn_with_position

data = GameData()
data.npcs = data.add_entities_from_str(open("npcs.yaml").read())
data.items = data.add_entities_from_str(open("items.yaml").read())
data.weapons = data.add_entities_from_str(open("weapons.yaml").read())
data.fixtures = data.add_entities_from_str(open("fixtures.yaml").read())
data.add_entities_from_str(open("board_elements.yaml").read())
data.add_entities_from_str(open("player.yaml").read())
data.add_level_data_from_str(open("levels.yaml").read())
data.assign_discoverables(random.Random())

world = World()
world.insert_resource(data)
board = Board(level=1)
board.generate(world)
world.insert_resource(board)

player = spawn_with_position(world, "Player", board.player_spawn)
world.insert_component(player, Player())
update_visibility(world)

events = EventBus()
listener = events.subscribe()

action = get_action_at_dir(player, world, Vector2i(0, 1))
if action is not None:
    try:
        follow_ups = action.execute(world)
    except ActionFailed:
        follow_ups = []
    else:
        events.publish(action.event())

print(listener.read())
```

Every `Action` has `execute(world)`, which returns the actions that follow
from it or raises `ActionFailed`, `event()`, the `GameEvent` to announce,
and `score(world)`, by which `get_npc_action` picks the best option for a
non-player actor (falling back to `Pause`).

## Saving

`World.serialize()` returns bytes holding all entities and the components
and resources whose types were registered with
`World.register_serializable(name, cls)`. `World.deserialize(data)` on a
world with the same registrations replaces its contents; bad or unknown
data raises `ValueError`. A `Player`'s pending `action` is never saved.

## Settings

`Settings` holds input preferences: swipe sensitivity, swipe repeat delay
and whether an on-screen d-pad is used. It converts to and from a plain
dictionary with `to_dict` and `Settings.from_dict`.

## What this package does not do

- It has no turn loop. Nothing here fills the `ActorQueue`, runs the
  `PendingActions`, removes dead units, ticks down poison, regeneration,
  immunity, stun or summoner cooldowns, fires projectiles, or moves to the
  next floor when `Board.exit` is set; the caller has to do that.
- It has no helpers for spawning the player or for setting the player's
  next action from input.
- It writes nothing to disk: saves are bytes for the caller to store.
- It has no front end: no screen, sound, input handling or command.