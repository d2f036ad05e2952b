import pytest

from monktower.actions import (
    AttackAction,
    Bump,
    Defend,
    HitAction,
    Interact,
    PoisonAction,
    PushAction,
    Shoot,
    StunAction,
    Summon,
    SwitchAction,
    Walk,
    get_action_at_dir,
    get_attack_action,
    get_npc_action,
    is_shooting_range,
)
from monktower.board import Board
from monktower.components import (
    Actor,
    Defensive,
    Durability,
    Fixture,
    Health,
    Immaterial,
    Interactive,
    Name,
    Obstacle,
    Offensive,
    Player,
    Position,
    Projectile,
    Ranged,
    Stunned,
    Summoner,
    Swing,
)
from monktower.data import GameData
from monktower.ecs import World
from monktower.effects import (
    ActionFailed,
    ApplyPoison,
    Ascend,
    Damage,
    Pause,
    Pay,
    Replace,
    TakeDurability,
)
from monktower.events import EventKind
from monktower.geometry import ORTHO_DIRECTIONS, Vector2i
from monktower.structs import (
    Attack,
    AttackKind,
    Attitude,
    Interaction,
    InteractionKind,
    ValueMax,
)

RAT_YAML = """
Rat:
  sprite: {atlas_name: units, index: 1}
  components:
    Health: 2
"""


def make_world(size=5):
    world = World()
    tiles = {Vector2i(x, y): world.spawn_entity() for x in range(size) for y in range(size)}
    world.insert_resource(Board(level=1, tiles=tiles))
    return world


def spawn(world, pos, *components):
    entity = world.spawn_entity()
    world.insert_component(entity, Position(pos))
    for component in components:
        world.insert_component(entity, component)
    return entity


def test_get_attack_action_kinds():
    target = Vector2i(1, 1)
    assert get_attack_action(Attack(AttackKind.HIT, 3), target) == HitAction(target, 3)
    assert get_attack_action(Attack(AttackKind.POISON, 2), target) == PoisonAction(target, 2)
    assert get_attack_action(Attack(AttackKind.STUN, 1), target) == StunAction(target, 1)


def test_hit_action_damages_only_health_entities():
    world = make_world()
    v = Vector2i(1, 1)
    alive = spawn(world, v, Health(ValueMax(3, 3)))
    spawn(world, v)
    assert HitAction(v, 2).execute(world) == [Damage(alive, 2)]


def test_stun_action_inserts_and_accumulates():
    world = make_world()
    v = Vector2i(1, 1)
    e = spawn(world, v, Health(ValueMax(3, 3)))
    StunAction(v, 2).execute(world)
    StunAction(v, 1).execute(world)
    assert world.get_component(e, Stunned).value == 3


def test_poison_action_applies_poison():
    world = make_world()
    v = Vector2i(2, 2)
    e = spawn(world, v, Health(ValueMax(3, 3)))
    assert PoisonAction(v, 4).execute(world) == [ApplyPoison(e, 4)]


def test_push_requires_adjacent_source():
    world = make_world()
    with pytest.raises(ActionFailed):
        PushAction(Vector2i(0, 0), Vector2i(2, 0), 2).execute(world)


def test_push_moves_actor_away():
    world = make_world()
    target = Vector2i(1, 0)
    e = spawn(world, target, Actor())
    actions = PushAction(Vector2i(0, 0), target, 2).execute(world)
    assert actions == [Walk(e, Vector2i(3, 0))]


def test_push_blocked_by_obstacle():
    world = make_world()
    target = Vector2i(1, 0)
    spawn(world, target, Actor())
    spawn(world, Vector2i(2, 0), Obstacle())
    assert PushAction(Vector2i(0, 0), target, 2).execute(world) == []


def test_switch_swaps_and_stuns():
    world = make_world()
    source = Vector2i(1, 1)
    target = Vector2i(1, 2)
    me = spawn(world, source, Actor(attitude=Attitude.HOSTILE))
    other = spawn(world, target, Actor())
    actions = SwitchAction(me, target).execute(world)
    assert actions == [Walk(other, source), Walk(me, target), StunAction(source, 1)]
    assert world.get_component(me, Actor).attitude is Attitude.NEUTRAL


def test_defend_strikes_back_at_attacker():
    world = make_world()
    attacker_pos = Vector2i(0, 0)
    target = Vector2i(1, 0)
    attacker = spawn(world, attacker_pos)
    spawn(world, target, Defensive([Attack(AttackKind.POISON, 1)]))
    assert Defend(attacker, target).execute(world) == [PoisonAction(attacker_pos, 1)]


def test_attack_with_player_weapon():
    world = make_world()
    target = Vector2i(1, 0)
    weapon = world.spawn_entity()
    world.insert_component(weapon, Offensive([Attack(AttackKind.HIT, 2)]))
    world.insert_component(weapon, Durability(3))
    player = Player()
    player.weapons[0] = weapon
    me = spawn(world, Vector2i(0, 0), player)
    spawn(world, target, Health(ValueMax(3, 3)))
    actions = AttackAction(me, target).execute(world)
    assert actions == [HitAction(target, 2), Defend(me, target), TakeDurability(weapon, me)]


def test_attack_swing_hits_around():
    world = make_world()
    origin = Vector2i(2, 2)
    target = Vector2i(3, 2)
    me = spawn(world, origin, Offensive([Attack(AttackKind.HIT, 1)]), Swing())
    actions = AttackAction(me, target).execute(world)
    hit_targets = {a.target for a in actions if isinstance(a, HitAction)}
    behind = origin - (target - origin)
    assert target in hit_targets
    assert behind not in hit_targets
    assert all(v.manhattan(origin) == 1 for v in hit_targets)


def test_attack_without_offensive_returns_nothing():
    world = make_world()
    me = spawn(world, Vector2i(0, 0))
    assert AttackAction(me, Vector2i(1, 0)).execute(world) == []


def test_attack_score():
    world = make_world()
    target = Vector2i(1, 0)
    npc = spawn(world, Vector2i(0, 0), Actor(attitude=Attitude.HOSTILE))
    calm = spawn(world, Vector2i(0, 1), Actor())
    spawn(world, target, Player())
    assert AttackAction(npc, target).score(world) == 200
    assert AttackAction(calm, target).score(world) == -50
    assert AttackAction(npc, Vector2i(3, 3)).score(world) == -50


def test_action_at_dir_outside_board():
    world = make_world()
    me = spawn(world, Vector2i(0, 0))
    assert get_action_at_dir(me, world, Vector2i(-1, 0)) is None


def test_action_at_dir_attack_walk_door_obstacle():
    world = make_world()
    me = spawn(world, Vector2i(1, 1), Offensive([Attack(AttackKind.HIT, 1)]))
    spawn(world, Vector2i(1, 2), Health(ValueMax(1, 1)))
    door = spawn(world, Vector2i(2, 1), Name("Closed_Door"), Obstacle())
    spawn(world, Vector2i(0, 1), Obstacle())
    assert get_action_at_dir(me, world, Vector2i(0, 1)) == AttackAction(me, Vector2i(1, 2))
    assert get_action_at_dir(me, world, Vector2i(1, 0)) == Replace(door, "Open_Door")
    assert get_action_at_dir(me, world, Vector2i(-1, 0)) is None
    assert get_action_at_dir(me, world, Vector2i(0, -1)) == Walk(me, Vector2i(1, 0))


def test_immaterial_walks_through_obstacle():
    world = make_world()
    me = spawn(world, Vector2i(1, 1), Immaterial())
    spawn(world, Vector2i(0, 1), Obstacle())
    assert get_action_at_dir(me, world, Vector2i(-1, 0)) == Walk(me, Vector2i(0, 1))


def test_walk_execute_and_event():
    world = make_world()
    me = spawn(world, Vector2i(0, 0))
    walk = Walk(me, Vector2i(0, 1))
    assert walk.execute(world) == []
    assert world.get_component(me, Position).value == Vector2i(0, 1)
    assert walk.event().kind is EventKind.TRAVEL
    assert walk.event().animated is True


def test_walk_without_position_fails():
    world = make_world()
    with pytest.raises(ActionFailed):
        Walk(world.spawn_entity(), Vector2i(0, 0)).execute(world)


def test_walk_score_avoids_offensive_fixture():
    world = make_world()
    me = spawn(world, Vector2i(0, 0), Actor())
    spawn(world, Vector2i(0, 1), Fixture(), Offensive([Attack(AttackKind.HIT, 1)]))
    assert Walk(me, Vector2i(0, 1)).score(world) == -10


def test_walk_score_panic_flees():
    world = make_world()
    player_v = Vector2i(4, 4)
    spawn(world, player_v, Player())
    me = spawn(world, Vector2i(0, 0), Actor(attitude=Attitude.PANIC))
    step = Vector2i(1, 0)
    assert Walk(me, step).score(world) == player_v.manhattan(step)


def test_walk_score_follows_path_to_target():
    world = make_world()
    me = spawn(world, Vector2i(0, 0), Actor(target=Vector2i(0, 3)))
    assert Walk(me, Vector2i(0, 1)).score(world) == 20
    assert 0 <= Walk(me, Vector2i(1, 0)).score(world) < 4


def test_shooting_range():
    world = make_world()
    a = Vector2i(0, 0)
    assert is_shooting_range(a, Vector2i(0, 3), 3, world) is True
    assert is_shooting_range(a, Vector2i(0, 1), 3, world) is False
    assert is_shooting_range(a, Vector2i(2, 2), 3, world) is False
    assert is_shooting_range(a, Vector2i(0, 4), 3, world) is False


def test_shooting_range_blocked_and_immaterial():
    world = make_world()
    blocker = spawn(world, Vector2i(0, 1), Obstacle())
    assert is_shooting_range(Vector2i(0, 0), Vector2i(0, 3), 3, world) is False
    world.insert_component(blocker, Immaterial())
    assert is_shooting_range(Vector2i(0, 0), Vector2i(0, 3), 3, world) is True


def test_interact_pays_ascends_and_replaces():
    world = make_world()
    spawn(world, Vector2i(0, 0), Player(gold=5))
    fixture = spawn(
        world,
        Vector2i(1, 0),
        Interactive(Interaction(InteractionKind.ASCEND), next="Stair_Used", cost=3),
    )
    assert Interact(fixture).execute(world) == [Pay(3), Ascend(), Replace(fixture, "Stair_Used")]


def test_interact_too_expensive():
    world = make_world()
    spawn(world, Vector2i(0, 0), Player(gold=1))
    fixture = spawn(world, Vector2i(1, 0), Interactive(Interaction(InteractionKind.ASCEND), cost=3))
    with pytest.raises(ActionFailed):
        Interact(fixture).execute(world)


def test_interact_repair_needs_weapon():
    world = make_world()
    spawn(world, Vector2i(0, 0), Player())
    fixture = spawn(world, Vector2i(1, 0), Interactive(Interaction(InteractionKind.REPAIR, 2)))
    with pytest.raises(ActionFailed):
        Interact(fixture).execute(world)


def test_summon_on_cooldown_fails():
    world = make_world()
    me = spawn(world, Vector2i(2, 2), Summoner("Rat", ValueMax(1, 3)))
    with pytest.raises(ActionFailed):
        Summon(me).execute(world)


def test_summon_spawns_creature_and_resets_cooldown():
    world = make_world()
    data = GameData()
    data.add_entities_from_str(RAT_YAML)
    world.insert_resource(data)
    origin = Vector2i(2, 2)
    me = spawn(world, origin, Summoner("Rat", ValueMax(0, 3)))
    assert Summon(me).execute(world) == []
    summoner = world.get_component(me, Summoner)
    assert summoner.cooldown.current == summoner.cooldown.max
    rats = [e for e, name in world.query(Name) if name.value == "Rat"]
    assert len(rats) == 1
    assert world.get_component(rats[0], Position).value.manhattan(origin) == 1


def test_shoot_creates_projectile():
    world = make_world()
    attacks = [Attack(AttackKind.HIT, 1)]
    me = spawn(world, Vector2i(0, 0), Ranged(attacks, 3))
    Shoot(me, Vector2i(0, 3)).execute(world)
    rows = world.query(Projectile)
    assert len(rows) == 1
    projectile = rows[0][1]
    assert projectile.source == Vector2i(0, 0)
    assert projectile.target == Vector2i(0, 3)
    assert projectile.attacks == attacks


def test_npc_prefers_shooting_the_player():
    world = make_world()
    spawn(world, Vector2i(0, 3), Player())
    npc = spawn(
        world,
        Vector2i(0, 0),
        Actor(attitude=Attitude.HOSTILE),
        Ranged([Attack(AttackKind.HIT, 1)], 3),
    )
    assert get_npc_action(npc, world) == Shoot(npc, Vector2i(0, 3))


def test_npc_without_options_pauses():
    world = make_world()
    npc = world.spawn_entity()
    world.insert_component(npc, Actor())
    assert get_npc_action(npc, world) == Pause()


def test_npc_walks_when_only_moves_available():
    world = make_world()
    npc = spawn(world, Vector2i(2, 2), Actor())
    action = get_npc_action(npc, world)
    assert isinstance(action, Walk)
    assert action.target in {Vector2i(2, 2) + d for d in ORTHO_DIRECTIONS}


def test_bump_event():
    world = make_world()
    e = world.spawn_entity()
    bump = Bump(e, Vector2i(1, 1))
    assert bump.execute(world) == []
    event = bump.event()
    assert event.kind is EventKind.BUMP
    assert event.position == Vector2i(1, 1)