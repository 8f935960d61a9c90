"""Action engine and transition rule tests.

Covers moves against bounds and walls, FIFO inventory, undo by snapshot,
done truncation and listener ordering.
"""

import sys
import os

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from robogrid.actions import Action, ActionType, apply_action, get_rule, pick_kind_to_take
from robogrid.engine import ActionEngine
from robogrid.errors import EngineErrors, EngineReentryError
from robogrid.world_model import ObjectStack, RobotPose, World, create_default_world
from robogrid.world_model.state import DIRECTION_DELTAS, OPPOSITE


def make_world(x=1, y=1, dir="E", width=10, height=10) -> World:
    return World(width=width, height=height, robot=RobotPose(x=x, y=y, dir=dir))


def run_actions(world: World, actions):
    engine = ActionEngine(world)
    for a in actions:
        engine.enqueue(a)
    events = []
    while True:
        event = engine.step()
        if event is None:
            break
        events.append(event)
    return engine, events


def test_move_four_directions():
    """Move succeeds iff in bounds and neither half of the edge has a wall."""
    print("\n" + "=" * 60)
    print("TEST: Move in Four Directions")
    print("=" * 60)

    for d, (dx, dy) in DIRECTION_DELTAS.items():
        # Open edge
        world = make_world(3, 3, d, width=5, height=5)
        result = apply_action(world, Action.move())
        assert result.success, f"open move {d} failed: {result.info}"
        assert (world.robot.x, world.robot.y) == (3 + dx, 3 + dy)
        assert world.robot.dir == d

        # Wall on the source side
        world = make_world(3, 3, d, width=5, height=5)
        world.add_wall(3, 3, d)
        result = apply_action(world, Action.move())
        assert not result.success
        assert result.reason == EngineErrors.BLOCKED_BY_WALL
        assert (world.robot.x, world.robot.y) == (3, 3)

        # Opposing wall on the destination side
        world = make_world(3, 3, d, width=5, height=5)
        world.add_wall(3 + dx, 3 + dy, OPPOSITE[d])
        result = apply_action(world, Action.move())
        assert not result.success
        assert result.reason == EngineErrors.BLOCKED_BY_WALL

        # Leaving the grid
        edge_x = {"E": 5, "W": 1}.get(d, 3)
        edge_y = {"N": 5, "S": 1}.get(d, 3)
        world = make_world(edge_x, edge_y, d, width=5, height=5)
        result = apply_action(world, Action.move())
        assert not result.success
        assert result.reason == EngineErrors.OUT_OF_BOUNDS

        print(f"✓ {d}: open / source wall / opposing wall / edge")


def test_bounds_checked_before_walls():
    print("\n" + "=" * 60)
    print("TEST: Bounds Before Walls")
    print("=" * 60)

    world = make_world(1, 1, "W")
    world.add_wall(1, 1, "W")
    result = apply_action(world, Action.move())
    assert result.reason == EngineErrors.OUT_OF_BOUNDS
    print("✓ out_of_bounds reported even with a boundary wall")


def test_turn_left_cycle():
    print("\n" + "=" * 60)
    print("TEST: Turn Left Cycle")
    print("=" * 60)

    world = make_world(dir="N")
    seen = []
    for _ in range(4):
        apply_action(world, Action.turn_left())
        seen.append(world.robot.dir)
    assert seen == ["W", "S", "E", "N"]
    print(f"✓ N -> {' -> '.join(seen)}")


def test_scenario_two_moves_turn_move():
    """move(); move(); turn_left(); move() from (1,1,E) ends at (3,2,N)."""
    print("\n" + "=" * 60)
    print("TEST: Scenario (1,1,E) -> (3,2,N)")
    print("=" * 60)

    engine, events = run_actions(
        create_default_world(10, 10),
        [Action.move(), Action.move(), Action.turn_left(), Action.move()],
    )
    state = engine.get_state()
    assert (state.robot.x, state.robot.y, state.robot.dir) == (3, 2, "N")
    assert all(e.ok for e in events)
    moves = [e for e in events if e.action.type == ActionType.MOVE]
    assert len(moves) == 3
    assert [e.step for e in events] == [1, 2, 3, 4]
    print(f"✓ Final pose {state.robot.x},{state.robot.y},{state.robot.dir}; {len(moves)} moves, no failures")


def test_scenario_out_of_bounds():
    print("\n" + "=" * 60)
    print("TEST: Scenario Out of Bounds")
    print("=" * 60)

    engine, events = run_actions(make_world(1, 1, "W"), [Action.move()])
    assert len(events) == 1
    event = events[0]
    assert not event.ok
    assert event.reason == EngineErrors.OUT_OF_BOUNDS
    assert event.after is None
    state = engine.get_state()
    assert (state.robot.x, state.robot.y, state.robot.dir) == (1, 1, "W")
    print("✓ Single failed event, pose unchanged")


def test_scenario_blocked_by_wall():
    print("\n" + "=" * 60)
    print("TEST: Scenario Blocked by Wall")
    print("=" * 60)

    world = make_world(2, 1, "E")
    world.add_wall(2, 1, "E")
    engine, events = run_actions(world, [Action.move()])
    assert events[0].reason == EngineErrors.BLOCKED_BY_WALL
    assert engine.get_state().robot.x == 2
    print("✓ blocked_by_wall at (2,1,E)")


def test_failed_step_does_not_stop_engine():
    print("\n" + "=" * 60)
    print("TEST: Engine Continues After Failure")
    print("=" * 60)

    engine, events = run_actions(
        make_world(1, 1, "W"),
        [Action.move(), Action.turn_left(), Action.turn_left(), Action.move()],
    )
    assert [e.ok for e in events] == [False, True, True, True]
    state = engine.get_state()
    assert (state.robot.x, state.robot.y, state.robot.dir) == (2, 1, "E")
    print("✓ Later steps still run")


def test_take_put_restores_count():
    print("\n" + "=" * 60)
    print("TEST: Take then Put")
    print("=" * 60)

    world = make_world(3, 1)
    world.add_objects(3, 1, "carrot", 2)
    assert apply_action(world, Action.take()).success
    assert world.find_stack(3, 1, "carrot").count == 1
    assert world.robot.inventory == ["carrot"]
    assert apply_action(world, Action.put()).success
    assert world.find_stack(3, 1, "carrot").count == 2
    assert world.robot.inventory == []
    print("✓ Stack count restored")


def test_take_last_object_deletes_stack():
    world = make_world(1, 1)
    world.add_objects(1, 1, "apple", 1)
    assert apply_action(world, Action.take()).success
    assert world.objects == []
    result = apply_action(world, Action.take())
    assert not result.success
    assert result.reason == EngineErrors.NO_OBJECT_HERE
    print("✓ Empty stack removed, second take fails")


def test_inventory_fifo():
    print("\n" + "=" * 60)
    print("TEST: Inventory FIFO")
    print("=" * 60)

    world = make_world(1, 1)
    world.add_objects(1, 1, "apple", 1)
    world.add_objects(1, 1, "banana", 1)

    # Ascending kind order without goal marks
    assert apply_action(world, Action.take()).info["kind"] == "apple"
    assert apply_action(world, Action.take()).info["kind"] == "banana"

    apply_action(world, Action.move())
    first = apply_action(world, Action.put())
    apply_action(world, Action.move())
    second = apply_action(world, Action.put())
    assert (first.info["kind"], second.info["kind"]) == ("apple", "banana")
    assert world.find_stack(2, 1, "apple").count == 1
    assert world.find_stack(3, 1, "banana").count == 1
    print("✓ Put order matches take order")


def test_take_prefers_goal_marked_stack():
    world = make_world(1, 1)
    world.objects.append(ObjectStack(1, 1, "apple", 1))
    world.objects.append(ObjectStack(1, 1, "token", 1, goal_mark=True))
    assert pick_kind_to_take(world, 1, 1) == "token"
    print("✓ Goal-marked stack taken first")


def test_put_with_empty_inventory():
    world = make_world(1, 1)
    result = apply_action(world, Action.put())
    assert not result.success
    assert result.reason == EngineErrors.NO_ITEM_TO_PUT
    assert world.objects == []


def test_build_wall_twice():
    print("\n" + "=" * 60)
    print("TEST: Build Wall Twice")
    print("=" * 60)

    world = make_world(4, 4, "N")
    first = apply_action(world, Action.build_wall())
    second = apply_action(world, Action.build_wall())
    assert first.success and second.success
    assert first.info["added"] and not second.info["added"]
    assert len(world.walls) == 1
    wall = world.walls[0]
    assert (wall.x, wall.y, wall.dir) == (4, 4, "N")
    # Not mirrored onto the neighbour
    assert not world.has_wall_at(4, 5, "S")
    print("✓ Exactly one wall record")


def test_unknown_action():
    world = make_world()
    result = apply_action(world, Action("fly"))
    assert not result.success
    assert result.reason == EngineErrors.UNKNOWN_ACTION
    with pytest.raises(KeyError):
        get_rule("fly")


def test_step_prev_restores_snapshot():
    print("\n" + "=" * 60)
    print("TEST: Step Prev")
    print("=" * 60)

    world = make_world(1, 1)
    world.add_objects(1, 1, "carrot", 1)
    engine = ActionEngine(world)
    engine.enqueue(Action.take())
    engine.enqueue(Action.move())

    before = engine.get_state()
    event = engine.step()
    assert event.ok
    assert engine.pending == (Action.move(),)

    restored = engine.step_prev()
    assert restored == before
    assert engine.get_state() == before
    assert engine.pending == (Action.take(), Action.move())
    assert engine.step_count == 0
    assert engine.history == ()
    assert engine.step_prev() is None
    print("✓ Snapshot restored and action re-queued at the front")


def test_step_prev_is_lifo():
    engine = ActionEngine(make_world(1, 1))
    for _ in range(3):
        engine.enqueue(Action.move())
    for _ in range(3):
        engine.step()
    assert engine.get_state().robot.x == 4
    engine.step_prev()
    engine.step_prev()
    assert engine.get_state().robot.x == 2
    assert len(engine.pending) == 2
    engine.step()
    assert engine.get_state().robot.x == 3


def test_done_truncates_queue():
    print("\n" + "=" * 60)
    print("TEST: Done Truncates Queue")
    print("=" * 60)

    engine, events = run_actions(
        make_world(1, 1),
        [Action.move(), Action.done(), Action.move(), Action.move()],
    )
    assert [e.action.type for e in events] == [ActionType.MOVE, ActionType.DONE]
    assert engine.get_state().robot.x == 2
    assert engine.is_idle
    print("✓ Actions after done() produce no events")


def test_trace_is_noop():
    world = make_world()
    before = world.copy()
    result = apply_action(world, Action.trace("wall_in_front() -> False"))
    assert result.success
    assert world == before


def test_get_state_is_deep_copy():
    engine = ActionEngine(make_world())
    state = engine.get_state()
    state.robot.x = 9
    state.walls.append(None)
    fresh = engine.get_state()
    assert fresh.robot.x == 1
    assert fresh.walls == []


def test_subscribe_order_and_unsubscribe():
    print("\n" + "=" * 60)
    print("TEST: Subscribe")
    print("=" * 60)

    engine = ActionEngine(make_world())
    calls = []
    engine.subscribe(lambda e: calls.append(("a", e.step)))
    unsubscribe_b = engine.subscribe(lambda e: calls.append(("b", e.step)))

    engine.enqueue(Action.move())
    engine.enqueue(Action.move())
    engine.step()
    unsubscribe_b()
    engine.step()

    assert calls == [("a", 1), ("b", 1), ("a", 2)]
    print("✓ Registration order kept, unsubscribe works")


def test_listener_cannot_reenter_step():
    engine = ActionEngine(make_world())
    errors = []

    def listener(event):
        try:
            engine.step()
        except EngineReentryError as e:
            errors.append(e)

    engine.subscribe(listener)
    engine.enqueue(Action.move())
    engine.enqueue(Action.move())
    engine.step()

    assert len(errors) == 1
    assert engine.step_count == 1
    assert len(engine.pending) == 1
    print("✓ Re-entrant step rejected")


def test_reset():
    world = make_world()
    engine = ActionEngine(world)
    engine.enqueue(Action.move())
    engine.step()
    engine.enqueue(Action.move())

    engine.reset()
    assert engine.get_state() == world
    assert engine.pending == ()
    assert engine.history == ()
    assert engine.step_count == 0

    other = make_world(5, 5, "S")
    engine.reset(other)
    assert engine.get_state().robot.y == 5


if __name__ == "__main__":
    tests = [
        ("Move Four Directions", test_move_four_directions),
        ("Bounds Before Walls", test_bounds_checked_before_walls),
        ("Turn Left Cycle", test_turn_left_cycle),
        ("Scenario (3,2,N)", test_scenario_two_moves_turn_move),
        ("Scenario Out of Bounds", test_scenario_out_of_bounds),
        ("Scenario Blocked", test_scenario_blocked_by_wall),
        ("Continue After Failure", test_failed_step_does_not_stop_engine),
        ("Take then Put", test_take_put_restores_count),
        ("Take Last Object", test_take_last_object_deletes_stack),
        ("Inventory FIFO", test_inventory_fifo),
        ("Goal-Marked First", test_take_prefers_goal_marked_stack),
        ("Put Empty", test_put_with_empty_inventory),
        ("Build Wall Twice", test_build_wall_twice),
        ("Unknown Action", test_unknown_action),
        ("Step Prev", test_step_prev_restores_snapshot),
        ("Step Prev LIFO", test_step_prev_is_lifo),
        ("Done Truncates", test_done_truncates_queue),
        ("Trace No-op", test_trace_is_noop),
        ("Deep Copy State", test_get_state_is_deep_copy),
        ("Subscribe", test_subscribe_order_and_unsubscribe),
        ("Reentry", test_listener_cannot_reenter_step),
        ("Reset", test_reset),
    ]

    results = []
    for name, fn in tests:
        try:
            fn()
            results.append((name, True))
        except AssertionError as e:
            print(f"✗ {name}: {e}")
            results.append((name, False))

    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)

    passed = sum(1 for _, p in results if p)
    for name, p in results:
        print(f"  {name}: {'PASS' if p else 'FAIL'}")
    print(f"\nTotal: {passed}/{len(results)} passed")
