"""Playback, session and run logging tests.

Tests paced and immediate playback, the run/next/prev/reset controls and
the JSON trace written by TraceLogger.
"""

import glob
import json
import sys
import os
import tempfile
import time

import pytest

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from robogrid.actions import Action
from robogrid.builder import build_world
from robogrid.config import EngineConfig, RunConfig
from robogrid.engine import ActionEngine, Playback
from robogrid.errors import ScriptExecutionError
from robogrid.logging import TraceLogger
from robogrid.session import Session
from robogrid.utils import make_rng
from robogrid.world_model import Goal, RobotPose, World

SCENARIO_CODE = "move()\nmove()\nturn_left()\nmove()"


def make_world(x=1, y=1, dir="E", goal=None) -> World:
    return World(width=10, height=10, robot=RobotPose(x=x, y=y, dir=dir), goal=goal)


def test_timed_playback():
    print("\n" + "=" * 60)
    print("TEST: Timed Playback")
    print("=" * 60)

    engine = ActionEngine(make_world(goal=Goal(position={"x": 4, "y": 1})))
    for _ in range(3):
        engine.enqueue(Action.move())

    finished = []
    playback = Playback(engine, on_finish=finished.append)
    playback.start(pace_ms=1)
    result = playback.wait(timeout=5.0)

    assert result is not None
    assert result.status == "success"
    assert result.steps == 3
    assert finished == [result]
    assert not playback.running
    print(f"✓ {result.steps} steps played, goal met")


def test_cancel_stops_playback():
    print("\n" + "=" * 60)
    print("TEST: Cancel")
    print("=" * 60)

    world = World(width=200, height=1, robot=RobotPose(1, 1, "E"))
    engine = ActionEngine(world)
    for _ in range(150):
        engine.enqueue(Action.move())

    finished = []
    playback = Playback(engine, on_finish=finished.append)
    playback.start(pace_ms=20)
    time.sleep(0.1)
    playback.cancel()

    count = engine.step_count
    time.sleep(0.1)
    assert engine.step_count == count
    assert count < 150
    assert finished == []
    print(f"✓ Stopped after {count} steps, nothing fired after cancel")

    playback.reset()
    assert engine.pending == ()
    assert engine.step_count == 0


def test_run_to_completion_outcomes():
    engine = ActionEngine(make_world(goal=Goal(position={"x": 5, "y": 5})))
    engine.enqueue(Action.move())
    playback = Playback(engine)
    result = playback.run_to_completion()
    assert result.status == "fail"
    assert "Robot at" in result.message

    engine = ActionEngine(make_world(1, 1, "S"))
    engine.enqueue(Action.move())
    engine.enqueue(Action.turn_left())
    playback = Playback(engine)
    result = playback.run_to_completion()
    assert result.status == "error"
    assert result.failed_event.reason == "out_of_bounds"
    assert result.message == "The robot cannot leave the grid."
    # Stopped at the failure
    assert len(engine.pending) == 1

    engine = ActionEngine(make_world(1, 1, "S"))
    engine.enqueue(Action.move())
    engine.enqueue(Action.turn_left())
    playback = Playback(engine, EngineConfig(stop_on_failure=False))
    assert playback.run_to_completion().status == "success"
    assert engine.get_state().robot.dir == "E"


def test_playback_reports_evaluation_errors():
    print("\n" + "=" * 60)
    print("TEST: Playback Evaluation Error")
    print("=" * 60)

    class BrokenGoalPlayback(Playback):
        def evaluate(self):
            raise RuntimeError("goal check failed")

    engine = ActionEngine(make_world())
    engine.enqueue(Action.move())
    finished = []
    playback = BrokenGoalPlayback(engine, on_finish=finished.append)
    playback.start(pace_ms=1)
    result = playback.wait(timeout=5.0)

    assert result is not None
    assert result.status == "error"
    assert result.message == "RuntimeError: goal check failed"
    assert result.steps == 1
    assert finished == [result]
    assert not playback.running
    print("✓ Exception ends the run with an error result")


def test_malformed_goal_in_timed_run():
    session = Session(make_world(goal=Goal(objects={"5,5": 3})))
    assert session.run("move()")
    result = session.wait(timeout=5.0)
    assert result.success
    assert session.status == "success"


def test_playback_uses_each_action_pace():
    engine = ActionEngine(make_world())
    engine.enqueue(Action.move().with_pace(1))
    engine.enqueue(Action.move().with_pace(2000))

    playback = Playback(engine)
    playback.start(pace_ms=1)
    time.sleep(0.3)
    try:
        assert engine.step_count == 1
        assert playback.running
    finally:
        playback.cancel()
    assert engine.step_count == 1


def test_session_run_sync():
    print("\n" + "=" * 60)
    print("TEST: Session Run")
    print("=" * 60)

    session = Session(make_world(goal=Goal(position={"x": 3, "y": 2, "orientation": "N"})))
    result = session.run_sync(SCENARIO_CODE)
    assert result.success
    assert result.steps == 4
    assert session.status == "success"
    assert session.current_step == 4

    state = session.get_state()
    assert (state.robot.x, state.robot.y, state.robot.dir) == (3, 2, "N")

    # Running again starts from the original world
    result = session.run_sync("move()")
    assert result.status == "fail"
    assert session.get_state().robot.x == 2
    print("✓ Success, then a fresh run from the start world")


def test_session_reports_failures():
    world = make_world(2, 1, "E")
    world.add_wall(2, 1, "E")
    session = Session(world)

    result = session.run_sync("move()\nmove()")
    assert result.status == "error"
    assert session.status == "The robot ran into a wall."
    assert session.status_kind == "error"

    assert session.run_sync("move") is None
    assert session.status == 'Line 1: "move" should be "move()"'

    with pytest.raises(ScriptExecutionError):
        session.run_sync("move()\n1 / 0")
    assert session.status.startswith("Python error:")


def test_session_paced_run():
    session = Session(make_world())
    assert session.run("think(2)\n" + SCENARIO_CODE)
    assert session.host.pace_ms == 10.0
    result = session.wait(timeout=5.0)
    assert result.success
    assert session.get_state().robot.y == 2


def test_session_next_prev_reset():
    print("\n" + "=" * 60)
    print("TEST: Session Next / Prev / Reset")
    print("=" * 60)

    session = Session(make_world())
    first = session.next(SCENARIO_CODE)
    assert first.step == 1
    assert session.get_state().robot.x == 2
    assert len(session.engine.pending) == 3

    second = session.next(SCENARIO_CODE)
    assert second.step == 2
    assert session.current_step == 2

    restored = session.prev()
    assert restored.robot.x == 2
    assert session.current_step == 1
    assert len(session.engine.pending) == 3

    session.reset()
    assert session.get_state() == make_world()
    assert session.engine.pending == ()
    assert session.current_step == 0
    print("✓ Step forward, step back, reset")


def test_session_reveals_hidden_counts():
    world = build_world({"objects": {"2,2": {"apple": "2-4"}}}, rng=make_rng(0))
    assert world.objects[0].hidden

    session = Session(world)
    session.run_sync("turn_left()")
    assert not session.get_state().objects[0].hidden

    session.change_world(world)
    assert session.get_state().objects[0].hidden


def test_session_reset_redraws_ranges():
    print("\n" + "=" * 60)
    print("TEST: Session Reset Redraws Ranges")
    print("=" * 60)

    world = build_world({"objects": {"2,2": {"apple": "1-1000"}}}, rng=make_rng(0))
    drawn = world.objects[0].count
    config = RunConfig()
    config.builder.seed = 3
    session = Session(world, config=config)

    seen = set()
    for _ in range(5):
        session.reset()
        apple = session.get_state().objects[0]
        assert apple.hidden
        assert apple.range == (1, 1000)
        assert 1 <= apple.count <= 1000
        seen.add(apple.count)
    assert len(seen) > 1

    # change_world keeps the draw it is given
    session.change_world(world)
    assert session.get_state().objects[0].count == drawn
    print(f"✓ {len(seen)} distinct counts over 5 resets")


def test_trace_logger_writes_run():
    print("\n" + "=" * 60)
    print("TEST: Trace Logger")
    print("=" * 60)

    with tempfile.TemporaryDirectory() as tmp:
        config = RunConfig()
        config.logging.output_dir = tmp
        logger = TraceLogger.from_config(config)

        world = build_world({"objects": {"2,1": {"carrot": "1-3"}}}, rng=make_rng(7))
        session = Session(world, config=config, logger=logger, world_name="carrots")
        session.run_sync("move()\ntake()\nwall_in_front()")

        files = glob.glob(os.path.join(tmp, "run_0000_*.json"))
        assert len(files) == 1
        with open(files[0]) as f:
            log = json.load(f)

    assert log["world_name"] == "carrots"
    assert log["success"] is True
    assert log["total_steps"] == 3
    assert log["failed_steps"] == 0
    assert [e["action"]["type"] for e in log["events"]] == ["move", "take", "trace"]
    assert log["events"][2]["action"]["message"] == "wall_in_front() -> False"
    assert log["events"][1]["after"]["robot"]["inventory"] == ["carrot"]
    # Drawn counts reach the log as plain ints
    assert type(log["events"][0]["before"]["objects"][0]["count"]) is int
    assert log["config"]["logging"]["output_dir"] == tmp
    assert len(log["world_state_trace"]) == 1
    print(f"✓ Run log with {len(log['events'])} events")


def test_trace_logger_without_snapshots():
    with tempfile.TemporaryDirectory() as tmp:
        logger = TraceLogger(tmp, include_snapshots=False)
        engine = ActionEngine(make_world(1, 1, "W"))
        logger.attach(engine)
        logger.start_run("edge", run_idx=2)
        engine.enqueue(Action.move())
        engine.step()
        path = logger.end_run(success=False, failure_reason="out_of_bounds")

        assert os.path.basename(path).startswith("run_0002_")
        with open(path) as f:
            log = json.load(f)
        assert "before" not in log["events"][0]
        assert log["failed_steps"] == 1
        assert log["failure_reason"] == "out_of_bounds"

        logger.detach()
        engine.enqueue(Action.turn_left())
        engine.step()
        assert logger.end_run(success=True) == ""


def test_run_config_from_yaml():
    with tempfile.TemporaryDirectory() as tmp:
        path = os.path.join(tmp, "run.yaml")
        with open(path, "w") as f:
            f.write("engine:\n  pace_multiplier: 2.0\nbuilder:\n  seed: 9\n")
        config = RunConfig.from_yaml(path)

    assert config.engine.pace_multiplier == 2.0
    assert config.engine.fallback_pace_ms == 10.0
    assert config.builder.seed == 9
    assert config.logging.output_dir == "logs"
    assert RunConfig.from_dict(config.to_dict()) == config


if __name__ == "__main__":
    tests = [
        ("Timed Playback", test_timed_playback),
        ("Cancel", test_cancel_stops_playback),
        ("Run to Completion", test_run_to_completion_outcomes),
        ("Evaluation Error", test_playback_reports_evaluation_errors),
        ("Malformed Goal", test_malformed_goal_in_timed_run),
        ("Per-action Pace", test_playback_uses_each_action_pace),
        ("Session Run", test_session_run_sync),
        ("Session Failures", test_session_reports_failures),
        ("Session Paced", test_session_paced_run),
        ("Session Next/Prev", test_session_next_prev_reset),
        ("Session Reveal", test_session_reveals_hidden_counts),
        ("Session Reset Redraw", test_session_reset_redraws_ranges),
        ("Trace Logger", test_trace_logger_writes_run),
        ("Logger No Snapshots", test_trace_logger_without_snapshots),
        ("Config YAML", test_run_config_from_yaml),
    ]

    results = []
    for name, fn in tests:
        try:
            fn()
            results.append((name, True))
        except (AssertionError, ScriptExecutionError) as e:
            print(f"✗ {name}: {e}")
            results.append((name, False))

    print("\n" + "=" * 60)
    print("TEST SUMMARY")
    print("=" * 60)

    passed = sum(1 for _, p in results if p)
    for name, p in results:
        print(f"  {name}: {'PASS' if p else 'FAIL'}")
    print(f"\nTotal: {passed}/{len(results)} passed")
