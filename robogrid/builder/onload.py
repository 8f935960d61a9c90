"""Builder-script interpreter.

World documents may carry an ``onload`` list of statements that tweak the
world after it is built, e.g.::

    "onload": [
        "n = RUR.randint(2, 5)",
        "RUR.add_object('carrot', 3, 1, {number: n, goal: true})",
        "RUR.remove_wall('east', 2, 1);"
    ]

Statements are evaluated against a closed table of primitives; there is no
general-purpose interpreter behind it. Each statement is a single call
expression or a single-name assignment whose value is built from literals,
earlier names, arithmetic and primitive calls. The ``RUR.`` prefix is
optional, ``var``/``let``/``const``, trailing semicolons and ``//`` line
comments are tolerated, and ``true``/``false``/``null`` and bare-identifier
dict keys are read the JavaScript way.
"""

import ast
import math
import operator
from typing import Any, Callable, Dict, List, Optional

import numpy as np

from .kinds import DEFAULT_TILE, is_object_kind, normalize_tile_name
from ..errors import BuilderScriptError
from ..world_model.goals import Goal, merge_goals
from ..world_model.state import WALL_TEXT_TO_DIR, World, coord_key

_JS_CONSTANTS = {"true": True, "false": False, "null": None, "undefined": None}
_DECLARATIONS = ("var ", "let ", "const ")

_BIN_OPS = {
    ast.Add: operator.add,
    ast.Sub: operator.sub,
    ast.Mult: operator.mul,
    ast.Div: operator.truediv,
    ast.Mod: operator.mod,
}

_UNARY_OPS = {
    ast.USub: operator.neg,
    ast.UAdd: operator.pos,
    ast.Not: operator.not_,
}


def _warn(msg: str, *args):
    print(f"[Builder] {msg}", *args)


def _floor_int(v: Any) -> int:
    return int(math.floor(float(v)))


def split_statements(source: str) -> List[str]:
    """Split source on newlines and top-level semicolons.

    Semicolons inside quotes or brackets do not split. A ``//`` outside
    quotes starts a line comment, so ``//`` is never floor division here.
    """
    out = []
    for line in source.split("\n"):
        depth = 0
        quote = None
        current = []
        for i, ch in enumerate(line):
            if quote is not None:
                if ch == quote:
                    quote = None
            elif ch == "/" and line[i + 1:i + 2] == "/":
                break
            elif ch in "'\"":
                quote = ch
            elif ch in "([{":
                depth += 1
            elif ch in ")]}":
                depth -= 1
            elif ch == ";" and depth == 0:
                out.append("".join(current))
                current = []
                continue
            current.append(ch)
        out.append("".join(current))
    return [s.strip() for s in out if s.strip()]


class OnloadInterpreter:
    """Evaluates builder-script statements against a copy of a world.

    Usage:
        interp = OnloadInterpreter(world, rng)
        interp.run(["RUR.set_world_size(5, 5)", "RUR.add_object('apple', 2, 2)"])
        new_world = interp.finish()
    """

    def __init__(self, world: World, rng: Optional[np.random.Generator] = None):
        self.world = world.copy()
        self.rng = rng if rng is not None else np.random.default_rng()
        self.variables: Dict[str, Any] = {}

        self.default_fill: Optional[str] = None
        self.background: Dict[str, str] = dict(world.background_tiles)

        # Goal-only markers collected from {goal: true} options
        self.goal_objects: Dict[str, Dict[str, Any]] = {}
        self.goal_walls: Dict[str, List[str]] = {}

        self.primitives: Dict[str, Callable] = {
            "set_world_size": self.set_world_size,
            "fill_background": self.fill_background,
            "add_background_tile": self.add_background_tile,
            "is_background_tile": self.is_background_tile,
            "add_wall": self.add_wall,
            "remove_wall": self.remove_wall,
            "add_object": self.add_object,
            "randint": self.randint,
            # Accepted for compatibility with published worlds; no effect here
            "get_robot_by_id": lambda *args: {},
            "record_frame": lambda *args: None,
            "_write_ln": lambda *args: None,
            "_move_": lambda *args: None,
        }

    # ------------------------------------------------------------------
    # Primitives
    # ------------------------------------------------------------------

    def set_world_size(self, width, height):
        if _is_number(width) and _is_number(height) and width >= 1 and height >= 1:
            self.world.width = _floor_int(width)
            self.world.height = _floor_int(height)

    def fill_background(self, tile=None):
        if tile is None or str(tile).strip() == "":
            self.default_fill = DEFAULT_TILE
            return
        picked = normalize_tile_name(tile)
        if picked is None:
            _warn("Unknown tile kind skipped:", tile)
            return
        self.default_fill = picked

    def add_background_tile(self, tile, x, y):
        if not (x >= 1 and y >= 1):
            return
        picked = normalize_tile_name(tile)
        if picked is None:
            _warn("Unknown tile kind skipped:", tile)
            return
        self.background[coord_key(_floor_int(x), _floor_int(y))] = picked

    def is_background_tile(self, tile, x, y) -> bool:
        key = coord_key(_floor_int(x), _floor_int(y))
        current = self.background.get(key) or self.default_fill or DEFAULT_TILE
        return current == normalize_tile_name(tile)

    def add_wall(self, direction, x, y, opts=None):
        ix, iy = _floor_int(x), _floor_int(y)
        text = str(direction).lower()
        d = WALL_TEXT_TO_DIR.get(text)
        if d is None:
            _warn("Unknown wall direction skipped:", direction)
            return
        if isinstance(opts, dict) and opts.get("goal") is True:
            # Goal-only marker: no real wall, so no collision
            dirs = self.goal_walls.setdefault(coord_key(ix, iy), [])
            if text not in dirs:
                dirs.append(text)
            return
        self.world.add_wall(ix, iy, d)

    def remove_wall(self, direction, x, y):
        d = WALL_TEXT_TO_DIR.get(str(direction).lower())
        if d is None:
            _warn("Unknown wall direction skipped:", direction)
            return
        self.world.remove_wall_symmetric(_floor_int(x), _floor_int(y), d)

    def add_object(self, kind, x, y, opts=None):
        if not is_object_kind(kind):
            _warn("Unknown object kind skipped:", kind)
            return
        ix, iy = _floor_int(x), _floor_int(y)
        n = 1
        goal = False
        if _is_number(opts):
            n = _floor_int(opts)
        elif isinstance(opts, dict):
            if _is_number(opts.get("number")):
                n = _floor_int(opts["number"])
            goal = opts.get("goal") is True

        if goal:
            # Goal-only marker: recorded in the goal, not placed in the world
            self.goal_objects.setdefault(coord_key(ix, iy), {})[kind] = n
        else:
            self.world.add_objects(ix, iy, kind, n)

    def randint(self, lo, hi) -> int:
        """Uniform integer in [lo, hi], bounds in either order."""
        low = math.ceil(min(lo, hi))
        high = math.floor(max(lo, hi))
        return int(self.rng.integers(low, high + 1))

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def run(self, statements: List[str]):
        """Execute statements in order.

        Raises:
            BuilderScriptError: On the first statement that cannot be
                parsed or that fails. Statements before it have already
                been applied to the interpreter's copy of the world.
        """
        line = 0
        for entry in statements:
            for stmt in split_statements(str(entry)):
                line += 1
                if stmt.startswith("#"):
                    continue
                self.execute(stmt, line)

    def execute(self, stmt: str, line: Optional[int] = None) -> Any:
        source = stmt
        for prefix in _DECLARATIONS:
            if source.startswith(prefix):
                source = source[len(prefix):]
                break

        try:
            tree = ast.parse(source, mode="exec")
        except SyntaxError as e:
            raise BuilderScriptError(f"Cannot parse statement: {e.msg}", stmt, line) from e

        if len(tree.body) != 1:
            raise BuilderScriptError("Expected a single statement", stmt, line)
        node = tree.body[0]

        try:
            if isinstance(node, ast.Expr):
                return self._eval(node.value)
            if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
                value = self._eval(node.value)
                self.variables[node.targets[0].id] = value
                return value
        except BuilderScriptError as e:
            if e.statement is None:
                raise BuilderScriptError(str(e), stmt, line) from e
            raise
        except Exception as e:
            raise BuilderScriptError(f"{type(e).__name__}: {e}", stmt, line) from e

        raise BuilderScriptError(f"Unsupported statement: {type(node).__name__}", stmt, line)

    def _eval(self, node: ast.AST) -> Any:
        if isinstance(node, ast.Constant):
            return node.value
        if isinstance(node, ast.Name):
            if node.id in self.variables:
                return self.variables[node.id]
            if node.id in _JS_CONSTANTS:
                return _JS_CONSTANTS[node.id]
            raise BuilderScriptError(f"Unknown name '{node.id}'")
        if isinstance(node, (ast.List, ast.Tuple)):
            return [self._eval(e) for e in node.elts]
        if isinstance(node, ast.Dict):
            out = {}
            for k, v in zip(node.keys, node.values):
                if k is None:
                    raise BuilderScriptError("Dict unpacking is not supported")
                key = k.id if isinstance(k, ast.Name) else self._eval(k)
                out[key] = self._eval(v)
            return out
        if isinstance(node, ast.UnaryOp) and type(node.op) in _UNARY_OPS:
            return _UNARY_OPS[type(node.op)](self._eval(node.operand))
        if isinstance(node, ast.BinOp) and type(node.op) in _BIN_OPS:
            return _BIN_OPS[type(node.op)](self._eval(node.left), self._eval(node.right))
        if isinstance(node, ast.Call):
            name = self._primitive_name(node.func)
            if node.keywords:
                raise BuilderScriptError(f"Keyword arguments are not supported in {name}()")
            args = [self._eval(a) for a in node.args]
            return self.primitives[name](*args)
        raise BuilderScriptError(f"Unsupported expression: {type(node).__name__}")

    def _primitive_name(self, func: ast.AST) -> str:
        if isinstance(func, ast.Attribute) and isinstance(func.value, ast.Name) and func.value.id == "RUR":
            name = func.attr
        elif isinstance(func, ast.Name):
            name = func.id
        else:
            raise BuilderScriptError("Only builder primitives can be called")
        if name not in self.primitives:
            raise BuilderScriptError(f"Unknown primitive '{name}'")
        return name

    def finish(self) -> World:
        """Attach background and goal markers and return the built world."""
        w = self.world
        w.background_default = self.default_fill or DEFAULT_TILE
        w.background_tiles = dict(self.background)
        if self.goal_objects or self.goal_walls:
            marker_goal = Goal(
                objects=self.goal_objects or None,
                walls=self.goal_walls or None,
            )
            w.goal = merge_goals(w.goal, marker_goal)
        return w


def _is_number(v: Any) -> bool:
    return isinstance(v, (int, float, np.integer, np.floating)) and not isinstance(v, bool) and math.isfinite(v)


def apply_onload(
    world: World,
    onload: Optional[List[str]],
    rng: Optional[np.random.Generator] = None,
) -> World:
    """Run a builder script over a copy of ``world``.

    Args:
        world: Base world (not modified).
        onload: Statement list; None or empty returns ``world`` unchanged.
        rng: Generator for randint().

    Returns:
        The new world.

    Raises:
        BuilderScriptError: If a statement fails.
    """
    if not onload:
        return world
    if isinstance(onload, str):
        onload = [onload]
    interp = OnloadInterpreter(world, rng)
    interp.run(onload)
    return interp.finish()
