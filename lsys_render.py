"""lsys_render.py

Turns expanded L-system symbols into drawing.

Symbols mean nothing to the engine; ``instruction_for`` gives them a
meaning from a fixed instruction set, and a renderer acts on it.  Three
renderers are provided:
- ``TurtleRenderer``: turtle geometry collected as polylines, written to
  SVG with ``write_svg``.
- ``SymbolCollector``: one glyph per instruction, handy for inspection.
- ``BatchRenderer``: forwards every call to several renderers.
"""

from __future__ import annotations

import enum
import math
import os
from collections.abc import Hashable, Iterable, Mapping
from dataclasses import dataclass, field, replace
from typing import Protocol, TypeVar

from lsys_combinators import ConfigError, _require
from lsys_engine import Pop, Push, Render
from lsys_grammar import RendererConfig

Point = tuple[float, float]

START_HEADING = 90.0


# -------------------------
# Instructions
# -------------------------


class Instruction(enum.Enum):
    FORWARD = "forward"
    ROTATE_LEFT = "rotate_left"
    ROTATE_RIGHT = "rotate_right"
    PUSH = "push"
    POP = "pop"
    INCREASE_STEP = "increase_step"
    DECREASE_STEP = "decrease_step"
    NOOP = "noop"


DEFAULT_INSTRUCTIONS: dict[Hashable, Instruction] = {
    "F": Instruction.FORWARD,
    "G": Instruction.FORWARD,
    "-": Instruction.ROTATE_LEFT,
    "+": Instruction.ROTATE_RIGHT,
    "[": Instruction.PUSH,
    "]": Instruction.POP,
    ">": Instruction.INCREASE_STEP,
    "<": Instruction.DECREASE_STEP,
}


def instruction_for(
    symbol: Hashable, table: Mapping[Hashable, Instruction] = DEFAULT_INSTRUCTIONS
) -> Instruction:
    return table.get(symbol, Instruction.NOOP)


class Renderer(Protocol):
    def push(self) -> None: ...

    def pop(self) -> None: ...

    def render(self, instruction: Instruction) -> None: ...

    def finish(self) -> None: ...


R = TypeVar("R", bound=Renderer)


def play(
    items: Iterable[object],
    renderer: R,
    table: Mapping[Hashable, Instruction] = DEFAULT_INSTRUCTIONS,
) -> R:
    """Feed an expansion to ``renderer`` and finish it.

    ``items`` is either an ``EventStream`` (Push/Pop/Render events) or the
    flat symbols of ``expand``.
    """
    for item in items:
        if isinstance(item, Push):
            renderer.push()
        elif isinstance(item, Pop):
            renderer.pop()
        elif isinstance(item, Render):
            renderer.render(instruction_for(item.symbol, table))
        else:
            renderer.render(instruction_for(item, table))  # type: ignore[arg-type]
    renderer.finish()
    return renderer


# -------------------------
# Turtle
# -------------------------


@dataclass(frozen=True)
class TurtleState:
    x: float
    y: float
    heading_deg: float
    step: float
    angle: float
    line_width: float


@dataclass
class Polyline:
    width: float
    points: list[Point] = field(default_factory=list)


@dataclass
class PolylineBuffer:
    polylines: list[Polyline]

    def start_new(self, p: Point, width: float) -> None:
        self.polylines.append(Polyline(width, [p]))

    def current(self) -> Polyline:
        if not self.polylines:
            raise RuntimeError("current() called before start_new()")
        return self.polylines[-1]

    def add_point(self, p: Point) -> None:
        cur = self.current().points
        if not cur or cur[-1] != p:
            cur.append(p)


class TurtleRenderer:
    """Turtle interpretation of instructions, collected as polylines.

    A push saves the turtle and scales the branch that follows: step and
    line width are divided by their multipliers, the turn angle is
    multiplied by ``angle_multiplier``.  A pop restores the saved turtle
    and starts a new polyline, so no stroke joins a branch tip back to
    its trunk.
    """

    def __init__(self, config: RendererConfig | None = None) -> None:
        self.config = config or RendererConfig()
        _require(self.config.starting_step > 0, "starting_step must be > 0")
        _require(self.config.step_multiplier > 0, "step_multiplier must be > 0")
        _require(
            self.config.line_width_multiplier > 0, "line_width_multiplier must be > 0"
        )
        self.state = TurtleState(
            x=0.0,
            y=0.0,
            heading_deg=START_HEADING,
            step=self.config.starting_step,
            angle=self.config.starting_angle,
            line_width=self.config.starting_line_width,
        )
        self.stack: list[TurtleState] = []
        self.buf = PolylineBuffer(polylines=[])
        self.buf.start_new((0.0, 0.0), self.state.line_width)
        self.polylines: list[Polyline] = []

    def push(self) -> None:
        st = self.state
        self.stack.append(st)
        self.state = replace(
            st,
            step=st.step / self.config.step_multiplier,
            angle=st.angle * self.config.angle_multiplier,
            line_width=st.line_width / self.config.line_width_multiplier,
        )
        # A width change needs its own polyline.
        if self.state.line_width != st.line_width:
            self.buf.start_new((st.x, st.y), self.state.line_width)

    def pop(self) -> None:
        _require(bool(self.stack), "pop encountered with empty stack")
        self.state = self.stack.pop()
        self.buf.start_new((self.state.x, self.state.y), self.state.line_width)

    def render(self, instruction: Instruction) -> None:
        st = self.state

        if instruction is Instruction.NOOP:
            return

        if instruction is Instruction.PUSH:
            self.push()
            return

        if instruction is Instruction.POP:
            self.pop()
            return

        if instruction is Instruction.ROTATE_LEFT:
            self.state = replace(st, heading_deg=st.heading_deg + st.angle)
            return

        if instruction is Instruction.ROTATE_RIGHT:
            self.state = replace(st, heading_deg=st.heading_deg - st.angle)
            return

        if instruction is Instruction.INCREASE_STEP:
            self.state = replace(st, step=st.step * self.config.step_multiplier)
            return

        if instruction is Instruction.DECREASE_STEP:
            self.state = replace(st, step=st.step / self.config.step_multiplier)
            return

        if instruction is Instruction.FORWARD:
            rad = math.radians(st.heading_deg)
            nx = st.x + st.step * math.cos(rad)
            ny = st.y + st.step * math.sin(rad)
            self.buf.add_point((nx, ny))
            self.state = replace(st, x=nx, y=ny)
            return

        raise ConfigError(f"Unknown instruction {instruction!r}")

    def finish(self) -> None:
        # Drop empty and single-point polylines.
        self.polylines = [pl for pl in self.buf.polylines if len(pl.points) >= 2]


# -------------------------
# Text collection
# -------------------------

_GLYPHS = {
    Instruction.FORWARD: "F",
    Instruction.ROTATE_LEFT: "-",
    Instruction.ROTATE_RIGHT: "+",
    Instruction.PUSH: "[",
    Instruction.POP: "]",
    Instruction.INCREASE_STEP: ">",
    Instruction.DECREASE_STEP: "<",
    Instruction.NOOP: "",
}


class SymbolCollector:
    """Writes one glyph per instruction; structural pushes and pops too."""

    def __init__(self) -> None:
        self.parts: list[str] = []

    def push(self) -> None:
        self.parts.append("[")

    def pop(self) -> None:
        self.parts.append("]")

    def render(self, instruction: Instruction) -> None:
        self.parts.append(_GLYPHS[instruction])

    def finish(self) -> None:
        pass

    def __str__(self) -> str:
        return "".join(self.parts)


class BatchRenderer:
    def __init__(self, *renderers: Renderer) -> None:
        self.renderers = list(renderers)

    def push(self) -> None:
        for r in self.renderers:
            r.push()

    def pop(self) -> None:
        for r in self.renderers:
            r.pop()

    def render(self, instruction: Instruction) -> None:
        for r in self.renderers:
            r.render(instruction)

    def finish(self) -> None:
        for r in self.renderers:
            r.finish()


# -------------------------
# SVG writing
# -------------------------


def compute_bounds(polylines: list[Polyline]) -> tuple[float, float, float, float]:
    """Return (min_x, min_y, max_x, max_y) over every polyline point."""
    points = [p for pl in polylines for p in pl.points]
    _require(len(points) > 0, "No drawable geometry produced.")
    xs = [x for x, _ in points]
    ys = [y for _, y in points]
    return (min(xs), min(ys), max(xs), max(ys))


def _fmt(x: float, precision: int) -> str:
    # Normalise -0.0 so it never produces "-0" in SVG output.
    if not x:
        x = 0.0
    s = f"{x:.{precision}f}"
    if "." in s:
        s = s.rstrip("0").rstrip(".")
    return s or "0"


def _escape(s: str) -> str:
    return (
        s.replace("&", "&amp;")
        .replace("<", "&lt;")
        .replace(">", "&gt;")
        .replace('"', "&quot;")
    )


def write_svg(
    polylines: list[Polyline],
    *,
    out_path: str,
    config: RendererConfig,
    margin: float = 10.0,
    precision: int = 3,
    flip_y: bool = True,
    title: str | None = None,
) -> None:
    minx, miny, maxx, maxy = compute_bounds(polylines)

    minx -= margin
    miny -= margin
    maxx += margin
    maxy += margin
    w = maxx - minx
    h = maxy - miny
    _require(
        w > 0 and h > 0,
        "Degenerate bounds after margin (width or height is zero). "
        "Use a margin > 0 to render collinear or single-point geometry.",
    )

    view_box = (
        f"{_fmt(minx, precision)} {_fmt(miny, precision)} {_fmt(w, precision)} "
        f"{_fmt(h, precision)}"
    )

    lines: list[str] = []
    lines.append('<?xml version="1.0" encoding="UTF-8"?>')
    lines.append(
        f'<svg xmlns="http://www.w3.org/2000/svg" version="1.1" viewBox="{view_box}">'
    )

    if title:
        lines.append(f"  <title>{_escape(title)}</title>")

    background = config.background_color
    if background.lower() != "none":
        lines.append(
            f'  <rect x="{_fmt(minx, precision)}" y="{_fmt(miny, precision)}" '
            f'width="{_fmt(w, precision)}" height="{_fmt(h, precision)}" '
            f'fill="{_escape(background)}" />'
        )

    if flip_y:
        # Turtle math is Cartesian; flip about y = (miny + maxy).
        flip_y_line = _fmt(miny + maxy, precision)
        lines.append(f'  <g transform="translate(0,{flip_y_line}) scale(1,-1)">')
        indent = "    "
    else:
        indent = "  "

    stroke = _escape(config.pen_color)
    for pl in polylines:
        pts = " ".join(
            f"{_fmt(x, precision)},{_fmt(y, precision)}" for x, y in pl.points
        )
        lines.append(
            f'{indent}<polyline points="{pts}" stroke="{stroke}" '
            f'stroke-width="{_fmt(pl.width, precision)}" fill="none" '
            'stroke-linecap="round" stroke-linejoin="round" />'
        )

    if flip_y:
        lines.append("  </g>")

    lines.append("</svg>")

    os.makedirs(os.path.dirname(os.path.abspath(out_path)), exist_ok=True)
    with open(out_path, "w", encoding="utf-8") as f:
        f.write("\n".join(lines))
        f.write("\n")
