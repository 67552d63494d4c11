#!/usr/bin/env python3
"""lsys.py

Command line driver: load a grammar file, expand it lazily and draw it.

Run:
  python lsys.py render example/plant.ls plant.svg --axiom X --iterations 5
  python lsys.py render example/plant.ls plant.svg --axiom X --depth 6
  python lsys.py validate example/plant.ls
  python lsys.py expand example/koch.ls --iterations 2
  python lsys.py --help
"""

from __future__ import annotations

import argparse
import itertools
import sys
from collections.abc import Iterator

from lsys_combinators import ConfigError, GrammarIOError, ParseError, _require
from lsys_engine import POP, PUSH, EventStream, expand
from lsys_grammar import LSystem, load_grammar
from lsys_render import SymbolCollector, TurtleRenderer, play, write_svg

DEFAULT_AXIOM = "F"
DEFAULT_DEPTH = 6

HELP_EPILOG = r"""
GRAMMAR FILE SYNTAX

A grammar file has a render section followed by a rules section:

    render:
    starting_step = 5.0
    starting_angle = 25.0
    pen_color = darkgreen

    rules:
    X => F + [ [ X ] - X ] - F [ - F X ] + X
    F => F F

render section (zero or more lines, any order, last one wins)

  starting_step = <decimal>           forward step length (default 10.0)
  step_multiplier = <decimal>         step is divided by it inside a branch
                                      and scaled by it on '>' / '<' (default 1.0)
  starting_angle = <decimal>          turn angle in degrees (default 90.0)
  angle_multiplier = <decimal>        angle is multiplied by it inside a branch
                                      (default 1.0)
  starting_line_width = <decimal>     stroke width (default 1.0)
  line_width_multiplier = <decimal>   width is divided by it inside a branch
                                      (default 1.0)
  background_color = <text>           SVG background, or "none" (default white)
  pen_color = <text>                  stroke color (default black)

  Decimals are written <digits>.<digits>, e.g. 40.5 or 2.0.

rules section (one or more lines)

  <symbol> => <symbol> <symbol> ...

  A symbol is one printable, non-space character.  Spaces between symbols
  are optional.  A later rule for the same symbol replaces an earlier one.
  Symbols without a rule rewrite to themselves.

SYMBOLS

  F G   draw forward
  -     turn left           +   turn right
  [     save turtle          ]   restore turtle
  >     longer step          <   shorter step
  anything else is ignored while drawing.

BOUNDS

  --iterations N   rewrite the whole word N times, then draw the flat result.
  --depth N        expand nested productions until N frames deep; every
                   expansion is drawn as a saved/restored branch.  Only
                   the first symbol of the axiom is expanded.
"""


def build_argparser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="lsys",
        description="Lazy L-system expansion from a grammar file, drawn as SVG.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=HELP_EPILOG,
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    def add_expansion_args(sp: argparse.ArgumentParser) -> None:
        sp.add_argument("grammar", help="Path to the grammar file.")
        sp.add_argument(
            "-a",
            "--axiom",
            default=DEFAULT_AXIOM,
            help=f"Starting word (default: {DEFAULT_AXIOM}).",
        )
        bound = sp.add_mutually_exclusive_group()
        bound.add_argument(
            "--depth",
            type=int,
            default=None,
            help=f"Maximum frame stack depth (default: {DEFAULT_DEPTH}).",
        )
        bound.add_argument(
            "--iterations",
            type=int,
            default=None,
            help="Number of whole-word rewriting rounds.",
        )

    pr = sub.add_parser(
        "render",
        help="Render a grammar to an SVG file.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_expansion_args(pr)
    pr.add_argument("output", help="Path to write the SVG output.")
    pr.add_argument(
        "--margin", type=float, default=10.0, help="Margin around the drawing."
    )

    pv = sub.add_parser(
        "validate",
        help="Check a grammar file and print a brief summary.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_expansion_args(pv)

    pe = sub.add_parser(
        "expand",
        help="Print the expansion as text.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    add_expansion_args(pe)
    pe.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Stop after this many events or symbols.",
    )
    pe.add_argument(
        "--raw",
        action="store_true",
        help="Print symbols or events as produced instead of drawing glyphs.",
    )

    return p


def _stream(
    system: LSystem, axiom: str, depth: int | None, iterations: int | None
) -> Iterator[object]:
    if iterations is not None:
        return expand(system.rules, axiom, iterations)
    return EventStream(system.rules, axiom, DEFAULT_DEPTH if depth is None else depth)


# -------------------------
# Commands
# -------------------------


def cmd_render(
    grammar_path: str,
    output_path: str,
    axiom: str,
    depth: int | None,
    iterations: int | None,
    margin: float,
) -> None:
    system = load_grammar(grammar_path)
    turtle = play(
        _stream(system, axiom, depth, iterations), TurtleRenderer(system.config)
    )
    write_svg(
        turtle.polylines,
        out_path=output_path,
        config=system.config,
        margin=margin,
        title=grammar_path,
    )


_VALIDATE_EVENT_LIMIT = 10_000


def cmd_validate(
    grammar_path: str, axiom: str, depth: int | None, iterations: int | None
) -> None:
    system = load_grammar(grammar_path)
    cfg = system.config

    print(f"rules: {len(system.rules)}")
    for rule in system.rules:
        print(f"  {rule.symbol} => {' '.join(rule.production)}")
    print(f"step: {cfg.starting_step} (x{cfg.step_multiplier})")
    print(f"angle: {cfg.starting_angle} (x{cfg.angle_multiplier})")
    print(f"line width: {cfg.starting_line_width} (x{cfg.line_width_multiplier})")
    print(f"colors: pen={cfg.pen_color} background={cfg.background_color}")

    # Bounded sample; the full expansion may be exponential.
    sample = list(
        itertools.islice(
            _stream(system, axiom, depth, iterations), _VALIDATE_EVENT_LIMIT
        )
    )
    truncated = len(sample) == _VALIDATE_EVENT_LIMIT
    label = f"{len(sample)}+" if truncated else str(len(sample))
    if iterations is not None:
        print(f"symbols (sampled): {label}")
    else:
        pushes = sum(1 for item in sample if item == PUSH)
        pops = sum(1 for item in sample if item == POP)
        print(f"events (sampled): {label} (push={pushes} pop={pops})")
    if truncated:
        print(
            f"warning: expansion exceeds {_VALIDATE_EVENT_LIMIT} items; "
            "counts are based on the first portion only"
        )


def cmd_expand(
    grammar_path: str,
    axiom: str,
    depth: int | None,
    iterations: int | None,
    limit: int | None,
    raw: bool,
) -> None:
    _require(limit is None or limit >= 0, "--limit must be >= 0")
    system = load_grammar(grammar_path)
    items = itertools.islice(_stream(system, axiom, depth, iterations), limit)

    if raw:
        if iterations is not None:
            print("".join(items))  # type: ignore[arg-type]
        else:
            print(" ".join(repr(item) for item in items))
        return

    print(play(items, SymbolCollector()))


def main(argv: list[str] | None = None) -> int:
    ap = build_argparser()
    args = ap.parse_args(argv)

    try:
        if args.cmd == "render":
            cmd_render(
                args.grammar,
                args.output,
                args.axiom,
                args.depth,
                args.iterations,
                args.margin,
            )
        elif args.cmd == "validate":
            cmd_validate(args.grammar, args.axiom, args.depth, args.iterations)
        elif args.cmd == "expand":
            cmd_expand(
                args.grammar,
                args.axiom,
                args.depth,
                args.iterations,
                args.limit,
                args.raw,
            )
        else:
            raise AssertionError("unreachable")
    except GrammarIOError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    except ParseError as e:
        print(f"Grammar error: {e}", file=sys.stderr)
        return 2
    except ConfigError as e:
        print(f"Config error: {e}", file=sys.stderr)
        return 2
    except OSError as e:
        print(f"File error: {e}", file=sys.stderr)
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
