"""lsys_grammar.py

Reader for L-system grammar files.

A grammar file has two sections:

    render:
    starting_step = 40.5
    pen_color = dark green

    rules:
    X => F + [ [ X ] - X ] - F [ - F X ] + X
    F => F F

The ``render:`` section holds zero or more ``key = value`` lines, the
``rules:`` section one or more ``symbol => symbol symbol ...`` lines.
Every line ends with a newline.  The whole file must parse; there is no
partial result.
"""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from typing import Any

from lsys_combinators import (
    GrammarIOError,
    Parser,
    any_char,
    at_least,
    character,
    complete,
    flat_map,
    literal,
    many,
    map_value,
    one_of,
    recognize,
    sequence,
    skip_whitespace,
    spaced_sequence,
)
from lsys_engine import Rule, RuleStore


@dataclass(frozen=True)
class RendererConfig:
    starting_step: float = 10.0
    step_multiplier: float = 1.0
    starting_angle: float = 90.0
    angle_multiplier: float = 1.0
    starting_line_width: float = 1.0
    line_width_multiplier: float = 1.0
    background_color: str = "white"
    pen_color: str = "black"


DECIMAL_KEYS = (
    "starting_step",
    "step_multiplier",
    "starting_angle",
    "angle_multiplier",
    "starting_line_width",
    "line_width_multiplier",
)
TEXT_KEYS = ("background_color", "pen_color")


@dataclass(frozen=True)
class LSystem:
    rules: RuleStore[str]
    config: RendererConfig


# -------------------------
# Lexical pieces
# -------------------------


newline: Parser[str] = one_of(literal("\r\n"), literal("\n"), literal("\r"))

digit = any_char(lambda c: "0" <= c <= "9", "<digit>")


def _is_symbol(c: str) -> bool:
    # Printable ASCII minus space.
    return "!" <= c <= "~"


decimal: Parser[float] = flat_map(
    recognize(sequence(at_least(1, digit), character("."), at_least(1, digit))),
    float,
)

# The key parser has already skipped leading spaces, so a value holds
# at least one visible character.
text: Parser[str] = map_value(
    recognize(at_least(1, any_char(lambda c: c not in "\r\n", "<text>"))),
    str.strip,
)

symbol: Parser[str] = spaced_sequence(
    any_char(_is_symbol, "<symbol>"), build=lambda c: c
)


# -------------------------
# Sections
# -------------------------


def config_item(key: str, value: Parser[Any]) -> Parser[tuple[str, Any]]:
    return sequence(
        skip_whitespace,
        spaced_sequence(
            literal(key),
            literal("="),
            value,
            newline,
            build=lambda _key, _eq, v, _nl: (key, v),
        ),
        build=lambda _ws, item: item,
    )


config_items: Parser[list[tuple[str, Any]]] = many(
    one_of(
        *(config_item(key, decimal) for key in DECIMAL_KEYS),
        *(config_item(key, text) for key in TEXT_KEYS),
    )
)


def _to_config(items: list[tuple[str, Any]]) -> RendererConfig:
    # Later lines win.
    return dataclasses.replace(RendererConfig(), **dict(items))


config_section: Parser[RendererConfig] = map_value(config_items, _to_config)

rule: Parser[Rule] = sequence(
    skip_whitespace,
    spaced_sequence(
        symbol,
        literal("=>"),
        at_least(1, symbol),
        newline,
        build=lambda lhs, _arrow, rhs, _nl: Rule(lhs, tuple(rhs)),
    ),
    build=lambda _ws, r: r,
)

rules_section: Parser[RuleStore[str]] = map_value(
    at_least(1, rule), RuleStore.from_rules
)


def _header(name: str) -> Parser[str]:
    return sequence(
        skip_whitespace,
        spaced_sequence(literal(name), character(":"), newline),
        build=lambda _ws, _h: name,
    )


grammar: Parser[LSystem] = complete(
    sequence(
        _header("render"),
        config_section,
        _header("rules"),
        rules_section,
        skip_whitespace,
        build=lambda _r, config, _s, rules, _ws: LSystem(rules=rules, config=config),
    )
)


# -------------------------
# Entry points
# -------------------------


def parse_grammar(source: str) -> LSystem:
    """Parse grammar text.  Raises a ParseError on any malformed input."""
    system, _ = grammar(source)
    return system


def load_grammar(path: str) -> LSystem:
    try:
        with open(path, encoding="utf-8") as f:
            source = f.read()
    except OSError as e:
        raise GrammarIOError(path) from e
    return parse_grammar(source)
