"""lsys_combinators.py

Small parser-combinator toolkit used to read L-system grammar files.

A parser is a callable taking the remaining input text and returning a
``(value, remainder)`` pair.  Parsers never modify their input; they only
hand back a shorter slice of it.  Failures are raised as ``ParseError``
subclasses, one per failure kind.

Composition is plain recursive descent:
- no memoization,
- alternatives are retried from the original input, nothing more,
- the first failure nobody recovers from aborts the whole parse.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Any, Generic, TypeVar

T = TypeVar("T")
U = TypeVar("U")

ParseResult = tuple[T, str]


# -------------------------
# Errors
# -------------------------


class ConfigError(ValueError):
    pass


def _require(cond: bool, msg: str) -> None:
    if not cond:
        raise ConfigError(msg)


class ParseError(ConfigError):
    """Base class of the closed set of parse failures.

    Two errors are equal when they are the same kind and carry the same
    payload, which keeps assertions in tests short.
    """

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ParseError) or type(self) is not type(other):
            return False
        return self.args == other.args

    def __hash__(self) -> int:
        return hash((type(self), self.args))


class GrammarIOError(ParseError):
    def __init__(self, path: str) -> None:
        super().__init__(path)
        self.path = path

    def __str__(self) -> str:
        return f"cannot read grammar file {self.path!r}"


class ExpectingCharacter(ParseError):
    def __init__(self, character: str) -> None:
        super().__init__(character)
        self.character = character

    def __str__(self) -> str:
        return f"expected {self.character!r}"


class ExpectingEOF(ParseError):
    def __str__(self) -> str:
        return "expected end of input"


class ExpectingString(ParseError):
    def __init__(self, expected: str) -> None:
        super().__init__(expected)
        self.expected = expected

    def __str__(self) -> str:
        return f"expected {self.expected!r}"


class ExpectingPredicate(ParseError):
    def __str__(self) -> str:
        return "unexpected character"


class EndOfInput(ParseError):
    def __str__(self) -> str:
        return "unexpected end of input"


class ExpectingOneOfToParse(ParseError):
    def __str__(self) -> str:
        return "none of the alternatives matched"


class GenericError(ParseError):
    def __str__(self) -> str:
        return "parse error"


class Custom(ParseError):
    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message


# -------------------------
# Parser values
# -------------------------


class Parser(Generic[T]):
    """A parsing function with a readable face.

    ``face`` only serves ``repr``; it shows the grammar a parser was built
    from, e.g. ``('render' ':' newline)``.
    """

    def __init__(self, fn: Callable[[str], ParseResult[T]], face: str) -> None:
        self.fn = fn
        self.face = face

    def __call__(self, text: str) -> ParseResult[T]:
        return self.fn(text)

    def __repr__(self) -> str:
        return self.face

    def map(self, f: Callable[[T], U]) -> Parser[U]:
        return map_value(self, f)

    def flat_map(self, f: Callable[[T], U]) -> Parser[U]:
        return flat_map(self, f)


def _fn_name(fn: Callable[..., Any]) -> str:
    return getattr(fn, "__name__", repr(fn))


# -------------------------
# Primitives
# -------------------------


def character(c: str) -> Parser[str]:
    """Match exactly the character ``c``."""
    _require(len(c) == 1, "character() takes a single character")

    def run(text: str) -> ParseResult[str]:
        if text.startswith(c):
            return c, text[1:]
        raise ExpectingCharacter(c)

    return Parser(run, repr(c))


def any_char(predicate: Callable[[str], bool], face: str = "") -> Parser[str]:
    """Match one character for which ``predicate`` holds."""

    def run(text: str) -> ParseResult[str]:
        if not text:
            raise EndOfInput()
        c = text[0]
        if predicate(c):
            return c, text[1:]
        raise ExpectingPredicate()

    return Parser(run, face or f"<{_fn_name(predicate)}>")


def literal(s: str) -> Parser[str]:
    """Match the exact string ``s``."""

    def run(text: str) -> ParseResult[str]:
        if text.startswith(s):
            return text[: len(s)], text[len(s) :]
        raise ExpectingString(s)

    return Parser(run, repr(s))


def _eof(text: str) -> ParseResult[None]:
    if text:
        raise ExpectingEOF()
    return None, text


eof: Parser[None] = Parser(_eof, "$")


def _skip_spaces(text: str) -> ParseResult[None]:
    return None, text.lstrip(" \t")


def _skip_whitespace(text: str) -> ParseResult[None]:
    return None, text.lstrip()


# Both always succeed.  The first stays on the current line.
skip_spaces: Parser[None] = Parser(_skip_spaces, "_")
skip_whitespace: Parser[None] = Parser(_skip_whitespace, "__")


# -------------------------
# Combinators
# -------------------------


def optional(p: Parser[T]) -> Parser[T | None]:
    """Match ``p`` or nothing.  Never fails; yields None when ``p`` does."""

    def run(text: str) -> ParseResult[T | None]:
        try:
            return p(text)
        except ParseError:
            return None, text

    return Parser(run, f"({p!r})?")


def at_least(n: int, p: Parser[T]) -> Parser[list[T]]:
    """Match ``p`` at least ``n`` times, then as often as it keeps matching.

    A failure among the first ``n`` repetitions propagates.  The failure
    that ends the greedy tail is dropped and its input is not consumed.
    """
    _require(n >= 0, "at_least() needs n >= 0")

    def run(text: str) -> ParseResult[list[T]]:
        values: list[T] = []
        rest = text
        for _ in range(n):
            value, rest = p(rest)
            values.append(value)
        while True:
            try:
                value, rest = p(rest)
            except ParseError:
                break
            values.append(value)
        return values, rest

    face = f"({p!r})*" if n == 0 else f"({p!r}){{{n},}}"
    return Parser(run, face)


def many(p: Parser[T]) -> Parser[list[T]]:
    return at_least(0, p)


def map_value(p: Parser[T], f: Callable[[T], U]) -> Parser[U]:
    def run(text: str) -> ParseResult[U]:
        value, rest = p(text)
        return f(value), rest

    return Parser(run, f"({p!r} >> {_fn_name(f)})")


def flat_map(p: Parser[T], f: Callable[[T], U]) -> Parser[U]:
    """Like ``map_value`` but ``f`` may reject the value.

    A ValueError raised by ``f`` becomes a ``Custom`` parse error, so
    conversions such as ``float`` can be used directly.
    """

    def run(text: str) -> ParseResult[U]:
        value, rest = p(text)
        try:
            return f(value), rest
        except ParseError:
            raise
        except ValueError as e:
            raise Custom(str(e)) from e

    return Parser(run, f"({p!r} ?> {_fn_name(f)})")


def recognize(p: Parser[Any]) -> Parser[str]:
    """Run ``p`` and yield the text it consumed instead of its value."""

    def run(text: str) -> ParseResult[str]:
        _, rest = p(text)
        return text[: len(text) - len(rest)], rest

    return Parser(run, f"<{p!r}>")


def one_of(*options: Parser[Any]) -> Parser[Any]:
    """Yield the first option that matches, each tried on the same input."""
    _require(len(options) > 0, "one_of() needs at least one option")

    def run(text: str) -> ParseResult[Any]:
        for option in options:
            try:
                return option(text)
            except ParseError:
                continue
        raise ExpectingOneOfToParse()

    return Parser(run, "(" + " | ".join(repr(o) for o in options) + ")")


def _chain(
    parsers: Sequence[Parser[Any]],
    build: Callable[..., Any] | None,
    gap: Parser[None] | None,
) -> Callable[[str], ParseResult[Any]]:
    def run(text: str) -> ParseResult[Any]:
        values = []
        rest = text
        for p in parsers:
            if gap is not None:
                _, rest = gap(rest)
            value, rest = p(rest)
            values.append(value)
        if gap is not None:
            _, rest = gap(rest)
        if build is None:
            return tuple(values), rest
        return build(*values), rest

    return run


def sequence(
    *parsers: Parser[Any], build: Callable[..., Any] | None = None
) -> Parser[Any]:
    """Run ``parsers`` one after the other.

    The values are handed to ``build`` positionally, or returned as a
    tuple when no ``build`` is given.  The first failure propagates.
    """
    _require(len(parsers) > 0, "sequence() needs at least one parser")
    return Parser(
        _chain(parsers, build, None), "(" + " ".join(repr(p) for p in parsers) + ")"
    )


def spaced_sequence(
    *parsers: Parser[Any], build: Callable[..., Any] | None = None
) -> Parser[Any]:
    """Like ``sequence``, but spaces and tabs may precede every element
    and follow the last one."""
    _require(len(parsers) > 0, "spaced_sequence() needs at least one parser")
    return Parser(
        _chain(parsers, build, skip_spaces),
        "(" + " _ ".join(repr(p) for p in parsers) + ")",
    )


def complete(p: Parser[T]) -> Parser[T]:
    """Run ``p`` and require that it consumed all of the input."""

    def run(text: str) -> ParseResult[T]:
        value, rest = p(text)
        _, rest = eof(rest)
        return value, rest

    return Parser(run, f"{p!r} $")
