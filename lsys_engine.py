"""lsys_engine.py

Rule store and lazy expansion for L-systems.

Two ways of bounding an expansion are offered:
- ``EventStream``: expand until the frame stack reaches ``max_depth`` and
  report the nesting as ``PUSH``/``POP`` events around ``Render`` items.
- ``expand``: apply the rules to the whole word ``iterations`` times and
  stream the resulting flat word.

Neither materializes the expanded word.  Memory stays proportional to the
bound times the longest production.
"""

from __future__ import annotations

import itertools
from collections.abc import Generator, Hashable, Iterable, Iterator, Mapping
from dataclasses import dataclass
from typing import Generic, NamedTuple, TypeVar, Union

from lsys_combinators import _require

S = TypeVar("S", bound=Hashable)


# -------------------------
# Rules
# -------------------------


class Rule(NamedTuple):
    symbol: Hashable
    production: tuple[Hashable, ...]


class RuleStore(Generic[S]):
    """Total mapping from a symbol to the word it rewrites to.

    Symbols without a rule rewrite to themselves.  A store never changes
    after construction; ``add`` returns an extended copy, so a store can be
    shared by any number of expansions.
    """

    def __init__(self, productions: Mapping[S, Iterable[S]] | None = None) -> None:
        self._productions: dict[S, tuple[S, ...]] = {}
        for symbol, production in (productions or {}).items():
            self._productions[symbol] = tuple(production)

    @classmethod
    def from_rules(cls, rules: Iterable[Rule | tuple[S, Iterable[S]]]) -> RuleStore[S]:
        store: RuleStore[S] = cls()
        for symbol, production in rules:
            store = store.add(symbol, production)  # type: ignore[arg-type]
        return store

    def add(self, symbol: S, production: Iterable[S]) -> RuleStore[S]:
        """Return a store with ``symbol -> production`` replacing any
        earlier rule for ``symbol``."""
        word = tuple(production)
        _require(len(word) > 0, f"production for {symbol!r} must not be empty")
        store: RuleStore[S] = RuleStore()
        store._productions = dict(self._productions)
        store._productions[symbol] = word
        return store

    def add_rule(self, rule: Rule) -> RuleStore[S]:
        return self.add(rule.symbol, rule.production)  # type: ignore[arg-type]

    def apply(self, symbol: S) -> list[S]:
        production = self._productions.get(symbol)
        if production is None:
            return [symbol]
        return list(production)

    def rewrite(self, word: Iterable[S]) -> list[S]:
        """One rewriting round: every symbol replaced by its production."""
        out: list[S] = []
        for symbol in word:
            out.extend(self.apply(symbol))
        return out

    def events(self, axiom: Iterable[S], max_depth: int) -> EventStream[S]:
        return EventStream(self, axiom, max_depth)

    def __contains__(self, symbol: object) -> bool:
        return symbol in self._productions

    def __len__(self) -> int:
        return len(self._productions)

    def __iter__(self) -> Iterator[Rule]:
        for symbol, production in self._productions.items():
            yield Rule(symbol, production)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, RuleStore):
            return NotImplemented
        return self._productions == other._productions

    def __repr__(self) -> str:
        rules = ", ".join(
            f"{s!r} => {' '.join(map(str, p))}" for s, p in self._productions.items()
        )
        return f"RuleStore({rules})"


# -------------------------
# Structural events
# -------------------------


@dataclass(frozen=True)
class Push:
    def __repr__(self) -> str:
        return "Push"


@dataclass(frozen=True)
class Pop:
    def __repr__(self) -> str:
        return "Pop"


@dataclass(frozen=True)
class Render(Generic[S]):
    symbol: S

    def __repr__(self) -> str:
        return f"Render({self.symbol!r})"


PUSH = Push()
POP = Pop()

Event = Union[Push, Pop, Render]


# -------------------------
# Depth-bounded expansion
# -------------------------


class EventStream(Generic[S]):
    """Lazily expand the lead symbol of ``axiom`` until the frame stack is
    ``max_depth`` high.

    Every frame is a cursor over one production.  Each pull yields one
    event:
      - ``PUSH`` when a symbol is expanded into a new frame,
      - ``POP`` when the top frame runs out,
      - ``Render(symbol)`` when the stack is already full, whether or not
        the store has a rule for ``symbol``.

    The first pull pushes a frame holding only the axiom's lead symbol;
    the rest of the axiom is ignored.  The stream is balanced: once
    exhausted it has produced as many POPs as PUSHes.
    """

    def __init__(self, rules: RuleStore[S], axiom: Iterable[S], max_depth: int) -> None:
        _require(max_depth >= 1, "max_depth must be >= 1")
        self.rules = rules
        self.max_depth = max_depth
        self._start: list[S] | None = list(itertools.islice(axiom, 1))
        _require(len(self._start) > 0, "axiom must be non-empty")
        self._stack: list[Iterator[S]] = []

    @property
    def depth(self) -> int:
        return len(self._stack)

    def __iter__(self) -> EventStream[S]:
        return self

    def __next__(self) -> Event:
        if self._start is not None:
            self._stack.append(iter(self._start))
            self._start = None
            return PUSH

        if not self._stack:
            raise StopIteration

        symbol = next(self._stack[-1], _EXHAUSTED)
        if symbol is _EXHAUSTED:
            self._stack.pop()
            return POP
        if len(self._stack) < self.max_depth:
            self._stack.append(iter(self.rules.apply(symbol)))  # type: ignore[arg-type]
            return PUSH
        return Render(symbol)


_EXHAUSTED = object()


# -------------------------
# Iteration-bounded expansion
# -------------------------


def expand(
    rules: RuleStore[S], axiom: Iterable[S], iterations: int
) -> Generator[S, None, None]:
    """Yield the word obtained by ``iterations`` rewriting rounds, in order,
    without building it.

    Uses an explicit stack of (word, index, round) frames.
    """
    _require(iterations >= 0, "iterations must be >= 0")

    stack: list[tuple[list[S], int, int]] = [(list(axiom), 0, 0)]

    while stack:
        word, i, d = stack.pop()
        if i >= len(word):
            continue

        symbol = word[i]
        # Continuation first, so the replacement on top is traversed before it.
        stack.append((word, i + 1, d))

        if d < iterations:
            stack.append((rules.apply(symbol), 0, d + 1))
        else:
            yield symbol


def generation(rules: RuleStore[S], word: Iterable[S], n: int) -> list[S]:
    """Eager counterpart of ``expand``: ``n`` calls to ``rules.rewrite``."""
    _require(n >= 0, "n must be >= 0")
    out = list(word)
    for _ in range(n):
        out = rules.rewrite(out)
    return out
