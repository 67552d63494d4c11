#!/usr/bin/env python3
import pytest

from lsys_combinators import (
    ConfigError,
    Custom,
    EndOfInput,
    ExpectingCharacter,
    ExpectingEOF,
    ExpectingOneOfToParse,
    ExpectingPredicate,
    ExpectingString,
    ParseError,
    any_char,
    at_least,
    character,
    complete,
    eof,
    flat_map,
    literal,
    many,
    map_value,
    one_of,
    optional,
    recognize,
    sequence,
    skip_spaces,
    skip_whitespace,
    spaced_sequence,
)


class TestPrimitives:
    def test_character(self) -> None:
        assert character("A")("ABCD") == ("A", "BCD")

    def test_character_mismatch(self) -> None:
        with pytest.raises(ExpectingCharacter) as exc:
            character("A")("BCD")
        assert exc.value.character == "A"

    def test_character_on_empty_input(self) -> None:
        with pytest.raises(ExpectingCharacter):
            character("A")("")

    def test_any(self) -> None:
        assert any_char(str.isalpha)("AAABCD") == ("A", "AABCD")

    def test_any_predicate_fails(self) -> None:
        with pytest.raises(ExpectingPredicate):
            any_char(str.isdigit)("A1")

    def test_any_end_of_input(self) -> None:
        with pytest.raises(EndOfInput):
            any_char(str.isalpha)("")

    def test_literal(self) -> None:
        value, rest = literal("foo")("foo")
        assert value == "foo"
        assert rest == ""

    def test_literal_mismatch(self) -> None:
        with pytest.raises(ExpectingString) as exc:
            literal("rules")("rulez:")
        assert exc.value == ExpectingString("rules")

    def test_eof(self) -> None:
        assert eof("") == (None, "")
        with pytest.raises(ExpectingEOF):
            eof("x")

    def test_skips(self) -> None:
        assert skip_spaces(" \t x\n") == (None, "x\n")
        assert skip_spaces("\n x") == (None, "\n x")
        assert skip_whitespace(" \n\t\r\nx") == (None, "x")

    def test_errors_are_config_errors(self) -> None:
        # The CLI reports every bad input through ConfigError.
        assert issubclass(ParseError, ConfigError)
        assert issubclass(ParseError, ValueError)


class TestCombinators:
    def test_many(self) -> None:
        assert many(character("A"))("AAABCD") == (["A", "A", "A"], "BCD")

    def test_many_matches_nothing(self) -> None:
        assert many(character("A"))("BCD") == ([], "BCD")

    def test_at_least_greedy(self) -> None:
        assert at_least(2, character("A"))("AAABCD") == (["A", "A", "A"], "BCD")

    def test_at_least_too_few(self) -> None:
        # The failure of a mandatory repetition propagates unchanged.
        with pytest.raises(ExpectingCharacter):
            at_least(2, character("A"))("ABCD")

    def test_at_least_tail_failure_does_not_consume(self) -> None:
        pair = sequence(character("A"), character("B"))
        values, rest = many(pair)("ABABAC")
        assert values == [("A", "B"), ("A", "B")]
        assert rest == "AC"

    def test_map(self) -> None:
        parser = map_value(many(character("A")), len)
        assert parser("AAABCD") == (3, "BCD")

    def test_map_method(self) -> None:
        assert character("a").map(str.upper)("ab") == ("A", "b")

    def test_map_passes_failure_through(self) -> None:
        with pytest.raises(ExpectingCharacter):
            map_value(character("A"), len)("B")

    def test_flat_map(self) -> None:
        digits = recognize(at_least(1, any_char(str.isdigit)))
        assert flat_map(digits, int)("42;") == (42, ";")

    def test_flat_map_value_error_becomes_custom(self) -> None:
        def reject(value: str) -> str:
            raise ValueError(f"bad value {value!r}")

        with pytest.raises(Custom) as exc:
            flat_map(literal("x"), reject)("xy")
        assert exc.value.message == "bad value 'x'"

    def test_flat_map_keeps_parse_errors(self) -> None:
        def reject(value: str) -> str:
            raise ExpectingEOF()

        with pytest.raises(ExpectingEOF):
            literal("x").flat_map(reject)("x")

    def test_one_of(self) -> None:
        parser = one_of(character("B"), character("A"))
        assert parser("AAABCD") == ("A", "AABCD")

    def test_one_of_first_match_wins(self) -> None:
        # No longest-match heuristic.
        parser = one_of(literal("ab"), literal("abc"))
        assert parser("abc") == ("ab", "c")

    def test_one_of_restarts_from_original_input(self) -> None:
        parser = one_of(
            sequence(character("a"), character("x")),
            sequence(character("a"), character("b")),
        )
        assert parser("ab!") == (("a", "b"), "!")

    def test_one_of_all_fail(self) -> None:
        with pytest.raises(ExpectingOneOfToParse):
            one_of(character("x"), character("y"))("z")

    def test_optional(self) -> None:
        assert optional(character("A"))("AB") == ("A", "B")

    def test_optional_rewinds(self) -> None:
        parser = optional(sequence(character("A"), character("B")))
        assert parser("AC") == (None, "AC")

    def test_recognize(self) -> None:
        decimal = recognize(
            sequence(
                at_least(1, any_char(str.isdigit)),
                character("."),
                many(any_char(str.isdigit)),
            )
        )
        assert decimal("40.25 rest") == ("40.25", " rest")

    def test_sequence(self) -> None:
        parser = sequence(character("A"), character("b"))
        assert parser("Ab") == (("A", "b"), "")

    def test_sequence_build(self) -> None:
        parser = sequence(
            character("A"), literal("--"), character("B"), build=lambda a, _, b: a + b
        )
        assert parser("A--BC") == ("AB", "C")

    def test_sequence_first_failure_aborts(self) -> None:
        with pytest.raises(ExpectingString) as exc:
            sequence(character("A"), literal("foo"), character("C"))("AbarC")
        assert exc.value.expected == "foo"

    def test_sequence_does_not_skip_spaces(self) -> None:
        with pytest.raises(ExpectingCharacter):
            sequence(character("A"), character("B"))("A B")

    def test_spaced_sequence(self) -> None:
        parser = spaced_sequence(
            character("A"),
            literal("foo"),
            character("C"),
            build=lambda a, _foo, c: (a, c),
        )
        assert parser(" \t A foo\t C  \t ") == (("A", "C"), "")

    def test_spaced_sequence_stays_on_the_line(self) -> None:
        parser = spaced_sequence(character("A"))
        assert parser(" A \n B") == (("A",), "\n B")

    def test_complete(self) -> None:
        assert complete(many(character("A")))("AAA") == (["A", "A", "A"], "")

    def test_complete_with_leftover(self) -> None:
        with pytest.raises(ExpectingEOF):
            complete(many(character("A")))("AAB")

    def test_input_is_never_modified(self) -> None:
        text = "ABC"
        _, rest = sequence(character("A"), character("B"))(text)
        assert text == "ABC"
        assert rest == "C"

    def test_repr_shows_grammar(self) -> None:
        parser = sequence(literal("rules"), character(":"))
        assert repr(parser) == "('rules' ':')"
        assert repr(optional(character("a"))) == "('a')?"
