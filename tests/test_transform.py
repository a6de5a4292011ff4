"""Tests for value transformations and lookahead."""

from __future__ import annotations

import pytest

from pegweave import (
    ParseContext,
    ParseError,
    any_char,
    apply,
    apply_spread,
    capture,
    char_range,
    inverted,
    literal,
    lookahead,
    parse,
    repeat1,
    replace,
    seq,
    skip,
)


def run(parser, src: str, pos: int = 0):
    ctx = ParseContext(src)
    return parser(ctx, pos), ctx


digit = char_range("0", "9")


class TestApply:
    def test_transforms_value(self) -> None:
        assert parse(apply(repeat1(digit), lambda ds: int("".join(ds))), "42") == 42

    def test_failure_passes_through(self) -> None:
        calls: list[object] = []
        r, ctx = run(apply("a", calls.append), "b")

        assert r is None
        assert calls == []
        assert list(ctx.expected) == ['"a"']

    def test_keeps_position(self) -> None:
        r, _ = run(apply("ab", str.upper), "abc")

        assert r is not None
        assert (r.value, r.next) == ("AB", 2)

    def test_composes(self) -> None:
        p = literal("a")
        f = lambda x: x + "!"
        g = lambda x: x * 2

        assert parse(apply(apply(p, f), g), "a") == parse(apply(p, lambda x: g(f(x))), "a")


class TestApplySpread:
    def test_spreads_sequence(self) -> None:
        pair = apply_spread(seq(digit, "=", digit), lambda key, _, value: (key, value))

        assert parse(pair, "1=2") == ("1", "2")


class TestReplaceAndSkip:
    def test_replace(self) -> None:
        assert parse(replace("true", True), "true") is True

    def test_skip(self) -> None:
        assert parse(seq(skip("("), digit, skip(")")), "(5)") == [None, "5", None]


class TestCapture:
    def test_returns_matched_text(self) -> None:
        r, _ = run(capture(seq(any_char, any_char)), "hi there")

        assert r is not None
        assert (r.value, r.next) == ("hi", 2)

    def test_from_middle(self) -> None:
        r, _ = run(capture(repeat1(digit)), "ab123cd", 2)

        assert r is not None
        assert (r.value, r.next) == ("123", 5)

    def test_failure_passes_through(self) -> None:
        r, _ = run(capture(digit), "x")

        assert r is None


class TestLookahead:
    def test_does_not_consume(self) -> None:
        r, _ = run(lookahead("ab"), "abc")

        assert r is not None
        assert (r.value, r.next) == ("ab", 0)

    def test_failure_records(self) -> None:
        r, ctx = run(lookahead("ab"), "ax")

        assert r is None
        assert ctx.furthest == 1
        assert list(ctx.expected) == ['"ab"']

    def test_multiple_parsers(self) -> None:
        r, _ = run(lookahead("a", "b"), "ab")

        assert r is not None
        assert (r.value, r.next) == (["a", "b"], 0)


class TestInverted:
    def test_succeeds_when_parser_fails(self) -> None:
        r, _ = run(inverted("a"), "b")

        assert r is not None
        assert (r.value, r.next) == (None, 0)

    def test_fails_when_parser_matches(self) -> None:
        r, ctx = run(inverted("a"), "a")

        assert r is None
        assert list(ctx.expected) == []

    def test_keyword_boundary(self) -> None:
        """A keyword not followed by more letters."""
        letter = char_range("a", "z")
        keyword = apply_spread(seq("if", inverted(letter)), lambda kw, _: kw)

        assert parse(keyword, "if") == "if"
        with pytest.raises(ParseError):
            parse(keyword, "iffy")

    def test_nothing_expected_message(self) -> None:
        """Only the negative lookahead failed, so nothing was expected."""
        with pytest.raises(ParseError, match='Expected nothing but got "a"'):
            parse(inverted("a"), "a")
