"""
The implementations of the parsing context, the primitive parsers and the combinators.
"""

from __future__ import annotations
from typing import overload, Any, Self, Literal, TypeVar, Generic, SupportsIndex, Final, Callable, Protocol
from collections.abc import Container, Iterable

import json
import logging
import re

import pegweave.const as const


logger = logging.getLogger(__name__)

_T = TypeVar("_T")
_U = TypeVar("_U")
_CT = TypeVar("_CT", covariant=True)


def quote(text: str) -> str:
    """Quotes a string the way descriptions and error messages display it."""
    return json.dumps(text, ensure_ascii=False)

def escape(text: str) -> str:
    """`quote()` without the surrounding quotes."""
    return quote(text)[1:-1]

def describe_position(src: str, pos: int) -> str:
    """The quoted character at `pos`, or `"end of input"` if there isn't one."""
    if pos < len(src):
        return quote(src[pos])
    return const.END_OF_INPUT



class ParseError(Exception):
    """
    The exception that's raised by `parse()` when the input doesn't match the grammar.

    Built from the expectations recorded at the furthest position any parser reached:
    ```
    Expected "cat", "car" but got "b"
    ```
    """

    def __init__(self, src: str, pos: int, expected: Iterable[str] = ()) -> None:
        """
        `src`: The string that was being parsed.
        `pos`: The furthest position that was reached.
        `expected`: Descriptions of what would have been accepted at `pos`. Duplicates are dropped.
        """
        self.src: str = src
        self.pos: int = pos
        self.expected: tuple[str, ...] = tuple(dict.fromkeys(expected))
        self.found: str = describe_position(src, pos)
        if self.expected:
            super().__init__(f"Expected {', '.join(self.expected)} but got {self.found}")
        else:
            super().__init__(f"Expected nothing but got {self.found}")
        self.append_pos_note(pos)

    def append_pos_note(self, pos: int, msg: str | None = None) -> Self:
        """Adds a note showing the line, the column and the offending part of the line."""
        note: list[str] = [] if msg is None else [msg]

        pos = min(pos, len(self.src))
        # should still work with CRLF
        line = self.src.count("\n", 0, pos) + 1
        column = pos - self.src.rfind("\n", 0, pos) # magically works even when it returns -1
        note.append(f"At position {pos} (line {line}, column {column})")

        line_str = self.src.split("\n")[line-1].rstrip("\r")
        if len(line_str) >= column-1:
            start = max(0, column-21)
            note.append(f"{line_str[start:start+40]}\n{' '*(column-1-start)}^")
        self.add_note("\n".join(note))
        return self


class ParseContext:
    """
    The state shared by every parser during a single `parse()` call.

    Keeps the source and the furthest position a parser has failed at, along with what was expected there.

    Create a new one for every parse. Never share one between parses.
    """

    def __init__(self, src: str) -> None:
        self.src: Final[str] = src
        """The string that's being parsed."""
        self.furthest: int = 0
        """The furthest position a failure was recorded at."""
        self.expected: dict[str, None] = {}
        """Descriptions of what was expected at `furthest`. Used as an ordered set."""

    def __len__(self) -> int:
        return len(self.src)

    def __getitem__(self, key: SupportsIndex | slice) -> str:
        return self.src[key]

    def fail(self, pos: int, description: str) -> None:
        """
        Records that `description` was expected at `pos`.

        Failures further than the current record replace it, failures at the same position are added to it, and earlier ones are ignored.

        Returns `None` so parsers can fail with `return ctx.fail(pos, "...")`.
        """
        if pos > self.furthest:
            self.furthest = pos
            self.expected = {description: None}
        elif pos == self.furthest:
            self.expected[description] = None

    def found(self) -> str:
        """The quoted character at the furthest position, or `"end of input"`."""
        return describe_position(self.src, self.furthest)

    def error(self) -> ParseError:
        """Converts the recorded failures into a `ParseError`."""
        return ParseError(self.src, self.furthest, self.expected)


class Success(Generic[_CT]):
    """
    Returned from a parser when it matches. Parsers return `None` when they fail.

    ```
    r = parser(ctx, pos)
    if r:
        ... # `r.value` is the parsed value, `r.next` is the position after the match
    else:
        ... # failed, the reason was recorded on `ctx`
    ```
    """

    def __init__(self, value: _CT, next: int) -> None:
        self.value: Final[_CT] = value
        self.next: Final[int] = next

    def __bool__(self) -> Literal[True]:
        return True

    def __repr__(self) -> str:
        return f"<Success {self.value!r} next={self.next}>"


class Parser(Protocol[_CT]):
    """
    A protocol for parsers.

    A parser is called with the shared `ParseContext` and a position. It returns a `Success` holding the parsed value and the position after the match, or `None` after recording what it expected with `ParseContext.fail()`.

    Parsers never change anything other than the context's failure record, so they can be reused for any number of parses.
    """
    def __call__(self, ctx: ParseContext, pos: int, /) -> Success[_CT] | None: ...

FactoryParameter = Parser[Any] | str | re.Pattern[str]

def as_parser(parser: FactoryParameter) -> Parser[Any]:
    """Strings become `literal()` parsers and compiled patterns become `regex()` parsers."""
    if isinstance(parser, str):
        return literal(parser)
    elif isinstance(parser, re.Pattern):
        return regex(parser)
    elif callable(parser):
        return parser
    else:
        raise TypeError(f"Expected a parser, a string or a compiled pattern, got {type(parser).__name__}.")

def as_parsers(parsers: Iterable[FactoryParameter]) -> tuple[Parser[Any], ...]:
    return tuple(as_parser(parser) for parser in parsers)

def _sequenced(parsers: tuple[FactoryParameter, ...]) -> Parser[Any]:
    """A single parser as-is, or several parsers as a `seq()`."""
    if len(parsers) <= 0:
        raise ValueError("At least one parser required.")
    if len(parsers) == 1:
        return as_parser(parsers[0])
    return seq(*parsers)



# primitives

def _common_prefix(src: str, pos: int, value: str, anycase: bool) -> int:
    """Length of the common prefix of `value` and the text at `pos`."""
    length = 0
    for found, wanted in zip(src[pos:pos+len(value)], value):
        if found != wanted and not (anycase and found.lower() == wanted.lower()):
            break
        length += 1
    return length

def literal(value: str) -> Parser[str]:
    """
    Parser factory for a string. Case sensitive.

    Value: the string.

    On a mismatch, the quoted string is recorded as expected at the first character that differs.
    """
    description = quote(value)
    def inner(ctx: ParseContext, pos: int) -> Success[str] | None:
        if ctx.src.startswith(value, pos):
            return Success(value, pos+len(value))
        return ctx.fail(pos + _common_prefix(ctx.src, pos, value, False), description)
    return inner

def anycase(value: str) -> Parser[str]:
    """
    Parser factory for a string. Non case sensitive.

    Value: the string as given to the factory, not as found in the input.
    """
    description = quote(value) + "i"
    def inner(ctx: ParseContext, pos: int) -> Success[str] | None:
        length = _common_prefix(ctx.src, pos, value, True)
        if length == len(value):
            return Success(value, pos+length)
        return ctx.fail(pos+length, description)
    return inner

def any_char(ctx: ParseContext, pos: int) -> Success[str] | None:
    """A pre-defined parser (not a factory) for one arbitrary character."""
    if pos < len(ctx.src):
        return Success(ctx.src[pos], pos+1)
    return ctx.fail(pos, const.ANY_CHAR)

def satisfy(predicate: Callable[[str], bool], description: str) -> Parser[str]:
    """
    Parser factory for one character that satisfies the predicate.

    `description` is what's reported as expected when it doesn't match.
    """
    def inner(ctx: ParseContext, pos: int) -> Success[str] | None:
        if pos < len(ctx.src) and predicate(ctx.src[pos]):
            return Success(ctx.src[pos], pos+1)
        return ctx.fail(pos, description)
    return inner

def char_in(chars: Container[str], description: str) -> Parser[str]:
    """Parser factory for one character out of the given set. (See `pegweave.const`)"""
    return satisfy(lambda c: c in chars, description)

def char_range(first: str, last: str) -> Parser[str]:
    """
    Parser factory for one character whose code point is between those of `first` and `last`, inclusive.

    Reported as `[first-last]`.
    """
    if len(first) != 1 or len(last) != 1:
        raise ValueError("Range bounds must be single characters.")
    low, high = ord(first), ord(last)
    return satisfy(lambda c: low <= ord(c) <= high, f"[{escape(first)}-{escape(last)}]")

def regex(pattern: str | re.Pattern[str], flags: int | re.RegexFlag = 0) -> Parser[str]:
    """
    Parser factory for a regex, matched at the current position.

    Value: the matched text.
    """
    compiled = re.compile(pattern, flags)
    description = f"/{compiled.pattern}/"
    def inner(ctx: ParseContext, pos: int) -> Success[str] | None:
        m = compiled.match(ctx.src, pos)
        if m is None:
            return ctx.fail(pos, description)
        return Success(m.group(), m.end())
    return inner

def eof(ctx: ParseContext, pos: int) -> Success[None] | None:
    """A pre-defined parser (not a factory) that only matches at the end of the input."""
    if pos >= len(ctx.src):
        return Success(None, pos)
    return ctx.fail(pos, const.END_OF_INPUT)

def empty(ctx: ParseContext, pos: int) -> Success[None]:
    """A pre-defined parser (not a factory) that always matches without consuming anything."""
    return Success(None, pos)



# combinators

def seq(*parsers: FactoryParameter) -> Parser[list[Any]]:
    """
    A parser factory.

    All the given parsers must match in sequence for the parser to succeed.

    Value: a list with the value of each parser.
    """
    if len(parsers) <= 0:
        raise ValueError("At least one parser required.")
    new_parsers = as_parsers(parsers)
    def inner(ctx: ParseContext, pos: int) -> Success[list[Any]] | None:
        values: list[Any] = []
        for parser in new_parsers:
            if (r := parser(ctx, pos)) is None:
                return None
            values.append(r.value)
            pos = r.next
        return Success(values, pos)
    return inner

def oneof(*parsers: FactoryParameter) -> Parser[Any]:
    """
    A parser factory.

    Attempts to match any of the parsers, in order, until one matches. If none match, fails.

    The first one that matches wins, even if a later one would have matched more.
    """
    if len(parsers) <= 0:
        raise ValueError("At least one parser required.")
    new_parsers = as_parsers(parsers)
    def inner(ctx: ParseContext, pos: int) -> Success[Any] | None:
        for parser in new_parsers:
            if (r := parser(ctx, pos)) is not None:
                return r
        return None
    return inner

def optional(*parsers: FactoryParameter) -> Parser[Any]:
    """
    A parser factory.

    Returns a parser that always succeeds. Its value is `None` if the given parser didn't match.

    If multiple parsers are supplied, matches them in sequence.
    """
    return oneof(_sequenced(parsers), empty)

def _repeat(parser: Parser[_T], minimum: int, maximum: int | None) -> Parser[list[_T]]:
    """
    Matches `parser` as many times as possible, up to `maximum`. Never gives anything back.

    A repetition ends at the first match that doesn't consume anything. That match would only repeat itself, so its value is repeated to make up the minimum.
    """
    def inner(ctx: ParseContext, pos: int) -> Success[list[_T]] | None:
        values: list[_T] = []
        while maximum is None or len(values) < maximum:
            if (r := parser(ctx, pos)) is None:
                break
            values.append(r.value)
            if r.next == pos:
                values.extend([r.value] * (minimum - len(values)))
                break
            pos = r.next
        if len(values) < minimum:
            return None
        return Success(values, pos)
    return inner

def repeat0(*parsers: FactoryParameter) -> Parser[list[Any]]:
    """
    A parser factory.

    Repeatedly matches the given parser until it fails. Always succeeds.

    If multiple parsers are supplied, matches them in sequence. (All parsers must match for an iteration to be considered successful)
    """
    return _repeat(_sequenced(parsers), 0, None)

def repeat1(*parsers: FactoryParameter) -> Parser[list[Any]]:
    """
    A parser factory.

    Repeatedly matches the given parser until it fails. Succeeds if at least one iteration matches.

    If multiple parsers are supplied, matches them in sequence. (All parsers must match for an iteration to be considered successful)
    """
    return _repeat(_sequenced(parsers), 1, None)

def exactly(parser: FactoryParameter, n: int) -> Parser[list[Any]]:
    """A parser factory. Matches the parser exactly `n` times in a row."""
    if n < 0:
        raise ValueError("The count can't be negative.")
    return _repeat(as_parser(parser), n, n)

def at_least(parser: FactoryParameter, n: int) -> Parser[list[Any]]:
    """A parser factory. Matches the parser as many times as possible, failing if that's fewer than `n`."""
    if n < 0:
        raise ValueError("The count can't be negative.")
    return _repeat(as_parser(parser), n, None)

def between(parser: FactoryParameter, n: int, m: int) -> Parser[list[Any]]:
    """
    A parser factory.

    Matches the parser up to `m` times, stopping early when it fails. Fails if it matched fewer than `n` times.
    """
    if n < 0:
        raise ValueError("The count can't be negative.")
    if n > m:
        raise ValueError("The minimum count can't be larger than the maximum.")
    return _repeat(as_parser(parser), n, m)



# transformations

def apply(parser: FactoryParameter, f: Callable[[Any], _U]) -> Parser[_U]:
    """A parser factory. Replaces the value of the parser with `f(value)`."""
    new_parser = as_parser(parser)
    def inner(ctx: ParseContext, pos: int) -> Success[_U] | None:
        if (r := new_parser(ctx, pos)) is None:
            return None
        return Success(f(r.value), r.next)
    return inner

def apply_spread(parser: FactoryParameter, f: Callable[..., _U]) -> Parser[_U]:
    """
    A parser factory. Same as `apply()`, but the value is a list that's passed to `f` as separate arguments.

    Meant for `seq()`:
    ```
    pair = apply_spread(seq(key, ":", value), lambda k, _, v: (k, v))
    ```
    """
    return apply(parser, lambda values: f(*values))

def replace(parser: FactoryParameter, value: _U) -> Parser[_U]:
    """A parser factory. Replaces the value of the parser with a constant."""
    return apply(parser, lambda _: value)

def skip(parser: FactoryParameter) -> Parser[None]:
    """A parser factory. Matches the parser, but its value is `None`."""
    return replace(parser, None)

def capture(parser: FactoryParameter) -> Parser[str]:
    """A parser factory. Its value is the text the parser matched, instead of the parser's value."""
    new_parser = as_parser(parser)
    def inner(ctx: ParseContext, pos: int) -> Success[str] | None:
        if (r := new_parser(ctx, pos)) is None:
            return None
        return Success(ctx.src[pos:r.next], r.next)
    return inner

def lookahead(*parsers: FactoryParameter) -> Parser[Any]:
    """
    A parser factory.

    Matches without advancing. Keeps the value.

    If multiple parsers are supplied, matches them in sequence.
    """
    parser = _sequenced(parsers)
    def inner(ctx: ParseContext, pos: int) -> Success[Any] | None:
        if (r := parser(ctx, pos)) is None:
            return None
        return Success(r.value, pos)
    return inner

def inverted(*parsers: FactoryParameter) -> Parser[None]:
    """
    A parser factory.

    Succeeds without advancing if the given parser doesn't match, and fails if it does. Fails without recording anything itself.

    If multiple parsers are supplied, matches them in sequence.
    """
    parser = _sequenced(parsers)
    def inner(ctx: ParseContext, pos: int) -> Success[None] | None:
        if parser(ctx, pos) is None:
            return Success(None, pos)
        return None
    return inner



# recursion

def ref(rule: Callable[..., FactoryParameter], *args: Any) -> Parser[Any]:
    """
    A parser factory for rules that refer to themselves or to each other.

    `rule(*args)` is called the first time the parser is used, and the parser it returns is kept for later uses.

    ```
    def expr() -> Parser[Any]:
        return oneof(number, seq("(", ref(expr), ")"))
    ```
    """
    target: Parser[Any] | None = None
    def inner(ctx: ParseContext, pos: int) -> Success[Any] | None:
        nonlocal target
        if target is None:
            target = as_parser(rule(*args))
        return target(ctx, pos)
    return inner

class Forward(Generic[_T]):
    """
    A parser that's declared before it's defined.

    ```
    value = Forward("value")
    array = seq("[", separated(value, ","), "]")
    value.define(oneof(array, number))
    ```
    """

    def __init__(self, name: str | None = None) -> None:
        self.name: Final[str | None] = name
        self.parser: Parser[_T] | None = None

    def define(self, parser: FactoryParameter) -> None:
        """Sets the parser this one stands for. Can only be done once."""
        if self.parser is not None:
            raise RuntimeError(f"{self!r} is already defined.")
        self.parser = as_parser(parser)

    def __call__(self, ctx: ParseContext, pos: int) -> Success[_T] | None:
        if self.parser is None:
            raise RuntimeError(f"{self!r} was used before being defined.")
        return self.parser(ctx, pos)

    def __repr__(self) -> str:
        return "<Forward>" if self.name is None else f"<Forward {self.name}>"

def forward(name: str | None = None) -> Forward[Any]:
    """Same as `Forward(name)`."""
    return Forward(name)



# debugging

def trace(parser: FactoryParameter, name: str) -> Parser[Any]:
    """
    A parser factory. Logs every attempt of the parser and its outcome at the DEBUG level.

    ```
    logging.basicConfig(level=logging.DEBUG)
    ```
    """
    new_parser = as_parser(parser)
    def inner(ctx: ParseContext, pos: int) -> Success[Any] | None:
        if not logger.isEnabledFor(logging.DEBUG):
            return new_parser(ctx, pos)
        logger.debug("trying %s at %d", name, pos)
        r = new_parser(ctx, pos)
        if r is None:
            logger.debug("%s failed at %d", name, pos)
        else:
            logger.debug("%s matched %d..%d: %r", name, pos, r.next, r.value)
        return r
    return inner



# pre-defined parsers

ws0: Parser[str] = capture(repeat0(char_in(const.WHITESPACES, const.WHITESPACE)))
"""Matches zero or more whitespaces."""

ws1: Parser[str] = capture(repeat1(char_in(const.WHITESPACES, const.WHITESPACE)))
"""Matches one or more whitespaces."""



# driver

@overload
def parse(parser: str, src: str) -> str: ...
@overload
def parse(parser: Parser[_T], src: str) -> _T: ...
@overload
def parse(parser: FactoryParameter, src: str) -> Any: ...

def parse(parser: FactoryParameter, src: str) -> Any:
    """
    Parses the whole string with the parser, and returns the parser's value.

    Raises a `ParseError` if the parser fails, or if it doesn't consume the whole string.
    """
    ctx = ParseContext(src)
    r = as_parser(parser)(ctx, 0)
    if r is not None:
        if r.next == len(src):
            return r.value
        ctx.fail(r.next, const.END_OF_INPUT)
    error = ctx.error()
    logger.debug("Parse failed at position %d: %s", error.pos, error)
    raise error
