from __future__ import annotations
from typing import Any

from collections.abc import Mapping, Sequence

from pegweave import *

# digits

_BASES: dict[int, tuple[frozenset[str], str]] = {
    2: (const.BINARY, "binary digit"),
    8: (const.OCTAL, "octal digit"),
    10: (const.DECIMAL, "decimal digit"),
    16: (const.HEXADECIMAL, "hexadecimal digit"),
}

def digit(base: int = 10) -> Parser[str]:
    """One digit of the given base. (2, 8, 10 or 16)"""
    if base not in _BASES:
        raise ValueError(f"Unsupported base: {base}")
    chars, description = _BASES[base]
    return char_in(chars, description)

def digits(base: int = 10) -> Parser[str]:
    """One or more digits of the given base, as a string."""
    return capture(repeat1(digit(base)))

# quoted string

GENERAL_ESCAPES = {
    'b': '\b',
    'f': '\f',
    'n': '\n',
    'r': '\r',
    't': '\t',
}

unicode_escape: Parser[str] = apply(capture(exactly(digit(16), 4)), lambda code: chr(int(code, base=16)))
"""4 hexadecimal digits, the body of a `\\u` escape."""

ADVANCED_ESCAPES: dict[str, Parser[str]] = {
    'u': unicode_escape,
}

def quoted_string(
    *,
    start: Sequence[str] = ('"', "'"),
    end: Sequence[str] = ('"', "'"),
    escape: str = '\\',
    custom_escapes: Mapping[str, str] = GENERAL_ESCAPES,
    advanced_escapes: Mapping[str, Parser[str]] = ADVANCED_ESCAPES,
) -> Parser[str]:
    """
    Value: the content of the string, with the escapes replaced.

    `advanced_escapes` maps an introducer to the parser of the rest of the escape. Once an introducer is seen, the rest has to match.

    An escape character followed by anything else stands for that character.
    """
    if len(start) != len(end):
        raise ValueError("The number of starting quotes and ending quotes don't match.")
    fallback: Parser[str] = any_char
    if advanced_escapes:
        fallback = apply_spread(seq(inverted(oneof(*advanced_escapes)), any_char), lambda _, char: char)
    escaped = apply_spread(
        seq(escape, oneof(
            *(replace(sequence, result) for sequence, result in custom_escapes.items()),
            *(apply_spread(seq(introducer, body), lambda _, char: char) for introducer, body in advanced_escapes.items()),
            fallback,
        )),
        lambda _, char: char,
    )
    def quoted(opening: str, closing: str) -> Parser[str]:
        char = apply_spread(seq(inverted(oneof(closing, escape)), any_char), lambda _, char: char)
        content = apply(repeat0(oneof(escaped, char)), "".join)
        return apply_spread(seq(opening, content, closing), lambda _, text, __: text)
    return oneof(*(quoted(s, e) for s, e in zip(start, end)))

def raw_quoted_string(
    *,
    start: Sequence[str] = ('r"', "r'"),
    end: Sequence[str] = ('"', "'"),
) -> Parser[str]:
    """Value: the content of the string, as-is."""
    if len(start) != len(end):
        raise ValueError("The number of starting quotes and ending quotes don't match.")
    def quoted(opening: str, closing: str) -> Parser[str]:
        content = capture(repeat0(inverted(closing), any_char))
        return apply_spread(seq(opening, content, closing), lambda _, text, __: text)
    return oneof(*(quoted(s, e) for s, e in zip(start, end)))

# numbers

def integer_number(base: int = 0) -> Parser[int]:
    """
    An optional `-` followed by digits.

    If `base` is 0, the base is interpreted from the string.
    - `0b`: Binary
    - `0o`: Octal
    - `0x`: Hexadecimal
    - Otherwise decimal.
    """
    if base != 0:
        return apply(capture(seq(optional("-"), digits(base))), lambda text: int(text, base))
    prefixed = oneof(*(
        capture(seq(optional("-"), anycase(prefix), digits(prefix_base)))
        for prefix, prefix_base in (("0b", 2), ("0o", 8), ("0x", 16))
    ))
    return oneof(
        apply(prefixed, lambda text: int(text, 0)),
        apply(capture(seq(optional("-"), digits(10))), int),
    )

_exponent = seq(anycase("e"), optional(char_in("+-", "sign")), digits(10))

float_number: Parser[float] = apply(
    capture(seq(
        optional("-"),
        oneof(
            seq(digits(10), oneof(seq(".", digits(10), optional(_exponent)), seq(".", _exponent), _exponent)),
            seq(".", digits(10), optional(_exponent)),
        ),
    )),
    float,
)
"""A number with a fraction, an exponent or both. (`1.5`, `.5`, `1e3`, `-2.5E-3`)"""

# identifiers and lists

identifier: Parser[str] = capture(seq(
    char_in(const.IDENTIFIER_START, "identifier"),
    repeat0(char_in(const.IDENTIFIER, "identifier character")),
))

def separated(item: FactoryParameter, separator: FactoryParameter) -> Parser[list[Any]]:
    """Zero or more items with separators between them. Value: the list of the items."""
    def collect(values: list[Any] | None) -> list[Any]:
        if values is None:
            return []
        first, rest = values
        return [first, *(value for _, value in rest)]
    return apply(optional(item, repeat0(separator, item)), collect)
