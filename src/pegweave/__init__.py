"""
Parser combinators for writing PEG parsers.

A grammar is built once by combining parsers with the factories in this module, then run against strings with `parse()`.

See the `pegweave.general` module for general purpose parsers you can use as examples.

Defining parsers:
```
number = apply(capture(repeat1(char_range("0", "9"))), int)

def expr() -> Parser[int]:
    return oneof(
        number,
        apply_spread(seq("(", ref(expr), ")"), lambda _, value, __: value),
    )
```

Writing a parser by hand:
```
def foo(ctx: ParseContext, pos: int) -> Success[int] | None:
    if ctx.src.startswith("abc", pos):
        return Success(10, pos + 3)         # success
    return ctx.fail(pos, '"abc"')           # fail
```

Using parsers:
```
try:
    value = parse(expr(), "((42))")
except ParseError as e:
    ...     # Expected "(", [0-9] but got "x"
```

Alternatives are ordered and repetitions are greedy. Neither ever gives back input it has matched.
"""

import pegweave.const as const
import pegweave.main
from pegweave.main import (
    quote,
    escape,
    ParseError,
    ParseContext,
    Success,
    Parser,
    FactoryParameter,
    as_parser,
    literal,
    anycase,
    any_char,
    satisfy,
    char_in,
    char_range,
    regex,
    eof,
    empty,
    seq,
    oneof,
    optional,
    repeat0,
    repeat1,
    exactly,
    at_least,
    between,
    apply,
    apply_spread,
    replace,
    skip,
    capture,
    lookahead,
    inverted,
    ref,
    Forward,
    forward,
    trace,
    ws0,
    ws1,
    parse,
)
import pegweave.general as general
