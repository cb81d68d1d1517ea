"""
Incremental parser combinators.

Every parser implements the same protocol (see ``base``): create a partial
state, then push bytes into ``parse`` as they become available. Each call
returns Finished (with the unconsumed bytes), Incomplete (with a state to
resume from), or raises ParseError.

Components:
    - base: Parser protocol, Finished / Incomplete outcomes
    - literal: Exact byte sequence
    - integer: Decimal integer within an inclusive range
    - repeat: Inner parser repeated between min and max times
    - sequence: One parser after another, and output mapping
    - stop_on: Any bytes up to a stop sequence

Example:
    ```python
    from grammar_stream.parsers import IntegerParser, LiteralParser

    # "[" then 1-4 numbers in 0..99, each followed by ";" then "]"
    item = IntegerParser(0, 99).then_ignore_output(LiteralParser(";"))
    grammar = (
        LiteralParser("[")
        .ignore_output_then(item.repeat(1, 4))
        .then_ignore_output(LiteralParser("]"))
    )

    grammar.parse_chunks([b"[4;", b"2", b"3;]"])
    # Finished(result=[4, 23], remaining=b"")
    ```
"""

from grammar_stream.parsers.base import Finished, Incomplete, ParseResult, Parser
from grammar_stream.parsers.literal import LiteralParser, LiteralState
from grammar_stream.parsers.integer import IntegerParser, IntegerState
from grammar_stream.parsers.repeat import RepeatParser, RepeatState
from grammar_stream.parsers.sequence import MapOutputParser, SequenceParser, SequenceState
from grammar_stream.parsers.stop_on import StopOnParser, StopOnState

__all__ = [
    "Parser",
    "ParseResult",
    "Finished",
    "Incomplete",
    "LiteralParser",
    "LiteralState",
    "IntegerParser",
    "IntegerState",
    "RepeatParser",
    "RepeatState",
    "SequenceParser",
    "SequenceState",
    "MapOutputParser",
    "StopOnParser",
    "StopOnState",
]
