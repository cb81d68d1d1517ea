"""
Literal parser - match an exact fixed byte sequence.

The state is the number of literal bytes matched so far, so a literal split
across any number of chunks resumes exactly where the previous chunk ended.

Example:
    ```python
    parser = LiteralParser("abc")
    state = parser.create_parser_state()

    parser.parse(state, b"ab")      # Incomplete(LiteralState(index=2))
    parser.parse(state, b"abcdef")  # Finished(None, remaining=b"def")
    parser.parse(state, b"abd")     # raises LiteralParseError at offset 2
    ```
"""

from dataclasses import dataclass
from typing import Union

from grammar_stream.errors import LiteralParseError
from grammar_stream.parsers.base import BytesLike, Finished, Incomplete, ParseResult, Parser


@dataclass(frozen=True)
class LiteralState:
    """Number of literal bytes matched so far."""
    index: int = 0


class LiteralParser(Parser):
    """
    Parser for a fixed byte sequence.

    Text literals are encoded as UTF-8. The result on success is None.

    Attributes:
        literal: Bytes that must appear, in order
    """

    def __init__(self, literal: Union[str, bytes]):
        if isinstance(literal, str):
            literal = literal.encode("utf-8")
        self.literal = bytes(literal)

    def create_parser_state(self) -> LiteralState:
        return LiteralState()

    def parse(self, state: LiteralState, data: BytesLike) -> ParseResult:
        data = bytes(data)
        index = state.index

        for offset, byte in enumerate(data):
            if index == len(self.literal):
                return Finished(None, data[offset:])

            expected = self.literal[index]
            if byte != expected:
                raise LiteralParseError(
                    f"Expected {bytes([expected])!r} at literal position {index} "
                    f"of {self.literal!r}, found {bytes([byte])!r}",
                    offset=offset,
                    expected=bytes([expected]),
                    found=bytes([byte])
                )
            index += 1

        if index == len(self.literal):
            return Finished(None, b"")

        return Incomplete(LiteralState(index))

    def finish(self, state: LiteralState) -> Finished:
        if state.index == len(self.literal):
            return Finished(None, b"")

        raise LiteralParseError(
            f"Stream ended after {state.index} of {len(self.literal)} bytes of {self.literal!r}",
            expected=self.literal[state.index:state.index + 1]
        )

    def __repr__(self) -> str:
        return f"LiteralParser({self.literal!r})"
