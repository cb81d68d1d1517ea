"""
StopOn parser - accept any bytes up to and including a stop sequence.

Useful for free-form spans that end at a known marker, such as an
assistant turn ending with an end-of-turn string. The result is the bytes
that preceded the stop sequence; bytes after it stay in ``remaining``.

Matching is streaming: a failure table (Knuth-Morris-Pratt) tracks how much
of the stop sequence the latest bytes match, so a stop sequence split
across chunks is still found and no byte is examined twice.

Example:
    ```python
    parser = StopOnParser("</s>")
    state = parser.create_parser_state()

    result = parser.parse(state, b"hello </")        # Incomplete
    parser.parse(result.state, b"s> tail")           # Finished(b"hello ", remaining=b" tail")
    ```
"""

from dataclasses import dataclass
from typing import List, Union

from grammar_stream.errors import GrammarError, StopOnParseError
from grammar_stream.parsers.base import BytesLike, Finished, Incomplete, ParseResult, Parser


@dataclass(frozen=True)
class StopOnState:
    """
    Progress of a StopOn match.

    Attributes:
        text: Bytes consumed so far, including any partial stop sequence
        matched: Length of the stop-sequence prefix that ``text`` ends with
    """
    text: bytes = b""
    matched: int = 0


def _failure_table(pattern: bytes) -> List[int]:
    table = [0] * len(pattern)
    k = 0
    for i in range(1, len(pattern)):
        while k > 0 and pattern[i] != pattern[k]:
            k = table[k - 1]
        if pattern[i] == pattern[k]:
            k += 1
        table[i] = k
    return table


class StopOnParser(Parser):
    """
    Parser that consumes bytes until a stop sequence appears.

    Attributes:
        stop: Non-empty byte sequence that ends the match
    """

    def __init__(self, stop: Union[str, bytes]):
        if isinstance(stop, str):
            stop = stop.encode("utf-8")
        if not stop:
            raise GrammarError("Stop sequence must not be empty")
        self.stop = bytes(stop)
        self._table = _failure_table(self.stop)

    def create_parser_state(self) -> StopOnState:
        return StopOnState()

    def parse(self, state: StopOnState, data: BytesLike) -> ParseResult:
        data = bytes(data)
        matched = state.matched

        for offset, byte in enumerate(data):
            while matched > 0 and byte != self.stop[matched]:
                matched = self._table[matched - 1]
            if byte == self.stop[matched]:
                matched += 1

            if matched == len(self.stop):
                text = state.text + data[:offset + 1]
                return Finished(text[:-len(self.stop)], data[offset + 1:])

        return Incomplete(StopOnState(state.text + data, matched))

    def finish(self, state: StopOnState) -> Finished:
        raise StopOnParseError(
            f"Stream ended after {len(state.text)} bytes without stop sequence {self.stop!r}"
        )

    def __repr__(self) -> str:
        return f"StopOnParser({self.stop!r})"
