"""
Integer parser - match an ASCII decimal integer within an inclusive range.

The parser consumes digits greedily and stops as early as the range allows:

    - It fails as soon as no continuation of the digits read so far can land
      inside [min_value, max_value].
    - It finishes right after a digit when the value is in range and no
      further digit could keep it in range. IntegerParser(1, 3) finishes after
      a single digit, so b"123" repeated gives 1, 2, 3.
    - Otherwise a non-digit byte ends the number; that byte is left in
      ``remaining``.
    - The end of a chunk is never treated as the end of the number, because
      the next chunk may carry more digits. Use ``finish`` at end of stream.

A leading '-' is accepted only when the range admits negative values.
Leading zeros are not: a first digit '0' is the whole number.

Example:
    ```python
    parser = IntegerParser(0, 255)
    state = parser.create_parser_state()

    parser.parse(state, b"12")     # Incomplete(IntegerState(value=12, digits=2))
    parser.parse(state, b"12,")    # Finished(12, remaining=b",")
    parser.parse(state, b"256")    # raises IntegerParseError (256 > 255)
    parser.parse(state, b"25")     # Incomplete: "25x" could still become 250-255
    ```
"""

from dataclasses import dataclass
from typing import Tuple

from grammar_stream.errors import GrammarError, IntegerParseError
from grammar_stream.parsers.base import BytesLike, Finished, Incomplete, ParseResult, Parser

_ZERO = ord("0")
_NINE = ord("9")
_MINUS = ord("-")


@dataclass(frozen=True)
class IntegerState:
    """
    Progress of an integer match.

    Attributes:
        value: Magnitude accumulated from the digits read so far
        digits: Number of digits read
        negative: Whether a leading '-' was read
    """
    value: int = 0
    digits: int = 0
    negative: bool = False

    @property
    def signed_value(self) -> int:
        return -self.value if self.negative else self.value


class IntegerParser(Parser):
    """
    Parser for a decimal integer in [min_value, max_value].

    Attributes:
        min_value: Smallest accepted value (inclusive)
        max_value: Largest accepted value (inclusive)
    """

    def __init__(self, min_value: int, max_value: int):
        if min_value > max_value:
            raise GrammarError(
                f"Integer range is empty: min_value={min_value} > max_value={max_value}"
            )
        self.min_value = min_value
        self.max_value = max_value

    def create_parser_state(self) -> IntegerState:
        return IntegerState()

    def parse(self, state: IntegerState, data: BytesLike) -> ParseResult:
        data = bytes(data)
        value, digits, negative = state.value, state.digits, state.negative

        for offset, byte in enumerate(data):
            if _ZERO <= byte <= _NINE:
                value = value * 10 + (byte - _ZERO)
                digits += 1

                in_range, extendable = self._classify(value, negative)
                signed = -value if negative else value

                if not in_range and not extendable:
                    raise IntegerParseError(
                        f"No integer starting with {signed} fits in "
                        f"[{self.min_value}, {self.max_value}]",
                        offset=offset,
                        value=signed
                    )
                if in_range and not extendable:
                    return Finished(signed, data[offset + 1:])

            elif byte == _MINUS and digits == 0 and not negative and self.min_value < 0:
                negative = True

            elif digits == 0:
                raise IntegerParseError(
                    f"Expected a digit, found {bytes([byte])!r}",
                    offset=offset
                )

            else:
                signed = -value if negative else value
                if self.min_value <= signed <= self.max_value:
                    return Finished(signed, data[offset:])
                raise IntegerParseError(
                    f"Integer {signed} is outside [{self.min_value}, {self.max_value}]",
                    offset=offset,
                    value=signed
                )

        return Incomplete(IntegerState(value, digits, negative))

    def finish(self, state: IntegerState) -> Finished:
        if state.digits == 0:
            raise IntegerParseError("Stream ended before any digit")

        signed = state.signed_value
        if not self.min_value <= signed <= self.max_value:
            raise IntegerParseError(
                f"Integer {signed} is outside [{self.min_value}, {self.max_value}]",
                value=signed
            )
        return Finished(signed, b"")

    def _classify(self, magnitude: int, negative: bool) -> Tuple[bool, bool]:
        """
        Check the current value and its possible continuations against the range.

        Returns:
            (in_range, extendable): whether the value itself is accepted, and
            whether appending one or more digits can still produce an accepted value
        """
        signed = -magnitude if negative else magnitude
        in_range = self.min_value <= signed <= self.max_value

        # A leading zero is a complete number.
        if magnitude == 0:
            return in_range, False

        # With k more digits the magnitude lies in [low, low + scale - 1].
        scale = 10
        while True:
            low = magnitude * scale
            high = low + scale - 1
            if negative:
                if -low < self.min_value:
                    return in_range, False
                if -high <= self.max_value:
                    return in_range, True
            else:
                if low > self.max_value:
                    return in_range, False
                if high >= self.min_value:
                    return in_range, True
            scale *= 10

    def __repr__(self) -> str:
        return f"IntegerParser({self.min_value}, {self.max_value})"
