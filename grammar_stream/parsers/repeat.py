"""
Repeat parser - run an inner parser between min_count and max_count times.

Repetition Algorithm (per parse call):
    1. Feed the unconsumed bytes to the inner parser from the open repetition's state
    2. Inner Finished: record its output and move the cursor to its leftover bytes.
       At max_count outputs, finish immediately; otherwise start another
       repetition from a fresh inner state and go to step 1
    3. Inner Incomplete: keep its state as the open repetition and report
       Incomplete; more bytes are needed
    4. Inner fails: with at least min_count outputs, finish with the outputs
       and leave the bytes from the last completed repetition onwards in
       ``remaining``. With fewer, re-raise the inner error

Step 4 stops cleanly without consuming the failing bytes, so a parser that
follows the repeat in a sequence sees them. Only bytes given to the current
call can be handed back. When the open repetition already holds bytes from
an earlier call, those bytes cannot be returned, so its failure is re-raised
whatever the count.

A repetition that finishes without consuming a byte would match the same way
every time, so the repeat stops there and pads the outputs up to min_count.

Example:
    ```python
    digits = RepeatParser(IntegerParser(0, 9), 1, 3)
    state = digits.create_parser_state()

    digits.parse(state, b"12")    # Incomplete(RepeatState(IntegerState(), (1, 2)))
    digits.parse(state, b"1234")  # Finished([1, 2, 3], remaining=b"4")
    digits.parse(state, b"1,")    # Finished([1], remaining=b",")
    ```
"""

import logging
from dataclasses import dataclass
from typing import Any, Tuple

from grammar_stream.errors import GrammarError, ParseError, RepeatParseError
from grammar_stream.parsers.base import BytesLike, Finished, Incomplete, ParseResult, Parser

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RepeatState:
    """
    Progress of a repeat.

    Attributes:
        last_state: Inner parser state of the open (not yet counted) repetition
        outputs: Outputs of the repetitions completed so far, in order
        started: Whether the open repetition consumed bytes in an earlier call
    """
    last_state: Any
    outputs: Tuple[Any, ...] = ()
    started: bool = False


class RepeatParser(Parser):
    """
    Parser that repeats an inner parser a bounded number of times.

    The result on success is a list of the inner outputs.

    Attributes:
        parser: Inner parser
        min_count: Fewest repetitions accepted (inclusive)
        max_count: Most repetitions accepted (inclusive); never exceeded
    """

    def __init__(self, parser: Parser, min_count: int, max_count: int):
        if min_count < 0:
            raise GrammarError(f"min_count must be non-negative, got {min_count}")
        if min_count > max_count:
            raise GrammarError(
                f"Repetition range is empty: min_count={min_count} > max_count={max_count}"
            )
        self.parser = parser
        self.min_count = min_count
        self.max_count = max_count

    def create_parser_state(self) -> RepeatState:
        return RepeatState(self.parser.create_parser_state(), ())

    def parse(self, state: RepeatState, data: BytesLike) -> ParseResult:
        data = bytes(data)
        remaining = data
        last_state = state.last_state
        started = state.started
        outputs = list(state.outputs)

        if len(outputs) >= self.max_count:
            return Finished(outputs, remaining)

        while True:
            try:
                result = self.parser.parse(last_state, remaining)
            except ParseError as e:
                if started or len(outputs) < self.min_count:
                    raise e.shift(len(data) - len(remaining))
                logger.debug(
                    f"Repeat stopped after {len(outputs)} repetitions, "
                    f"leaving {len(remaining)} bytes: {e}"
                )
                return Finished(outputs, remaining)

            if isinstance(result, Incomplete):
                return Incomplete(RepeatState(
                    result.state,
                    tuple(outputs),
                    started or len(remaining) > 0
                ))

            outputs.append(result.result)

            if not started and len(result.remaining) == len(remaining):
                while len(outputs) < self.min_count:
                    outputs.append(result.result)
                return Finished(outputs, result.remaining)

            remaining = result.remaining
            last_state = self.parser.create_parser_state()
            started = False

            if len(outputs) == self.max_count:
                return Finished(outputs, remaining)

    def finish(self, state: RepeatState) -> Finished:
        outputs = list(state.outputs)
        last_state = state.last_state

        if state.started:
            outputs.append(self.parser.finish(last_state).result)
            last_state = self.parser.create_parser_state()

        while len(outputs) < self.min_count:
            try:
                outputs.append(self.parser.finish(last_state).result)
            except ParseError as e:
                raise RepeatParseError(
                    f"Stream ended after {len(outputs)} repetitions, "
                    f"expected at least {self.min_count}"
                ) from e
            last_state = self.parser.create_parser_state()

        return Finished(outputs, b"")

    def __repr__(self) -> str:
        return f"RepeatParser({self.parser!r}, {self.min_count}, {self.max_count})"
