"""
Sequence and output-mapping combinators.

SequenceParser runs ``first`` until it finishes, then feeds the bytes
``first`` left over into ``second``, starting from a fresh state of
``second``. ``second`` is not touched (its state is not even created)
until ``first`` has finished.

Output policies:
    - "both": (first_output, second_output)
    - "first": first_output only
    - "second": second_output only

Example:
    ```python
    field = LiteralParser("age=").ignore_output_then(IntegerParser(0, 150))
    state = field.create_parser_state()

    field.parse(state, b"ag")        # Incomplete, still inside the literal
    field.parse(state, b"age=42;")   # Finished(42, remaining=b";")
    ```
"""

from dataclasses import dataclass
from typing import Any, Callable, Optional

from grammar_stream.errors import GrammarError, ParseError
from grammar_stream.parsers.base import BytesLike, Finished, Incomplete, ParseResult, Parser

OUTPUT_POLICIES = ("both", "first", "second")


@dataclass(frozen=True)
class SequenceState:
    """
    Progress of a sequence.

    While ``first_done`` is False only ``first_state`` is meaningful. Once
    ``first`` has finished, its output is kept in ``first_output`` and
    ``second_state`` tracks ``second``.
    """
    first_state: Any = None
    first_done: bool = False
    first_output: Any = None
    second_state: Optional[Any] = None


class SequenceParser(Parser):
    """
    Parser for ``first`` followed by ``second``.

    Attributes:
        first: Parser run first
        second: Parser run on the bytes ``first`` leaves over
        output: Output policy, one of "both", "first", "second"
    """

    def __init__(self, first: Parser, second: Parser, output: str = "both"):
        if output not in OUTPUT_POLICIES:
            raise GrammarError(
                f"Unknown sequence output policy {output!r}, expected one of {OUTPUT_POLICIES}"
            )
        self.first = first
        self.second = second
        self.output = output

    def create_parser_state(self) -> SequenceState:
        return SequenceState(first_state=self.first.create_parser_state())

    def parse(self, state: SequenceState, data: BytesLike) -> ParseResult:
        original = data = bytes(data)

        if not state.first_done:
            result = self.first.parse(state.first_state, data)
            if isinstance(result, Incomplete):
                return Incomplete(SequenceState(first_state=result.state))

            first_output = result.result
            data = result.remaining
            second_state = self.second.create_parser_state()
        else:
            first_output = state.first_output
            second_state = state.second_state

        consumed = len(original) - len(data)
        try:
            result = self.second.parse(second_state, data)
        except ParseError as e:
            raise e.shift(consumed)

        if isinstance(result, Incomplete):
            return Incomplete(SequenceState(
                first_done=True,
                first_output=first_output,
                second_state=result.state
            ))

        return Finished(self._combine(first_output, result.result), result.remaining)

    def finish(self, state: SequenceState) -> Finished:
        if not state.first_done:
            first_output = self.first.finish(state.first_state).result
            second_state = self.second.create_parser_state()
        else:
            first_output = state.first_output
            second_state = state.second_state

        second_output = self.second.finish(second_state).result
        return Finished(self._combine(first_output, second_output), b"")

    def _combine(self, first_output: Any, second_output: Any) -> Any:
        if self.output == "first":
            return first_output
        if self.output == "second":
            return second_output
        return (first_output, second_output)

    def __repr__(self) -> str:
        return f"SequenceParser({self.first!r}, {self.second!r}, output={self.output!r})"


class MapOutputParser(Parser):
    """
    Parser that transforms the result of another parser.

    States and byte consumption are exactly those of the wrapped parser.

    Attributes:
        parser: Wrapped parser
        fn: Function applied to the wrapped parser's result
    """

    def __init__(self, parser: Parser, fn: Callable[[Any], Any]):
        self.parser = parser
        self.fn = fn

    def create_parser_state(self) -> Any:
        return self.parser.create_parser_state()

    def parse(self, state: Any, data: BytesLike) -> ParseResult:
        result = self.parser.parse(state, data)
        if isinstance(result, Finished):
            return Finished(self.fn(result.result), result.remaining)
        return result

    def finish(self, state: Any) -> Finished:
        return Finished(self.fn(self.parser.finish(state).result), b"")

    def __repr__(self) -> str:
        return f"MapOutputParser({self.parser!r}, {self.fn!r})"
