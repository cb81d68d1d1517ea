"""
Parsing protocol shared by every grammar fragment.

A parser is an immutable description of a grammar fragment. Progress lives
in a separate partial state value that the parser creates and threads
through successive ``parse`` calls as bytes arrive:

    parser = LiteralParser("abc")
    state = parser.create_parser_state()

    result = parser.parse(state, b"ab")     # Incomplete(LiteralState(index=2))
    result = parser.parse(result.state, b"cX")  # Finished(None, remaining=b"X")

Each call returns exactly one of:
    - Finished(result, remaining): the fragment matched; ``remaining`` is the
      unconsumed suffix of the bytes given to this call
    - Incomplete(state): everything so far is consistent with the grammar, but
      more bytes are needed; resume from ``state``

or raises a ParseError when no continuation can ever match.

Partial states are frozen dataclasses. ``parse`` never mutates the state it
is given, so one state can be probed with many candidate continuations
without copying, and every probe is independent of the others.

Chunk invariance: feeding bytes in several chunks (each call resuming from
the previous state) reaches the same Finished result and remaining bytes as
feeding them all at once.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Union

from grammar_stream.errors import ParseError


@dataclass(frozen=True)
class Finished:
    """
    Terminal outcome of a parse call.

    Attributes:
        result: Value produced by the parser (None for literals)
        remaining: Bytes of this call left unconsumed, for whatever runs next
    """
    result: Any
    remaining: bytes = b""


@dataclass(frozen=True)
class Incomplete:
    """
    Non-terminal outcome of a parse call.

    Attributes:
        state: Partial state to resume from when more bytes arrive
    """
    state: Any


ParseResult = Union[Finished, Incomplete]

BytesLike = Union[bytes, bytearray, memoryview]


class Parser(ABC):
    """
    Abstract base class for all grammar fragments.

    Subclasses implement ``create_parser_state`` and ``parse``, and
    ``finish`` when the fragment can legally end with the stream.
    Combinators hold their sub-parsers by composition.
    """

    @abstractmethod
    def create_parser_state(self) -> Any:
        """
        Create the partial state for a fresh parse session.

        Returns:
            The initial partial state; no input is consumed
        """
        pass

    @abstractmethod
    def parse(self, state: Any, data: BytesLike) -> ParseResult:
        """
        Extend the match with newly available bytes.

        Args:
            state: Partial state from ``create_parser_state`` or a previous Incomplete
            data: Next bytes of the stream (any length, possibly empty)

        Returns:
            Finished or Incomplete

        Raises:
            ParseError: If the bytes can never satisfy this fragment
        """
        pass

    def finish(self, state: Any) -> Finished:
        """
        Resolve a partial state at end of stream.

        Args:
            state: Partial state of an unfinished parse

        Returns:
            Finished with empty remaining bytes

        Raises:
            ParseError: If the fragment cannot end here
        """
        raise ParseError(f"{type(self).__name__} cannot end at end of stream")

    def parse_chunks(self, chunks: Iterable[BytesLike], state: Optional[Any] = None) -> ParseResult:
        """
        Feed chunks in order, resuming from each call's state.

        Once the parser finishes, the bytes of every later chunk are appended
        to ``remaining``, so the outcome matches a single call over the
        concatenated chunks.

        Args:
            chunks: Ordered byte chunks of the stream
            state: State to start from (fresh state if None)

        Returns:
            Finished or Incomplete after the last chunk

        Example:
            ```python
            parser = IntegerParser(0, 999)
            parser.parse_chunks([b"4", b"2", b","])
            # Finished(result=42, remaining=b",")
            ```
        """
        if state is None:
            state = self.create_parser_state()

        chunks = [bytes(chunk) for chunk in chunks] or [b""]

        result: ParseResult = Incomplete(state)
        for index, chunk in enumerate(chunks):
            result = self.parse(state, chunk)
            if isinstance(result, Finished):
                tail = b"".join(chunks[index + 1:])
                return Finished(result.result, result.remaining + tail)
            state = result.state

        return result

    def then(self, other: "Parser") -> "Parser":
        """Parse ``self`` then ``other``; the result is a tuple of both outputs."""
        from grammar_stream.parsers.sequence import SequenceParser

        return SequenceParser(self, other, output="both")

    def ignore_output_then(self, other: "Parser") -> "Parser":
        """Parse ``self`` then ``other``, keeping only the output of ``other``."""
        from grammar_stream.parsers.sequence import SequenceParser

        return SequenceParser(self, other, output="second")

    def then_ignore_output(self, other: "Parser") -> "Parser":
        """Parse ``self`` then ``other``, keeping only the output of ``self``."""
        from grammar_stream.parsers.sequence import SequenceParser

        return SequenceParser(self, other, output="first")

    def repeat(self, min_count: int, max_count: int) -> "Parser":
        """Repeat ``self`` between ``min_count`` and ``max_count`` times."""
        from grammar_stream.parsers.repeat import RepeatParser

        return RepeatParser(self, min_count, max_count)

    def map_output(self, fn: Callable[[Any], Any]) -> "Parser":
        """Apply ``fn`` to the result once ``self`` finishes."""
        from grammar_stream.parsers.sequence import MapOutputParser

        return MapOutputParser(self, fn)
