"""
Exception types raised by grammar parsers and decoding sessions.

Parse errors are structural outcomes, not faults: they mean "the bytes at
this position can never satisfy this grammar fragment". The driver that
feeds candidate bytes decides what to do with them (usually: drop the
candidate and try the next one).

Hierarchy:
    ParseError
    ├── LiteralParseError: bytes diverged from the expected literal
    ├── IntegerParseError: not a decimal integer inside the allowed range
    ├── RepeatParseError: stream ended before enough repetitions completed
    └── StopOnParseError: stream ended before the stop sequence was seen

    GrammarError (ValueError): grammar built with invalid arguments
    SessionFinishedError (RuntimeError): bytes committed after the grammar finished
"""

from typing import Optional


class ParseError(Exception):
    """
    Raised when input can never match a grammar fragment.

    Attributes:
        message: Human-readable description
        offset: Index into the chunk passed to ``parse`` where matching
            failed, or None when the failure was detected at end of stream
    """

    def __init__(self, message: str, offset: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.offset = offset

    def shift(self, consumed: int) -> "ParseError":
        """Make the offset relative to a chunk that had ``consumed`` bytes in front."""
        if self.offset is not None:
            self.offset += consumed
        return self

    def __str__(self) -> str:
        if self.offset is None:
            return self.message
        return f"{self.message} (at offset {self.offset})"


class LiteralParseError(ParseError):
    """
    Raised when input diverges from a literal.

    Attributes:
        expected: The byte the literal required at this position (None at end of stream)
        found: The byte actually seen (None at end of stream)
    """

    def __init__(
        self,
        message: str,
        offset: Optional[int] = None,
        expected: Optional[bytes] = None,
        found: Optional[bytes] = None
    ):
        super().__init__(message, offset)
        self.expected = expected
        self.found = found


class IntegerParseError(ParseError):
    """
    Raised when input is not a decimal integer within the allowed range.

    Attributes:
        value: Signed value accumulated before the failure (None if no digit was read)
    """

    def __init__(self, message: str, offset: Optional[int] = None, value: Optional[int] = None):
        super().__init__(message, offset)
        self.value = value


class RepeatParseError(ParseError):
    """Raised at end of stream when fewer than the minimum repetitions completed."""


class StopOnParseError(ParseError):
    """Raised at end of stream when the stop sequence never appeared."""


class GrammarError(ValueError):
    """Raised when a parser is constructed with invalid arguments."""


class SessionFinishedError(RuntimeError):
    """Raised when bytes are committed to a session whose grammar already finished."""
