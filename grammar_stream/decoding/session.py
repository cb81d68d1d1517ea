"""
Parser Session - track grammar progress during generation.

During constrained generation, the grammar state advances as tokens are
chosen. Before each step the driver asks which candidate tokens keep the
output consistent with the grammar; after the step it commits the chosen
token's bytes.

Session Flow:
    1. Start from the grammar's initial state
    2. For each candidate token, probe its bytes against the current state
       (probing never changes the session)
    3. Keep candidates whose outcome is Finished or Incomplete
    4. Commit the chosen token's bytes, advancing the state
    5. Repeat from step 2 until the grammar finishes

Usage:
    ```python
    from grammar_stream.decoding import ParserSession
    from grammar_stream.parsers import IntegerParser

    session = ParserSession(IntegerParser(0, 100))

    session.filter_candidates({1: b"4", 2: b"x", 3: b"42"})  # {1, 3}
    session.commit(b"4")
    session.commit(b"2,")

    session.is_finished  # True
    session.result       # 42
    session.remaining    # b","
    ```
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Set

from grammar_stream.errors import ParseError, SessionFinishedError
from grammar_stream.parsers.base import BytesLike, Finished, Incomplete, ParseResult, Parser

logger = logging.getLogger(__name__)


class ParserSession:
    """
    Incremental parse of one generated stream.

    Attributes:
        parser: Grammar being enforced
        state: Current partial state (None once finished)
        result: Parser result once finished
        remaining: Bytes committed after the grammar finished
        bytes_committed: Total number of bytes committed
    """

    def __init__(self, parser: Parser, state: Optional[Any] = None):
        """
        Initialize a session.

        Args:
            parser: Grammar to enforce
            state: Partial state to resume from (fresh state if None)
        """
        self.parser = parser
        self.state = parser.create_parser_state() if state is None else state
        self.result: Any = None
        self.remaining = b""
        self.is_finished = False
        self.bytes_committed = 0

    def probe(self, data: BytesLike) -> ParseResult:
        """
        Parse candidate bytes without advancing the session.

        Args:
            data: Candidate continuation

        Returns:
            Finished or Incomplete for the candidate

        Raises:
            ParseError: If the candidate cannot continue the grammar
            SessionFinishedError: If the grammar already finished and data is not empty
        """
        if self.is_finished:
            if data:
                raise SessionFinishedError(
                    f"Grammar already finished; cannot accept {len(data)} more bytes"
                )
            return Finished(self.result, b"")

        return self.parser.parse(self.state, data)

    def accepts(self, data: BytesLike) -> bool:
        """
        Check whether candidate bytes keep the output valid.

        Example:
            ```python
            session = ParserSession(LiteralParser("yes"))
            session.accepts(b"ye")  # True
            session.accepts(b"no")  # False
            ```
        """
        try:
            self.probe(data)
        except (ParseError, SessionFinishedError):
            return False
        return True

    def filter_candidates(self, candidates: Mapping[int, bytes]) -> Set[int]:
        """
        Get the ids of all candidates whose bytes the grammar accepts.

        Every candidate is probed independently against the same state.

        Args:
            candidates: Mapping of candidate id (e.g. token id) to its bytes

        Returns:
            Set of accepted candidate ids
        """
        if self.is_finished:
            return {candidate_id for candidate_id, data in candidates.items() if not data}

        valid = set()
        for candidate_id, data in candidates.items():
            try:
                self.parser.parse(self.state, data)
            except ParseError:
                continue
            valid.add(candidate_id)
        return valid

    def commit(self, data: BytesLike) -> ParseResult:
        """
        Advance the session with the chosen bytes.

        Args:
            data: Bytes of the chosen continuation

        Returns:
            Finished or Incomplete

        Raises:
            ParseError: If the bytes cannot continue the grammar (session unchanged)
            SessionFinishedError: If the grammar already finished and data is not empty
        """
        data = bytes(data)
        result = self.probe(data)

        self.bytes_committed += len(data)

        if isinstance(result, Finished):
            if not self.is_finished:
                logger.debug(
                    f"Grammar finished after {self.bytes_committed} bytes "
                    f"({len(result.remaining)} trailing)"
                )
            self.is_finished = True
            self.result = result.result
            self.remaining = self.remaining + result.remaining
            self.state = None
        else:
            self.state = result.state

        return result

    def commit_many(self, chunks: Iterable[BytesLike]) -> ParseResult:
        """Commit several chunks in order and return the last outcome."""
        result: ParseResult = Incomplete(self.state)
        for chunk in chunks:
            result = self.commit(chunk)
        return result

    def can_finish(self) -> bool:
        """Check whether the stream could end here with a valid parse."""
        if self.is_finished:
            return True
        try:
            self.parser.finish(self.state)
        except ParseError:
            return False
        return True

    def finish(self) -> Finished:
        """
        End the stream and resolve the final result.

        Raises:
            ParseError: If the grammar cannot end here
        """
        if not self.is_finished:
            finished = self.parser.finish(self.state)
            self.is_finished = True
            self.result = finished.result
            self.state = None
        return Finished(self.result, self.remaining)

    def fork(self) -> "ParserSession":
        """Create an independent copy of this session."""
        session = ParserSession(self.parser)
        session.state = self.state
        session.result = self.result
        session.remaining = self.remaining
        session.is_finished = self.is_finished
        session.bytes_committed = self.bytes_committed
        return session

    def reset(self) -> None:
        """Reset the session to the grammar's initial state."""
        self.state = self.parser.create_parser_state()
        self.result = None
        self.remaining = b""
        self.is_finished = False
        self.bytes_committed = 0
        logger.debug("ParserSession reset to initial state")

    def __repr__(self) -> str:
        status = "finished" if self.is_finished else "in progress"
        return f"ParserSession({status}, bytes_committed={self.bytes_committed})"
