"""
Unit tests for the sequence and output-mapping combinators.
"""

import pytest

from grammar_stream.errors import GrammarError, IntegerParseError, LiteralParseError
from grammar_stream.parsers import (
    Finished,
    Incomplete,
    IntegerParser,
    IntegerState,
    LiteralParser,
    LiteralState,
    MapOutputParser,
    SequenceParser,
    SequenceState,
)


class TestSequenceParser:
    """Test chaining two parsers."""

    def test_both_outputs(self):
        """Test the default policy keeping both outputs."""
        parser = SequenceParser(IntegerParser(0, 9), IntegerParser(0, 9))
        result = parser.parse(parser.create_parser_state(), b"47x")

        assert result == Finished((4, 7), b"x")

    def test_leftover_of_first_feeds_second(self):
        """Test that bytes left by the first parser reach the second."""
        parser = SequenceParser(LiteralParser("n="), IntegerParser(0, 255), output="second")
        result = parser.parse(parser.create_parser_state(), b"n=12;")

        assert result == Finished(12, b";")

    def test_first_incomplete_never_touches_second(self):
        """Test that the second parser's state is not created while the first runs."""
        parser = SequenceParser(LiteralParser("abc"), IntegerParser(0, 9))
        result = parser.parse(parser.create_parser_state(), b"ab")

        assert result == Incomplete(SequenceState(first_state=LiteralState(index=2)))
        assert result.state.second_state is None
        assert result.state.first_done is False

    def test_second_incomplete(self):
        """Test Incomplete after transitioning to the second parser."""
        parser = SequenceParser(LiteralParser("n="), IntegerParser(0, 255))
        result = parser.parse(parser.create_parser_state(), b"n=2")

        assert result == Incomplete(SequenceState(
            first_done=True,
            first_output=None,
            second_state=IntegerState(value=2, digits=1)
        ))

    def test_resume_in_second(self):
        """Test resuming inside the second parser across chunks."""
        parser = LiteralParser("n=").then(IntegerParser(0, 255))

        assert parser.parse_chunks([b"n", b"=2", b"5", b"5"]) == Finished((None, 255), b"")

    def test_first_failure(self):
        """Test failure in the first stage."""
        parser = SequenceParser(LiteralParser("abc"), IntegerParser(0, 9))

        with pytest.raises(LiteralParseError) as exc_info:
            parser.parse(parser.create_parser_state(), b"abx")

        assert exc_info.value.offset == 2

    def test_second_failure_offset(self):
        """Test that a second-stage failure reports its offset within the chunk."""
        parser = SequenceParser(LiteralParser("n="), IntegerParser(0, 9))

        with pytest.raises(IntegerParseError) as exc_info:
            parser.parse(parser.create_parser_state(), b"n=x")

        assert exc_info.value.offset == 2

    def test_output_policies(self):
        """Test the helpers that pick which output to keep."""
        first = LiteralParser("<")
        second = IntegerParser(0, 9)

        assert first.then(second).parse_chunks([b"<5"]) == Finished((None, 5), b"")
        assert first.ignore_output_then(second).parse_chunks([b"<5"]) == Finished(5, b"")
        assert second.then_ignore_output(first).parse_chunks([b"5<"]) == Finished(5, b"")

    def test_unknown_policy_rejected(self):
        """Test construction-time validation of the output policy."""
        with pytest.raises(GrammarError):
            SequenceParser(LiteralParser("a"), LiteralParser("b"), output="last")

    def test_finish(self):
        """Test end of stream in either stage."""
        parser = LiteralParser("n=").ignore_output_then(IntegerParser(0, 255))

        in_second = parser.parse(parser.create_parser_state(), b"n=25").state
        assert parser.finish(in_second) == Finished(25, b"")

        in_first = parser.parse(parser.create_parser_state(), b"n").state
        with pytest.raises(LiteralParseError):
            parser.finish(in_first)


class TestMapOutputParser:
    """Test result mapping."""

    def test_maps_finished_result(self):
        """Test that the function is applied on finish."""
        parser = IntegerParser(0, 99).map_output(lambda value: value * 2)

        assert isinstance(parser, MapOutputParser)
        assert parser.parse_chunks([b"2", b"1,"]) == Finished(42, b",")

    def test_incomplete_passes_through(self):
        """Test that Incomplete states are those of the wrapped parser."""
        parser = MapOutputParser(IntegerParser(0, 99), str)
        result = parser.parse(parser.create_parser_state(), b"2")

        assert result == Incomplete(IntegerState(value=2, digits=1))

    def test_finish(self):
        """Test mapping at end of stream."""
        parser = MapOutputParser(IntegerParser(0, 99), str)

        assert parser.finish(IntegerState(value=7, digits=1)) == Finished("7", b"")
