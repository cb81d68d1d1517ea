"""
Unit tests for the bounded repeat parser.
"""

import pytest

from grammar_stream.errors import GrammarError, IntegerParseError, LiteralParseError, RepeatParseError
from grammar_stream.parsers import (
    Finished,
    Incomplete,
    IntegerParser,
    IntegerState,
    LiteralParser,
    LiteralState,
    RepeatParser,
    RepeatState,
)


class TestRepeatParser:
    """Test repetition counting, termination and the clean-stop policy."""

    def test_literal_repeated_to_max(self):
        """Test three literal repetitions."""
        parser = RepeatParser(LiteralParser("a"), 1, 3)
        result = parser.parse(parser.create_parser_state(), b"aaa")

        assert result == Finished([None, None, None], b"")

    def test_integers_repeated_to_max(self):
        """Test single-digit integers repeated three times."""
        parser = RepeatParser(IntegerParser(1, 3), 1, 3)
        result = parser.parse(parser.create_parser_state(), b"123")

        assert result == Finished([1, 2, 3], b"")

    def test_end_of_chunk_keeps_fresh_open_repetition(self):
        """Test Incomplete with completed outputs and a fresh inner state."""
        parser = RepeatParser(IntegerParser(1, 3), 1, 3)
        result = parser.parse(parser.create_parser_state(), b"12")

        assert result == Incomplete(RepeatState(
            last_state=IntegerParser(1, 3).create_parser_state(),
            outputs=(1, 2)
        ))

    def test_end_of_chunk_keeps_partial_open_repetition(self):
        """Test Incomplete while inside an unfinished repetition."""
        parser = RepeatParser(LiteralParser("ab"), 1, 3)
        result = parser.parse(parser.create_parser_state(), b"aba")

        assert result == Incomplete(RepeatState(
            last_state=LiteralState(index=1),
            outputs=(None,),
            started=True
        ))

    def test_never_exceeds_max(self):
        """Test that matchable input past max_count is left over."""
        parser = RepeatParser(LiteralParser("a"), 1, 2)
        result = parser.parse(parser.create_parser_state(), b"aaaa")

        assert result == Finished([None, None], b"aa")

    def test_zero_repetitions(self):
        """Test that a 0..0 repeat finishes immediately without consuming input."""
        parser = RepeatParser(LiteralParser("a"), 0, 0)

        assert parser.parse(parser.create_parser_state(), b"aaa") == Finished([], b"aaa")
        assert parser.parse(parser.create_parser_state(), b"") == Finished([], b"")

    def test_clean_stop_leaves_failing_bytes(self):
        """Test that an inner failure after min_count finishes without consuming."""
        parser = RepeatParser(LiteralParser("a"), 1, 5)
        result = parser.parse(parser.create_parser_state(), b"aab")

        assert result == Finished([None, None], b"b")

    def test_clean_stop_at_last_completed_repetition(self):
        """Test that bytes of the failed repetition in this call stay in remaining."""
        parser = RepeatParser(LiteralParser("ab"), 1, 5)
        result = parser.parse(parser.create_parser_state(), b"abac")

        assert result == Finished([None], b"ac")

    def test_failure_in_repetition_from_earlier_chunk_propagates(self):
        """Test that a repetition holding bytes from an earlier chunk cannot stop cleanly."""
        parser = RepeatParser(LiteralParser("ab"), 1, 3)
        state = parser.parse(parser.create_parser_state(), b"aba").state

        with pytest.raises(LiteralParseError) as exc_info:
            parser.parse(state, b"c")

        assert exc_info.value.offset == 0

    def test_split_item_followed_by_other_parser(self):
        """Test that chunking cannot make an invalid input finish."""
        parser = RepeatParser(LiteralParser("ab"), 1, 3).then_ignore_output(LiteralParser("c"))

        with pytest.raises(LiteralParseError):
            parser.parse(parser.create_parser_state(), b"abac")
        with pytest.raises(LiteralParseError):
            parser.parse_chunks([b"aba", b"c"])

    def test_failure_below_min_propagates(self):
        """Test that the inner error propagates with fewer than min_count outputs."""
        parser = RepeatParser(LiteralParser("a"), 2, 3)

        with pytest.raises(LiteralParseError) as exc_info:
            parser.parse(parser.create_parser_state(), b"ab")

        assert exc_info.value.offset == 1

    def test_failure_after_min_succeeds(self):
        """Test the same failure once min_count repetitions completed."""
        parser = RepeatParser(LiteralParser("a"), 2, 3)
        result = parser.parse(parser.create_parser_state(), b"aab")

        assert result == Finished([None, None], b"b")

    def test_below_min_at_end_of_chunk_is_incomplete(self):
        """Test that an under-count at end of chunk never finishes."""
        parser = RepeatParser(LiteralParser("a"), 3, 5)
        result = parser.parse(parser.create_parser_state(), b"aa")

        assert isinstance(result, Incomplete)
        assert result.state.outputs == (None, None)

    def test_resume_across_chunks(self):
        """Test repetitions spread over several chunks."""
        parser = RepeatParser(IntegerParser(0, 99), 2, 2)

        result = parser.parse_chunks([b"4", b"2", b"7", b"x"])

        assert result == Finished([42, 7], b"x")

    def test_separated_items(self):
        """Test repeating an item followed by a separator."""
        item = IntegerParser(0, 99).then_ignore_output(LiteralParser(","))
        parser = RepeatParser(item, 1, 4)

        result = parser.parse_chunks([b"1,2", b"3,4", b"5,;"])

        assert result == Finished([1, 23, 45], b";")

    def test_state_is_not_mutated(self):
        """Test that probing a state leaves it reusable."""
        parser = RepeatParser(IntegerParser(1, 3), 1, 3)
        state = parser.parse(parser.create_parser_state(), b"1").state

        first = parser.parse(state, b"2")
        second = parser.parse(state, b"3")

        assert first.state.outputs == (1, 2)
        assert second.state.outputs == (1, 3)
        assert state.outputs == (1,)

    def test_finish_with_enough_outputs(self):
        """Test end of stream after min_count repetitions."""
        parser = RepeatParser(IntegerParser(0, 99), 1, 3)
        state = parser.parse(parser.create_parser_state(), b"12").state

        assert parser.finish(state) == Finished([12], b"")

    def test_finish_resolves_open_repetition(self):
        """Test that a pending inner parse is resolved at end of stream."""
        parser = RepeatParser(IntegerParser(0, 99), 1, 3)
        state = parser.parse(parser.create_parser_state(), b"1").state

        assert state.last_state == IntegerState(value=1, digits=1)
        assert parser.finish(state) == Finished([1], b"")

    def test_finish_below_min_fails(self):
        """Test end of stream before min_count repetitions."""
        parser = RepeatParser(LiteralParser("a"), 2, 3)
        state = parser.parse(parser.create_parser_state(), b"a").state

        with pytest.raises(RepeatParseError):
            parser.finish(state)

    def test_finish_below_min_propagates_inner_error(self):
        """Test that an unfinishable open repetition below min_count re-raises."""
        parser = RepeatParser(IntegerParser(10, 99), 1, 3)
        state = parser.parse(parser.create_parser_state(), b"1").state

        with pytest.raises(IntegerParseError):
            parser.finish(state)

    def test_finish_with_unfinishable_open_repetition_fails(self):
        """Test that bytes of an open repetition must match even above min_count."""
        parser = RepeatParser(LiteralParser("ab"), 1, 3)
        state = parser.parse(parser.create_parser_state(), b"aba").state

        with pytest.raises(LiteralParseError):
            parser.finish(state)

    def test_finish_with_inner_that_can_end_empty(self):
        """Test end of stream on empty input when the inner parser accepts nothing."""
        parser = RepeatParser(LiteralParser("a").repeat(0, 2), 1, 2)

        assert parser.finish(parser.create_parser_state()) == Finished([[]], b"")

    def test_empty_repetition_stops_loop(self):
        """Test that a repetition consuming no bytes ends the repeat."""
        parser = RepeatParser(LiteralParser(""), 0, 10 ** 9)

        assert parser.parse(parser.create_parser_state(), b"xyz") == Finished([None], b"xyz")

    def test_empty_repetition_padded_to_min(self):
        """Test that a repetition consuming no bytes is repeated up to min_count."""
        parser = RepeatParser(LiteralParser("a").repeat(0, 2), 3, 5)

        result = parser.parse(parser.create_parser_state(), b"aab")

        assert result == Finished([[None, None], [], []], b"b")

    def test_invalid_ranges_rejected(self):
        """Test construction-time validation of the count range."""
        with pytest.raises(GrammarError):
            RepeatParser(LiteralParser("a"), 3, 2)
        with pytest.raises(GrammarError):
            RepeatParser(LiteralParser("a"), -1, 2)

    def test_repeat_helper(self):
        """Test building a repeat from a parser."""
        parser = LiteralParser("a").repeat(0, 2)

        assert isinstance(parser, RepeatParser)
        assert parser.parse(parser.create_parser_state(), b"b") == Finished([], b"b")
