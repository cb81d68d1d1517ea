"""
Unit tests for the shared parsing protocol.
"""

import pytest

from grammar_stream.errors import ParseError
from grammar_stream.parsers import Finished, Incomplete, LiteralParser, Parser


class AnyByteParser(Parser):
    """Parser for one arbitrary byte that never accepts end of stream."""

    def create_parser_state(self):
        return None

    def parse(self, state, data):
        if not data:
            return Incomplete(None)
        return Finished(data[0], bytes(data[1:]))


class TestParserProtocol:
    """Test the defaults every parser inherits."""

    def test_default_finish_raises(self):
        """Test that a parser without finish cannot end the stream."""
        with pytest.raises(ParseError) as exc_info:
            AnyByteParser().finish(None)

        assert exc_info.value.offset is None
        assert "AnyByteParser" in str(exc_info.value)

    def test_parse_chunks_appends_later_chunks(self):
        """Test that chunks after the finishing one land in remaining."""
        assert AnyByteParser().parse_chunks([b"", b"ab", b"c"]) == Finished(ord("a"), b"bc")

    def test_parse_chunks_without_chunks(self):
        """Test that no chunks behaves like one empty chunk."""
        assert LiteralParser("a").parse_chunks([]) == LiteralParser("a").parse_chunks([b""])

    def test_parsers_compare_by_identity(self):
        """Test that parsers are descriptions, not values."""
        parser = LiteralParser("a")

        assert parser == parser
        assert LiteralParser("a") != LiteralParser("a")
