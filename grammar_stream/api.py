"""
High-level Python API for grammar-stream.

This module re-exports the user-facing classes for building grammars and
running constrained generation.
"""

from grammar_stream.generator import GrammarConstrainedGenerator, GenerationResult
from grammar_stream.decoding import ParserSession
from grammar_stream.parsers import IntegerParser, LiteralParser, RepeatParser, SequenceParser, StopOnParser

# Re-export for convenience
__all__ = [
    "GrammarConstrainedGenerator",
    "GenerationResult",
    "ParserSession",
    "IntegerParser",
    "LiteralParser",
    "RepeatParser",
    "SequenceParser",
    "StopOnParser",
]
