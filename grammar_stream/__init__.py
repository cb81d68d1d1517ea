"""
grammar-stream: Incremental Parser Combinators for Constrained Decoding

grammar-stream constrains the output of an autoregressive text generator to
a grammar built from composable parsers. Parsing is incremental and
resumable: bytes are pushed one generated token at a time, already-consumed
bytes are never re-scanned, and in-flight progress is an immutable value
that many candidate continuations can probe independently before one is
committed.

Key Features:
    - Literal, bounded integer, bounded repeat, sequence and stop-sequence parsers
    - Finished / Incomplete outcomes with exact leftover bytes
    - Chunk invariance: any split of the input yields the same result
    - Session driver that filters candidate tokens and commits the winner
    - HuggingFace logits processor that masks grammar-invalid tokens

Quick Start:
    ```python
    from grammar_stream.parsers import IntegerParser, LiteralParser

    grammar = LiteralParser("x=").ignore_output_then(IntegerParser(0, 255))
    state = grammar.create_parser_state()

    result = grammar.parse(state, b"x=2")
    # Incomplete(...): "2" may still grow into "25" or "255"
    result = grammar.parse(result.state, b"4;")
    # Finished(result=24, remaining=b";")
    ```

Architecture:
    1. Parsers: immutable grammar fragments sharing one parse protocol
    2. Session: probe candidate bytes, commit the chosen ones
    3. Vocabulary: token id → bytes for a tokenizer
    4. Logits Processor: mask rejected tokens during generation
    5. Generator: run a loaded model with the logits processor
"""

__version__ = "0.1.0"

from grammar_stream.errors import (  # noqa: F401
    GrammarError,
    IntegerParseError,
    LiteralParseError,
    ParseError,
    RepeatParseError,
    SessionFinishedError,
    StopOnParseError,
)
from grammar_stream.parsers import (  # noqa: F401
    Finished,
    Incomplete,
    IntegerParser,
    LiteralParser,
    MapOutputParser,
    Parser,
    RepeatParser,
    SequenceParser,
    StopOnParser,
)
from grammar_stream.api import GrammarConstrainedGenerator, GenerationResult  # noqa: F401

__all__ = [
    "Parser",
    "Finished",
    "Incomplete",
    "LiteralParser",
    "IntegerParser",
    "RepeatParser",
    "SequenceParser",
    "MapOutputParser",
    "StopOnParser",
    "ParseError",
    "LiteralParseError",
    "IntegerParseError",
    "RepeatParseError",
    "StopOnParseError",
    "GrammarError",
    "SessionFinishedError",
    "GrammarConstrainedGenerator",
    "GenerationResult",
]
