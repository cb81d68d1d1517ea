"""
Constrained decoding driver.

This module connects grammars to token-by-token generation: it tracks the
grammar state of each generated stream and masks tokens whose bytes the
grammar cannot accept.

Components:
    - session: ParserSession, probe/commit loop over one stream
    - vocabulary: Token id → bytes for a tokenizer
    - config: DecodingConfig options
    - logits_processor: HuggingFace LogitsProcessor that masks rejected tokens

Key Algorithm - Candidate Filtering:
    For each generation step:
    1. Probe every token's bytes against the current grammar state
       (probes are independent; the state is never mutated)
    2. Keep tokens whose outcome is Finished or Incomplete
    3. After sampling, commit the chosen token's bytes

Example:
    ```python
    from grammar_stream.decoding import ParserSession, TokenVocabulary
    from grammar_stream.parsers import IntegerParser

    vocabulary = TokenVocabulary.from_pieces(["1", "2", "x", "12"])
    session = ParserSession(IntegerParser(0, 20))

    session.filter_candidates(vocabulary.token_bytes)  # {0, 1, 3}
    ```
"""

from grammar_stream.decoding.config import DecodingConfig
from grammar_stream.decoding.session import ParserSession
from grammar_stream.decoding.vocabulary import TokenVocabulary, decode_token
from grammar_stream.decoding.logits_processor import GrammarLogitsProcessor

__all__ = [
    "DecodingConfig",
    "ParserSession",
    "TokenVocabulary",
    "decode_token",
    "GrammarLogitsProcessor",
]
