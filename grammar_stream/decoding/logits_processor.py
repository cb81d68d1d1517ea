"""
Logits Processor - mask tokens the grammar cannot accept.

This module implements the HuggingFace LogitsProcessor call protocol. At
each generation step the model produces logits for every token; we set the
logits of tokens whose bytes would break the grammar to -inf, so the model
can only pick grammar-valid continuations.

Flow:
    1. Model generates logits for all tokens
    2. The processor is called with (input_ids, scores)
    3. Tokens generated since the previous call are committed to the row's
       ParserSession (incremental, no replay)
    4. Every vocabulary token's bytes are probed against the session state
    5. Rejected tokens are masked to -inf; EOS is allowed only when the
       output could end here
    6. Model samples from the masked logits

Usage:
    ```python
    from transformers import AutoModelForCausalLM, AutoTokenizer, LogitsProcessorList
    from grammar_stream.decoding import GrammarLogitsProcessor, TokenVocabulary
    from grammar_stream.parsers import IntegerParser, LiteralParser

    model = AutoModelForCausalLM.from_pretrained("gpt2")
    tokenizer = AutoTokenizer.from_pretrained("gpt2")

    grammar = LiteralParser("Age: ").ignore_output_then(IntegerParser(0, 120))
    processor = GrammarLogitsProcessor(
        grammar,
        TokenVocabulary.from_tokenizer(tokenizer),
        eos_token_id=tokenizer.eos_token_id,
    )

    output = model.generate(
        input_ids,
        logits_processor=LogitsProcessorList([processor]),
        max_new_tokens=20
    )
    ```
"""

import logging
from typing import Dict, Optional, Set

import torch
from torch import Tensor

from grammar_stream.decoding.config import DecodingConfig
from grammar_stream.decoding.session import ParserSession
from grammar_stream.decoding.vocabulary import TokenVocabulary
from grammar_stream.errors import ParseError, SessionFinishedError
from grammar_stream.parsers.base import Parser

logger = logging.getLogger(__name__)


class GrammarLogitsProcessor:
    """
    LogitsProcessor that enforces a grammar via token masking.

    Implements ``__call__(input_ids: Tensor, scores: Tensor) -> Tensor``.
    One ParserSession is kept per batch row.

    Attributes:
        parser: Grammar to enforce
        vocabulary: Token bytes for every maskable token
        config: Decoding options
        eos_token_id: End-of-sequence token id (None if the model has none)
        sessions: Session per batch row
    """

    def __init__(
        self,
        parser: Parser,
        vocabulary: TokenVocabulary,
        config: Optional[DecodingConfig] = None,
        eos_token_id: Optional[int] = None
    ):
        self.parser = parser
        self.vocabulary = vocabulary
        self.config = config or DecodingConfig()
        self.eos_token_id = eos_token_id

        self.sessions: Dict[int, ParserSession] = {}
        self.processed_lengths: Dict[int, int] = {}

        logger.debug(
            f"GrammarLogitsProcessor initialized "
            f"(vocab={vocabulary.vocab_size}, EOS={eos_token_id}, "
            f"prompt_length={self.config.prompt_length})"
        )

    def __call__(self, input_ids: Tensor, scores: Tensor) -> Tensor:
        """
        Mask every token the grammar rejects.

        Args:
            input_ids: Tensor of shape (batch_size, seq_len) with prompt + generated tokens
            scores: Tensor of shape (batch_size, vocab_size) with logits

        Returns:
            Tensor: ``scores`` with rejected tokens set to -inf (modified in place)
        """
        batch_size = input_ids.shape[0]

        for batch_idx in range(batch_size):
            session = self._advance(batch_idx, input_ids[batch_idx])

            if session.is_finished and not self.config.stop_when_finished:
                continue

            valid_tokens = session.filter_candidates(self.vocabulary.token_bytes)
            allow_eos = self._allow_eos(session, valid_tokens)

            eos_score = None
            if allow_eos:
                eos_score = scores[batch_idx, self.eos_token_id].clone()

            mask = self._create_mask(valid_tokens, scores.shape[1], scores.device)
            scores[batch_idx, mask] = float('-inf')

            if eos_score is not None:
                scores[batch_idx, self.eos_token_id] = eos_score

        return scores

    def session(self, batch_idx: int = 0) -> ParserSession:
        """Get the session of a batch row, creating it if needed."""
        if batch_idx not in self.sessions:
            self.sessions[batch_idx] = ParserSession(self.parser)
            self.processed_lengths[batch_idx] = self.config.prompt_length
        return self.sessions[batch_idx]

    def _advance(self, batch_idx: int, input_ids: Tensor) -> ParserSession:
        """
        Commit tokens generated since the previous call.

        Only new tokens are processed: the processed length of each row is
        remembered between calls.
        """
        session = self.session(batch_idx)
        current_length = len(input_ids)
        start_idx = self.processed_lengths[batch_idx]

        if current_length <= start_idx:
            return session

        for token_id in input_ids[start_idx:current_length].tolist():
            if session.is_finished:
                # Trailing tokens after the grammar finished are not parsed
                break

            data = self.vocabulary.token_bytes.get(token_id)
            if data is None:
                # Special or empty token: contributes no bytes
                continue

            try:
                session.commit(data)
            except (ParseError, SessionFinishedError) as e:
                if not self.config.skip_invalid_tokens:
                    raise
                logger.warning(f"Ignoring token {token_id} rejected by grammar: {e}")

        self.processed_lengths[batch_idx] = current_length
        return session

    def _allow_eos(self, session: ParserSession, valid_tokens: Set[int]) -> bool:
        if self.eos_token_id is None:
            return False
        if self.config.allow_eos_when_complete and session.can_finish():
            return True
        if not valid_tokens:
            logger.warning("No token can continue the grammar; allowing EOS")
            return True
        return False

    def _create_mask(
        self,
        valid_tokens: Set[int],
        vocab_size: int,
        device: torch.device
    ) -> Tensor:
        """
        Create boolean mask for rejected tokens.

        Returns:
            Tensor: Boolean mask where True = rejected (should be masked)
        """
        mask = torch.ones(vocab_size, dtype=torch.bool, device=device)

        valid = [token_id for token_id in valid_tokens if token_id < vocab_size]
        if valid:
            valid_indices = torch.tensor(valid, device=device, dtype=torch.long)
            mask[valid_indices] = False

        return mask

    def reset(self) -> None:
        """
        Drop all sessions before reusing the processor for a new generation.
        """
        self.sessions.clear()
        self.processed_lengths.clear()
        logger.debug("GrammarLogitsProcessor reset")

    def __repr__(self) -> str:
        return (
            f"GrammarLogitsProcessor(parser={self.parser!r}, "
            f"vocab={self.vocabulary.vocab_size}, sessions={len(self.sessions)})"
        )
