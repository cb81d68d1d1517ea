"""
Grammar-constrained generation with a HuggingFace causal language model.

This ties the components together:
    1. Decode the tokenizer's vocabulary to token bytes (once per generator)
    2. Create a GrammarLogitsProcessor for the grammar
    3. Generate with the processor masking rejected tokens
    4. Replay the generated tokens through a fresh session to get the parsed result

Model loading is left to the caller; pass an already-loaded model and tokenizer.

Usage:
    ```python
    from transformers import AutoModelForCausalLM, AutoTokenizer
    from grammar_stream import GrammarConstrainedGenerator
    from grammar_stream.parsers import IntegerParser, LiteralParser

    model = AutoModelForCausalLM.from_pretrained("gpt2")
    tokenizer = AutoTokenizer.from_pretrained("gpt2")

    generator = GrammarConstrainedGenerator(model, tokenizer)

    result = generator.generate(
        prompt="How old is the Eiffel tower? Answer:",
        parser=LiteralParser(" ").ignore_output_then(IntegerParser(0, 999)),
        max_tokens=8
    )
    print(result.output, result.result)
    ```
"""

import logging
import time
from dataclasses import dataclass
from typing import Any, Optional

from grammar_stream.decoding import DecodingConfig, GrammarLogitsProcessor, ParserSession, TokenVocabulary
from grammar_stream.errors import ParseError
from grammar_stream.parsers.base import Parser

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    """
    Result of a constrained generation.

    Attributes:
        output: Generated text
        result: Parser result (None if the grammar did not complete)
        is_complete: Whether the output forms a complete parse
        latency_ms: Generation time in milliseconds
        tokens_generated: Number of tokens generated
        error: Why the output is not a complete parse (None when complete)
    """
    output: str
    result: Any
    is_complete: bool
    latency_ms: float
    tokens_generated: int
    error: Optional[str] = None


class GrammarConstrainedGenerator:
    """
    Generate text that matches a grammar.

    Attributes:
        model: Loaded HuggingFace causal language model
        tokenizer: Matching tokenizer
        vocabulary: Token bytes for every non-special token
    """

    def __init__(self, model: Any, tokenizer: Any, vocabulary: Optional[TokenVocabulary] = None):
        """
        Initialize generator.

        Args:
            model: Loaded model exposing ``generate``
            tokenizer: Tokenizer for the model
            vocabulary: Pre-built token vocabulary (built from ``tokenizer`` if None)
        """
        self.model = model
        self.tokenizer = tokenizer

        if getattr(tokenizer, 'pad_token', None) is None and getattr(tokenizer, 'eos_token', None) is not None:
            tokenizer.pad_token = tokenizer.eos_token

        self.vocabulary = vocabulary or TokenVocabulary.from_tokenizer(tokenizer)

        logger.info(f"GrammarConstrainedGenerator ready: {self.vocabulary!r}")

    def generate(
        self,
        prompt: str,
        parser: Parser,
        max_tokens: int = 100,
        temperature: float = 0.0,
        config: Optional[DecodingConfig] = None,
        **kwargs
    ) -> GenerationResult:
        """
        Generate a continuation of ``prompt`` constrained by ``parser``.

        Args:
            prompt: Input prompt
            parser: Grammar the output must follow
            max_tokens: Maximum tokens to generate
            temperature: Sampling temperature (0 for greedy decoding)
            config: Decoding options (prompt_length is filled in automatically)
            **kwargs: Additional ``model.generate`` options

        Returns:
            GenerationResult
        """
        import torch
        from transformers import LogitsProcessorList

        start_time = time.time()

        inputs = self.tokenizer(prompt, return_tensors="pt")
        device = getattr(self.model, 'device', None)
        if device is not None:
            inputs = {k: v.to(device) for k, v in inputs.items()}
        prompt_length = inputs['input_ids'].shape[1]

        config = config or DecodingConfig()
        config = DecodingConfig(
            allow_eos_when_complete=config.allow_eos_when_complete,
            stop_when_finished=config.stop_when_finished,
            prompt_length=prompt_length,
            skip_invalid_tokens=config.skip_invalid_tokens
        )

        processor = GrammarLogitsProcessor(
            parser,
            self.vocabulary,
            config=config,
            eos_token_id=self.tokenizer.eos_token_id
        )

        gen_kwargs = {
            'max_new_tokens': max_tokens,
            'do_sample': temperature > 0,
            'pad_token_id': self.tokenizer.pad_token_id,
            'eos_token_id': self.tokenizer.eos_token_id,
            'logits_processor': LogitsProcessorList([processor]),
        }
        if temperature > 0:
            gen_kwargs['temperature'] = temperature
        gen_kwargs.update(kwargs)

        try:
            with torch.no_grad():
                outputs = self.model.generate(**inputs, **gen_kwargs)
        except Exception as e:
            logger.error(f"Generation failed: {e}")
            raise

        generated_tokens = outputs[0][prompt_length:].tolist()
        output = self.tokenizer.decode(generated_tokens, skip_special_tokens=True)
        latency_ms = (time.time() - start_time) * 1000

        session = ParserSession(parser)
        error = None
        try:
            for token_id in generated_tokens:
                data = self.vocabulary.token_bytes.get(token_id)
                if data is not None and not session.is_finished:
                    session.commit(data)
            finished = session.finish()
        except ParseError as e:
            logger.warning(f"Generated output is not a complete parse: {e}")
            error = str(e)
            finished = None

        logger.info(
            f"Generated {len(generated_tokens)} tokens in {latency_ms:.0f}ms "
            f"(complete={finished is not None})"
        )

        return GenerationResult(
            output=output,
            result=finished.result if finished is not None else None,
            is_complete=finished is not None,
            latency_ms=latency_ms,
            tokens_generated=len(generated_tokens),
            error=error
        )

    def __repr__(self) -> str:
        return f"GrammarConstrainedGenerator(vocab={self.vocabulary.vocab_size})"
