"""
Settings for grammar-constrained decoding.
"""

from dataclasses import dataclass


@dataclass
class DecodingConfig:
    """
    Options for GrammarLogitsProcessor.

    Attributes:
        allow_eos_when_complete: Leave EOS unmasked whenever the committed
            output could end here with a valid parse
        stop_when_finished: Once the grammar has finished, leave only EOS
            unmasked. When False, tokens after the finished grammar are free
        prompt_length: Number of leading prompt tokens in ``input_ids`` that
            are not part of the constrained output
        skip_invalid_tokens: When a generated token is rejected by the grammar
            (possible only if the processor was bypassed), log and ignore it
            instead of raising
    """
    allow_eos_when_complete: bool = True
    stop_when_finished: bool = True
    prompt_length: int = 0
    skip_invalid_tokens: bool = True

    def __post_init__(self) -> None:
        if self.prompt_length < 0:
            raise ValueError(f"prompt_length must be non-negative, got {self.prompt_length}")
