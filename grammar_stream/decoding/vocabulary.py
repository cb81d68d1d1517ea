"""
Token Vocabulary - the bytes each token contributes to the output.

Grammars operate on bytes, tokenizers on token ids. Before generation we
decode every token id once and keep its bytes, so that filtering a step's
candidates is a matter of probing each token's bytes against the session.


Decoding follows whatever the tokenizer offers:
    - ``decode([token_id])`` (HuggingFace tokenizers)
    - ``id_to_piece(token_id)`` (sentencepiece / llama.cpp style)
    - ``convert_ids_to_tokens(token_id)`` as a last resort

A token holding only part of a multi-byte character decodes to U+FFFD. For
those tokens the raw bytes are recovered from the token piece instead:
sentencepiece byte pieces (``<0xE6>``) or byte-level BPE pieces (GPT-2 style,
one printable character per byte).

Special tokens (EOS, BOS, PAD, ...) are excluded; the logits processor
handles them separately. Tokens that decode to nothing are excluded too,
since they could never advance the grammar.

Usage:
    ```python
    from transformers import AutoTokenizer
    from grammar_stream.decoding import TokenVocabulary

    tokenizer = AutoTokenizer.from_pretrained("gpt2")
    vocabulary = TokenVocabulary.from_tokenizer(tokenizer)

    vocabulary.token_bytes[16]  # b"1"
    ```
"""

import logging
import re
from functools import lru_cache
from typing import Any, Dict, Iterable, Optional, Set, Union

logger = logging.getLogger(__name__)

_REPLACEMENT_CHAR = "\ufffd"
_BYTE_PIECE = re.compile(r"<0x([0-9A-Fa-f]{2})>")


def _special_token_ids(tokenizer: Any) -> Set[int]:
    special = set()

    if hasattr(tokenizer, 'all_special_ids'):
        special.update(tokenizer.all_special_ids)

    for attr in ['eos_token_id', 'bos_token_id', 'pad_token_id', 'unk_token_id']:
        token_id = getattr(tokenizer, attr, None)
        if token_id is not None:
            special.add(token_id)

    return special


@lru_cache(maxsize=None)
def _byte_level_decoder() -> Dict[str, int]:
    """Map each byte-level BPE character back to its byte."""
    byte_values = (
        list(range(ord("!"), ord("~") + 1))
        + list(range(ord("¡"), ord("¬") + 1))
        + list(range(ord("®"), ord("ÿ") + 1))
    )
    chars = list(byte_values)

    shift = 0
    for byte in range(256):
        if byte not in byte_values:
            byte_values.append(byte)
            chars.append(256 + shift)
            shift += 1

    return {chr(char): byte for byte, char in zip(byte_values, chars)}


def _raw_token_bytes(tokenizer: Any, token_id: int) -> Optional[bytes]:
    """Recover the exact bytes of a token from its piece, if the piece encodes them."""
    if hasattr(tokenizer, 'convert_ids_to_tokens'):
        piece = tokenizer.convert_ids_to_tokens(token_id)
    elif hasattr(tokenizer, 'id_to_piece'):
        piece = tokenizer.id_to_piece(token_id)
    else:
        return None

    if not isinstance(piece, str) or not piece:
        return None

    match = _BYTE_PIECE.fullmatch(piece)
    if match:
        return bytes([int(match.group(1), 16)])

    decoder = getattr(tokenizer, 'byte_decoder', None) or _byte_level_decoder()
    if all(char in decoder for char in piece):
        return bytes(decoder[char] for char in piece)
    return None


def decode_token(tokenizer: Any, token_id: int) -> bytes:
    """
    Decode a single token id to the bytes it adds to the output.

    Args:
        tokenizer: HuggingFace or llama.cpp style tokenizer
        token_id: Token to decode

    Returns:
        Bytes of the token, exact even when it splits a UTF-8 character
    """
    if hasattr(tokenizer, 'decode'):
        text = tokenizer.decode([token_id])
    elif hasattr(tokenizer, 'id_to_piece'):
        text = tokenizer.id_to_piece(token_id)
    else:
        text = str(tokenizer.convert_ids_to_tokens(token_id))

    if isinstance(text, bytes):
        return text

    if _REPLACEMENT_CHAR in text or _BYTE_PIECE.fullmatch(text):
        raw = _raw_token_bytes(tokenizer, token_id)
        if raw is not None:
            return raw

    return text.encode("utf-8")


class TokenVocabulary:
    """
    Mapping of token id to token bytes.

    Attributes:
        token_bytes: Token id → bytes, for every token that can appear in output
        special_ids: Ids excluded as special tokens
        vocab_size: Size of the full vocabulary (including excluded tokens)
    """

    def __init__(
        self,
        token_bytes: Dict[int, bytes],
        special_ids: Optional[Set[int]] = None,
        vocab_size: Optional[int] = None
    ):
        self.token_bytes = token_bytes
        self.special_ids = set(special_ids or ())

        if vocab_size is None:
            known = set(token_bytes) | self.special_ids
            vocab_size = max(known) + 1 if known else 0
        self.vocab_size = vocab_size

    @classmethod
    def from_tokenizer(cls, tokenizer: Any, special_ids: Optional[Set[int]] = None) -> "TokenVocabulary":
        """
        Decode every token of a tokenizer.

        Args:
            tokenizer: HuggingFace or llama.cpp style tokenizer
            special_ids: Ids to exclude (default: the tokenizer's special tokens)

        Returns:
            TokenVocabulary
        """
        if special_ids is None:
            special_ids = _special_token_ids(tokenizer)

        vocab_size = len(tokenizer)
        token_bytes: Dict[int, bytes] = {}
        skipped = 0

        for token_id in range(vocab_size):
            if token_id in special_ids:
                continue
            try:
                data = decode_token(tokenizer, token_id)
            except Exception as e:
                logger.warning(f"Failed to decode token {token_id}: {e}")
                skipped += 1
                continue
            if data:
                token_bytes[token_id] = data

        logger.info(
            f"Built token vocabulary: {len(token_bytes)} of {vocab_size} tokens "
            f"({len(special_ids)} special, {skipped} undecodable)"
        )

        return cls(token_bytes, special_ids=special_ids, vocab_size=vocab_size)

    @classmethod
    def from_pieces(
        cls,
        pieces: Iterable[Union[str, bytes]],
        special_ids: Optional[Set[int]] = None
    ) -> "TokenVocabulary":
        """
        Build a vocabulary from pieces listed in token-id order.

        Example:
            ```python
            vocabulary = TokenVocabulary.from_pieces(["<eos>", "1", "2", "12"], special_ids={0})
            vocabulary.token_bytes  # {1: b"1", 2: b"2", 3: b"12"}
            ```
        """
        special_ids = set(special_ids or ())
        token_bytes = {}
        vocab_size = 0

        for token_id, piece in enumerate(pieces):
            vocab_size = token_id + 1
            if token_id in special_ids:
                continue
            data = piece.encode("utf-8") if isinstance(piece, str) else bytes(piece)
            if data:
                token_bytes[token_id] = data

        return cls(token_bytes, special_ids=special_ids, vocab_size=vocab_size)

    def __len__(self) -> int:
        return len(self.token_bytes)

    def __repr__(self) -> str:
        return f"TokenVocabulary(tokens={len(self.token_bytes)}, vocab={self.vocab_size})"
