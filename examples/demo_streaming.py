#!/usr/bin/env python3
"""
Demo: Streaming parse of a bracketed integer list.

This demonstrates:
- Building a grammar from literal, integer and repeat parsers
- Feeding bytes chunk by chunk, as a generator would emit tokens
- Filtering candidate tokens against the current state before committing
"""

from grammar_stream.decoding import ParserSession, TokenVocabulary
from grammar_stream.parsers import IntegerParser, LiteralParser


def main():
    print("=" * 60)
    print("grammar-stream Demo: Streaming Integer List")
    print("=" * 60)

    # "[" then 1-5 integers in 0..255, each followed by "," then "]"
    item = IntegerParser(0, 255).then_ignore_output(LiteralParser(","))
    grammar = (
        LiteralParser("[")
        .ignore_output_then(item.repeat(1, 5))
        .then_ignore_output(LiteralParser("]"))
    )

    vocabulary = TokenVocabulary.from_pieces(
        ["[", "]", ",", "1", "2", "25", "255", "256", "7,", "x"]
    )
    session = ParserSession(grammar)

    print(f"\nGrammar: {grammar!r}\n")

    for chosen in ["[", "25", "5", ",", "7,", "1", "2", ",", "]"]:
        valid = session.filter_candidates(vocabulary.token_bytes)
        pieces = sorted(vocabulary.token_bytes[token_id].decode() for token_id in valid)
        print(f"Valid next pieces: {pieces}")

        result = session.commit(chosen.encode())
        print(f"  committed {chosen!r} -> {type(result).__name__}")

    print("\n" + "=" * 60)
    print(f"Finished: {session.is_finished}")
    print(f"Result: {session.result}")
    print("=" * 60)


if __name__ == "__main__":
    main()
