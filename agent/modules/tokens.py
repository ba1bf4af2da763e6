"""Token estimation.

A character heuristic (one token per four characters, rounded up), not a
tokenizer. Every caller goes through ``estimate_tokens`` so a real tokenizer
can replace it in one place.
"""
import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str | None) -> int:
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
