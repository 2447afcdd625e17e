"""
Token estimate — cheap size heuristic for a consumer's budget

Not a model tokenizer. Roughly four characters per token, which is close
enough to plan around and exactly reproducible, so behaviour at a
threshold boundary can be tested.
"""

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str) -> int:
    """Rough token count (~4 chars per token). Monotonic in len(text)."""
    if not text:
        return 0
    return len(text) // CHARS_PER_TOKEN
