"""Token estimation utilities for context budgeting.

Uses a fixed characters-per-token heuristic so that estimates are stable
across runs and do not depend on a tokenizer being installed.
"""

import math

CHARS_PER_TOKEN = 4


def estimate_tokens(text: str | None) -> int:
    """Estimate the number of tokens in text.

    Args:
        text: Text to estimate (None counts as empty)

    Returns:
        ceil(len(text) / 4)

    Example:
        >>> estimate_tokens("Hello world!")
        3
        >>> estimate_tokens(None)
        0
    """
    if not text:
        return 0
    return math.ceil(len(text) / CHARS_PER_TOKEN)
