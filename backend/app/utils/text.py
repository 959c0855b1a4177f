"""Text utilities for safe string handling."""

# Characters a preview may be cut after, including CJK punctuation
_BREAK_CHARS = frozenset(" \n\t,.!?;:-。，、")

# How far back from the cut point to look for a break character
_BREAK_LOOKBACK = 20


def safe_truncate(text: str, max_chars: int, suffix: str = "...") -> str:
    """Truncate text to at most ``max_chars`` characters plus ``suffix``.

    Python string slicing operates on code points, so multi-byte characters
    are never split. When a space or punctuation mark sits close to the cut
    point the text is cut there instead, for cleaner output.

    Args:
        text: Text to truncate
        max_chars: Maximum characters (excluding suffix)
        suffix: Suffix to append if truncated (default "...")

    Returns:
        Truncated text with suffix if needed
    """
    if not text or len(text) <= max_chars:
        return text

    truncated = text[:max_chars]

    window_start = max(0, max_chars - _BREAK_LOOKBACK)
    for i in range(max_chars - 1, window_start, -1):
        if truncated[i] in _BREAK_CHARS:
            truncated = truncated[: i + 1].rstrip()
            break

    return truncated + suffix
