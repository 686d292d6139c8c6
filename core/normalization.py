from typing import List, Optional

# Tokens are separated by a single ASCII space. Tabs/newlines stay inside tokens.
TOKEN_SEPARATOR = " "


def normalize_transcript(text: Optional[str]) -> str:
    """Lower-case a transcript for vocabulary matching. No punctuation stripping."""
    if not text:
        return ""
    return text.lower()


def split_words(text: Optional[str]) -> List[str]:
    """
    Split a transcript on single spaces, keeping token order.
    Empty tokens (from leading/trailing/double spaces) are kept so positions
    stay aligned with the raw text; use count_words() for a word count.
    """
    if not text:
        return []
    return text.split(TOKEN_SEPARATOR)


def count_words(text: Optional[str]) -> int:
    """Number of non-empty space-separated tokens."""
    return sum(1 for w in split_words(text) if w)
