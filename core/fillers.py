"""
Filler-word detection on a transcript.

Tokens come from splitting the lower-cased transcript on single spaces and are
compared whole against the vocabulary. Multi-word entries such as "you know"
are therefore never matched; this is a known gap and is kept as-is.
"""
from typing import Any, Dict, Iterable, List

from .normalization import normalize_transcript, split_words

FILLER_WORDS = ("um", "uh", "like", "you know", "actually", "basically", "literally")


def analyze_filler_words(
    transcript: str,
    vocabulary: Iterable[str] = FILLER_WORDS,
) -> Dict[str, Any]:
    """
    Count filler tokens in a transcript.

    Returns:
        {"count": int, "words": [str, ...]} with matches in order of appearance.
    """
    vocab = set(vocabulary)
    found: List[str] = [w for w in split_words(normalize_transcript(transcript)) if w in vocab]
    return {
        "count": len(found),
        "words": found,
    }


def unreachable_fillers(vocabulary: Iterable[str] = FILLER_WORDS) -> List[str]:
    """Vocabulary entries that single-token matching can never hit (contain a space)."""
    return [term for term in vocabulary if " " in term]
