"""Per-word display duration.

Every word gets the uniform baseline ``60000 / wpm`` milliseconds. Words
longer than the pacing threshold get extra time per character, and words
ending a sentence or clause get an extra pause. Sentence punctuation wins
over clause punctuation; only the last character is inspected.
"""

import math

from ..entities.pacing import PacingConfig
from ..exceptions import InvalidInputError

SENTENCE_END_CHARS = frozenset(".!?")
CLAUSE_END_CHARS = frozenset(",;:")


def is_sentence_end(word: str) -> bool:
    """True if the word's last character ends a sentence."""
    return bool(word) and word[-1] in SENTENCE_END_CHARS


def is_clause_end(word: str) -> bool:
    """True if the word's last character ends a clause."""
    return bool(word) and word[-1] in CLAUSE_END_CHARS


def base_duration_ms(wpm: int) -> float:
    """Uniform per-word duration at ``wpm``."""
    if wpm <= 0:
        raise InvalidInputError(f"Speed must be positive, got {wpm}", {"wpm": wpm})
    return 60000 / wpm


def compute_display_duration_ms(word: str, wpm: int, pacing: PacingConfig) -> int:
    """How long ``word`` stays on screen, in whole milliseconds.

    No upper bound is applied; callers needing a ceiling impose it.

    Args:
        word: Word token with punctuation attached. May be empty.
        wpm: Words per minute.
        pacing: Pacing parameters in effect for this step.

    Returns:
        int: Duration rounded half up to the nearest millisecond.

    Raises:
        InvalidInputError: If ``wpm`` is not positive.
    """
    duration = base_duration_ms(wpm)

    extra_chars = max(0, len(word) - pacing.long_word_threshold)
    duration += extra_chars * pacing.ms_per_extra_char

    if is_sentence_end(word):
        duration += pacing.sentence_pause_ms
    elif is_clause_end(word):
        duration += pacing.clause_pause_ms

    return int(math.floor(duration + 0.5))
