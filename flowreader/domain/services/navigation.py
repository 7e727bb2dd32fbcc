"""Sentence-boundary navigation over a word sequence.

A boundary is any word whose last character is ``.``, ``!`` or ``?``.
Both functions are pure; callers apply the returned index themselves.
"""

from typing import Sequence

from .timing import is_sentence_end


def skip_forward(words: Sequence[str], current_index: int) -> int:
    """Index of the first word after the next sentence boundary.

    Scanning starts at ``current_index + 1``. Without a boundary ahead the
    result is the last index.
    """
    if not words:
        return 0

    last = len(words) - 1
    for idx in range(current_index + 1, len(words)):
        if is_sentence_end(words[idx]):
            return min(idx + 1, last)
    return last


def skip_backward(words: Sequence[str], current_index: int) -> int:
    """Index of the start of the previous sentence.

    Scanning starts two words back, skipping the boundary that was just
    passed, and stops before index 0. Without a boundary the result is 0.
    """
    if not words:
        return 0

    idx = min(current_index, len(words) - 1) - 2
    while idx > 0:
        if is_sentence_end(words[idx]):
            return idx + 1
        idx -= 1
    return 0
