"""Anchor (fixation letter) resolution."""

import math

from ..entities.playback import AnchorSplit


def resolve_anchor_index(word: str, anchor_preference: float) -> int:
    """Character index of the fixation letter.

    ``floor(len(word) * anchor_preference)`` clamped to ``[0, len(word) - 1]``.
    An empty word resolves to 0.
    """
    if not word:
        return 0
    idx = math.floor(len(word) * anchor_preference)
    return min(max(0, idx), len(word) - 1)


def split_at_anchor(word: str, anchor_preference: float) -> AnchorSplit:
    """Split a word into the text before, at and after its anchor letter.

    An empty word gives an empty anchor, meaning nothing to highlight.
    """
    if not word:
        return AnchorSplit()

    idx = resolve_anchor_index(word, anchor_preference)
    return AnchorSplit(
        before=word[:idx],
        anchor=word[idx],
        after=word[idx + 1:],
        index=idx,
    )
