"""Domain services for the reader."""

from .anchor import resolve_anchor_index, split_at_anchor
from .navigation import skip_backward, skip_forward
from .playback_engine import PlaybackEngine
from .progress_tracker import ProgressTracker, merge_checkpoint
from .reader_session import ReaderSession
from .timer import CancellableTimer
from .timing import compute_display_duration_ms

__all__ = [
    "CancellableTimer",
    "PlaybackEngine",
    "ProgressTracker",
    "ReaderSession",
    "compute_display_duration_ms",
    "merge_checkpoint",
    "resolve_anchor_index",
    "skip_backward",
    "skip_forward",
    "split_at_anchor",
]
