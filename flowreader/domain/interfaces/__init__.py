"""Domain interfaces for the reader."""

from .document_provider import DocumentProvider
from .fallback_store import FallbackStore
from .progress_repository import ProgressRepository
from .scheduler import Scheduler, TimerHandle

__all__ = ["DocumentProvider", "FallbackStore", "ProgressRepository", "Scheduler", "TimerHandle"]
