"""Document entity consumed by the reader."""

from typing import Optional

from pydantic import BaseModel, Field


class Document(BaseModel):
    """An already tokenized document.

    ``document_id`` is ``None`` for ephemeral (guest) documents, which are
    readable but never persist progress.
    """

    document_id: Optional[str] = Field(default=None, description="Storage id, None for guest documents")
    title: str = Field(default="", max_length=500)
    words: list[str] = Field(default_factory=list, description="Ordered word tokens with punctuation attached")

    @property
    def word_count(self) -> int:
        return len(self.words)

    @property
    def is_ephemeral(self) -> bool:
        return self.document_id is None
