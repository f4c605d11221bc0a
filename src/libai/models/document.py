"""Core data models for ingested documents and their text chunks."""

import time
from dataclasses import dataclass, field, replace
from typing import Optional


def _now() -> int:
    return int(time.time())


@dataclass(frozen=True)
class Document:
    """A source file ingested into the library.

    Records are immutable; state changes produce a new record that the
    caller writes back with a full overwrite keyed by ``id``.
    """

    id: str
    name: str
    file_path: str
    page_count: int
    created_at: int = field(default_factory=_now)
    is_indexed: bool = False

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Document id must not be empty")
        if self.page_count < 0:
            raise ValueError(f"page_count must be non-negative, got {self.page_count}")
        if self.created_at < 0:
            raise ValueError(f"created_at must be non-negative, got {self.created_at}")

    def mark_as_indexed(self) -> "Document":
        """Return this document flagged as indexed (embeddings generated)."""
        if self.is_indexed:
            return self
        return replace(self, is_indexed=True)


@dataclass(frozen=True)
class Chunk:
    """A fragment of text extracted from a document."""

    id: str
    document_id: str
    text: str
    index: int
    page_number: int
    metadata: Optional[str] = None  # opaque serialized payload
    char_count: int = field(init=False)

    def __post_init__(self) -> None:
        if not self.id:
            raise ValueError("Chunk id must not be empty")
        if self.index < 0:
            raise ValueError(f"index must be non-negative, got {self.index}")
        if self.page_number < 0:
            raise ValueError(f"page_number must be non-negative, got {self.page_number}")
        # Code points, not bytes: len("ñ") == 1
        object.__setattr__(self, "char_count", len(self.text))

    def with_metadata(self, metadata: str) -> "Chunk":
        """Return a copy carrying the given metadata payload."""
        return replace(self, metadata=metadata)

    def is_empty(self) -> bool:
        return not self.text.strip()
