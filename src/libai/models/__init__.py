"""Data models for LibAI."""

from libai.models.document import Chunk, Document

__all__ = ["Document", "Chunk"]
