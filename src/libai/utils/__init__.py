"""Utility functions for LibAI."""

from libai.utils.formatting import format_chunk, format_document, format_document_line

__all__ = ["format_chunk", "format_document", "format_document_line"]
