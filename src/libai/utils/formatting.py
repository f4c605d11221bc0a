"""Human-readable rendering of stored records."""

from datetime import datetime, timezone

from libai.models import Chunk, Document


def format_timestamp(ts: int) -> str:
    """Render Unix seconds as a UTC date-time string.

    Values outside the platform's date range are shown as raw seconds.
    """
    try:
        return f"{datetime.fromtimestamp(ts, tz=timezone.utc):%Y-%m-%d %H:%M:%S} UTC"
    except (OverflowError, OSError, ValueError):
        return str(ts)


def format_document(doc: Document) -> str:
    """Multi-line summary of a document."""
    status = "indexed" if doc.is_indexed else "not indexed"
    return (
        f"{doc.name}\n"
        f"  ID: {doc.id}\n"
        f"  Path: {doc.file_path}\n"
        f"  Pages: {doc.page_count}\n"
        f"  Added: {format_timestamp(doc.created_at)}\n"
        f"  Status: {status}"
    )


def format_document_line(doc: Document) -> str:
    """One-line listing entry for a document."""
    flag = "[indexed]" if doc.is_indexed else ""
    return f"{doc.id:<40} {doc.name:<40} {doc.page_count:>5} pages {flag}".rstrip()


def format_chunk(chunk: Chunk, preview: int = 200) -> str:
    """Chunk header plus a single-line text preview.

    Args:
        chunk: Chunk to render
        preview: Maximum number of characters of text to include
    """
    text = chunk.text[:preview].replace("\n", " ")
    if chunk.char_count > preview:
        text += "..."
    return f"#{chunk.index} (page {chunk.page_number}, {chunk.char_count} chars)\n   {text}"
