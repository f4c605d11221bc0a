"""FastMCP server implementation for a LibAI store."""

from mcp.server.fastmcp import FastMCP

from libai.storage import StoreHandle, chunks, documents
from libai.utils import format_chunk, format_document, format_document_line


def create_mcp_server(handle: StoreHandle) -> FastMCP:
    """Create a read-only MCP server over an open store.

    Design: 1 process = 1 library. The handle must stay open for as long
    as the server runs.

    Args:
        handle: Open handle to the store to serve

    Returns:
        Configured FastMCP server instance
    """
    mcp = FastMCP(name="libai")

    @mcp.tool()
    def list_documents() -> str:
        """List every document in the library.

        Returns:
            One line per document with its ID, page count and index status
        """
        docs = sorted(documents.get_all(handle), key=lambda d: d.created_at)
        if not docs:
            return "The library is empty"
        return "\n".join(format_document_line(doc) for doc in docs)

    @mcp.tool()
    def get_document(document_id: str) -> str:
        """Show a document's details.

        Args:
            document_id: ID of the document (as shown in list_documents output)

        Returns:
            Name, path, page count, date added and index status
        """
        doc = documents.get(handle, document_id)
        if doc is None:
            return f"Error: Document not found: {document_id}"
        return format_document(doc)

    @mcp.tool()
    def list_chunks(document_id: str, limit: int = 20) -> str:
        """List the text chunks extracted from a document, in order.

        Args:
            document_id: ID of the owning document
            limit: Maximum number of chunks to return (default: 20)

        Returns:
            Chunk positions, pages and a short preview of each chunk's text
        """
        found = chunks.list_for_document(handle, document_id)
        if not found:
            return f"No chunks stored for document: {document_id}"
        return "\n\n".join(format_chunk(c) for c in found[:limit])

    return mcp
