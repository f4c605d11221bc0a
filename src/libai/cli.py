"""CLI entry point for LibAI."""

import argparse
import dataclasses
import json
import logging
import sys
from typing import Optional

from libai.config import StorageConfig
from libai.errors import LibAIError
from libai.storage import (
    StoreHandle,
    chunks,
    documents,
    ensure_storage_path,
    open_configured_store,
)
from libai.utils import format_document, format_document_line

logger = logging.getLogger(__name__)


def show_path(config: StorageConfig) -> None:
    """Print the store directory, creating it if needed."""
    print(ensure_storage_path(config.resolved_app_name, config.resolved_subdir))


def info(store: StoreHandle) -> None:
    """Show a summary of the store."""
    print(f"Store: {store.path}")
    print(f"  Namespaces: {', '.join(store.namespaces()) or '(none)'}")
    print(f"  Documents: {documents.count(store)}")
    print(f"  Chunks: {chunks.count(store)}")


def list_documents(store: StoreHandle) -> None:
    """List all documents, oldest first."""
    docs = sorted(documents.get_all(store), key=lambda d: d.created_at)
    if not docs:
        print("No documents stored.")
        return
    for doc in docs:
        print(format_document_line(doc))


def show(store: StoreHandle, doc_id: str, as_json: bool = False) -> bool:
    """Print one document. Returns False when it does not exist."""
    doc = documents.get(store, doc_id)
    if doc is None:
        logger.error(f"Document not found: {doc_id}")
        return False

    if as_json:
        print(json.dumps(dataclasses.asdict(doc), ensure_ascii=False, indent=2))
        return True

    print(format_document(doc))
    print(f"  Chunks: {len(chunks.list_for_document(store, doc_id))}")
    return True


def delete(store: StoreHandle, doc_id: str, with_chunks: bool = False) -> None:
    """Delete a document and, on request, its chunks."""
    existed = documents.contains(store, doc_id)
    documents.delete(store, doc_id)
    if existed:
        logger.info(f"Deleted document {doc_id}")
    else:
        logger.info(f"Document {doc_id} not present; nothing to delete")

    if with_chunks:
        removed = chunks.delete_for_document(store, doc_id)
        logger.info(f"Deleted {removed} chunks")


def serve(store: StoreHandle, transport: str = "stdio") -> None:
    """Start an MCP server over the store.

    Args:
        store: Open store handle
        transport: Transport protocol (stdio or sse)
    """
    # Import here to avoid loading MCP unless needed
    from libai.server import create_mcp_server

    from typing import cast, Literal

    logger.info(f"Serving {store.path} via {transport}")
    mcp = create_mcp_server(store)
    mcp.run(transport=cast(Literal["stdio", "sse", "streamable-http"], transport))


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="libai",
        description="LibAI - local document library storage",
    )
    parser.add_argument(
        "--app-name",
        default=None,
        help="Application directory name (default: libai)",
    )
    parser.add_argument(
        "--subdir",
        default=None,
        help="Store directory inside the application dir (default: kv_store)",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("path", help="Print the store directory")
    subparsers.add_parser("info", help="Show a summary of the store")
    subparsers.add_parser("list", help="List stored documents")

    show_parser = subparsers.add_parser("show", help="Show one document")
    show_parser.add_argument("id", help="Document ID")
    show_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the stored record as JSON",
    )

    delete_parser = subparsers.add_parser("delete", help="Delete a document")
    delete_parser.add_argument("id", help="Document ID")
    delete_parser.add_argument(
        "--with-chunks",
        action="store_true",
        help="Also delete the document's chunks",
    )

    serve_parser = subparsers.add_parser(
        "serve",
        help="Start MCP server for the library",
    )
    serve_parser.add_argument(
        "--transport",
        choices=["stdio", "sse"],
        default="stdio",
        help="Transport protocol (default: stdio)",
    )
    return parser


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point."""
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(message)s",
    )
    config = StorageConfig(app_name=args.app_name, subdir=args.subdir)

    try:
        if args.command == "path":
            show_path(config)
            return 0

        with open_configured_store(config) as store:
            if args.command == "info":
                info(store)
            elif args.command == "list":
                list_documents(store)
            elif args.command == "show":
                if not show(store, args.id, as_json=args.json):
                    return 1
            elif args.command == "delete":
                delete(store, args.id, with_chunks=args.with_chunks)
            elif args.command == "serve":
                serve(store, args.transport)
    except LibAIError as e:
        logger.error(f"Error: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
