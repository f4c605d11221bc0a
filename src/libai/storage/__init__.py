"""Local persistence: storage paths, the key-value engine and repositories."""

from libai.storage.codec import EntityCodec
from libai.storage.engine import KVEngine, Namespace
from libai.storage.handle import (
    StoreHandle,
    open_configured_store,
    open_store,
    open_store_at,
)
from libai.storage.paths import ensure_storage_path, resolve_storage_dir
from libai.storage.repository import (
    ChunkRepository,
    Repository,
    chunks,
    delete_document,
    documents,
    get_all_documents,
    get_document,
    insert_document,
)

__all__ = [
    "EntityCodec",
    "KVEngine",
    "Namespace",
    "StoreHandle",
    "open_store",
    "open_store_at",
    "open_configured_store",
    "ensure_storage_path",
    "resolve_storage_dir",
    "Repository",
    "ChunkRepository",
    "documents",
    "chunks",
    "insert_document",
    "get_document",
    "get_all_documents",
    "delete_document",
]
