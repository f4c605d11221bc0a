"""Per-entity CRUD over named namespaces of the local store."""

import logging
from typing import Generic, Optional, TypeVar

from libai.errors import RepoStoreError, StoreError
from libai.models import Chunk, Document
from libai.protocols import Entity
from libai.storage.codec import EntityCodec
from libai.storage.engine import Namespace
from libai.storage.handle import StoreHandle

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class Repository(Generic[E]):
    """CRUD for one entity type stored in one namespace.

    Entities are addressed by their ``id`` (UTF-8 bytes as key). Every
    mutation is flushed before returning; nothing is cached between calls.
    """

    def __init__(
        self,
        entity_type: type[E],
        namespace: str,
        codec: Optional[EntityCodec[E]] = None,
    ):
        self.entity_type = entity_type
        self.namespace = namespace
        self.codec = codec or EntityCodec(entity_type)

    def _tree(self, handle: StoreHandle) -> Namespace:
        # StoreError propagates: the namespace itself is unavailable
        return handle.open_namespace(self.namespace)

    @staticmethod
    def _key(entity_id: str) -> bytes:
        return entity_id.encode("utf-8")

    def insert(self, handle: StoreHandle, entity: E) -> None:
        """Create or fully overwrite the record for ``entity.id``.

        Raises:
            SerializeError: If the entity cannot be encoded.
            RepoStoreError: If the write or flush fails; the previous
                record (or its absence) is kept.
        """
        tree = self._tree(handle)
        value = self.codec.encode(entity)
        try:
            with handle.engine.write():
                tree.put(self._key(entity.id), value)
        except StoreError as e:
            raise RepoStoreError(f"failed to store {self.namespace}/{entity.id}: {e}") from e
        logger.debug(f"Stored {self.namespace}/{entity.id} ({len(value)} bytes)")

    def get(self, handle: StoreHandle, entity_id: str) -> Optional[E]:
        """Fetch a record, or None if no record has this id.

        Raises:
            DeserializeError: If the stored bytes are not a valid record.
            RepoStoreError: If the lookup fails.
        """
        tree = self._tree(handle)
        try:
            data = tree.get(self._key(entity_id))
        except StoreError as e:
            raise RepoStoreError(f"failed to read {self.namespace}/{entity_id}: {e}") from e
        if data is None:
            return None
        return self.codec.decode(data)

    def get_all(self, handle: StoreHandle) -> list[E]:
        """Return every record in store iteration order.

        Raises:
            DeserializeError: On the first record that fails to decode.
            RepoStoreError: If iteration fails.
        """
        tree = self._tree(handle)
        try:
            items = list(tree.iterate())
        except StoreError as e:
            raise RepoStoreError(f"failed to list {self.namespace}: {e}") from e
        return [self.codec.decode(value) for _key, value in items]

    def delete(self, handle: StoreHandle, entity_id: str) -> None:
        """Remove a record. Deleting a missing id is not an error."""
        tree = self._tree(handle)
        try:
            with handle.engine.write():
                tree.delete(self._key(entity_id))
        except StoreError as e:
            raise RepoStoreError(f"failed to delete {self.namespace}/{entity_id}: {e}") from e
        logger.debug(f"Deleted {self.namespace}/{entity_id}")

    def contains(self, handle: StoreHandle, entity_id: str) -> bool:
        tree = self._tree(handle)
        try:
            return tree.get(self._key(entity_id)) is not None
        except StoreError as e:
            raise RepoStoreError(f"failed to read {self.namespace}/{entity_id}: {e}") from e

    def count(self, handle: StoreHandle) -> int:
        tree = self._tree(handle)
        try:
            return tree.count()
        except StoreError as e:
            raise RepoStoreError(f"failed to count {self.namespace}: {e}") from e


class ChunkRepository(Repository[Chunk]):
    """Chunk storage. Chunks are never removed implicitly with their document."""

    def __init__(self, namespace: str = "chunks"):
        super().__init__(Chunk, namespace)

    def list_for_document(self, handle: StoreHandle, document_id: str) -> list[Chunk]:
        """Return a document's chunks ordered by position."""
        found = [c for c in self.get_all(handle) if c.document_id == document_id]
        return sorted(found, key=lambda c: c.index)

    def delete_for_document(self, handle: StoreHandle, document_id: str) -> int:
        """Delete every chunk of a document, returning how many were removed."""
        owned = self.list_for_document(handle, document_id)
        if not owned:
            return 0
        tree = self._tree(handle)
        try:
            with handle.engine.write():
                for chunk in owned:
                    tree.delete(self._key(chunk.id))
        except StoreError as e:
            raise RepoStoreError(
                f"failed to delete chunks of document {document_id}: {e}"
            ) from e
        logger.debug(f"Deleted {len(owned)} chunks of document {document_id}")
        return len(owned)


documents: Repository[Document] = Repository(Document, "documents")
chunks = ChunkRepository()


def insert_document(handle: StoreHandle, doc: Document) -> None:
    documents.insert(handle, doc)


def get_document(handle: StoreHandle, doc_id: str) -> Optional[Document]:
    return documents.get(handle, doc_id)


def get_all_documents(handle: StoreHandle) -> list[Document]:
    return documents.get_all(handle)


def delete_document(handle: StoreHandle, doc_id: str) -> None:
    documents.delete(handle, doc_id)
