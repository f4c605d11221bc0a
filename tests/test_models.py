"""Tests for the Document and Chunk value types."""

import dataclasses
import time

import pytest

from libai.models import Chunk, Document


def test_document_creation_defaults() -> None:
    before = int(time.time())
    doc = Document(id="test-id", name="test.pdf", file_path="/path/to/test.pdf", page_count=5)
    assert doc.id == "test-id"
    assert doc.name == "test.pdf"
    assert doc.file_path == "/path/to/test.pdf"
    assert doc.page_count == 5
    assert doc.is_indexed is False
    assert before <= doc.created_at <= int(time.time())


def test_mark_as_indexed_returns_indexed_copy() -> None:
    doc = Document(id="test-id", name="test.pdf", file_path="/tmp/test.pdf", page_count=5)
    indexed = doc.mark_as_indexed()
    assert indexed.is_indexed is True
    assert doc.is_indexed is False
    assert indexed.id == doc.id
    assert indexed.created_at == doc.created_at
    assert indexed.mark_as_indexed() is indexed


def test_document_is_immutable() -> None:
    doc = Document(id="test-id", name="test.pdf", file_path="/tmp/test.pdf", page_count=5)
    with pytest.raises(dataclasses.FrozenInstanceError):
        doc.id = "other"  # type: ignore[misc]
    with pytest.raises(dataclasses.FrozenInstanceError):
        doc.created_at = 0  # type: ignore[misc]


@pytest.mark.parametrize("kwargs", [{"id": ""}, {"page_count": -1}, {"created_at": -1}])
def test_document_rejects_invalid_values(kwargs: dict) -> None:
    base = {"id": "d", "name": "a.pdf", "file_path": "/tmp/a.pdf", "page_count": 1}
    with pytest.raises(ValueError):
        Document(**{**base, **kwargs})


def test_chunk_creation() -> None:
    chunk = Chunk(
        id="chunk-1",
        document_id="doc-123",
        text="Este es un texto de prueba",
        index=0,
        page_number=1,
    )
    assert chunk.document_id == "doc-123"
    assert chunk.index == 0
    assert chunk.page_number == 1
    assert chunk.char_count == 26
    assert chunk.metadata is None


@pytest.mark.parametrize(
    "text, expected",
    [
        ("Hola", 4),
        ("Hola ñoño", 9),
        ("Este es un texto más largo con múltiples palabras", 49),
        ("日本語", 3),
        ("", 0),
    ],
)
def test_chunk_char_count_counts_code_points(text: str, expected: int) -> None:
    chunk = Chunk(id="c", document_id="d", text=text, index=0, page_number=1)
    assert chunk.char_count == expected


def test_chunk_char_count_is_not_a_constructor_argument() -> None:
    with pytest.raises(TypeError):
        Chunk(id="c", document_id="d", text="abc", index=0, page_number=1, char_count=99)  # type: ignore[call-arg]


def test_chunk_with_metadata() -> None:
    chunk = Chunk(id="chunk-1", document_id="doc-123", text="Texto", index=0, page_number=1)
    tagged = chunk.with_metadata('{"key": "value"}')
    assert tagged.metadata == '{"key": "value"}'
    assert tagged.char_count == 5
    assert chunk.metadata is None


def test_chunk_is_empty() -> None:
    assert Chunk(id="a", document_id="d", text="   ", index=0, page_number=1).is_empty()
    assert not Chunk(id="b", document_id="d", text="Texto con contenido", index=0, page_number=1).is_empty()


@pytest.mark.parametrize("kwargs", [{"id": ""}, {"index": -1}, {"page_number": -2}])
def test_chunk_rejects_invalid_values(kwargs: dict) -> None:
    base = {"id": "c", "document_id": "d", "text": "t", "index": 0, "page_number": 1}
    with pytest.raises(ValueError):
        Chunk(**{**base, **kwargs})
