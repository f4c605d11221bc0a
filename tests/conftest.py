"""Pytest fixtures for LibAI storage tests."""

from pathlib import Path

import pytest

from libai.models import Chunk, Document
from libai.storage import open_store_at
from libai.storage import paths


@pytest.fixture
def data_home(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the per-user data directory at a temporary XDG data home."""
    home = tmp_path / "data"
    monkeypatch.setattr(paths.sys, "platform", "linux")
    monkeypatch.setenv("XDG_DATA_HOME", str(home))
    return home


@pytest.fixture
def store_dir(tmp_path: Path) -> Path:
    path = tmp_path / "store"
    path.mkdir()
    return path


@pytest.fixture
def store(store_dir: Path):
    handle = open_store_at(store_dir)
    yield handle
    handle.close()


@pytest.fixture
def sample_document() -> Document:
    return Document(id="doc-1", name="test.pdf", file_path="/tmp/test.pdf", page_count=5)


@pytest.fixture
def sample_chunks() -> list[Chunk]:
    return [
        Chunk(id=f"doc-1-{i}", document_id="doc-1", text=f"Fragmento {i}", index=i, page_number=i + 1)
        for i in range(3)
    ]
