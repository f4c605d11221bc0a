"""Shared, reference-counted handles to the local store.

Each store directory is opened at most once per process. Every call to
``open_store`` for the same directory, and every ``clone()``, yields an
independent handle over the same engine; the engine is closed when the
last handle is closed.
"""

import logging
import threading
from pathlib import Path
from typing import Optional

from libai.config import StorageConfig
from libai.errors import StoreError
from libai.storage.engine import KVEngine, Namespace
from libai.storage.paths import ensure_storage_path

logger = logging.getLogger(__name__)


class _SharedEngine:
    """Registry entry: one open engine and its reference count."""

    def __init__(self, key: Path, engine: KVEngine):
        self.key = key
        self.engine = engine
        self.refs = 0


# Open engines by resolved directory
_registry: dict[Path, _SharedEngine] = {}
_registry_lock = threading.Lock()


class StoreHandle:
    """One reference to a shared open store."""

    def __init__(self, shared: _SharedEngine):
        self._shared = shared
        self._closed = False

    @property
    def path(self) -> Path:
        return self._shared.engine.path

    @property
    def closed(self) -> bool:
        return self._closed

    @property
    def ref_count(self) -> int:
        """Number of open handles sharing this store."""
        with _registry_lock:
            return self._shared.refs

    @property
    def engine(self) -> KVEngine:
        if self._closed:
            raise StoreError(f"handle to {self._shared.key} is closed")
        return self._shared.engine

    def open_namespace(self, name: str) -> Namespace:
        return self.engine.open_namespace(name)

    def namespaces(self) -> list[str]:
        return self.engine.namespaces()

    def flush(self) -> None:
        self.engine.flush()

    def clone(self) -> "StoreHandle":
        """Return another independent reference to the same store."""
        if self._closed:
            raise StoreError(f"handle to {self._shared.key} is closed")
        return _acquire(self._shared)

    def close(self) -> None:
        """Drop this reference. Closing twice is a no-op."""
        if self._closed:
            return
        self._closed = True
        _release(self._shared)

    def __enter__(self) -> "StoreHandle":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()

    def __repr__(self) -> str:
        state = "closed" if self._closed else "open"
        return f"StoreHandle({str(self._shared.key)!r}, {state})"


def _acquire(shared: _SharedEngine) -> StoreHandle:
    with _registry_lock:
        shared.refs += 1
    return StoreHandle(shared)


def _release(shared: _SharedEngine) -> None:
    with _registry_lock:
        shared.refs -= 1
        if shared.refs > 0:
            return
        if _registry.get(shared.key) is shared:
            del _registry[shared.key]
        # Close under the registry lock so a concurrent reopen waits for the file lock
        shared.engine.close()


def open_store_at(path: Path | str) -> StoreHandle:
    """Open the store in an existing directory, reusing an open engine.

    Raises:
        StoreError: If the engine cannot open the directory.
    """
    key = Path(path).resolve()
    with _registry_lock:
        shared = _registry.get(key)
        if shared is None:
            shared = _SharedEngine(key, KVEngine.open(key))
            _registry[key] = shared
        else:
            logger.debug(f"Reusing open store at {key}")
        shared.refs += 1
    return StoreHandle(shared)


def open_store(
    app_name: Optional[str] = None, subdir: Optional[str] = None
) -> StoreHandle:
    """Open the local store for an application.

    Args:
        app_name: Application directory name, defaults to ``DEFAULT_APP_NAME``
        subdir: Store directory name, defaults to ``DEFAULT_STORE_SUBDIR``

    Returns:
        A new handle sharing the process-wide engine for that directory.

    Raises:
        StorageIOError: If the store directory cannot be created.
        StoreError: If the engine cannot open the directory (locked by
            another process, corrupt files, permission denied).
    """
    return open_store_at(ensure_storage_path(app_name, subdir))


def open_configured_store(config: StorageConfig) -> StoreHandle:
    """Open the store described by a ``StorageConfig``."""
    return open_store(config.resolved_app_name, config.resolved_subdir)
