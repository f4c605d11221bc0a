"""Platform-aware location of the local store."""

import logging
import os
import sys
from pathlib import Path
from typing import Optional

from libai.config import DEFAULT_APP_NAME, DEFAULT_STORE_SUBDIR
from libai.errors import StorageIOError

logger = logging.getLogger(__name__)


def _user_data_dir() -> Optional[Path]:
    """Return the OS-conventional per-user local data directory, if any."""
    if sys.platform == "win32":
        for var in ("LOCALAPPDATA", "APPDATA"):
            value = os.environ.get(var)
            if value:
                return Path(value)
        return None

    try:
        home = Path.home()
    except RuntimeError:
        home = None

    if sys.platform == "darwin":
        return home / "Library" / "Application Support" if home else None

    # XDG: relative paths are invalid and must be ignored
    xdg = os.environ.get("XDG_DATA_HOME")
    if xdg and Path(xdg).is_absolute():
        return Path(xdg)
    return home / ".local" / "share" if home else None


def resolve_storage_dir(app_name: Optional[str] = None) -> Path:
    """Compute the application data directory without touching the disk.

    Args:
        app_name: Directory name for the application. Defaults to
            ``DEFAULT_APP_NAME``.

    Returns:
        ``<user data dir>/<app_name>``, or ``<cwd>/<app_name>`` when the
        platform offers no user data directory.
    """
    base = _user_data_dir()
    if base is None:
        base = Path(os.getcwd())
    return base / (app_name or DEFAULT_APP_NAME)


def ensure_storage_path(
    app_name: Optional[str] = None, subdir: Optional[str] = None
) -> Path:
    """Resolve the store directory and create it if missing.

    Args:
        app_name: Application directory name (see ``resolve_storage_dir``)
        subdir: Store directory under the application dir. Defaults to
            ``DEFAULT_STORE_SUBDIR``.

    Returns:
        The existing store directory.

    Raises:
        StorageIOError: If the directory cannot be created.
    """
    path = resolve_storage_dir(app_name) / (subdir or DEFAULT_STORE_SUBDIR)
    try:
        path.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        logger.error(f"Could not create storage directory at {path}: {e}")
        raise StorageIOError(f"failed to create storage dir: {e}", path) from e
    return path
