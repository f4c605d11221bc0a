"""Storage configuration defaults."""

from dataclasses import dataclass
from typing import Optional

# Application directory name used when the caller does not supply one.
DEFAULT_APP_NAME = "libai"

# Directory under the application data dir that holds the store files.
DEFAULT_STORE_SUBDIR = "kv_store"


@dataclass(frozen=True)
class StorageConfig:
    """Where the local store lives.

    Both values fall back to the module defaults when left as None.
    """

    app_name: Optional[str] = None
    subdir: Optional[str] = None

    @property
    def resolved_app_name(self) -> str:
        return self.app_name or DEFAULT_APP_NAME

    @property
    def resolved_subdir(self) -> str:
        return self.subdir or DEFAULT_STORE_SUBDIR
