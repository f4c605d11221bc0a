"""Database schema for the local key-value store file."""

STORE_FILENAME = "store.sqlite3"

FORMAT_VERSION = "1"

SCHEMA = """
-- Store metadata: format version, last open time
CREATE TABLE IF NOT EXISTS meta (
    key TEXT PRIMARY KEY,
    value TEXT
);

-- Namespaces ("trees"): one per entity type
CREATE TABLE IF NOT EXISTS namespaces (
    name TEXT PRIMARY KEY
);

-- Entries: raw key/value bytes, ordered by key within a namespace
CREATE TABLE IF NOT EXISTS entries (
    namespace TEXT NOT NULL,
    key BLOB NOT NULL,
    value BLOB NOT NULL,
    PRIMARY KEY (namespace, key),
    FOREIGN KEY (namespace) REFERENCES namespaces(name)
) WITHOUT ROWID;
"""

# Applied on every connection before the schema. With an exclusive
# locking mode the file lock taken by the first write is held until close.
PRAGMAS = (
    "PRAGMA locking_mode = EXCLUSIVE",
    "PRAGMA synchronous = FULL",
    "PRAGMA foreign_keys = ON",
)
