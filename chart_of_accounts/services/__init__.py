"""Services package."""

from chart_of_accounts.services.storage import (
    AuditStorageInterface,
    CorruptPersistedStateError,
    ForestStorageInterface,
    JsonLinesAuditStorage,
    StorageError,
    StorageIOError,
    TextFileForestStorage,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "CorruptPersistedStateError",
    "ForestStorageInterface",
    "JsonLinesAuditStorage",
    "StorageError",
    "StorageIOError",
    "TextFileForestStorage",
]
