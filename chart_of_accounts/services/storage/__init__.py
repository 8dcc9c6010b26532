"""
Storage Services Package

Provides abstract interfaces and concrete implementations for persistence.
Currently implements indented text files for the forest and JSON lines
for the audit trail, but designed to be swappable.
"""

from chart_of_accounts.services.storage.interface import (
    AuditStorageInterface,
    CorruptPersistedStateError,
    ForestStorageInterface,
    StorageError,
    StorageIOError,
)
from chart_of_accounts.services.storage.text_file import TextFileForestStorage
from chart_of_accounts.services.storage.audit_log import JsonLinesAuditStorage

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "ForestStorageInterface",
    # Exceptions
    "CorruptPersistedStateError",
    "StorageError",
    "StorageIOError",
    # Implementations
    "JsonLinesAuditStorage",
    "TextFileForestStorage",
]
