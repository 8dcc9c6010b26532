"""
Abstract Storage Interface

DESIGN DECISION: We define an abstract interface for storage operations.
This allows us to:
1. Swap the flat-file format for another backend later
2. Use in-memory storage for testing
3. Keep the forest engine decoupled from file formats

Storage deals only in flat records (AccountRecord, TransactionRecord).
Rebuilding Nodes and checking the numbering rule is the engine's job.
"""

from abc import ABC, abstractmethod
from typing import Optional

from chart_of_accounts.models.audit import AuditEvent
from chart_of_accounts.models.records import AccountRecord, TransactionRecord


class ForestStorageInterface(ABC):
    """
    Abstract interface for forest persistence.
    
    The structural file and the transaction log are separate resources:
    transaction history grows without bound while structure rarely changes.
    """
    
    @abstractmethod
    def load_structure(self, path: str) -> list[AccountRecord]:
        """
        Read the structural file.
        
        Returns:
            Account records in file order (depth-first)
            
        Raises:
            StorageIOError: If the file cannot be read
            CorruptPersistedStateError: If a record or its indentation is malformed
        """
        pass
    
    @abstractmethod
    def save_structure(self, path: str, records: list[AccountRecord]) -> None:
        """
        Replace the structural file with the given records.
        
        Raises:
            StorageIOError: If the file cannot be written
        """
        pass
    
    @abstractmethod
    def load_transactions(self, path: str) -> list[TransactionRecord]:
        """
        Read the transaction log. A missing log is an empty log.
        
        Raises:
            StorageIOError: If the file exists but cannot be read
            CorruptPersistedStateError: If an entry is malformed
        """
        pass
    
    @abstractmethod
    def save_transactions(self, path: str, records: list[TransactionRecord]) -> None:
        """
        Replace the transaction log with the given records.
        
        Raises:
            StorageIOError: If the file cannot be written
        """
        pass
    
    @abstractmethod
    def transaction_filename(self, structure_path: str) -> str:
        """Transaction log path that belongs to a structural file."""
        pass
    
    @abstractmethod
    def save_report(self, path: str, text: str) -> None:
        """
        Write a rendered report.
        
        Raises:
            StorageIOError: If the file cannot be written
        """
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.
    
    Audit logs are append-only - we never delete or modify them.
    """
    
    @abstractmethod
    def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.
        
        Returns:
            True if logged successfully
        """
        pass
    
    @abstractmethod
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        """
        Get the most recent audit events.
        
        Returns:
            List of recent events (newest first)
        """
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class StorageIOError(StorageError):
    """A file could not be opened, read or written."""
    
    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"{path}: {reason}")


class CorruptPersistedStateError(StorageError):
    """Persisted data is malformed or structurally invalid."""
    
    def __init__(self, message: str, path: str = "", line: Optional[int] = None):
        self.path = path
        self.line = line
        location = path
        if line is not None:
            location = f"{path}:{line}" if path else f"line {line}"
        super().__init__(f"{location}: {message}" if location else message)
