"""
Audit Models for the Chart of Accounts

Every mutation of the forest, and every load or save, is logged for audit
purposes. This provides:
1. Traceability of balance changes
2. Debugging information when a file fails to load or save
3. Ability to reconstruct the history of a chart

DESIGN DECISION: Audit logs are append-only. We never delete or modify them.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Structure
    ACCOUNT_ADDED = "account_added"
    ACCOUNT_REJECTED = "account_rejected"
    
    # Transactions
    TRANSACTION_APPLIED = "transaction_applied"
    TRANSACTION_DELETED = "transaction_deleted"
    TRANSACTION_REJECTED = "transaction_rejected"
    
    # Persistence
    FOREST_LOADED = "forest_loaded"
    LOAD_FAILED = "load_failed"
    FOREST_SAVED = "forest_saved"
    TRANSACTIONS_SAVED = "transactions_saved"
    SAVE_FAILED = "save_failed"
    
    # Reporting
    REPORT_GENERATED = "report_generated"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.
    
    This is the core unit of our audit trail.
    Every significant action creates one of these.
    """
    
    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=_utcnow,
        description="When the event occurred (UTC)"
    )
    
    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )
    
    # Context - which account is this about?
    account_number: Optional[int] = Field(
        default=None,
        description="Account the event relates to"
    )
    
    # Correlation - for tracking related events
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., a mutation and its save)"
    )
    
    description: str = Field(
        ...,
        description="Human-readable description of what happened"
    )
    
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )
    
    error_code: Optional[str] = None
    error_message: Optional[str] = None
    
    def to_log_dict(self) -> dict:
        """
        Convert to a dictionary suitable for structured logging.
        """
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "account_number": self.account_number,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
        }


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.
    
    Usage:
        event = AuditEventBuilder.account_added(1100, "Cash", parent_number=1000)
        event = AuditEventBuilder.save_failed("accounts.txt", "disk full")
    """
    
    @staticmethod
    def account_added(
        account_number: int,
        description: str,
        parent_number: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        placement = f"under {parent_number}" if parent_number else "as a root"
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_ADDED,
            account_number=account_number,
            correlation_id=correlation_id,
            description=f"Account {account_number} added {placement}",
            details={
                "description": description,
                "parent_number": parent_number,
            },
        )
    
    @staticmethod
    def account_rejected(
        account_number: Any,
        error_code: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ACCOUNT_REJECTED,
            severity=AuditSeverity.WARNING,
            account_number=account_number if isinstance(account_number, int) else None,
            correlation_id=correlation_id,
            description=f"Account {account_number} rejected",
            error_code=error_code,
            error_message=reason,
        )
    
    @staticmethod
    def transaction_applied(
        account_number: int,
        kind: str,
        amount: str,
        balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_APPLIED,
            account_number=account_number,
            correlation_id=correlation_id,
            description=f"Transaction applied to {account_number}: {kind} {amount}",
            details={
                "kind": kind,
                "amount": amount,
                "balance": balance,
            },
        )
    
    @staticmethod
    def transaction_deleted(
        account_number: int,
        index: int,
        kind: str,
        amount: str,
        balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_DELETED,
            account_number=account_number,
            correlation_id=correlation_id,
            description=f"Transaction {index} deleted from {account_number}",
            details={
                "index": index,
                "kind": kind,
                "amount": amount,
                "balance": balance,
            },
        )
    
    @staticmethod
    def transaction_rejected(
        account_number: Any,
        error_code: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTION_REJECTED,
            severity=AuditSeverity.WARNING,
            account_number=account_number if isinstance(account_number, int) else None,
            correlation_id=correlation_id,
            description=f"Transaction change on {account_number} rejected",
            error_code=error_code,
            error_message=reason,
        )
    
    @staticmethod
    def forest_loaded(
        path: str,
        account_count: int,
        transaction_count: int,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FOREST_LOADED,
            description=f"Loaded {account_count} accounts from {path}",
            details={
                "path": path,
                "account_count": account_count,
                "transaction_count": transaction_count,
            },
        )
    
    @staticmethod
    def load_failed(
        path: str,
        error_code: str,
        error_message: str,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.LOAD_FAILED,
            severity=AuditSeverity.ERROR,
            description=f"Failed to load {path}",
            details={"path": path},
            error_code=error_code,
            error_message=error_message,
        )
    
    @staticmethod
    def forest_saved(
        path: str,
        account_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.FOREST_SAVED,
            correlation_id=correlation_id,
            description=f"Saved {account_count} accounts to {path}",
            details={
                "path": path,
                "account_count": account_count,
            },
        )
    
    @staticmethod
    def transactions_saved(
        path: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSACTIONS_SAVED,
            correlation_id=correlation_id,
            description=f"Saved {transaction_count} transactions to {path}",
            details={
                "path": path,
                "transaction_count": transaction_count,
            },
        )
    
    @staticmethod
    def save_failed(
        path: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            correlation_id=correlation_id,
            description=f"Failed to save {path}",
            details={"path": path},
            error_code="io_error",
            error_message=error_message,
        )
    
    @staticmethod
    def report_generated(
        account_number: int,
        account_count: int,
        destination: Optional[str] = None,
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.REPORT_GENERATED,
            account_number=account_number,
            description=f"Detailed report generated for {account_number}",
            details={
                "account_count": account_count,
                "destination": destination,
            },
        )
