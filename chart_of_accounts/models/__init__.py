"""
Data Models Package

This package contains all Pydantic models used by the chart of accounts.
All data flowing between the engine, storage and reports conforms to these schemas.
"""

from chart_of_accounts.models.account import (
    Account,
    AccountCategory,
    Transaction,
    TransactionIndexError,
    TransactionKind,
)
from chart_of_accounts.models.records import (
    AccountRecord,
    TransactionRecord,
)
from chart_of_accounts.models.results import (
    ForestErrorKind,
    ForestOperationError,
    OperationResult,
    ReportResult,
    ValidationIssue,
    ValidationResult,
)
from chart_of_accounts.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Account models
    "Account",
    "AccountCategory",
    "Transaction",
    "TransactionIndexError",
    "TransactionKind",
    # Persistence records
    "AccountRecord",
    "TransactionRecord",
    # Results
    "ForestErrorKind",
    "ForestOperationError",
    "OperationResult",
    "ReportResult",
    "ValidationIssue",
    "ValidationResult",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
