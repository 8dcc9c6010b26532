"""
Audit Logger

DESIGN DECISION: Every mutation, load and save of the forest is logged.
This provides:
1. Traceability of every balance change
2. Debugging capability when a file fails to load or save
3. A history the user can inspect

The audit logger:
- Is synchronous, like the rest of the engine
- Gracefully handles failures (a broken audit store never fails a forest operation)
- Supports correlation IDs to tie a mutation to its save
"""

import logging
from typing import Optional
from uuid import UUID, uuid4

import structlog

from chart_of_accounts.models.audit import AuditEvent, AuditEventBuilder, AuditSeverity
from chart_of_accounts.services.storage import AuditStorageInterface, StorageError


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


def configure_logging(level: str = "INFO") -> None:
    """Route structured logs to stderr at the given threshold."""
    logging.basicConfig(format="%(message)s", level=getattr(logging, level.upper()))
    logging.getLogger("chart_of_accounts").setLevel(level.upper())


class AuditLogger:
    """
    Central audit logging service.
    
    Logs events both to:
    1. Structured local log (for debugging)
    2. An audit store, if one is configured (for persistence)
    """
    
    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.
        
        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger("chart_of_accounts.audit")
    
    @property
    def storage(self) -> Optional[AuditStorageInterface]:
        return self._storage
    
    def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.
        
        Always logs locally. Persists to storage if available.
        
        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()
        
        if event.severity in (AuditSeverity.ERROR, AuditSeverity.CRITICAL):
            self._logger.error("audit_event", **log_dict)
        elif event.severity == AuditSeverity.WARNING:
            self._logger.warning("audit_event", **log_dict)
        elif event.severity == AuditSeverity.DEBUG:
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)
        
        if self._storage:
            try:
                return self._storage.append_event(event)
            except StorageError as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False
        
        return True
    
    def log_account_added(
        self,
        account_number: int,
        description: str,
        parent_number: Optional[int] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.account_added(
            account_number=account_number,
            description=description,
            parent_number=parent_number,
            correlation_id=correlation_id,
        ))
    
    def log_account_rejected(
        self,
        account_number,
        error_code: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.account_rejected(
            account_number=account_number,
            error_code=error_code,
            reason=reason,
            correlation_id=correlation_id,
        ))
    
    def log_transaction_applied(
        self,
        account_number: int,
        kind: str,
        amount: str,
        balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_applied(
            account_number=account_number,
            kind=kind,
            amount=amount,
            balance=balance,
            correlation_id=correlation_id,
        ))
    
    def log_transaction_deleted(
        self,
        account_number: int,
        index: int,
        kind: str,
        amount: str,
        balance: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_deleted(
            account_number=account_number,
            index=index,
            kind=kind,
            amount=amount,
            balance=balance,
            correlation_id=correlation_id,
        ))
    
    def log_transaction_rejected(
        self,
        account_number,
        error_code: str,
        reason: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transaction_rejected(
            account_number=account_number,
            error_code=error_code,
            reason=reason,
            correlation_id=correlation_id,
        ))
    
    def log_forest_loaded(
        self,
        path: str,
        account_count: int,
        transaction_count: int,
    ) -> None:
        self.log(AuditEventBuilder.forest_loaded(
            path=path,
            account_count=account_count,
            transaction_count=transaction_count,
        ))
    
    def log_load_failed(self, path: str, error_code: str, error_message: str) -> None:
        self.log(AuditEventBuilder.load_failed(
            path=path,
            error_code=error_code,
            error_message=error_message,
        ))
    
    def log_forest_saved(
        self,
        path: str,
        account_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.forest_saved(
            path=path,
            account_count=account_count,
            correlation_id=correlation_id,
        ))
    
    def log_transactions_saved(
        self,
        path: str,
        transaction_count: int,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.transactions_saved(
            path=path,
            transaction_count=transaction_count,
            correlation_id=correlation_id,
        ))
    
    def log_save_failed(
        self,
        path: str,
        error_message: str,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        self.log(AuditEventBuilder.save_failed(
            path=path,
            error_message=error_message,
            correlation_id=correlation_id,
        ))
    
    def log_report_generated(
        self,
        account_number: int,
        account_count: int,
        destination: Optional[str] = None,
    ) -> None:
        self.log(AuditEventBuilder.report_generated(
            account_number=account_number,
            account_count=account_count,
            destination=destination,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.
    
    Use this at the start of a mutate-then-save sequence and pass it
    to both steps.
    """
    return uuid4()
