"""
Shared fixtures.

Test strategy:
1. Unit tests for models, policies and storage codecs
2. Engine tests against real files under tmp_path
3. Audit events captured in memory instead of a file
"""

from decimal import Decimal

import pytest

from chart_of_accounts.audit import AuditLogger
from chart_of_accounts.config import get_settings
from chart_of_accounts.forest import Forest
from chart_of_accounts.models.audit import AuditEvent
from chart_of_accounts.models.account import Transaction
from chart_of_accounts.services.storage import (
    AuditStorageInterface,
    StorageIOError,
    TextFileForestStorage,
)


class InMemoryAuditStorage(AuditStorageInterface):
    """Collects audit events for assertions."""
    
    def __init__(self):
        self.events: list[AuditEvent] = []
    
    def append_event(self, event: AuditEvent) -> bool:
        self.events.append(event)
        return True
    
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return list(reversed(self.events))[:limit]
    
    def types(self) -> list[str]:
        return [event.event_type.value for event in self.events]


class BrokenAuditStorage(AuditStorageInterface):
    """Audit store whose writes always fail."""
    
    def append_event(self, event: AuditEvent) -> bool:
        raise StorageIOError("audit.jsonl", "disk full")
    
    def get_recent_events(self, limit: int = 100) -> list[AuditEvent]:
        return []


@pytest.fixture(autouse=True)
def fresh_settings():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def audit_storage() -> InMemoryAuditStorage:
    return InMemoryAuditStorage()


@pytest.fixture
def storage() -> TextFileForestStorage:
    return TextFileForestStorage(indent_width=4, transaction_suffix="_transactions")


@pytest.fixture
def forest(storage, audit_storage) -> Forest:
    return Forest(storage=storage, audit_logger=AuditLogger(audit_storage))


@pytest.fixture
def populated_forest(forest) -> Forest:
    """
    1000 Assets
        1100 Cash            (debit 500, credit 200)
            1110 Petty cash  (debit 50)
        1200 Receivables
    2000 Liabilities
        2100 Loans           (opening 1000)
    """
    forest.add_account(1000, "Assets", Decimal("0"))
    forest.add_account(1100, "Cash", Decimal("0"))
    forest.add_account(1110, "Petty cash", Decimal("0"))
    forest.add_account(1200, "Receivables", Decimal("0"))
    forest.add_account(2000, "Liabilities", Decimal("0"))
    forest.add_account(2100, "Loans", Decimal("1000"))
    forest.add_transaction(1100, Transaction.debit("500"))
    forest.add_transaction(1100, Transaction.credit("200"))
    forest.add_transaction(1110, Transaction.debit("50"))
    return forest


@pytest.fixture
def chart_path(tmp_path) -> str:
    return str(tmp_path / "accounts.txt")


@pytest.fixture
def broken_audit_logger() -> AuditLogger:
    return AuditLogger(BrokenAuditStorage())
