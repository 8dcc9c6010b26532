"""
Forest Engine

This module owns the chart of accounts in memory:
1. The ordered list of root Nodes
2. The account-number index covering every Node
3. Insertion, transaction application/removal, reporting and persistence

DESIGN DECISION: Every public operation returns an OperationResult.
Lower layers raise (StorageError, TransactionIndexError, ValidationError);
the engine catches exactly those and turns them into error kinds, so a
caller always gets one of:
- rejected (forest unchanged)
- applied and saved
- applied but not saved

The index and the topology are only changed together, inside this module.
"""

from collections import defaultdict
from decimal import Decimal
from typing import Iterator, Optional
from uuid import UUID

from pydantic import ValidationError

from chart_of_accounts.audit import AuditLogger, create_correlation_id
from chart_of_accounts.forest.node import Node
from chart_of_accounts.models.account import (
    Account,
    Transaction,
    TransactionIndexError,
)
from chart_of_accounts.models.records import AccountRecord, TransactionRecord
from chart_of_accounts.models.results import (
    ForestErrorKind,
    OperationResult,
    ReportResult,
    ValidationResult,
)
from chart_of_accounts.policies import (
    AttachmentPolicy,
    FixedWidthPrefixPolicy,
    SignConvention,
    UniformSignConvention,
)
from chart_of_accounts.reports import ReportBuilder
from chart_of_accounts.services.storage import (
    CorruptPersistedStateError,
    ForestStorageInterface,
    StorageIOError,
    TextFileForestStorage,
)
from chart_of_accounts.validation import ForestValidator


class Forest:
    """
    A chart of accounts: independent account trees plus a lookup index.

    Construct one per chart and pass it around explicitly; forests do not
    share state, so several can coexist (e.g. in tests).
    """

    def __init__(
        self,
        attachment_policy: Optional[AttachmentPolicy] = None,
        sign_convention: Optional[SignConvention] = None,
        storage: Optional[ForestStorageInterface] = None,
        audit_logger: Optional[AuditLogger] = None,
        report_builder: Optional[ReportBuilder] = None,
    ):
        self._roots: list[Node] = []
        self._index: dict[int, Node] = {}

        self._policy = attachment_policy or FixedWidthPrefixPolicy()
        self._signs = sign_convention or UniformSignConvention()
        self._storage = storage or TextFileForestStorage()
        self._audit = audit_logger or AuditLogger()
        self._reports = report_builder or ReportBuilder()

    # =========================================================================
    # Container protocol
    # =========================================================================

    @property
    def roots(self) -> tuple[Node, ...]:
        return tuple(self._roots)

    @property
    def attachment_policy(self) -> AttachmentPolicy:
        return self._policy

    @property
    def sign_convention(self) -> SignConvention:
        return self._signs

    def __len__(self) -> int:
        return len(self._index)

    def __contains__(self, number: object) -> bool:
        return number in self._index

    def __iter__(self) -> Iterator[Node]:
        for node, _ in self.walk():
            yield node

    def walk(self) -> Iterator[tuple[Node, int]]:
        """Every node depth-first, roots in insertion order, with its depth."""
        for root in self._roots:
            yield from root.walk()

    # =========================================================================
    # Lookup
    # =========================================================================

    def find_account(self, number: int) -> Optional[Node]:
        """The node for an account number, or None. Never raises."""
        try:
            return self._index.get(number)
        except TypeError:
            # unhashable input cannot be an account number
            return None

    def account_summary(self, number: int) -> ReportResult:
        """Number, description and balance of one account."""
        node = self.find_account(number)
        if node is None:
            return ReportResult.fail(
                ForestErrorKind.ACCOUNT_NOT_FOUND,
                f"Account not found for account number: {number}",
                account_number=_as_number(number),
            )
        return ReportResult.ok(
            account_number=number,
            text=self._reports.account_summary(node.account),
        )

    def list_transactions(self, number: int) -> Optional[list[tuple[int, Transaction]]]:
        """Indexed transactions of an account, or None if it does not exist."""
        node = self.find_account(number)
        if node is None:
            return None
        return list(enumerate(node.account.transactions))

    # =========================================================================
    # Insertion
    # =========================================================================

    def add_account(
        self,
        number: int,
        description: str,
        initial_balance: Decimal = Decimal("0"),
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """
        Add an account under the parent the numbering policy selects.

        Fails with INVALID_INPUT, DUPLICATE_ACCOUNT or
        INVALID_HIERARCHY_PLACEMENT, leaving the forest unchanged.
        """
        if isinstance(number, bool) or not isinstance(number, int) or number <= 0:
            return self._reject_account(
                number,
                ForestErrorKind.INVALID_INPUT,
                f"Account number must be a positive integer, got {number!r}",
                correlation_id,
            )

        if number in self._index:
            return self._reject_account(
                number,
                ForestErrorKind.DUPLICATE_ACCOUNT,
                f"Account {number} already exists",
                correlation_id,
            )

        placement = self._policy.resolve(number, self._index.__contains__)
        if not placement.is_valid:
            return self._reject_account(
                number,
                ForestErrorKind.INVALID_HIERARCHY_PLACEMENT,
                placement.reason,
                correlation_id,
            )

        try:
            account = Account(
                number=number,
                description=description,
                balance=initial_balance,
                normal_side=self._signs.normal_side(number),
            )
        except ValidationError as e:
            return self._reject_account(
                number,
                ForestErrorKind.INVALID_INPUT,
                _validation_message(e),
                correlation_id,
            )

        node = Node(account)
        if placement.is_root:
            self._roots.append(node)
        else:
            self._index[placement.parent_number].add_child(node)
        self._index[number] = node

        self._audit.log_account_added(
            account_number=number,
            description=account.description,
            parent_number=placement.parent_number,
            correlation_id=correlation_id,
        )

        if placement.is_root:
            message = f"Account {number} added as a new root"
        else:
            message = f"Account {number} added under {placement.parent_number}"
        return OperationResult.ok(message, account_number=number)

    def add_account_with_file(
        self,
        number: int,
        description: str,
        balance: Decimal,
        path: str,
    ) -> OperationResult:
        """
        Add an account, then rewrite the structural file.

        A failed save does not undo the insertion; it is reported as
        `saved=False` on a successful result.
        """
        correlation_id = create_correlation_id()
        result = self.add_account(number, description, balance, correlation_id)
        if not result.success:
            return result
        return self._with_save(result, self.save_to_file(path, correlation_id))

    # =========================================================================
    # Transactions
    # =========================================================================

    def add_transaction(
        self,
        number: int,
        transaction: Transaction,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """Apply a transaction to an account and update its balance."""
        node = self.find_account(number)
        if node is None:
            return self._reject_transaction(
                number,
                ForestErrorKind.ACCOUNT_NOT_FOUND,
                f"Account {number} not found",
                correlation_id,
            )
        if not isinstance(transaction, Transaction):
            return self._reject_transaction(
                number,
                ForestErrorKind.INVALID_INPUT,
                f"Expected a Transaction, got {type(transaction).__name__}",
                correlation_id,
            )

        balance = node.account.apply_transaction(transaction)
        self._audit.log_transaction_applied(
            account_number=number,
            kind=transaction.kind.value,
            amount=str(transaction.amount),
            balance=str(balance),
            correlation_id=correlation_id,
        )
        return OperationResult.ok(
            f"Transaction applied to {number}, balance {balance}",
            account_number=number,
        )

    def delete_transaction(
        self,
        number: int,
        index: int,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """Remove a transaction by index and reverse its balance effect."""
        node = self.find_account(number)
        if node is None:
            return self._reject_transaction(
                number,
                ForestErrorKind.ACCOUNT_NOT_FOUND,
                f"Account {number} not found",
                correlation_id,
            )
        if isinstance(index, bool) or not isinstance(index, int):
            return self._reject_transaction(
                number,
                ForestErrorKind.INVALID_INPUT,
                f"Transaction index must be an integer, got {index!r}",
                correlation_id,
            )

        try:
            removed = node.account.remove_transaction_at(index)
        except TransactionIndexError as e:
            return self._reject_transaction(
                number,
                ForestErrorKind.INDEX_OUT_OF_RANGE,
                str(e),
                correlation_id,
            )

        balance = node.account.balance
        self._audit.log_transaction_deleted(
            account_number=number,
            index=index,
            kind=removed.kind.value,
            amount=str(removed.amount),
            balance=str(balance),
            correlation_id=correlation_id,
        )
        return OperationResult.ok(
            f"Transaction {index} deleted from {number}, balance {balance}",
            account_number=number,
        )

    def add_transaction_with_file(
        self,
        number: int,
        transaction: Transaction,
        path: str,
    ) -> OperationResult:
        """Apply a transaction, then save the structural file and the log."""
        correlation_id = create_correlation_id()
        result = self.add_transaction(number, transaction, correlation_id)
        if not result.success:
            return result
        return self._with_save(result, self.save_all(path, correlation_id))

    def delete_transaction_with_file(
        self,
        number: int,
        index: int,
        path: str,
    ) -> OperationResult:
        """Delete a transaction, then save the structural file and the log."""
        correlation_id = create_correlation_id()
        result = self.delete_transaction(number, index, correlation_id)
        if not result.success:
            return result
        return self._with_save(result, self.save_all(path, correlation_id))

    # =========================================================================
    # Reporting
    # =========================================================================

    def detailed_report(
        self,
        number: int,
        destination: Optional[str] = None,
    ) -> ReportResult:
        """Report for the subtree rooted at an account. Read-only."""
        node = self.find_account(number)
        if node is None:
            return ReportResult.fail(
                ForestErrorKind.ACCOUNT_NOT_FOUND,
                f"Account {number} not found",
                account_number=_as_number(number),
            )

        text = self._reports.detailed_report(node)
        self._audit.log_report_generated(
            account_number=number,
            account_count=sum(1 for _ in node.walk()),
            destination=destination,
        )
        return ReportResult.ok(account_number=number, text=text)

    def write_detailed_report(self, number: int, destination: str) -> ReportResult:
        """
        Render the detailed report and write it to `destination`.

        The destination directory must already exist.
        """
        result = self.detailed_report(number, destination)
        if not result.success:
            return result

        try:
            self._storage.save_report(destination, result.text)
        except StorageIOError as e:
            message = str(e)
            self._audit.log_save_failed(destination, message)
            return ReportResult.fail(
                ForestErrorKind.IO_ERROR,
                message,
                account_number=number,
                text=result.text,
            )

        return result.model_copy(update={"message": f"Report written to {destination}"})

    def display_forest(self) -> str:
        """The whole chart, indented by depth, roots in insertion order."""
        return self._reports.forest_outline(self._roots)

    # =========================================================================
    # Persistence
    # =========================================================================

    def transaction_filename(self, path: str) -> str:
        return self._storage.transaction_filename(path)

    def account_records(self) -> list[AccountRecord]:
        return [
            AccountRecord(
                depth=depth,
                number=node.number,
                description=node.account.description,
                balance=node.account.balance,
            )
            for node, depth in self.walk()
        ]

    def transaction_records(self) -> list[TransactionRecord]:
        return [
            TransactionRecord(
                account_number=node.number,
                kind=transaction.kind,
                amount=transaction.amount,
            )
            for node in self
            for transaction in node.account.transactions
        ]

    def save_to_file(
        self,
        path: str,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """Rewrite the structural file from the in-memory forest."""
        try:
            self._storage.save_structure(path, self.account_records())
        except StorageIOError as e:
            self._audit.log_save_failed(path, str(e), correlation_id)
            return OperationResult.fail(ForestErrorKind.IO_ERROR, str(e), saved=False, save_error=str(e))

        self._audit.log_forest_saved(path, len(self), correlation_id)
        return OperationResult.ok(f"Saved {len(self)} accounts to {path}", saved=True)

    def save_transactions(
        self,
        path: str,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """Rewrite the transaction log at `path`."""
        records = self.transaction_records()
        try:
            self._storage.save_transactions(path, records)
        except StorageIOError as e:
            self._audit.log_save_failed(path, str(e), correlation_id)
            return OperationResult.fail(ForestErrorKind.IO_ERROR, str(e), saved=False, save_error=str(e))

        self._audit.log_transactions_saved(path, len(records), correlation_id)
        return OperationResult.ok(f"Saved {len(records)} transactions to {path}", saved=True)

    def save_all(
        self,
        path: str,
        correlation_id: Optional[UUID] = None,
    ) -> OperationResult:
        """Structural file at `path` plus its derived transaction log."""
        result = self.save_to_file(path, correlation_id)
        if not result.success:
            return result
        return self.save_transactions(self.transaction_filename(path), correlation_id)

    def build_from_file(
        self,
        path: str,
        transactions_path: Optional[str] = None,
    ) -> OperationResult:
        """
        Replace this forest with the contents of a structural file and its
        transaction log.

        The new forest is assembled completely before anything is replaced;
        on failure the current forest is left exactly as it was.
        """
        transactions_path = transactions_path or self.transaction_filename(path)
        try:
            roots, index = self._read(path, transactions_path)
        except CorruptPersistedStateError as e:
            self._audit.log_load_failed(path, ForestErrorKind.CORRUPT_PERSISTED_STATE.value, str(e))
            return OperationResult.fail(ForestErrorKind.CORRUPT_PERSISTED_STATE, str(e))
        except StorageIOError as e:
            self._audit.log_load_failed(path, ForestErrorKind.IO_ERROR.value, str(e))
            return OperationResult.fail(ForestErrorKind.IO_ERROR, str(e))

        self._roots, self._index = roots, index
        transaction_count = sum(n.account.transaction_count for n in index.values())
        self._audit.log_forest_loaded(path, len(index), transaction_count)
        return OperationResult.ok(f"Loaded {len(index)} accounts from {path}")

    @classmethod
    def load(
        cls,
        path: str,
        transactions_path: Optional[str] = None,
        **components,
    ) -> "Forest":
        """
        Build a new forest from files.

        Raises:
            StorageIOError: If a file cannot be read
            CorruptPersistedStateError: If the files are malformed
        """
        forest = cls(**components)
        transactions_path = transactions_path or forest.transaction_filename(path)
        forest._roots, forest._index = forest._read(path, transactions_path)
        return forest

    def check_integrity(self) -> ValidationResult:
        """Validate index/topology consistency and policy conformance."""
        validator = ForestValidator(self._policy, self._signs)
        return validator.validate(self._roots, self._index)

    # =========================================================================
    # Internals
    # =========================================================================

    def _read(
        self,
        path: str,
        transactions_path: str,
    ) -> tuple[list[Node], dict[int, Node]]:
        records = self._storage.load_structure(path)
        roots, index = self._assemble(records, path)

        entries = self._storage.load_transactions(transactions_path)
        self._restore_transactions(index, entries, transactions_path)
        return roots, index

    def _assemble(
        self,
        records: list[AccountRecord],
        path: str = "",
    ) -> tuple[list[Node], dict[int, Node]]:
        """
        Rebuild nodes from depth-positioned records.

        Raises:
            CorruptPersistedStateError: On duplicates, skipped levels,
                invalid accounts or numbering-rule violations
        """
        roots: list[Node] = []
        index: dict[int, Node] = {}
        stack: list[Node] = []

        for record in records:
            number = record.number
            if number in index:
                raise CorruptPersistedStateError(
                    f"duplicate account number {number}", path, record.line
                )
            if record.depth > len(stack):
                raise CorruptPersistedStateError(
                    f"account {number} is indented more than one level below its parent",
                    path,
                    record.line,
                )
            del stack[record.depth:]

            try:
                account = Account(
                    number=number,
                    description=record.description,
                    balance=record.balance,
                    normal_side=self._signs.normal_side(number),
                )
            except ValidationError as e:
                raise CorruptPersistedStateError(_validation_message(e), path, record.line)

            node = Node(account)
            if not stack:
                if not self._policy.is_root_eligible(number):
                    raise CorruptPersistedStateError(
                        f"account {number} cannot be a root under {self._policy.describe()}",
                        path,
                        record.line,
                    )
                roots.append(node)
            else:
                parent = stack[-1]
                if not self._policy.is_valid_child(parent.number, number):
                    raise CorruptPersistedStateError(
                        f"account {number} cannot sit under {parent.number}",
                        path,
                        record.line,
                    )
                parent.add_child(node)

            stack.append(node)
            index[number] = node

        return roots, index

    def _restore_transactions(
        self,
        index: dict[int, Node],
        entries: list[TransactionRecord],
        path: str = "",
    ) -> None:
        grouped: dict[int, list[Transaction]] = defaultdict(list)
        for entry in entries:
            if entry.account_number not in index:
                raise CorruptPersistedStateError(
                    f"transaction for unknown account {entry.account_number}",
                    path,
                    entry.line,
                )
            try:
                transaction = Transaction(amount=entry.amount, kind=entry.kind)
            except ValidationError as e:
                raise CorruptPersistedStateError(_validation_message(e), path, entry.line)
            grouped[entry.account_number].append(transaction)

        for number, transactions in grouped.items():
            index[number].account.restore_transactions(transactions)

    def _with_save(self, result: OperationResult, save: OperationResult) -> OperationResult:
        if save.success:
            return result.model_copy(update={"saved": True})
        return result.model_copy(update={"saved": False, "save_error": save.message})

    def _reject_account(
        self,
        number,
        error: ForestErrorKind,
        message: str,
        correlation_id: Optional[UUID],
    ) -> OperationResult:
        self._audit.log_account_rejected(number, error.value, message, correlation_id)
        return OperationResult.fail(error, message, account_number=_as_number(number))

    def _reject_transaction(
        self,
        number,
        error: ForestErrorKind,
        message: str,
        correlation_id: Optional[UUID],
    ) -> OperationResult:
        self._audit.log_transaction_rejected(number, error.value, message, correlation_id)
        return OperationResult.fail(error, message, account_number=_as_number(number))


def _as_number(value) -> Optional[int]:
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None


def _validation_message(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )
