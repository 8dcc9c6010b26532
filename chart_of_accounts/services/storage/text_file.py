"""
Flat Text File Storage

DESIGN DECISION: The chart of accounts is stored as an indented text file
because:
1. Users can read and hand-edit it
2. Indentation shows the hierarchy at a glance
3. Diffs of structural edits stay small

Structural file, one account per line, indented by depth:

    1000 0.00 Assets
        1100 250.00 Cash
            1110 50.00 Petty cash
    2000 0.00 Liabilities

Transaction log (separate file), one transaction per line, grouped by
account in forest order:

    1100 debit 500.00
    1100 credit 250.00

TRADEOFFS:
- Every save rewrites the whole file (fine for a personal chart)
- Descriptions cannot contain newlines (enforced by the Account model)
"""

import os
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Iterable, Optional

from chart_of_accounts.config import get_settings
from chart_of_accounts.models.account import TransactionKind
from chart_of_accounts.models.records import AccountRecord, TransactionRecord
from chart_of_accounts.services.storage.interface import (
    CorruptPersistedStateError,
    ForestStorageInterface,
    StorageIOError,
)


COMMENT_PREFIX = "#"


class TextFileForestStorage(ForestStorageInterface):
    """
    Indented text file implementation of forest storage.
    
    Writes go to a temporary sibling file which then replaces the target,
    so a failed save never leaves a half-written file behind.
    """
    
    def __init__(
        self,
        indent_width: Optional[int] = None,
        transaction_suffix: Optional[str] = None,
        encoding: Optional[str] = None,
    ):
        settings = get_settings().storage
        self.indent_width = indent_width or settings.indent_width
        self.transaction_suffix = transaction_suffix or settings.transaction_suffix
        self.encoding = encoding or settings.encoding
    
    # -------------------------------------------------------------------------
    # Line codecs
    # -------------------------------------------------------------------------
    
    def format_account_line(self, record: AccountRecord) -> str:
        indent = " " * (self.indent_width * record.depth)
        return f"{indent}{record.number} {record.balance} {record.description}"
    
    def parse_account_line(
        self,
        raw: str,
        line: int,
        path: str = "",
    ) -> AccountRecord:
        """Parse one structural line (without its newline)."""
        stripped = raw.lstrip(" ")
        leading = raw[:len(raw) - len(stripped)]
        if stripped[:1].isspace():
            raise CorruptPersistedStateError(
                "indentation must use spaces only", path, line
            )
        if len(leading) % self.indent_width:
            raise CorruptPersistedStateError(
                f"indentation of {len(leading)} spaces is not a multiple of {self.indent_width}",
                path,
                line,
            )
        
        parts = stripped.split(" ", 2)
        if len(parts) < 3 or not parts[2].strip():
            raise CorruptPersistedStateError(
                "expected '<number> <balance> <description>'", path, line
            )
        number_text, balance_text, description = parts
        
        return AccountRecord(
            depth=len(leading) // self.indent_width,
            number=_parse_account_number(number_text, path, line),
            description=description.strip(),
            balance=_parse_decimal(balance_text, "balance", path, line),
            line=line,
        )
    
    def format_transaction_line(self, record: TransactionRecord) -> str:
        return f"{record.account_number} {record.kind.value} {record.amount}"
    
    def parse_transaction_line(
        self,
        raw: str,
        line: int,
        path: str = "",
    ) -> TransactionRecord:
        """Parse one transaction log line (without its newline)."""
        parts = raw.split()
        if len(parts) != 3:
            raise CorruptPersistedStateError(
                "expected '<number> <debit|credit> <amount>'", path, line
            )
        number_text, kind_text, amount_text = parts
        
        try:
            kind = TransactionKind(kind_text.lower())
        except ValueError:
            raise CorruptPersistedStateError(
                f"unknown transaction kind {kind_text!r}", path, line
            )
        
        amount = _parse_decimal(amount_text, "amount", path, line)
        if amount == 0:
            raise CorruptPersistedStateError("transaction amount is zero", path, line)
        
        return TransactionRecord(
            account_number=_parse_account_number(number_text, path, line),
            kind=kind,
            amount=amount,
            line=line,
        )
    
    # -------------------------------------------------------------------------
    # ForestStorageInterface
    # -------------------------------------------------------------------------
    
    def load_structure(self, path: str) -> list[AccountRecord]:
        return [
            self.parse_account_line(raw, line, path)
            for line, raw in self._read_records(path)
        ]
    
    def save_structure(self, path: str, records: list[AccountRecord]) -> None:
        self._write_lines(path, (self.format_account_line(r) for r in records))
    
    def load_transactions(self, path: str) -> list[TransactionRecord]:
        if not os.path.exists(path):
            return []
        return [
            self.parse_transaction_line(raw, line, path)
            for line, raw in self._read_records(path)
        ]
    
    def save_transactions(self, path: str, records: list[TransactionRecord]) -> None:
        self._write_lines(path, (self.format_transaction_line(r) for r in records))
    
    def transaction_filename(self, structure_path: str) -> str:
        """
        accounts.txt -> accounts_transactions.txt, next to the structural file.
        """
        path = Path(structure_path)
        return str(path.with_name(f"{path.stem}{self.transaction_suffix}{path.suffix}"))
    
    def save_report(self, path: str, text: str) -> None:
        self._write_lines(path, text.splitlines())
    
    # -------------------------------------------------------------------------
    # File access
    # -------------------------------------------------------------------------
    
    def _read_records(self, path: str) -> list[tuple[int, str]]:
        """Non-blank, non-comment lines with their 1-based line numbers."""
        try:
            with open(path, "r", encoding=self.encoding) as handle:
                lines = handle.read().splitlines()
        except UnicodeDecodeError as e:
            raise CorruptPersistedStateError(f"not valid {self.encoding} text: {e}", path)
        except OSError as e:
            raise StorageIOError(path, e.strerror or str(e))
        
        return [
            (number, raw)
            for number, raw in enumerate(lines, start=1)
            if raw.strip() and not raw.lstrip().startswith(COMMENT_PREFIX)
        ]
    
    def _write_lines(self, path: str, lines: Iterable[str]) -> None:
        temp_path = f"{path}.tmp"
        try:
            with open(temp_path, "w", encoding=self.encoding, newline="\n") as handle:
                for text in lines:
                    handle.write(text)
                    handle.write("\n")
            os.replace(temp_path, path)
        except OSError as e:
            if os.path.exists(temp_path):
                os.remove(temp_path)
            raise StorageIOError(path, e.strerror or str(e))


def _parse_account_number(text: str, path: str, line: int) -> int:
    if not text.isdigit():
        raise CorruptPersistedStateError(f"invalid account number {text!r}", path, line)
    number = int(text)
    if number <= 0:
        raise CorruptPersistedStateError(f"account number must be positive, got {number}", path, line)
    return number


def _parse_decimal(text: str, field: str, path: str, line: int) -> Decimal:
    try:
        value = Decimal(text)
    except InvalidOperation:
        raise CorruptPersistedStateError(f"invalid {field} {text!r}", path, line)
    if not value.is_finite():
        raise CorruptPersistedStateError(f"{field} must be finite, got {text!r}", path, line)
    return value
