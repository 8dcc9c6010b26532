"""
Core Data Models for the Chart of Accounts

These models define the entities every forest node carries:
1. Transaction - an immutable signed amount with a debit/credit designation
2. Account - number, description, running balance and its transaction log

DESIGN DECISION: The balance is stored, not recomputed on every read.
It is only ever changed together with the transaction list, so
`balance == opening_balance + sum(signed transaction amounts)` always holds.
"""

from decimal import Decimal
from enum import Enum
from typing import Iterable

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
)


# =============================================================================
# ENUMS - Finite set of valid values
# =============================================================================

class TransactionKind(str, Enum):
    """The two transaction polarities."""
    DEBIT = "debit"
    CREDIT = "credit"


class AccountCategory(str, Enum):
    """
    Account categories derived from the leading digit of an account number.
    
    Only used by sign conventions that depend on the category.
    """
    ASSET = "asset"
    LIABILITY = "liability"
    EQUITY = "equity"
    INCOME = "income"
    EXPENSE = "expense"
    UNCLASSIFIED = "unclassified"
    
    @classmethod
    def from_number(cls, number: int) -> "AccountCategory":
        """1 asset, 2 liability, 3 equity, 4 income, 5 expense."""
        return _LEADING_DIGIT_CATEGORIES.get(str(number)[0], cls.UNCLASSIFIED)


_LEADING_DIGIT_CATEGORIES = {
    "1": AccountCategory.ASSET,
    "2": AccountCategory.LIABILITY,
    "3": AccountCategory.EQUITY,
    "4": AccountCategory.INCOME,
    "5": AccountCategory.EXPENSE,
}


class TransactionIndexError(IndexError):
    """Transaction index does not address an existing transaction."""
    
    def __init__(self, account_number: int, index: int, count: int):
        self.account_number = account_number
        self.index = index
        self.count = count
        if count:
            detail = f"valid indexes are 0-{count - 1}"
        else:
            detail = "the account has no transactions"
        super().__init__(
            f"Transaction index {index!r} out of range for account {account_number} ({detail})"
        )


# =============================================================================
# TRANSACTION
# =============================================================================

class Transaction(BaseModel):
    """
    A single transaction.
    
    Immutable once constructed. Deleting a transaction removes it from its
    account's log and reverses its balance effect; it is never edited.
    """
    model_config = ConfigDict(frozen=True)
    
    amount: Decimal = Field(
        ...,
        allow_inf_nan=False,
        description="Signed monetary amount (never zero)"
    )
    kind: TransactionKind = Field(
        ...,
        description="Debit or credit designation"
    )
    
    @field_validator('amount')
    @classmethod
    def reject_zero(cls, v: Decimal) -> Decimal:
        if v == 0:
            raise ValueError("Transaction amount cannot be zero")
        return v
    
    @classmethod
    def debit(cls, amount) -> "Transaction":
        return cls(amount=amount, kind=TransactionKind.DEBIT)
    
    @classmethod
    def credit(cls, amount) -> "Transaction":
        return cls(amount=amount, kind=TransactionKind.CREDIT)
    
    def __str__(self) -> str:
        return f"{self.kind.value} {self.amount:.2f}"


# =============================================================================
# ACCOUNT
# =============================================================================

class Account(BaseModel):
    """
    A chart-of-accounts entry.
    
    The balance and the transaction list are only mutated through
    `apply_transaction`, `remove_transaction_at` and
    `restore_transactions`, each of which keeps them in sync.
    """
    model_config = ConfigDict(str_strip_whitespace=True)
    
    number: int = Field(
        ...,
        gt=0,
        description="Globally unique account number"
    )
    description: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Account description"
    )
    balance: Decimal = Field(
        default=Decimal("0"),
        allow_inf_nan=False,
        description="Current balance"
    )
    normal_side: TransactionKind = Field(
        default=TransactionKind.DEBIT,
        description="Transaction kind that increases the balance"
    )
    transactions: list[Transaction] = Field(
        default_factory=list,
        description="Transactions in the order they were applied"
    )
    
    @field_validator('number', mode='before')
    @classmethod
    def reject_bool_number(cls, v):
        # bool is an int subclass; True would silently become account 1
        if isinstance(v, bool):
            raise ValueError("Account number must be an integer")
        return v
    
    @field_validator('description')
    @classmethod
    def single_line_description(cls, v: str) -> str:
        """Descriptions are stored one per line in the structural file."""
        if "\n" in v or "\r" in v:
            raise ValueError("Account description must be a single line")
        return v
    
    @property
    def transaction_count(self) -> int:
        return len(self.transactions)
    
    @property
    def opening_balance(self) -> Decimal:
        """Balance before any of the retained transactions."""
        return self.balance - sum(
            (self.signed_amount(t) for t in self.transactions),
            Decimal("0"),
        )
    
    def signed_amount(self, transaction: Transaction) -> Decimal:
        """Effect of a transaction on this account's balance."""
        if transaction.kind == self.normal_side:
            return transaction.amount
        return -transaction.amount
    
    def apply_transaction(self, transaction: Transaction) -> Decimal:
        """
        Append a transaction and adjust the balance.
        
        Returns the new balance.
        """
        delta = self.signed_amount(transaction)
        self.transactions.append(transaction)
        self.balance += delta
        return self.balance
    
    def remove_transaction_at(self, index: int) -> Transaction:
        """
        Remove the transaction at `index` and reverse its balance effect.
        
        Raises:
            TransactionIndexError: If index is not an int inside [0, count)
        """
        if (
            isinstance(index, bool)
            or not isinstance(index, int)
            or not 0 <= index < len(self.transactions)
        ):
            raise TransactionIndexError(self.number, index, len(self.transactions))
        
        transaction = self.transactions.pop(index)
        self.balance -= self.signed_amount(transaction)
        return transaction
    
    def restore_transactions(self, transactions: Iterable[Transaction]) -> None:
        """
        Replace the transaction log without touching the balance.
        
        Used when reloading persisted state: the stored balance already
        includes these transactions.
        """
        self.transactions = list(transactions)
