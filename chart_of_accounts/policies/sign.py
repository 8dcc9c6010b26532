"""
Debit/Credit Sign Conventions

Which transaction kind increases an account's balance is decided once,
when the account is created, and stored on the account as its normal side.
"""

from abc import ABC, abstractmethod

from chart_of_accounts.models.account import AccountCategory, TransactionKind


class SignConvention(ABC):
    """Maps an account number to the transaction kind that increases it."""
    
    name: str = ""
    
    @abstractmethod
    def normal_side(self, number: int) -> TransactionKind:
        ...


class UniformSignConvention(SignConvention):
    """Every account increases on the same side (debit by default)."""
    
    name = "uniform"
    
    def __init__(self, normal_side: TransactionKind = TransactionKind.DEBIT):
        self._normal_side = TransactionKind(normal_side)
    
    def normal_side(self, number: int) -> TransactionKind:
        return self._normal_side


class CategorySignConvention(SignConvention):
    """
    Conventional accounting signs by category.
    
    Assets and expenses increase with debits; liabilities, equity and
    income increase with credits. Unclassified accounts follow assets.
    """
    
    name = "by_category"
    
    CREDIT_NORMAL = frozenset({
        AccountCategory.LIABILITY,
        AccountCategory.EQUITY,
        AccountCategory.INCOME,
    })
    
    def normal_side(self, number: int) -> TransactionKind:
        if AccountCategory.from_number(number) in self.CREDIT_NORMAL:
            return TransactionKind.CREDIT
        return TransactionKind.DEBIT


def create_sign_convention(name: str, normal_side: str = "debit") -> SignConvention:
    """Build a sign convention by its settings name."""
    if name == UniformSignConvention.name:
        return UniformSignConvention(TransactionKind(normal_side))
    if name == CategorySignConvention.name:
        return CategorySignConvention()
    raise ValueError(f"Unknown sign convention {name!r}")
