"""
Persistence Records

Flat records exchanged between the forest engine and storage backends.
Storage never sees Nodes; the engine never sees file lines.
"""

from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from chart_of_accounts.models.account import TransactionKind


class AccountRecord(BaseModel):
    """One account of the structural file, positioned by depth."""
    model_config = ConfigDict(frozen=True)
    
    depth: int = Field(ge=0)
    number: int
    description: str
    balance: Decimal
    line: Optional[int] = Field(
        default=None,
        description="Source line number when read from a file"
    )


class TransactionRecord(BaseModel):
    """One entry of the transaction log, keyed by account number."""
    model_config = ConfigDict(frozen=True)
    
    account_number: int
    kind: TransactionKind
    amount: Decimal
    line: Optional[int] = None
