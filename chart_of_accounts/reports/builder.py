"""
Report Rendering

Pure text rendering of forest data. Nothing here mutates accounts or
touches files; writing a report to disk is the engine's job.
"""

from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from chart_of_accounts.models.account import Account

if TYPE_CHECKING:
    from chart_of_accounts.forest.node import Node


RULE_WIDTH = 48


def format_money(value: Decimal) -> str:
    return f"{value:,.2f}"


class ReportBuilder:
    """Renders detailed subtree reports and the forest outline."""
    
    def __init__(self, indent: str = "    "):
        self._indent = indent
    
    def account_summary(self, account: Account) -> str:
        """Number, description and balance of a single account."""
        return "\n".join([
            f"Account Number: {account.number}",
            f"Description: {account.description}",
            f"Balance: {format_money(account.balance)}",
        ])
    
    def transaction_lines(self, account: Account, prefix: str = "") -> list[str]:
        if not account.transactions:
            return [f"{prefix}(no transactions)"]
        return [
            f"{prefix}[{index}] {transaction.kind.value:<6} {format_money(transaction.amount)}"
            for index, transaction in enumerate(account.transactions)
        ]
    
    def detailed_report(self, node: "Node") -> str:
        """
        Report for the subtree rooted at `node`.
        
        Each account is listed depth-first in child-insertion order with
        its balance and full transaction list, indented by depth below
        the starting account.
        """
        lines = [
            f"Detailed report for account {node.number}",
            "=" * RULE_WIDTH,
        ]
        
        count = 0
        total = Decimal("0")
        for current, depth in node.walk():
            account = current.account
            pad = self._indent * depth
            count += 1
            total += account.balance
            
            lines.append(f"{pad}Account {account.number}: {account.description}")
            lines.append(f"{pad}  Balance: {format_money(account.balance)}")
            lines.append(f"{pad}  Transactions:")
            lines.extend(self.transaction_lines(account, prefix=f"{pad}    "))
        
        lines.append("-" * RULE_WIDTH)
        lines.append(f"Accounts: {count}    Subtree total: {format_money(total)}")
        return "\n".join(lines) + "\n"
    
    def forest_outline(self, roots: Iterable["Node"]) -> str:
        """Every root and its subtree, indented by depth."""
        lines = []
        for root in roots:
            for node, depth in root.walk():
                account = node.account
                lines.append(
                    f"{self._indent * depth}{account.number}  "
                    f"{account.description}  {format_money(account.balance)}"
                )
        
        if not lines:
            return "(empty chart of accounts)\n"
        return "\n".join(lines) + "\n"
