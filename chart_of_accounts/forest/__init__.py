"""Forest-of-accounts engine."""

from chart_of_accounts.forest.node import Node
from chart_of_accounts.forest.engine import Forest

__all__ = ["Forest", "Node"]
