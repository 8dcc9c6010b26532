"""
Forest Node

A Node owns exactly one Account and an ordered list of child Nodes.
Ownership flows root-to-leaf only: the parent link is a weak reference,
so a subtree never keeps its parent alive.

Nodes know nothing about the account-number index. Uniqueness is the
Forest's job.
"""

import weakref
from typing import Iterator, Optional

from chart_of_accounts.models.account import Account


class Node:
    """Structural wrapper around one Account."""
    
    __slots__ = ("_account", "_children", "_parent", "__weakref__")
    
    def __init__(self, account: Account):
        self._account = account
        self._children: list["Node"] = []
        self._parent: Optional[weakref.ReferenceType] = None
    
    @property
    def account(self) -> Account:
        return self._account
    
    @property
    def number(self) -> int:
        return self._account.number
    
    def parent(self) -> Optional["Node"]:
        """The parent node, or None for a root."""
        if self._parent is None:
            return None
        return self._parent()
    
    @property
    def is_root(self) -> bool:
        return self._parent is None
    
    def add_child(self, node: "Node") -> "Node":
        """Append a child. No uniqueness check at this layer."""
        node._parent = weakref.ref(self)
        self._children.append(node)
        return node
    
    def children(self) -> Iterator["Node"]:
        """Children in insertion order. Each call starts a fresh iteration."""
        return iter(self._children)
    
    @property
    def child_count(self) -> int:
        return len(self._children)
    
    @property
    def depth(self) -> int:
        depth = 0
        node = self.parent()
        while node is not None:
            depth += 1
            node = node.parent()
        return depth
    
    def walk(self, depth: int = 0) -> Iterator[tuple["Node", int]]:
        """
        Depth-first, pre-order traversal of this subtree.
        
        Yields (node, depth) with depth relative to the starting depth.
        """
        stack = [(self, depth)]
        while stack:
            node, level = stack.pop()
            yield node, level
            stack.extend((child, level + 1) for child in reversed(node._children))
    
    def __repr__(self) -> str:
        return f"Node(number={self.number}, children={len(self._children)})"
