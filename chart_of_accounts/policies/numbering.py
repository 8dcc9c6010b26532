"""
Account Numbering Policies

DESIGN DECISION: The rule that decides where a new account attaches is a
policy object, not logic inside the forest. The forest only asks three
questions:
1. Can this number be a root?
2. Which existing accounts could sponsor it, nearest first?
3. Is this number a valid child of that parent? (used when loading files)

Two conventions are provided:
- FixedWidthPrefixPolicy: 4-digit style charts (1000 Assets, 1100 Cash,
  1110 Petty cash). Trailing zeros are padding; the remaining digits
  are the account's position in the hierarchy.
- DigitPrefixPolicy: variable-length charts (1, 11, 111) where a parent's
  number is a literal prefix of its children's.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel


class PlacementKind(str, Enum):
    ROOT = "root"
    CHILD = "child"
    INVALID = "invalid"


class Placement(BaseModel):
    """Where a new account number may attach."""
    
    kind: PlacementKind
    parent_number: Optional[int] = None
    reason: str = ""
    
    @property
    def is_valid(self) -> bool:
        return self.kind != PlacementKind.INVALID
    
    @property
    def is_root(self) -> bool:
        return self.kind == PlacementKind.ROOT


class AttachmentPolicy(ABC):
    """Decides the structural placement of account numbers."""
    
    name: str = ""
    
    @abstractmethod
    def is_root_eligible(self, number: int) -> bool:
        """True if the number starts a new tree."""
    
    @abstractmethod
    def ancestor_candidates(self, number: int) -> list[int]:
        """Numbers that could be this number's parent, nearest first."""
    
    @abstractmethod
    def is_valid_child(self, parent_number: int, child_number: int) -> bool:
        """True if child_number may sit directly under parent_number."""
    
    @abstractmethod
    def malformed_reason(self, number: int) -> Optional[str]:
        """Why a number can never be placed, or None if it is well formed."""
    
    def describe(self) -> str:
        return self.name
    
    def resolve(self, number: int, exists: Callable[[int], bool]) -> Placement:
        """
        Find the placement of a new account.
        
        Args:
            number: The new account number
            exists: Lookup telling whether an account number is present
            
        Returns:
            ROOT, CHILD of the nearest existing ancestor, or INVALID
        """
        reason = self.malformed_reason(number)
        if reason:
            return Placement(kind=PlacementKind.INVALID, reason=reason)
        
        if self.is_root_eligible(number):
            return Placement(kind=PlacementKind.ROOT)
        
        candidates = self.ancestor_candidates(number)
        for candidate in candidates:
            if exists(candidate):
                return Placement(kind=PlacementKind.CHILD, parent_number=candidate)
        
        return Placement(
            kind=PlacementKind.INVALID,
            reason=(
                f"No parent account exists for {number} "
                f"(expected one of: {', '.join(str(c) for c in candidates)})"
            ),
        )


class FixedWidthPrefixPolicy(AttachmentPolicy):
    """
    Fixed-width numbers with zero padding.
    
    With width=4 and root_digits=1:
        1000 -> root
        1100 -> child of 1000
        1110 -> child of 1100, or of 1000 if 1100 does not exist
        1010 -> child of 1000
    """
    
    name = "fixed_width"
    
    def __init__(self, width: int = 4, root_digits: int = 1):
        if root_digits < 1 or root_digits >= width:
            raise ValueError("root_digits must be at least 1 and smaller than width")
        self.width = width
        self.root_digits = root_digits
    
    def _significant(self, number: int) -> str:
        return str(number).rstrip("0")
    
    def malformed_reason(self, number: int) -> Optional[str]:
        if number <= 0:
            return f"Account number must be positive, got {number}"
        if len(str(number)) != self.width:
            return f"Account number {number} must have exactly {self.width} digits"
        return None
    
    def is_root_eligible(self, number: int) -> bool:
        return (
            self.malformed_reason(number) is None
            and len(self._significant(number)) <= self.root_digits
        )
    
    def ancestor_candidates(self, number: int) -> list[int]:
        significant = self._significant(number)
        candidates = []
        for length in range(len(significant) - 1, self.root_digits - 1, -1):
            candidate = int(significant[:length].ljust(self.width, "0"))
            if candidate != number and candidate not in candidates:
                candidates.append(candidate)
        return candidates
    
    def is_valid_child(self, parent_number: int, child_number: int) -> bool:
        if self.malformed_reason(parent_number) or self.malformed_reason(child_number):
            return False
        parent = self._significant(parent_number)
        child = self._significant(child_number)
        return len(parent) < len(child) and child.startswith(parent)
    
    def describe(self) -> str:
        return f"{self.name} (width={self.width}, root_digits={self.root_digits})"


class DigitPrefixPolicy(AttachmentPolicy):
    """
    Variable-length numbers where a parent is a literal prefix.
    
    With root_digits=1:
        1   -> root
        11  -> child of 1
        111 -> child of 11, or of 1 if 11 does not exist
    """
    
    name = "digit_prefix"
    
    def __init__(self, root_digits: int = 1):
        if root_digits < 1:
            raise ValueError("root_digits must be at least 1")
        self.root_digits = root_digits
    
    def malformed_reason(self, number: int) -> Optional[str]:
        if number <= 0:
            return f"Account number must be positive, got {number}"
        return None
    
    def is_root_eligible(self, number: int) -> bool:
        return number > 0 and len(str(number)) <= self.root_digits
    
    def ancestor_candidates(self, number: int) -> list[int]:
        digits = str(number)
        return [
            int(digits[:length])
            for length in range(len(digits) - 1, self.root_digits - 1, -1)
        ]
    
    def is_valid_child(self, parent_number: int, child_number: int) -> bool:
        if parent_number <= 0 or child_number <= 0:
            return False
        parent = str(parent_number)
        child = str(child_number)
        return len(parent) < len(child) and child.startswith(parent)
    
    def describe(self) -> str:
        return f"{self.name} (root_digits={self.root_digits})"


_POLICIES = {
    FixedWidthPrefixPolicy.name: FixedWidthPrefixPolicy,
    DigitPrefixPolicy.name: DigitPrefixPolicy,
}


def create_attachment_policy(
    name: str,
    width: int = 4,
    root_digits: int = 1,
) -> AttachmentPolicy:
    """Build an attachment policy by its settings name."""
    if name == FixedWidthPrefixPolicy.name:
        return FixedWidthPrefixPolicy(width=width, root_digits=root_digits)
    if name == DigitPrefixPolicy.name:
        return DigitPrefixPolicy(root_digits=root_digits)
    raise ValueError(f"Unknown numbering policy {name!r}. Available: {sorted(_POLICIES)}")
