"""
Forest Integrity Validation

Checks the invariants the engine maintains:
- The account-number index and the tree topology describe the same nodes
- Every child's back-reference points at the node that owns it
- Every root and every parent/child pair satisfies the numbering policy
- Every account's normal side matches the sign convention in force

IMPORTANT: Validation NEVER repairs anything.
It reports issues; the caller decides what to do.
"""

from typing import TYPE_CHECKING, Iterable, Mapping, Optional

from chart_of_accounts.models.results import ValidationIssue, ValidationResult
from chart_of_accounts.policies import AttachmentPolicy, SignConvention

if TYPE_CHECKING:
    from chart_of_accounts.forest.node import Node


class ForestValidator:
    """Validates a forest's topology against its index and policies."""
    
    def __init__(
        self,
        policy: AttachmentPolicy,
        sign_convention: Optional[SignConvention] = None,
    ):
        self._policy = policy
        self._signs = sign_convention
    
    def _validate_topology(
        self,
        roots: Iterable["Node"],
        index: Mapping[int, "Node"],
    ) -> tuple[set[int], list[ValidationIssue]]:
        issues = []
        seen: set[int] = set()
        
        for root in roots:
            if root.parent() is not None:
                issues.append(ValidationIssue(
                    account_number=root.number,
                    issue_type="back_reference",
                    message=f"Root {root.number} has a parent",
                ))
            if not self._policy.is_root_eligible(root.number):
                issues.append(ValidationIssue(
                    account_number=root.number,
                    issue_type="placement",
                    message=f"{root.number} is not a valid root under {self._policy.describe()}",
                ))
            
            for node, _ in root.walk():
                number = node.number
                if number in seen:
                    issues.append(ValidationIssue(
                        account_number=number,
                        issue_type="duplicate",
                        message=f"Account {number} appears more than once",
                    ))
                seen.add(number)
                
                if index.get(number) is not node:
                    issues.append(ValidationIssue(
                        account_number=number,
                        issue_type="index_mismatch",
                        message=f"Index entry for {number} does not point at its node",
                    ))
                
                for child in node.children():
                    if child.parent() is not node:
                        issues.append(ValidationIssue(
                            account_number=child.number,
                            issue_type="back_reference",
                            message=f"{child.number} does not point back at parent {number}",
                        ))
                    if not self._policy.is_valid_child(number, child.number):
                        issues.append(ValidationIssue(
                            account_number=child.number,
                            issue_type="placement",
                            message=f"{child.number} cannot sit under {number}",
                        ))
        
        return seen, issues
    
    def _validate_accounts(self, index: Mapping[int, "Node"]) -> list[ValidationIssue]:
        issues = []
        if self._signs is None:
            return issues
        
        for number, node in index.items():
            expected = self._signs.normal_side(number)
            if node.account.normal_side != expected:
                issues.append(ValidationIssue(
                    account_number=number,
                    issue_type="sign_convention",
                    message=(
                        f"Account {number} increases on {node.account.normal_side.value}, "
                        f"convention expects {expected.value}"
                    ),
                    severity="warning",
                ))
        return issues
    
    def validate(
        self,
        roots: Iterable["Node"],
        index: Mapping[int, "Node"],
    ) -> ValidationResult:
        """
        Run all checks.
        
        Returns:
            ValidationResult with every issue found
        """
        seen, issues = self._validate_topology(roots, index)
        
        for number in index.keys() - seen:
            issues.append(ValidationIssue(
                account_number=number,
                issue_type="orphan_index_entry",
                message=f"Index entry {number} is not reachable from any root",
            ))
        
        issues.extend(self._validate_accounts(index))
        
        return ValidationResult(account_count=len(seen), issues=issues)
    
    def get_summary(self, result: ValidationResult) -> str:
        """Short human-readable summary of a validation result."""
        if not result.issues:
            return f"All checks passed for {result.account_count} accounts."
        
        lines = [f"{result.error_count} error(s) in {result.account_count} accounts:"]
        for issue in result.issues:
            lines.append(f"   • [{issue.severity}] {issue.message}")
        return "\n".join(lines)
