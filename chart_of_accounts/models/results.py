"""
Operation Result Models

DESIGN DECISION: Forest operations return explicit results instead of
raising. Every failure carries a ForestErrorKind, so callers can tell
"rejected" apart from "applied but not saved".
"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class ForestErrorKind(str, Enum):
    """Distinguishable failure outcomes of forest operations."""
    DUPLICATE_ACCOUNT = "duplicate_account"
    INVALID_HIERARCHY_PLACEMENT = "invalid_hierarchy_placement"
    ACCOUNT_NOT_FOUND = "account_not_found"
    INDEX_OUT_OF_RANGE = "index_out_of_range"
    CORRUPT_PERSISTED_STATE = "corrupt_persisted_state"
    IO_ERROR = "io_error"
    INVALID_INPUT = "invalid_input"


class ForestOperationError(Exception):
    """A failed OperationResult, re-raised for callers that prefer exceptions."""
    
    def __init__(self, kind: ForestErrorKind, message: str):
        self.kind = kind
        super().__init__(message)


class OperationResult(BaseModel):
    """
    Outcome of a forest operation.
    
    `saved` is None when the operation does not persist anything,
    True/False when it attempted a save after succeeding in memory.
    """
    
    success: bool
    error: Optional[ForestErrorKind] = None
    message: str = ""
    account_number: Optional[int] = None
    
    # Persistence outcome (only for *_with_file / save operations)
    saved: Optional[bool] = None
    save_error: Optional[str] = None
    
    @classmethod
    def ok(cls, message: str = "", **kwargs) -> "OperationResult":
        return cls(success=True, message=message, **kwargs)
    
    @classmethod
    def fail(cls, error: ForestErrorKind, message: str, **kwargs) -> "OperationResult":
        return cls(success=False, error=error, message=message, **kwargs)
    
    @property
    def applied_but_not_saved(self) -> bool:
        return self.success and self.saved is False
    
    def raise_for_error(self) -> None:
        if not self.success:
            raise ForestOperationError(self.error, self.message)
    
    def __bool__(self) -> bool:
        return self.success


class ReportResult(OperationResult):
    """Outcome of a report operation, carrying the rendered text."""
    
    text: Optional[str] = None


# =============================================================================
# VALIDATION MODELS
# =============================================================================

class ValidationIssue(BaseModel):
    """A single integrity issue found in a forest."""
    
    account_number: Optional[int] = Field(
        default=None,
        description="Account the issue concerns, if any"
    )
    issue_type: str = Field(
        ...,
        description="Type of issue (e.g., 'index_mismatch', 'placement', 'balance')"
    )
    message: str = Field(
        ...,
        description="Human-readable description of the issue"
    )
    severity: str = Field(
        default="error",
        pattern="^(error|warning|info)$",
    )


class ValidationResult(BaseModel):
    """Result of a forest integrity check."""
    
    account_count: int = Field(ge=0)
    issues: list[ValidationIssue] = Field(default_factory=list)
    
    @property
    def is_valid(self) -> bool:
        return not self.has_errors
    
    @property
    def has_errors(self) -> bool:
        return any(issue.severity == "error" for issue in self.issues)
    
    @property
    def error_count(self) -> int:
        return sum(1 for issue in self.issues if issue.severity == "error")
