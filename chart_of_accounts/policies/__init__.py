"""Numbering and sign policies."""

from chart_of_accounts.policies.numbering import (
    AttachmentPolicy,
    DigitPrefixPolicy,
    FixedWidthPrefixPolicy,
    Placement,
    PlacementKind,
    create_attachment_policy,
)
from chart_of_accounts.policies.sign import (
    CategorySignConvention,
    SignConvention,
    UniformSignConvention,
    create_sign_convention,
)

__all__ = [
    "AttachmentPolicy",
    "DigitPrefixPolicy",
    "FixedWidthPrefixPolicy",
    "Placement",
    "PlacementKind",
    "create_attachment_policy",
    "CategorySignConvention",
    "SignConvention",
    "UniformSignConvention",
    "create_sign_convention",
]
