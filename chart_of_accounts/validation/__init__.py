"""Validation package."""

from chart_of_accounts.validation.validator import ForestValidator

__all__ = ["ForestValidator"]
