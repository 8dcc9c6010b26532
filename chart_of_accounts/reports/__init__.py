"""Text reports."""

from chart_of_accounts.reports.builder import ReportBuilder, format_money

__all__ = ["ReportBuilder", "format_money"]
