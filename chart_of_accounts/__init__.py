"""
Chart of Accounts - Source Package

A hierarchical chart-of-accounts engine: a forest of accounts with
sub-accounts, running balances driven by transaction logs, and a flat-file
persistence format that round-trips the whole forest.

DESIGN PRINCIPLES:
1. The account-number index and the tree topology never disagree
2. Fail early, fail visibly
3. No partial updates (a rejected call leaves the forest untouched)
4. Every mutation is auditable
5. Numbering and sign rules are policies, not hard-coded
"""

__version__ = "1.0.0"
__author__ = "Chart of Accounts Team"
