"""
Expense Ledger - Source Package

The ledger and budget analytics engine behind a personal expense tracker.

DESIGN PRINCIPLES:
1. Money is an integer count of base-cents, always
2. Conversion to a display currency happens only at presentation time
3. Fail early, fail visibly (no partial notifications on store errors)
4. A notification must never undo the expense write that triggered it
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Expense Ledger Team"
