"""
Cashbook - Source Package

A daily cash-register reconciliation tool: opening cash, income and
expenses give the expected profit, which is checked against the cash
and bank balances actually counted at the end of the day.

DESIGN PRINCIPLES:
1. Derived values are always recomputed, never typed in
2. Fail early, fail visibly
3. No silent corrections to stored data
4. Every mutation is auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "Cashbook Team"
