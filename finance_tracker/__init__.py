"""
Finance Tracker - Source Package

The data core of a personal finance tracker: transactions recorded
against payment cards, with card balances kept in step with history.

DESIGN PRINCIPLES:
1. One store owns transactions and cards
2. Every transaction mutation adjusts its card balance in the same step
3. The store trusts its inputs; validation happens before the call
4. Persistence sits behind a narrow load/save interface
5. Backup transport is swappable
"""

__version__ = "1.0.0"
__author__ = "Finance Tracker Team"
