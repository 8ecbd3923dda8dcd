"""
FinFlow - Source Package

A personal finance tracker: income/expense transactions, user-defined
categories, monthly budget goals, and full backup/restore.

DESIGN PRINCIPLES:
1. One explicitly owned store, injected where it is needed
2. Every mutation keeps transactions, categories and budgets consistent
3. Refusals are loud, nothing is half-applied
4. Derived views are recomputed, never stored
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "FinFlow Team"
