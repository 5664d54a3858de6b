"""
BizLedger - Source Package

Bookkeeping core for a small business: income/expense transactions,
due (credit) balances with named parties, and savings goals.

DESIGN PRINCIPLES:
1. Validate at the boundary, trust data inside the stores
2. Fail early, fail visibly
3. No silent corrections
4. Every read recomputes from the stored collection
5. Storage layer is swappable
"""

__version__ = "1.1.0"
__author__ = "BizLedger Team"
