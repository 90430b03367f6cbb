"""
HaMoney - Split Engine Package

The allocation and debt-settlement engine behind the HaMoney
bill-splitting app.

DESIGN PRINCIPLES:
1. Shares always reconcile to the total, to the cent
2. Fail early, fail visibly
3. No silent corrections
4. Every ledger mutation is flushed and auditable
5. Storage layer is swappable
"""

__version__ = "1.0.0"
__author__ = "HaMoney Team"
