"""
Loan Core

Loan origination, underwriting decisions, EMI and repayment tracking,
CIBIL score records and admin reporting, with Decimal money math and a
hash-chained audit trail.
"""

__version__ = "1.0.0"
