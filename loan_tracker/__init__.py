"""Loan Tracker: personal loan ledger with daily simple-interest accrual."""

__version__ = "1.0.0"
