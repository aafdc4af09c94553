"""Centralized configuration for Loan Tracker.

This module contains the day-count convention, storage formats and the
labels used by the import/export file format.
"""

# =============================================================================
# INTEREST
# =============================================================================

# Year length used to convert the annual rate into a daily rate
DAYS_PER_YEAR = 365.25

# =============================================================================
# STORAGE
# =============================================================================

# Default SQLite database file
DEFAULT_DB_NAME = "loan_tracker.db"

# Date format for storage and export (ISO 8601)
DATE_FORMAT_STORAGE = "%Y-%m-%d"

# =============================================================================
# IMPORT / EXPORT
# =============================================================================

CSV_LOAN_NAME = "Loan Name:"
CSV_LOAN_HASH = "Loan Hash:"
CSV_LENDER = "Lender:"
CSV_BORROWER = "Borrower:"
CSV_INTEREST_RATE = "Annual Interest Rate (%):"

CSV_TABLE_HEADER = "Date,Description,Amount"
CSV_SUMMARY_TITLE = "Summary (as of today)"

CSV_INITIAL_LOAN = "Initial Loan"
CSV_PAYMENT = "Payment"
CSV_REDRAW = "Redraw"

# Appended to the normalized loan name when exporting
EXPORT_FILENAME_SUFFIX = "_export.csv"
