"""Services package for Loan Tracker business logic.

The ledger engine is a set of pure functions; the other modules build,
serialize and summarize Loan values around it.
"""

from .ledger_engine import calculate_loan_metrics, generate_chart_data, chart_data_frame
from .loan_service import LoanService, compute_loan_hash
from .csv_codec import generate_loan_csv, parse_loan_csv, export_filename
from .analytics import portfolio_stats, borrower_leaderboard, borrower_profile, search_loans

__all__ = ['calculate_loan_metrics', 'generate_chart_data', 'chart_data_frame',
           'LoanService', 'compute_loan_hash',
           'generate_loan_csv', 'parse_loan_csv', 'export_filename',
           'portfolio_stats', 'borrower_leaderboard', 'borrower_profile', 'search_loans']
