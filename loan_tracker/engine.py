"""Application facade for Loan Tracker.

This module provides the LoanEngine class which ties the stored loans to the
services in loan_tracker/services/. Presentation code should only need this
class.

Service Modules:
    - LoanService: validated construction of loans and payments
    - ledger_engine: balance, interest and chart calculations
    - csv_codec: single-loan import/export
    - analytics: portfolio, borrower and search views
"""
import logging

from loan_tracker.exceptions import ImportFormatError, LoanNotFoundError, ValidationError
from loan_tracker.result import ErrorType, Result
from loan_tracker.services import LoanService, analytics, csv_codec, ledger_engine
from loan_tracker.services.loan_service import parse_date

logger = logging.getLogger(__name__)


class LoanEngine:
    """Handles business logic, interfacing with DatabaseManager.

    Every mutation builds a new Loan value through LoanService and persists
    it; every read loads loans from the database and hands them to the pure
    services.

    Attributes:
        db: DatabaseManager instance for data persistence.
        loan_service: LoanService instance (lazy-loaded).
    """

    def __init__(self, db_manager):
        self.db = db_manager
        self._loan_service = None

    @property
    def loan_service(self):
        """Lazy-load LoanService instance."""
        if self._loan_service is None:
            self._loan_service = LoanService()
        return self._loan_service

    def get_loans(self):
        return self.db.get_loans()

    def get_loan(self, loan_id):
        """Load a loan or raise LoanNotFoundError."""
        loan = self.db.get_loan(loan_id)
        if loan is None:
            raise LoanNotFoundError(loan_id)
        return loan

    def add_loan(self, name, principal, interest_rate, start_date, lender_name="", borrower_name=""):
        """Create and store a new loan.

        Raises:
            ValidationError: If the loan terms are invalid. Nothing is stored.
        """
        loan = self.loan_service.create_loan(
            name, principal, interest_rate, start_date, lender_name, borrower_name
        )
        self.db.save_loan(loan)
        logger.info("Added loan '%s' (%s)", loan.name, loan.id)
        return loan

    def add_payment(self, loan_id, amount, date):
        """Record a payment (positive amount) or redraw (negative amount).

        Returns:
            The updated Loan.

        Raises:
            LoanNotFoundError: If the loan doesn't exist.
            ValidationError: If the amount is zero or the date is missing.
        """
        loan = self.get_loan(loan_id)
        updated = self.loan_service.add_payment(loan, amount, date)
        self.db.add_payment(loan_id, updated.payments[-1])
        return updated

    def delete_loan(self, loan_id):
        if not self.db.delete_loan(loan_id):
            raise LoanNotFoundError(loan_id)
        logger.info("Deleted loan %s", loan_id)

    def get_metrics(self, loan_id, as_of_date=None):
        return ledger_engine.calculate_loan_metrics(self.get_loan(loan_id), parse_date(as_of_date))

    def get_chart_data(self, loan_id):
        """Cumulative principal/interest points for the loan's chart."""
        return list(ledger_engine.generate_chart_data(self.get_loan(loan_id)))

    def get_chart_df(self, loan_id):
        return ledger_engine.chart_data_frame(self.get_loan(loan_id))

    def export_loan_csv(self, loan_id, as_of_date=None):
        """Return (filename, csv_text) for a stored loan."""
        loan = self.get_loan(loan_id)
        return csv_codec.export_filename(loan), csv_codec.generate_loan_csv(loan, parse_date(as_of_date))

    def import_loan_csv(self, text) -> Result:
        """Parse an exported loan file and store it as a new loan.

        Returns:
            Result with the imported Loan, or a VALIDATION failure carrying
            the parser's message.
        """
        try:
            parsed = csv_codec.parse_loan_csv(text)
        except (ImportFormatError, ValidationError) as e:
            logger.warning("Rejected loan import: %s", e.message)
            return Result.fail(e.message, ErrorType.VALIDATION)

        loan = self.loan_service.from_import(parsed)
        self.db.save_loan(loan)
        logger.info("Imported loan '%s' with %d transactions", loan.name, len(loan.payments))
        return Result.ok(loan)

    def get_portfolio_stats(self, as_of_date=None):
        return analytics.portfolio_stats(self.get_loans(), parse_date(as_of_date))

    def get_borrower_leaderboard(self):
        return analytics.borrower_leaderboard(self.get_loans())

    def get_borrower_profile(self, borrower_name, as_of_date=None):
        return analytics.borrower_profile(borrower_name, self.get_loans(), parse_date(as_of_date))

    def search_loans(self, query):
        return analytics.search_loans(self.get_loans(), query)
