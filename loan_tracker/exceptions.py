"""Custom exceptions for Loan Tracker."""


class LoanTrackerError(Exception):
    """Base exception for all Loan Tracker errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


class ValidationError(LoanTrackerError):
    """Raised when manually entered loan or payment data is invalid."""

    def __init__(self, message: str, field: str = None):
        details = {}
        if field:
            details['field'] = field
        super().__init__(message, details)
        self.field = field


class ImportFormatError(LoanTrackerError):
    """Raised when an imported loan file is missing required fields."""

    def __init__(self, missing_fields):
        self.missing_fields = list(missing_fields)
        message = (
            "Invalid or incomplete CSV file. Could not find required loan details "
            f"({', '.join(self.missing_fields)})."
        )
        super().__init__(message, {'missing': self.missing_fields})


class DatabaseError(LoanTrackerError):
    """Raised when a database operation fails."""
    pass


class TransactionError(DatabaseError):
    """Raised when a database transaction fails to complete."""
    pass


class LoanNotFoundError(LoanTrackerError):
    """Raised when a loan cannot be found."""

    def __init__(self, loan_id: str = None):
        details = {}
        message = "Loan not found"
        if loan_id:
            details['loan_id'] = loan_id
            message = f"Loan '{loan_id}' not found"

        super().__init__(message, details)
